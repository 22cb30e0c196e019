"""SQLite reference store for the club roster and its aliases."""

import logging
import sqlite3
from datetime import date
from pathlib import Path

from clubsync import AliasMapping, RosterMember
from clubsync.dates import NO_FILTER_DATE
from clubsync.errors import DuplicateMemberError, StoreError

log = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS member (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    num TEXT NOT NULL UNIQUE,
    active INTEGER NOT NULL DEFAULT 1,
    login TEXT DEFAULT '',
    firstname TEXT DEFAULT '',
    middle TEXT DEFAULT '',
    lastname TEXT DEFAULT '',
    email TEXT DEFAULT '',
    status TEXT DEFAULT '',
    joined TEXT DEFAULT '',
    expired TEXT DEFAULT '',
    address TEXT DEFAULT '',
    addr_ext TEXT DEFAULT '',
    city TEXT DEFAULT '',
    state TEXT DEFAULT '',
    zip TEXT DEFAULT '',
    mobile TEXT DEFAULT '',
    phone TEXT DEFAULT ''
);
CREATE TABLE IF NOT EXISTS alias (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    member_id INTEGER NOT NULL REFERENCES member(id),
    firstname TEXT DEFAULT '',
    lastname TEXT DEFAULT '',
    email TEXT DEFAULT ''
);
"""

_MEMBER_COLUMNS = (
    'id, num, active, login, firstname, middle, lastname, email, status, '
    'joined, expired, address, addr_ext, city, state, zip, mobile, phone'
)


def _row_to_member(row: sqlite3.Row) -> RosterMember:
    return RosterMember(
        id=row['id'],
        num=str(row['num']),
        active=bool(row['active']),
        login=row['login'] or '',
        first_name=row['firstname'] or '',
        middle=row['middle'] or '',
        last_name=row['lastname'] or '',
        email=row['email'] or '',
        status=row['status'] or '',
        joined=row['joined'] or '',
        expired=row['expired'] or '',
        address=row['address'] or '',
        addr_ext=row['addr_ext'] or '',
        city=row['city'] or '',
        state=row['state'] or '',
        zip=row['zip'] or '',
        mobile=row['mobile'] or '',
        phone=row['phone'] or '',
    )


class RosterStore:
    """Adapter for the roster SQLite database.

    All queries use parameter binding; names such as "O'Connor" are stored
    as-is.
    """

    def __init__(self, db_path: str | Path, create: bool = False):
        """Open the roster database.

        Args:
            db_path: Path to the SQLite file, or ':memory:'.
            create: Allow creating a new database file.

        Raises:
            FileNotFoundError: If the file does not exist and create is False.
        """
        self.db_path = str(db_path)
        if not create and self.db_path != ':memory:' and not Path(self.db_path).exists():
            raise FileNotFoundError(f"No DB file found: {self.db_path}")

        try:
            self.conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as exc:
            raise StoreError(f"Could not open DB file {self.db_path}: {exc}") from exc
        self.conn.row_factory = sqlite3.Row

    def close(self):
        if self.conn:
            self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def create_schema(self) -> None:
        """Create the member and alias tables if they are missing."""
        self.conn.executescript(SCHEMA)
        self.conn.commit()

    def _query(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        try:
            return self.conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Member query failed: {exc}") from exc

    # ========== Lookups ==========

    def get_by_number(self, num: str) -> RosterMember | None:
        """Get a member by member number.

        Returns:
            The member, or None if no row has this number.
        """
        rows = self._query(
            f"SELECT {_MEMBER_COLUMNS} FROM member WHERE num = ?", (str(num),),
        )
        return _row_to_member(rows[0]) if rows else None

    def list_active(self, expire_cutoff: date = NO_FILTER_DATE) -> list[RosterMember]:
        """List valid roster rows, optionally prefiltered by expiration.

        Args:
            expire_cutoff: Only rows expiring after this date are returned;
                NO_FILTER_DATE returns every active row.

        Returns:
            Members in table order.
        """
        sql = f"SELECT {_MEMBER_COLUMNS} FROM member WHERE active = 1"
        params: tuple = ()
        if expire_cutoff != NO_FILTER_DATE:
            sql += " AND expired > ?"
            params = (expire_cutoff.isoformat(),)
        sql += " ORDER BY id"
        members = [_row_to_member(r) for r in self._query(sql, params)]
        log.info("%d roster members read from %s", len(members), self.db_path)
        return members

    def list_members(self) -> list[RosterMember]:
        """List all active rows ordered by last and first name."""
        rows = self._query(
            f"SELECT {_MEMBER_COLUMNS} FROM member WHERE active = 1 "
            "ORDER BY lastname, firstname"
        )
        return [_row_to_member(r) for r in rows]

    def list_aliases(self) -> list[tuple[AliasMapping, RosterMember]]:
        """List every alias together with the active member it refers to."""
        member_cols = ', '.join(f"m.{c.strip()}" for c in _MEMBER_COLUMNS.split(','))
        rows = self._query(
            f"SELECT a.member_id AS alias_member_id, a.firstname AS alias_firstname, "
            f"a.lastname AS alias_lastname, a.email AS alias_email, {member_cols} "
            "FROM alias a JOIN member m ON m.id = a.member_id "
            "WHERE m.active = 1 ORDER BY a.id"
        )
        pairs = []
        for row in rows:
            alias = AliasMapping(
                member_id=row['alias_member_id'],
                first_name=row['alias_firstname'] or '',
                last_name=row['alias_lastname'] or '',
                email=row['alias_email'] or '',
            )
            pairs.append((alias, _row_to_member(row)))
        return pairs

    # ========== Mutations ==========

    def insert(self, member: RosterMember) -> int:
        """Add a member row.

        Returns:
            The new row id.

        Raises:
            DuplicateMemberError: If the member number already exists.
            StoreError: On any other database failure.
        """
        try:
            with self.conn:
                cursor = self.conn.execute(
                    "INSERT INTO member (num, active, login, firstname, middle, lastname, "
                    "email, status, joined, expired, address, addr_ext, city, state, zip, "
                    "mobile, phone) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        str(member.num), int(member.active), member.login,
                        member.first_name, member.middle, member.last_name,
                        member.email, member.status, member.joined, member.expired,
                        member.address, member.addr_ext, member.city, member.state,
                        member.zip, member.mobile, member.phone,
                    ),
                )
        except sqlite3.IntegrityError as exc:
            if 'UNIQUE' in str(exc):
                raise DuplicateMemberError(
                    f"Insert member {member.num} failed: duplicate member"
                ) from exc
            raise StoreError(f"Insert member {member.num} failed: {exc}") from exc
        except sqlite3.Error as exc:
            raise StoreError(f"Insert member {member.num} failed: {exc}") from exc
        member.id = cursor.lastrowid
        return cursor.lastrowid

    def insert_alias(self, alias: AliasMapping) -> int:
        try:
            with self.conn:
                cursor = self.conn.execute(
                    "INSERT INTO alias (member_id, firstname, lastname, email) VALUES (?, ?, ?, ?)",
                    (alias.member_id, alias.first_name, alias.last_name, alias.email),
                )
        except sqlite3.Error as exc:
            raise StoreError(f"Insert alias for member id {alias.member_id} failed: {exc}") from exc
        return cursor.lastrowid

    def update_status(self, num: str, status: str, expired: str) -> None:
        """Set status and expiration date of a member.

        Raises:
            StoreError: If the update fails or no row has this number.
        """
        try:
            with self.conn:
                cursor = self.conn.execute(
                    "UPDATE member SET status = ?, expired = ? WHERE num = ?",
                    (status, expired, str(num)),
                )
        except sqlite3.Error as exc:
            raise StoreError(f"Update of member {num} failed: {exc}") from exc
        if cursor.rowcount == 0:
            raise StoreError(f"Update of member {num} failed: no matching record found")
