"""Reader for club-management CSV roster exports."""

import csv
import io
import logging
import re
from pathlib import Path

from clubsync import RosterMember
from clubsync.dates import is_zero, parse_date
from clubsync.errors import DuplicateMemberError, RosterFileError, StoreError

log = logging.getLogger(__name__)

# Matches any sequence of whitespace (including Unicode whitespace like U+2006)
_WHITESPACE_RE = re.compile(r'\s+')

REQUIRED_COLUMNS = {'num', 'firstname', 'lastname', 'email', 'status', 'expired'}


def detect_encoding(path: Path) -> str:
    """Detect file encoding by checking for BOM bytes.

    Args:
        path: Path to the CSV file.

    Returns:
        Encoding string suitable for open().
    """
    with open(path, 'rb') as f:
        bom = f.read(2)
    if bom == b'\xff\xfe':
        return 'utf-16-le'
    return 'utf-8-sig'


def normalize_whitespace(value: str) -> str:
    """Collapse runs of whitespace into one space and strip the ends."""
    return _WHITESPACE_RE.sub(' ', value).strip()


def _read_text(path: Path) -> str:
    with open(path, 'r', encoding=detect_encoding(path), newline='') as f:
        content = f.read()
    return content.lstrip('\ufeff')


def read_members(path: str | Path) -> list[RosterMember]:
    """Read roster members from a club-management CSV export.

    Columns: num, firstname, middle, lastname, email, status, joined,
    expired (dates as M/D/YY). Fields are whitespace-normalized and every
    row is treated as a valid (active) roster row.

    Args:
        path: Path to the CSV file.

    Returns:
        List of RosterMember objects in file order.

    Raises:
        FileNotFoundError: If the file does not exist.
        RosterFileError: If the file is empty or required columns are missing.
    """
    path = Path(path)
    reader = csv.DictReader(io.StringIO(_read_text(path)))

    if reader.fieldnames is None:
        raise RosterFileError(f"File {path} is empty or has no header row.")
    actual_cols = {normalize_whitespace(c).lower() for c in reader.fieldnames}
    missing = REQUIRED_COLUMNS - actual_cols
    if missing:
        raise RosterFileError(
            f"Missing columns in {path}: {', '.join(sorted(missing))}"
        )

    members: list[RosterMember] = []
    for row_num, row in enumerate(reader, start=2):
        cleaned = {normalize_whitespace(k).lower(): normalize_whitespace(v or '')
                   for k, v in row.items() if k is not None}
        if not cleaned.get('num'):
            log.warning("Row %d in %s skipped: no member number", row_num, path)
            continue
        members.append(RosterMember(
            num=cleaned['num'],
            first_name=cleaned.get('firstname', ''),
            middle=cleaned.get('middle', ''),
            last_name=cleaned.get('lastname', ''),
            email=cleaned.get('email', ''),
            status=cleaned.get('status', ''),
            joined=cleaned.get('joined', ''),
            expired=cleaned.get('expired', ''),
            active=True,
        ))

    log.info("%d members read from %s", len(members), path)
    return members


def validate_csv(path: str | Path) -> list[tuple[int, str]]:
    """Check that every record has as many fields as the header.

    Args:
        path: Path to the CSV file.

    Returns:
        (line number, message) for every malformed record; empty if valid.
    """
    path = Path(path)
    problems: list[tuple[int, str]] = []
    reader = csv.reader(io.StringIO(_read_text(path)))
    expected = None
    for record in reader:
        if expected is None:
            expected = len(record)
            continue
        if not record:
            continue
        if len(record) != expected:
            problems.append((
                reader.line_num,
                f"wrong number of fields: expected {expected}, got {len(record)}",
            ))
    return problems


def _iso(value: str) -> str:
    parsed = parse_date(value)
    return value if is_zero(parsed) else parsed.isoformat()


def import_members(members: list[RosterMember], store) -> int:
    """Insert exported roster rows into the store.

    Dates are stored in ISO form. Rows whose member number already exists
    are logged and skipped.

    Args:
        members: Members read with read_members().
        store: RosterStore to insert into.

    Returns:
        Number of inserted rows.
    """
    inserted = 0
    for member in members:
        member.joined = _iso(member.joined)
        member.expired = _iso(member.expired)
        try:
            store.insert(member)
        except DuplicateMemberError as exc:
            log.warning("%s", exc)
            continue
        except StoreError as exc:
            log.error("%s", exc)
            continue
        inserted += 1
    log.info("Imported %d of %d members", inserted, len(members))
    return inserted
