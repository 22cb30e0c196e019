"""Active-member sync from the club-management feed into the roster store."""

import logging
import sys
from dataclasses import dataclass, replace
from datetime import date
from typing import TextIO

from clubsync import STATUS_ACTIVE, STATUS_NEW, RosterMember
from clubsync.clients import ClubExpressClient
from clubsync.config import RunConfig
from clubsync.dates import end_of_year
from clubsync.errors import StoreError

log = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Counts of what an active-member sync did (or would do in preview)."""

    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.inserted + self.updated + self.unchanged + self.failed


def format_transition(record: RosterMember, old_status: str, expired: str) -> str:
    return (
        f'[{record.num}] {record.first_name} {record.last_name} '
        f'({old_status}) -> ({STATUS_ACTIVE}) {expired}'
    )


def sync_actives(
    records: list[RosterMember],
    store,
    preview: bool = False,
    today: date | None = None,
    out: TextIO | None = None,
) -> SyncResult:
    """Bring roster status in line with the feed of active members.

    Unknown member numbers are inserted as Active, existing members with any
    other status are set to Active; both get Dec 31 of the current year as
    expiration date. Members already Active are left untouched. Store errors
    affect only the record at hand: they are logged and the loop continues.

    Args:
        records: Active members from the feed.
        store: RosterStore to look up and update.
        preview: Print the would-be transitions instead of writing.
        today: Reference date for the expiration year (defaults to today).
        out: Stream for preview lines (defaults to stdout).

    Returns:
        SyncResult with per-outcome counts.
    """
    out = out or sys.stdout
    expired = end_of_year(today)
    result = SyncResult()

    if preview:
        log.info("Preview flag set: NOT making changes to DB")
    log.info("Expired dates will be set to %s", expired)

    for record in records:
        try:
            current = store.get_by_number(record.num)
        except StoreError as exc:
            log.error("Lookup of member %s failed: %s", record.num, exc)
            result.failed += 1
            continue

        if current is None:
            if preview:
                print(format_transition(record, STATUS_NEW, expired), file=out)
                result.inserted += 1
                continue
            new_member = replace(record, status=STATUS_ACTIVE, expired=expired, active=True, id=None)
            try:
                store.insert(new_member)
            except StoreError as exc:
                log.error("%s", exc)
                result.failed += 1
                continue
            log.info("Inserted new club member with status Active: %s", record.num)
            result.inserted += 1

        elif current.status == STATUS_ACTIVE:
            result.unchanged += 1

        else:
            if preview:
                print(format_transition(record, current.status, expired), file=out)
                result.updated += 1
                continue
            try:
                store.update_status(record.num, STATUS_ACTIVE, expired)
            except StoreError as exc:
                log.error("%s", exc)
                result.failed += 1
                continue
            log.info("Updated club member %s: %s -> Active", record.num, current.status)
            result.updated += 1

    log.info(
        "Active sync done: %d inserted, %d updated, %d unchanged, %d failed",
        result.inserted, result.updated, result.unchanged, result.failed,
    )
    return result


def run_active_sync(
    client: ClubExpressClient,
    store,
    config: RunConfig | None = None,
    out: TextIO | None = None,
) -> SyncResult:
    """Download the active-member feed and sync it into the store.

    Only ``config.preview`` applies to the sync; without a config the
    changes are written.

    Raises:
        PlatformError: If the feed cannot be fetched (nothing is synced).
    """
    snapshot = client.fetch_actives()
    log.info("JSON file date: %s", snapshot.last_modified or 'unknown')
    log.info("Created list of %d active club members from JSON file", len(snapshot.records))
    config = config or RunConfig()
    return sync_actives(snapshot.records, store, preview=config.preview, out=out)


def dump_raw_feed(client: ClubExpressClient, out: TextIO | None = None) -> None:
    """Print the feed's response headers and its unprocessed JSON body."""
    out = out or sys.stdout
    snapshot = client.fetch_actives()
    for key, value in snapshot.headers.items():
        print(f'[{key}] {value}', file=out)
    out.write(snapshot.raw.decode('utf-8', errors='replace'))
