"""Source-specific matching of external candidates against the roster."""

import logging
from collections.abc import Iterable
from datetime import date

from clubsync import (
    AliasMapping,
    Candidate,
    ChatWorkspaceUser,
    FitnessClubAthlete,
    RosterMember,
)
from clubsync.dates import NO_FILTER_DATE, parse_date

log = logging.getLogger(__name__)

SORT_BY_EXPIRATION = 'by-expiration'
SORT_BY_LAST_NAME = 'by-last-name'


def _fold(value: str) -> str:
    """Case-fold a roster field for comparison."""
    return value.casefold()


def _normalize_key(value: str) -> str:
    """Trim and case-fold a candidate field for comparison."""
    return value.strip().casefold()


def _names_match(
    candidate: Candidate,
    first_name: str,
    last_name: str,
    email: str,
) -> bool:
    """Apply the source-specific predicate to one set of roster fields.

    Slack users match on (first AND last name) OR email. Strava athletes
    match on first name AND the first letter of the last name, since the
    Strava club API only returns the last-name initial.
    """
    if isinstance(candidate, ChatWorkspaceUser):
        return (
            (_normalize_key(candidate.first_name) == _fold(first_name)
             and _normalize_key(candidate.last_name) == _fold(last_name))
            or _normalize_key(candidate.email) == _fold(email)
        )
    if isinstance(candidate, FitnessClubAthlete):
        return (
            _normalize_key(candidate.first_name) == _fold(first_name)
            and _normalize_key(candidate.last_name)[:1] == _fold(last_name[:1])
        )
    raise TypeError(f'Unsupported candidate type: {type(candidate).__name__}')


def member_matches(candidate: Candidate, member: RosterMember) -> bool:
    """Check whether a roster member matches a candidate by name/email."""
    return _names_match(candidate, member.first_name, member.last_name, member.email)


def alias_matches(candidate: Candidate, alias: AliasMapping) -> bool:
    """Check whether an alias matches a candidate by name/email."""
    return _names_match(candidate, alias.first_name, alias.last_name, alias.email)


def passes_filter(
    member: RosterMember,
    status_filter: str = '',
    expire_cutoff: date = NO_FILTER_DATE,
) -> bool:
    """Check the status and expiration filter for a roster member.

    Args:
        member: Roster member to check.
        status_filter: Required status, or empty for no status filter.
        expire_cutoff: Members must expire strictly after this date.
            NO_FILTER_DATE disables the check.

    Returns:
        True if the member should be considered for matching.
    """
    if status_filter and member.status != status_filter:
        return False
    if expire_cutoff != NO_FILTER_DATE and not parse_date(member.expired) > expire_cutoff:
        return False
    return True


def match_candidate(
    candidate: Candidate,
    roster: Iterable[RosterMember],
    aliases: Iterable[tuple[AliasMapping, RosterMember]] = (),
    status_filter: str = '',
    expire_cutoff: date = NO_FILTER_DATE,
) -> list[RosterMember]:
    """Find the roster members matching one external candidate.

    Primary matches come first in roster order, followed by the members
    reached through a matching alias in alias order. The result is not
    sorted.

    Args:
        candidate: Slack user or Strava athlete to look up.
        roster: Roster members to scan.
        aliases: (alias, member) pairs from the alias table.
        status_filter: Required member status, or empty for any status.
        expire_cutoff: Exclude members expiring on or before this date.

    Returns:
        List of matching members; empty if nothing matched.
    """
    matches = [
        m for m in roster
        if passes_filter(m, status_filter, expire_cutoff) and member_matches(candidate, m)
    ]
    alias_hits = [
        member for alias, member in aliases
        if passes_filter(member, status_filter, expire_cutoff) and alias_matches(candidate, alias)
    ]
    if alias_hits:
        log.debug("%d alias match(es) for %s", len(alias_hits), candidate.display())
    return matches + alias_hits


def sort_members(matches: list[RosterMember], key: str = SORT_BY_EXPIRATION) -> list[RosterMember]:
    """Order a match set for output.

    Args:
        matches: Members to sort.
        key: SORT_BY_EXPIRATION (latest expiration first, unparseable dates
            last) or SORT_BY_LAST_NAME (ascending, case-sensitive).

    Returns:
        New sorted list; ties keep their input order.

    Raises:
        ValueError: If the sort key is unknown.
    """
    if key == SORT_BY_EXPIRATION:
        return sorted(matches, key=lambda m: parse_date(m.expired), reverse=True)
    if key == SORT_BY_LAST_NAME:
        return sorted(matches, key=lambda m: m.last_name)
    raise ValueError(f'Unknown sort key: {key}')
