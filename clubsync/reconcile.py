"""Comparison workflow: check platform members against the roster."""

import logging
import sys
from collections.abc import Sequence
from typing import TextIO

from clubsync import AliasMapping, Candidate, ChatWorkspaceUser, RosterMember
from clubsync.clients import SlackClient, StravaClient, sort_athletes, sort_users
from clubsync.config import RunConfig
from clubsync.creds import CredentialStore
from clubsync.matching import SORT_BY_EXPIRATION, match_candidate, sort_members
from clubsync.reader import read_members
from clubsync.reporter import OutputClass, RenderedReport, classify, format_suggestion
from clubsync.scoring import suggest_aliases

log = logging.getLogger(__name__)


def reconcile(
    candidates: Sequence[Candidate],
    roster: list[RosterMember],
    config: RunConfig,
    aliases: Sequence[tuple[AliasMapping, RosterMember]] = (),
    out: TextIO | None = None,
) -> list[RenderedReport]:
    """Match, sort, classify and print every candidate in order.

    Slack users without a confirmed email (bots and apps) are skipped.

    Args:
        candidates: Platform members, already sorted by first name.
        roster: Roster members to match against.
        config: Output mode, expire cutoff and rendering options.
        aliases: (alias, member) pairs from the alias table.
        out: Stream for the report lines (defaults to stdout).

    Returns:
        One RenderedReport per processed candidate.
    """
    out = out or sys.stdout
    mode = config.output_mode
    reports: list[RenderedReport] = []

    for candidate in candidates:
        if isinstance(candidate, ChatWorkspaceUser) and not candidate.email_confirmed:
            continue

        matches = match_candidate(
            candidate,
            roster,
            aliases,
            status_filter=mode.status_filter,
            expire_cutoff=config.expire_cutoff,
        )
        matches = sort_members(matches, SORT_BY_EXPIRATION)
        report = classify(matches, mode, candidate, config.email_format)

        if config.suggest and report.output_class is OutputClass.NOT_FOUND and report.emitted:
            for member, score in suggest_aliases(candidate, roster):
                report.lines.append(format_suggestion(member, score))

        for line in report.lines:
            print(line, file=out)
        reports.append(report)

    log.info("Checked %d candidates against %d roster members", len(reports), len(roster))
    return reports


def _load_roster(store, config: RunConfig, roster_csv=None):
    """Load roster members and aliases, from a CSV export or the store."""
    if roster_csv is not None:
        return read_members(roster_csv), []
    return store.list_active(config.expire_cutoff), store.list_aliases()


def check_slack_members(
    store,
    creds: CredentialStore,
    client: SlackClient,
    config: RunConfig,
    roster_csv=None,
    out: TextIO | None = None,
) -> list[RenderedReport]:
    """Compare the Slack workspace users with the roster.

    Raises:
        CredentialsError, PlatformError, StoreError: If any fetch fails;
            nothing is matched in that case.
    """
    token = creds.slack_access_token()
    log.info("Retrieved Slack api access token from file")
    users = sort_users(client.list_users(token))
    log.info("Sorted workspace user list alphabetically by first name")

    roster, aliases = _load_roster(store, config, roster_csv)
    log.info("Generating %s output of matches", config.output_mode.name)
    return reconcile(users, roster, config, aliases, out)


def check_strava_members(
    store,
    creds: CredentialStore,
    client: StravaClient,
    config: RunConfig,
    roster_csv=None,
    out: TextIO | None = None,
) -> list[RenderedReport]:
    """Compare the Strava club athletes with the roster.

    Raises:
        CredentialsError, PlatformError, StoreError: If any fetch fails;
            nothing is matched in that case.
    """
    log.info("Checking expiration of Strava api access token")
    token = creds.strava_access_token()
    club = client.get_club(token)
    log.info("Requested data from Strava api for %s", club.name)
    athletes = sort_athletes(client.list_athletes(club.member_count, token))
    log.info("Sorted club athlete list alphabetically by first name")

    roster, aliases = _load_roster(store, config, roster_csv)
    log.info("Generating %s output of matches", config.output_mode.name)
    return reconcile(athletes, roster, config, aliases, out)
