"""rostersync – CLI tool to reconcile club platform members with the roster."""

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from clubsync.clients import ClubExpressClient, SlackClient, StravaClient
from clubsync.config import RunConfig, Settings
from clubsync.creds import CredentialStore
from clubsync.dates import NO_FILTER_DATE, is_zero, parse_date
from clubsync.errors import ClubSyncError
from clubsync.reader import import_members, read_members, validate_csv
from clubsync.reconcile import check_slack_members, check_strava_members
from clubsync.reporter import OutputClass, OutputMode, print_summary, write_html_report
from clubsync.store import RosterStore
from clubsync.sync import dump_raw_feed, run_active_sync

log = logging.getLogger('rostersync')

SOURCES = ('strava', 'slack')


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        description='Check club platform members against the roster reference DB.',
        prog='rostersync',
    )
    parser.add_argument(
        'source', nargs='?', choices=SOURCES,
        help='Platform whose members are checked against the roster',
    )
    parser.add_argument(
        '--db', type=Path, default=settings.db_file,
        help=f'Reference sqlite3 DB file of past and current club members (default: {settings.db_file})',
    )
    parser.add_argument(
        '--out', default='', choices=[m.value for m in OutputMode],
        help='Only show records of one type: NF (not found), DUP (duplicates), '
             'EXP/ACT/TRI (expired/active/trial members)',
    )
    parser.add_argument(
        '--exp', default=NO_FILTER_DATE.isoformat(),
        help='Ignore records with an expiration on or before this date (YYYY-MM-DD)',
    )
    parser.add_argument(
        '--email', action='store_true',
        help='Output matched members as email-client friendly mailboxes',
    )
    parser.add_argument(
        '--roster-csv', type=Path,
        help='Compare against a club-management CSV export instead of the DB',
    )
    parser.add_argument(
        '--html', type=Path,
        help='Additionally write an HTML report to this path',
    )
    parser.add_argument(
        '--summary', action='store_true',
        help='Print a summary of the comparison to stdout',
    )
    parser.add_argument(
        '--suggest', action='store_true',
        help='With --out NF, list roster members with similar names',
    )
    parser.add_argument(
        '--actives', action='store_true',
        help='Update active members in the DB from the ClubExpress feed',
    )
    parser.add_argument(
        '--raw', action='store_true',
        help='With --actives, print the raw feed instead of syncing',
    )
    parser.add_argument(
        '--pre', action='store_true',
        help='With --actives, only preview the sync; do not write to the DB',
    )
    parser.add_argument(
        '--list', choices=('members', 'aliases'),
        help='List roster members or aliases from the DB',
    )
    parser.add_argument(
        '--import-csv', type=Path,
        help='Import a club-management CSV export into the DB',
    )
    parser.add_argument(
        '--init-db', action='store_true',
        help='Create the DB file and its tables if missing',
    )
    parser.add_argument(
        '-v', '--verbose', action='store_true',
        help='Enable debug logging',
    )
    return parser


def _check_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    actions = [
        bool(args.source), args.actives, bool(args.list),
        bool(args.import_csv), args.init_db,
    ]
    if sum(actions) != 1:
        parser.error('Exactly one of SOURCE, --actives, --list, --import-csv or --init-db is required.')

    if (args.raw or args.pre) and not args.actives:
        parser.error('--raw and --pre require --actives.')

    if not args.source:
        compare_only = {
            '--out': args.out, '--roster-csv': args.roster_csv, '--html': args.html,
            '--summary': args.summary, '--email': args.email, '--suggest': args.suggest,
            '--exp': args.exp != NO_FILTER_DATE.isoformat(),
        }
        given = [opt for opt, value in compare_only.items() if value]
        if given:
            parser.error(f'{", ".join(given)} can only be used with SOURCE.')

    if args.suggest and args.out != OutputMode.NOT_FOUND.value:
        parser.error('--suggest requires --out NF.')

    if args.email and OutputMode(args.out).output_class is not OutputClass.STATUS:
        parser.error('--email requires --out EXP, ACT or TRI.')

    if is_zero(parse_date(args.exp)):
        parser.error(f'Invalid --exp date: {args.exp!r} (expected YYYY-MM-DD).')


def _print_members(store: RosterStore) -> None:
    for m in store.list_members():
        print(f'{m.num} {m.first_name} {m.last_name} {m.email} {m.status} {m.expired}')


def _print_aliases(store: RosterStore) -> None:
    for alias, m in store.list_aliases():
        print(f'[{alias.first_name} {alias.last_name} {alias.email}]')
        print(f'\t[{m.num}] {m.first_name} {m.last_name} ({m.email})')


def _import_csv(store: RosterStore, path: Path) -> None:
    for line, message in validate_csv(path):
        log.warning("%s line %d: %s", path, line, message)
    import_members(read_members(path), store)


def run(args: argparse.Namespace, settings: Settings) -> None:
    """Execute the action selected on the command line.

    Raises:
        ClubSyncError: If a fetch or store operation fails.
        FileNotFoundError: If the DB or roster CSV file does not exist.
    """
    if (args.source and args.roster_csv) or args.raw:
        store = None
    else:
        store = RosterStore(args.db, create=args.init_db)

    try:
        if args.init_db:
            store.create_schema()
            log.info("Initialized roster DB %s", args.db)
            return

        if args.list == 'members':
            _print_members(store)
            return
        if args.list == 'aliases':
            _print_aliases(store)
            return

        if args.import_csv:
            _import_csv(store, args.import_csv)
            return

        if args.actives:
            client = ClubExpressClient(settings.feed_url, timeout=settings.timeout)
            if args.raw:
                dump_raw_feed(client)
            else:
                run_active_sync(client, store, RunConfig(preview=args.pre))
            return

        config = RunConfig(
            output_mode=OutputMode(args.out),
            expire_cutoff=parse_date(args.exp),
            email_format=args.email,
            suggest=args.suggest,
        )
        creds = CredentialStore(settings.creds_dir, timeout=settings.timeout)
        if args.source == 'slack':
            reports = check_slack_members(
                store, creds, SlackClient(timeout=settings.timeout), config, args.roster_csv,
            )
        else:
            client = StravaClient(settings.strava_club_id, timeout=settings.timeout)
            reports = check_strava_members(store, creds, client, config, args.roster_csv)

        if args.html:
            write_html_report(reports, args.html, args.source)
        if args.summary:
            print_summary(reports, args.source)
    finally:
        if store is not None:
            store.close()


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    load_dotenv()
    settings = Settings.from_env()

    parser = build_parser(settings)
    args = parser.parse_args(argv)
    _check_args(parser, args)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s: %(message)s',
    )

    try:
        run(args, settings)
    except (ClubSyncError, FileNotFoundError) as exc:
        log.error("%s", exc)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
