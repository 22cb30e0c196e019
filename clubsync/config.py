"""Deployment settings and per-run options."""

import os
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from clubsync.dates import NO_FILTER_DATE
from clubsync.reporter import OutputMode

ENV_PREFIX = 'CLUBSYNC_'

DEFAULT_DB_FILE = './svtc-sync.db'
DEFAULT_CREDS_DIR = './.secret'
DEFAULT_STRAVA_CLUB_ID = 449951
DEFAULT_EXPRESS_CLUB_ID = 325779
FEED_URL_TEMPLATE = (
    'https://s3.amazonaws.com/ClubExpressClubFiles/{club_id}/json/wremawat.json'
)
DEFAULT_FEED_URL = FEED_URL_TEMPLATE.format(club_id=DEFAULT_EXPRESS_CLUB_ID)


@dataclass(frozen=True)
class Settings:
    """Deployment settings injected into the clients and workflows."""

    db_file: Path = Path(DEFAULT_DB_FILE)
    creds_dir: Path = Path(DEFAULT_CREDS_DIR)
    strava_club_id: int = DEFAULT_STRAVA_CLUB_ID
    express_club_id: int = DEFAULT_EXPRESS_CLUB_ID
    feed_url: str = DEFAULT_FEED_URL
    connect_timeout: float = 5.0
    read_timeout: float = 10.0

    @property
    def timeout(self) -> tuple[float, float]:
        """(connect, read) timeout tuple as accepted by requests."""
        return (self.connect_timeout, self.read_timeout)

    @classmethod
    def from_env(cls, environ: dict | None = None) -> 'Settings':
        """Build settings from CLUBSYNC_* environment variables.

        Args:
            environ: Mapping to read from; defaults to os.environ.

        Returns:
            Settings with defaults for every variable that is not set.

        Raises:
            ValueError: If a numeric variable does not parse.
        """
        env = os.environ if environ is None else environ

        def get(name: str, default):
            return env.get(ENV_PREFIX + name, default)

        express_club_id = int(get('EXPRESS_CLUB_ID', DEFAULT_EXPRESS_CLUB_ID))
        return cls(
            db_file=Path(get('DB_FILE', DEFAULT_DB_FILE)),
            creds_dir=Path(get('CREDS_DIR', DEFAULT_CREDS_DIR)),
            strava_club_id=int(get('STRAVA_CLUB_ID', DEFAULT_STRAVA_CLUB_ID)),
            express_club_id=express_club_id,
            feed_url=get('FEED_URL', FEED_URL_TEMPLATE.format(club_id=express_club_id)),
            connect_timeout=float(get('CONNECT_TIMEOUT', 5.0)),
            read_timeout=float(get('READ_TIMEOUT', 10.0)),
        )


@dataclass
class RunConfig:
    """Options of a single comparison or sync run."""

    output_mode: OutputMode = OutputMode.DEFAULT
    expire_cutoff: date = field(default=NO_FILTER_DATE)
    email_format: bool = False
    preview: bool = False
    suggest: bool = False
