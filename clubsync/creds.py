"""API credential files and Strava OAuth token refresh."""

import json
import logging
import time
from pathlib import Path

import requests

from clubsync.errors import CredentialsError

log = logging.getLogger(__name__)

STRAVA_TOKEN_URL = 'https://www.strava.com/oauth/token'

API_CREDS_FILE = 'api_creds.json'
STRAVA_USER_FILE = 'user_creds_strava.json'
SLACK_BOT_FILE = 'bot_creds_slack.json'
EXPRESS_CLUB_FILE = 'club_creds_express.json'


class CredentialStore:
    """Reads and refreshes the API credentials kept in a local directory.

    Expected files:
        api_creds.json: {"strava": {"client_id", "client_secret"}, ...}
        user_creds_strava.json: Strava tokens with "expires_at" (epoch)
        bot_creds_slack.json: Slack bot credentials with "access_token"
        club_creds_express.json: ClubExpress "club_id" and "access_key"
    """

    def __init__(
        self,
        creds_dir: str | Path,
        *,
        session: requests.Session | None = None,
        timeout: tuple[float, float] = (5.0, 10.0),
    ) -> None:
        self.creds_dir = Path(creds_dir)
        self._session = session or requests.Session()
        self.timeout = timeout

    def _read(self, name: str) -> dict:
        path = self.creds_dir / name
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except OSError as exc:
            raise CredentialsError(f"Cannot read credentials file {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise CredentialsError(f"Invalid JSON in credentials file {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise CredentialsError(f"Credentials file {path} must contain a JSON object")
        return data

    def _write(self, name: str, data: dict) -> None:
        path = self.creds_dir / name
        try:
            path.write_text(json.dumps(data, indent=1), encoding='utf-8')
        except OSError as exc:
            raise CredentialsError(f"Cannot write credentials file {path}: {exc}") from exc

    # ========== Strava ==========

    def strava_access_token(self, now: float | None = None) -> str:
        """Return a valid Strava access token, refreshing it when expired.

        Args:
            now: Current epoch seconds (defaults to time.time()).

        Returns:
            The access token to use as bearer token.

        Raises:
            CredentialsError: If files are missing or the refresh fails.
        """
        now = time.time() if now is None else now
        user = self._read(STRAVA_USER_FILE)

        if int(user.get('expires_at', 0)) < now:
            refreshed = self.refresh_strava_access(user.get('refresh_token', ''))
            user.update(refreshed)
            self._write(STRAVA_USER_FILE, user)
            log.info("Refreshed Strava access token, saved to %s", self.creds_dir / STRAVA_USER_FILE)

        token = user.get('access_token')
        if not token:
            raise CredentialsError("Strava user credentials contain no access_token")
        return token

    def refresh_strava_access(self, refresh_token: str) -> dict:
        """Exchange a refresh token for new Strava tokens.

        Returns:
            Token payload (access_token, refresh_token, expires_at, ...).
        """
        client = self._read(API_CREDS_FILE).get('strava', {})
        payload = {
            'client_id': str(client.get('client_id', '')),
            'client_secret': client.get('client_secret', ''),
            'refresh_token': refresh_token,
            'grant_type': 'refresh_token',
        }
        try:
            response = self._session.post(STRAVA_TOKEN_URL, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            raise CredentialsError(f"POST request to Strava api failed: {exc}") from exc

        if response.status_code == 401:
            raise CredentialsError("401: request to Strava api not authorized")
        if not response.ok:
            raise CredentialsError(
                f"Refresh of Strava access failed with {response.status_code}: {response.text}"
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise CredentialsError(f"Invalid token response from Strava api: {exc}") from exc
        if 'access_token' not in data:
            raise CredentialsError("Token response from Strava api contains no access_token")
        return data

    # ========== Slack ==========

    def slack_access_token(self) -> str:
        token = self._read(SLACK_BOT_FILE).get('access_token')
        if not token:
            raise CredentialsError("Slack bot credentials contain no access_token")
        return token

    # ========== ClubExpress ==========

    def express_access_key(self) -> str:
        """Return the ClubExpress access key.

        Raises:
            CredentialsError: If the file is missing or has no access_key.
        """
        key = self._read(EXPRESS_CLUB_FILE).get('access_key')
        if not key:
            raise CredentialsError("ClubExpress credentials contain no access_key")
        return key
