"""HTTP clients for Slack, Strava and the ClubExpress active-member feed."""

import json
import logging
from dataclasses import dataclass, field

import requests

from clubsync import ChatWorkspaceUser, FitnessClubAthlete, RosterMember
from clubsync.errors import PlatformError

log = logging.getLogger(__name__)

SLACK_USERS_URL = 'https://slack.com/api/users.list'
STRAVA_API_URL = 'https://www.strava.com/api/v3'

DEFAULT_TIMEOUT = (5.0, 10.0)

# ClubExpress JSON keys -> RosterMember fields
FEED_FIELDS = {
    'memberNumber': 'num',
    'active': 'active',
    'loginName': 'login',
    'firstName': 'first_name',
    'middleInitial': 'middle',
    'lastName': 'last_name',
    'email': 'email',
    'status': 'status',
    'joined': 'joined',
    'expired': 'expired',
    'address1': 'address',
    'address2': 'addr_ext',
    'city': 'city',
    'state': 'state',
    'zip': 'zip',
    'cellPhone': 'mobile',
    'phone': 'phone',
}


class _Client:
    """Shared requests handling for the platform clients."""

    name = 'api'

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        timeout: tuple[float, float] = DEFAULT_TIMEOUT,
    ) -> None:
        self._session = session or requests.Session()
        self.timeout = timeout

    def _get(self, url: str, token: str | None = None, params: dict | None = None):
        headers = {'Authorization': f'Bearer {token}'} if token else {}
        log.debug("GET %s params=%s", url, params)
        try:
            response = self._session.get(url, headers=headers, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise PlatformError(f"GET request to {self.name} api failed: {exc}") from exc

        if response.status_code == 401:
            raise PlatformError(f"401: request to {self.name} api not authorized")
        if response.status_code != 200:
            raise PlatformError(
                f"non-200 response from {self.name} api: {response.status_code} {response.text}"
            )
        return response

    def _json(self, response):
        try:
            return response.json()
        except ValueError as exc:
            raise PlatformError(f"Invalid JSON from {self.name} api: {exc}") from exc


class SlackClient(_Client):
    """Lists the users of the Slack workspace the bot is installed in."""

    name = 'Slack web'

    def list_users(self, access_token: str) -> list[ChatWorkspaceUser]:
        """Fetch all workspace users.

        Raises:
            PlatformError: On transport errors or a response with ok=false.
        """
        data = self._json(self._get(SLACK_USERS_URL, access_token))
        if not data.get('ok'):
            raise PlatformError(
                f"non-OK response status from Slack web api: {data.get('error', 'unknown error')}"
            )

        users = []
        for member in data.get('members', []):
            profile = member.get('profile', {})
            users.append(ChatWorkspaceUser(
                first_name=profile.get('first_name', '') or '',
                last_name=profile.get('last_name', '') or '',
                email=profile.get('email', '') or '',
                email_confirmed=bool(member.get('is_email_confirmed', False)),
            ))
        log.info("Requested list of %d workspace users from Slack web api", len(users))
        return users


@dataclass
class StravaClub:
    id: int
    name: str
    member_count: int


class StravaClient(_Client):
    """Reads a Strava club and its athletes."""

    name = 'Strava'

    def __init__(self, club_id: int, **kwargs) -> None:
        super().__init__(**kwargs)
        self.club_id = club_id

    def get_club(self, access_token: str) -> StravaClub:
        data = self._json(self._get(f'{STRAVA_API_URL}/clubs/{self.club_id}', access_token))
        return StravaClub(
            id=int(data.get('id', self.club_id)),
            name=data.get('name', ''),
            member_count=int(data.get('member_count', 0)),
        )

    def list_athletes(self, count: int, access_token: str) -> list[FitnessClubAthlete]:
        """Fetch the club's athletes in a single page of ``count`` entries."""
        data = self._json(self._get(
            f'{STRAVA_API_URL}/clubs/{self.club_id}/members',
            access_token,
            params={'page': 1, 'per_page': count},
        ))
        athletes = [
            FitnessClubAthlete(
                first_name=a.get('firstname', '') or '',
                last_name=a.get('lastname', '') or '',
            )
            for a in data
        ]
        log.info("Requested list of %d club athletes from Strava api", len(athletes))
        return athletes


def sort_users(users: list[ChatWorkspaceUser]) -> list[ChatWorkspaceUser]:
    """Sort workspace users by first name, ignoring case."""
    return sorted(users, key=lambda u: u.first_name.lower())


def sort_athletes(athletes: list[FitnessClubAthlete]) -> list[FitnessClubAthlete]:
    """Sort club athletes by first name, ignoring case."""
    return sorted(athletes, key=lambda a: a.first_name.lower())


@dataclass
class FeedSnapshot:
    """One download of the active-member feed."""

    records: list[RosterMember]
    last_modified: str = ''
    headers: dict[str, str] = field(default_factory=dict)
    raw: bytes = b''


_TRUE_STRINGS = {'true', '1', 'yes', 'y'}
_FALSE_STRINGS = {'false', '0', 'no', 'n', ''}


def _feed_flag(value) -> bool:
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        raise TypeError(f"unreadable active flag {value!r}")
    return bool(value)


def record_from_feed(item: dict) -> RosterMember:
    """Convert one feed JSON object into a RosterMember.

    Raises:
        KeyError: If the record has no member number.
        TypeError: If the active flag is a string other than a yes/no form.
    """
    values = {attr: item[key] for key, attr in FEED_FIELDS.items() if key in item}
    if values.get('num') in (None, ''):
        raise KeyError('memberNumber')
    for attr, value in values.items():
        if attr == 'active':
            values[attr] = _feed_flag(value)
        else:
            values[attr] = '' if value is None else str(value)
    values.setdefault('first_name', '')
    values.setdefault('last_name', '')
    return RosterMember(**values)


class ClubExpressClient(_Client):
    """Downloads the daily JSON export of active club members.

    A new file is published at the feed URL once a day.
    """

    name = 'ClubExpress'

    def __init__(self, feed_url: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.feed_url = feed_url

    def fetch_actives(self) -> FeedSnapshot:
        """Fetch and parse the active-member feed.

        Records without a member number are logged and skipped.

        Raises:
            PlatformError: If the download fails or the body is not a JSON list.
        """
        response = self._get(self.feed_url)
        try:
            data = json.loads(response.content)
        except ValueError as exc:
            raise PlatformError(f"Invalid JSON from ClubExpress api: {exc}") from exc
        if not isinstance(data, list):
            raise PlatformError("Active member feed is not a JSON list")

        records = []
        for index, item in enumerate(data):
            try:
                records.append(record_from_feed(item))
            except (KeyError, TypeError) as exc:
                log.warning("Feed record %d skipped: %s %s", index, type(exc).__name__, exc)

        return FeedSnapshot(
            records=records,
            last_modified=response.headers.get('Last-Modified', ''),
            headers=dict(response.headers),
            raw=response.content,
        )
