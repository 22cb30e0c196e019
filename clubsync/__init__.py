"""Core module for clubsync."""

from dataclasses import dataclass

STATUS_NEW = 'New'
STATUS_ACTIVE = 'Active'
STATUS_EXPIRED = 'Expired'
STATUS_TRIAL = 'Trial'


@dataclass
class RosterMember:
    """Represents one row of the club membership roster."""

    num: str
    first_name: str
    last_name: str
    email: str = ''
    status: str = ''
    joined: str = ''
    expired: str = ''
    active: bool = True   # Row is valid, independent of status
    login: str = ''
    middle: str = ''
    address: str = ''
    addr_ext: str = ''
    city: str = ''
    state: str = ''
    zip: str = ''
    mobile: str = ''
    phone: str = ''
    id: int | None = None  # Store row id, None until inserted


@dataclass
class AliasMapping:
    """Alternate name/email under which a roster member may appear."""

    member_id: int
    first_name: str
    last_name: str
    email: str = ''


@dataclass(frozen=True)
class ChatWorkspaceUser:
    """A user of the club's Slack workspace."""

    first_name: str
    last_name: str
    email: str
    email_confirmed: bool = True  # False for bot and app accounts

    source = 'slack'

    def display(self) -> str:
        return f'{self.first_name} {self.last_name} ({self.email})'


@dataclass(frozen=True)
class FitnessClubAthlete:
    """An athlete of the club on Strava (last name is an initial only)."""

    first_name: str
    last_name: str

    source = 'strava'

    def display(self) -> str:
        return f'{self.first_name} {self.last_name}'


Candidate = ChatWorkspaceUser | FitnessClubAthlete
