"""Exception hierarchy for clubsync."""


class ClubSyncError(Exception):
    """Base class for all clubsync errors."""


class StoreError(ClubSyncError):
    """Raised when the roster store cannot complete a query."""


class DuplicateMemberError(StoreError):
    """Raised when inserting a member number that already exists."""


class PlatformError(ClubSyncError):
    """Raised when an external platform API call fails."""


class CredentialsError(ClubSyncError):
    """Raised when API credentials cannot be read, refreshed or saved."""


class RosterFileError(ClubSyncError, ValueError):
    """Raised when a roster CSV export is empty or lacks required columns."""
