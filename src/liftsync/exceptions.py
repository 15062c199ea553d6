"""Error taxonomy for liftsync."""


class LiftSyncError(Exception):
    """Base error carrying a stable code and structured details."""

    def __init__(self, code: str, message: str, details: dict | None = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class RemoteUnavailable(LiftSyncError):
    """The remote store could not be reached or returned unusable data."""

    def __init__(self, operation: str, message: str | None = None, details: dict | None = None):
        self.operation = operation
        msg = message or f"Remote store unavailable during {operation}"
        super().__init__("REMOTE_UNAVAILABLE", msg, details or {"operation": operation})


class PersistenceFailure(LiftSyncError):
    """A local store write or read failed."""

    def __init__(self, entity: str, message: str, details: dict | None = None):
        self.entity = entity
        super().__init__(f"PERSIST_{entity.upper()}", message, details or {"entity": entity})


class ValidationError(LiftSyncError):
    """An entity was constructed with invalid field values."""

    def __init__(self, field: str, message: str, details: dict | None = None):
        self.field = field
        msg = f"Validation failed for {field}: {message}"
        super().__init__(f"VAL_{field.upper()}", msg, details or {"field": field})


class FriendshipError(LiftSyncError):
    """Domain-level rejection of a friendship action."""

    default_code = "FRIENDSHIP"
    default_message = "Friendship action rejected"

    def __init__(self, message: str | None = None, details: dict | None = None):
        super().__init__(self.default_code, message or self.default_message, details)


class AlreadyFriendsError(FriendshipError):
    default_code = "FRIENDSHIP_ALREADY_FRIENDS"
    default_message = "You are already friends with this user"


class RequestAlreadySentError(FriendshipError):
    default_code = "FRIENDSHIP_REQUEST_SENT"
    default_message = "Friend request already sent"


class BlockedError(FriendshipError):
    default_code = "FRIENDSHIP_BLOCKED"
    default_message = "Cannot send request to this user"


class InvalidFriendshipStateError(FriendshipError):
    default_code = "FRIENDSHIP_INVALID_STATE"
    default_message = "Invalid friendship state for this action"


class FriendshipNotFoundError(FriendshipError):
    default_code = "FRIENDSHIP_NOT_FOUND"
    default_message = "Friendship not found"
