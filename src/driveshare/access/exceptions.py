"""Custom exception hierarchy for the driveshare access layer."""


class DriveShareError(Exception):
    """Base exception for all driveshare errors."""


class AuthenticationRequiredError(DriveShareError):
    """Raised when an operation needs an authenticated actor and has none."""


class PermissionDeniedError(DriveShareError, PermissionError):
    """Raised when the actor lacks the permission an operation requires."""


class NotOwnerError(PermissionDeniedError):
    """Raised when an owner-only operation is attempted by someone else."""


class NotFoundError(DriveShareError, LookupError):
    """Raised when a resource, grant, user or link does not exist."""


class ResourceNotFoundError(NotFoundError):
    """Raised when a file or folder id does not resolve (or is hidden)."""


class GrantNotFoundError(NotFoundError):
    """Raised when an access grant does not exist on the given resource."""


class UserNotFoundError(NotFoundError):
    """Raised when no user is registered under an id or email."""


class LinkNotFoundError(NotFoundError):
    """Raised for unknown, revoked, or trashed-resource share tokens."""


class LinkExpiredError(LinkNotFoundError):
    """Raised when a share token is past its ``expires_at``."""


class ConflictError(DriveShareError):
    """Raised when an operation conflicts with the current lifecycle state."""


class AlreadyGrantedError(ConflictError):
    """Raised when a grant already exists for a (resource, email) pair."""


class NotEmptyError(ConflictError):
    """Raised when permanently deleting a folder that still has children."""


class InvalidInputError(DriveShareError, ValueError):
    """Raised on malformed input (bad permission, self-share, bad name)."""


class InvalidEmailError(InvalidInputError):
    """Raised when an email address is malformed."""
