"""Sharing and access model: grants, public links, visibility, and trash."""

from driveshare.access.exceptions import (
    AlreadyGrantedError,
    AuthenticationRequiredError,
    ConflictError,
    DriveShareError,
    GrantNotFoundError,
    InvalidEmailError,
    InvalidInputError,
    LinkExpiredError,
    LinkNotFoundError,
    NotEmptyError,
    NotFoundError,
    NotOwnerError,
    PermissionDeniedError,
    ResourceNotFoundError,
    UserNotFoundError,
)
from driveshare.access.grants import AccessGrantService
from driveshare.access.links import PublicLinkService
from driveshare.access.permissions import Permission
from driveshare.access.resolver import VisibilityResolver
from driveshare.access.resources import ResourceService
from driveshare.access.trash import TrashService
from driveshare.access.types import (
    AccessDecision,
    Actor,
    BulkItemError,
    BulkResult,
    FileInfo,
    FolderInfo,
    FolderListing,
    GrantInfo,
    LinkInfo,
    ResourceInfo,
    ResourceKind,
    SharedByMeItem,
    SharedLinkView,
    SharedWithMeItem,
)

__all__ = [
    "AccessDecision",
    "AccessGrantService",
    "Actor",
    "AlreadyGrantedError",
    "AuthenticationRequiredError",
    "BulkItemError",
    "BulkResult",
    "ConflictError",
    "DriveShareError",
    "FileInfo",
    "FolderInfo",
    "FolderListing",
    "GrantInfo",
    "GrantNotFoundError",
    "InvalidEmailError",
    "InvalidInputError",
    "LinkExpiredError",
    "LinkInfo",
    "LinkNotFoundError",
    "NotEmptyError",
    "NotFoundError",
    "NotOwnerError",
    "Permission",
    "PermissionDeniedError",
    "PublicLinkService",
    "ResourceInfo",
    "ResourceKind",
    "ResourceNotFoundError",
    "ResourceService",
    "SharedByMeItem",
    "SharedLinkView",
    "SharedWithMeItem",
    "TrashService",
    "UserNotFoundError",
    "VisibilityResolver",
]
