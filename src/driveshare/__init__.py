"""Driveshare: sharing and access control for a file and folder store.

Per-user grants, public links, creator-scoped folder visibility, and a
trash lifecycle, behind an async facade and a FastAPI surface.
"""

__version__ = "0.1.0"

from driveshare._drive_async import DriveAsync
from driveshare.access import (
    AccessDecision,
    Actor,
    BulkResult,
    DriveShareError,
    FileInfo,
    FolderInfo,
    FolderListing,
    GrantInfo,
    LinkInfo,
    Permission,
    ResourceKind,
    SharedByMeItem,
    SharedLinkView,
    SharedWithMeItem,
)
from driveshare.config import Settings
from driveshare.events import DriveEvent, EventBus, EventType

__all__ = [
    "AccessDecision",
    "Actor",
    "BulkResult",
    "DriveAsync",
    "DriveEvent",
    "DriveShareError",
    "EventBus",
    "EventType",
    "FileInfo",
    "FolderInfo",
    "FolderListing",
    "GrantInfo",
    "LinkInfo",
    "Permission",
    "ResourceKind",
    "Settings",
    "SharedByMeItem",
    "SharedLinkView",
    "SharedWithMeItem",
]
