"""Result types: resources, grants, links, access decisions, bulk outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Literal

from .permissions import Permission

if TYPE_CHECKING:
    from datetime import datetime

    from driveshare.models.resources import ResourceBase


class ResourceKind(str, Enum):
    """Discriminant of the ``Resource`` union."""

    FILE = "file"
    FOLDER = "folder"


@dataclass(frozen=True, slots=True)
class Actor:
    """An authenticated user acting on resources."""

    id: int
    email: str
    full_name: str = ""


@dataclass
class FileInfo:
    """File metadata."""

    id: int
    name: str
    owner_id: int
    parent_id: int | None = None
    size_bytes: int = 0
    mime_type: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    permission: str | None = None
    starred: bool = False
    kind: Literal[ResourceKind.FILE] = ResourceKind.FILE


@dataclass
class FolderInfo:
    """Folder metadata."""

    id: int
    name: str
    owner_id: int
    parent_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    permission: str | None = None
    item_count: int | None = None
    starred: bool = False
    kind: Literal[ResourceKind.FOLDER] = ResourceKind.FOLDER


ResourceInfo = FileInfo | FolderInfo


def resource_info(
    resource: ResourceBase,
    permission: str | None = None,
    *,
    starred: bool | None = None,
) -> ResourceInfo:
    """Resolve a stored row into the tagged ``FileInfo | FolderInfo`` union.

    *starred* defaults to the row's own flag, which is the owner's star and
    is only reported when *permission* is ``owner``.
    """
    assert resource.id is not None
    if starred is None:
        starred = permission == Permission.OWNER.value and resource.is_starred
    if resource.kind == ResourceKind.FOLDER.value:
        return FolderInfo(
            id=resource.id,
            name=resource.name,
            owner_id=resource.owner_id,
            parent_id=resource.parent_id,
            created_at=resource.created_at,
            updated_at=resource.updated_at,
            deleted_at=resource.deleted_at,
            permission=permission,
            starred=starred,
        )
    return FileInfo(
        id=resource.id,
        name=resource.name,
        owner_id=resource.owner_id,
        parent_id=resource.parent_id,
        size_bytes=resource.size_bytes,
        mime_type=resource.mime_type,
        created_at=resource.created_at,
        updated_at=resource.updated_at,
        deleted_at=resource.deleted_at,
        permission=permission,
        starred=starred,
    )


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of ``VisibilityResolver.can_access``."""

    allowed: bool
    permission: Permission | None = None
    reason: str = ""


@dataclass
class GrantInfo:
    """Per-user grant metadata."""

    id: int
    resource_id: int
    resource_kind: str
    email: str
    permission: str
    granted_by: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class LinkInfo:
    """Public link metadata."""

    resource_id: int
    resource_kind: str
    token: str
    url: str
    permission: str
    expires_at: datetime | None = None
    access_count: int = 0
    created_at: datetime | None = None


@dataclass
class FolderListing:
    """A folder together with the children visible to the viewer."""

    folder: FolderInfo
    files: list[FileInfo] = field(default_factory=list)
    subfolders: list[FolderInfo] = field(default_factory=list)
    permission: str | None = None

    @property
    def item_count(self) -> int:
        return len(self.files) + len(self.subfolders)


@dataclass
class SharedLinkView:
    """What an anonymous bearer of a link may see."""

    resource: ResourceInfo
    permission: str
    listing: FolderListing | None = None


@dataclass
class SharedWithMeItem:
    """A resource another user granted to the viewer."""

    resource: ResourceInfo
    permission: str
    grant_id: int
    owner_email: str | None = None
    shared_at: datetime | None = None


@dataclass
class SharedByMeItem:
    """An owned resource that carries grants or a public link."""

    resource: ResourceInfo
    share_count: int = 0
    has_public_link: bool = False
    public_link: str | None = None


@dataclass
class BulkItemError:
    """A single failed item in a best-effort bulk operation."""

    resource_id: int
    message: str


@dataclass
class BulkResult:
    """Per-item outcome counts of a best-effort bulk operation."""

    success_count: int = 0
    error_count: int = 0
    errors: list[BulkItemError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.error_count == 0

    def record_failure(self, resource_id: int, message: str) -> None:
        self.error_count += 1
        self.errors.append(BulkItemError(resource_id=resource_id, message=message))
