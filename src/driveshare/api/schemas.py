"""Request and response bodies. JSON keys are camelCase."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from driveshare.access.types import (
    AccessDecision,
    BulkResult,
    FileInfo,
    FolderListing,
    GrantInfo,
    LinkInfo,
    ResourceInfo,
    ResourceKind,
    SharedByMeItem,
    SharedLinkView,
    SharedWithMeItem,
)


class ResourceCollection(str, Enum):
    """The ``{files|folders}`` path segment."""

    FILES = "files"
    FOLDERS = "folders"

    @property
    def kind(self) -> ResourceKind:
        return ResourceKind.FILE if self is ResourceCollection.FILES else ResourceKind.FOLDER


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class ShareRequest(CamelModel):
    email: EmailStr
    permission: str = "view"
    send_email: bool = False


class UpdateShareRequest(CamelModel):
    permission: str


class ShareLinkRequest(CamelModel):
    permission: str = "view"
    expires_in: int | None = Field(default=None, description="Days until the link expires")


class CreateFolderRequest(CamelModel):
    name: str
    parent_id: int | None = None


class RenameRequest(CamelModel):
    name: str


class MoveRequest(CamelModel):
    target_folder_id: int | None = None


class MoveItem(CamelModel):
    id: int
    type: ResourceKind


class BulkMoveRequest(CamelModel):
    items: list[MoveItem]
    target_folder_id: int | None = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ResourceOut(CamelModel):
    id: int
    name: str
    type: ResourceKind
    is_folder: bool
    owner_id: int
    parent_id: int | None = None
    size: int | None = None
    mime_type: str | None = None
    permission: str | None = None
    item_count: int | None = None
    is_starred: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None

    @classmethod
    def from_info(cls, info: ResourceInfo) -> ResourceOut:
        is_file = isinstance(info, FileInfo)
        return cls(
            id=info.id,
            name=info.name,
            type=info.kind,
            is_folder=not is_file,
            owner_id=info.owner_id,
            parent_id=info.parent_id,
            size=info.size_bytes if is_file else None,
            mime_type=info.mime_type if is_file else None,
            permission=info.permission,
            item_count=None if is_file else info.item_count,
            is_starred=info.starred,
            created_at=info.created_at,
            updated_at=info.updated_at,
            deleted_at=info.deleted_at,
        )


class FolderContentsOut(ResourceOut):
    files: list[ResourceOut] = Field(default_factory=list)
    subfolders: list[ResourceOut] = Field(default_factory=list)

    @classmethod
    def from_listing(cls, listing: FolderListing) -> FolderContentsOut:
        base = ResourceOut.from_info(listing.folder)
        return cls(
            **base.model_dump(),
            files=[ResourceOut.from_info(f) for f in listing.files],
            subfolders=[ResourceOut.from_info(f) for f in listing.subfolders],
        )


class GrantOut(CamelModel):
    id: int
    resource_id: int
    resource_type: str
    email: str
    permission: str
    granted_by: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_info(cls, info: GrantInfo) -> GrantOut:
        return cls(
            id=info.id,
            resource_id=info.resource_id,
            resource_type=info.resource_kind,
            email=info.email,
            permission=info.permission,
            granted_by=info.granted_by,
            created_at=info.created_at,
            updated_at=info.updated_at,
        )


class LinkOut(CamelModel):
    resource_id: int
    resource_type: str
    token: str
    url: str
    permission: str
    expires_at: datetime | None = None
    access_count: int = 0
    created_at: datetime | None = None

    @classmethod
    def from_info(cls, info: LinkInfo) -> LinkOut:
        return cls(
            resource_id=info.resource_id,
            resource_type=info.resource_kind,
            token=info.token,
            url=info.url,
            permission=info.permission,
            expires_at=info.expires_at,
            access_count=info.access_count,
            created_at=info.created_at,
        )


class SharedWithMeOut(ResourceOut):
    share_id: int
    owner_email: str | None = None
    shared_at: datetime | None = None

    @classmethod
    def from_item(cls, item: SharedWithMeItem) -> SharedWithMeOut:
        base = ResourceOut.from_info(item.resource)
        return cls(
            **base.model_dump(),
            share_id=item.grant_id,
            owner_email=item.owner_email,
            shared_at=item.shared_at,
        )


class SharedByMeOut(ResourceOut):
    share_count: int = 0
    has_public_link: bool = False
    public_link: str | None = None

    @classmethod
    def from_item(cls, item: SharedByMeItem) -> SharedByMeOut:
        base = ResourceOut.from_info(item.resource)
        return cls(
            **base.model_dump(),
            share_count=item.share_count,
            has_public_link=item.has_public_link,
            public_link=item.public_link,
        )


class SharedViewOut(CamelModel):
    """Anonymous ``/s/{token}`` payload: file metadata, or folder with contents."""

    type: ResourceKind
    permission: str
    file: ResourceOut | None = None
    folder: ResourceOut | None = None
    files: list[ResourceOut] | None = None
    subfolders: list[ResourceOut] | None = None

    @classmethod
    def from_view(cls, view: SharedLinkView) -> SharedViewOut:
        resource = ResourceOut.from_info(view.resource)
        if view.listing is None:
            return cls(type=ResourceKind.FILE, permission=view.permission, file=resource)
        return cls(
            type=ResourceKind.FOLDER,
            permission=view.permission,
            folder=resource,
            files=[ResourceOut.from_info(f) for f in view.listing.files],
            subfolders=[ResourceOut.from_info(f) for f in view.listing.subfolders],
        )


class AccessOut(CamelModel):
    allowed: bool
    permission: str | None = None
    reason: str = ""

    @classmethod
    def from_decision(cls, decision: AccessDecision) -> AccessOut:
        permission = decision.permission.value if decision.permission is not None else None
        return cls(allowed=decision.allowed, permission=permission, reason=decision.reason)


class BulkResultOut(CamelModel):
    success: bool
    success_count: int
    error_count: int
    errors: list[dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: BulkResult) -> BulkResultOut:
        return cls(
            success=result.success,
            success_count=result.success_count,
            error_count=result.error_count,
            errors=[{"id": e.resource_id, "message": e.message} for e in result.errors],
        )


def envelope(value: Any = None, message: str | None = None) -> dict[str, Any]:
    """Wrap *value* as ``{"data": ...}`` with camelCase keys."""
    if isinstance(value, BaseModel):
        data: Any = value.model_dump(mode="json", by_alias=True)
    elif isinstance(value, list):
        data = [
            v.model_dump(mode="json", by_alias=True) if isinstance(v, BaseModel) else v
            for v in value
        ]
    else:
        data = value
    body: dict[str, Any] = {"data": data}
    if message is not None:
        body["message"] = message
    return body
