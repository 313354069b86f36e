"""Resource model — files and folders in one table.

A single ``kind`` column, holding a ``ResourceKind`` value, discriminates
files from folders so parent chains can be walked with one query per
level.  Provides ``ResourceBase`` (non-table) and ``Resource`` (concrete
table).
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, LargeBinary
from sqlmodel import Field, SQLModel


class ResourceBase(SQLModel):
    """Base fields for a file or folder. Subclass with ``table=True`` for a concrete table."""

    id: int | None = Field(default=None, primary_key=True)
    kind: str = Field(index=True)
    name: str = Field(default="")
    owner_id: int = Field(index=True)
    parent_id: int | None = Field(default=None, index=True)
    size_bytes: int = Field(default=0)
    mime_type: str | None = Field(default=None)
    content: bytes | None = Field(
        default=None,
        sa_type=LargeBinary,  # type: ignore[invalid-argument-type]
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )
    deleted_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )
    deleted_by: int | None = Field(default=None)
    trash_root_id: int | None = Field(default=None, index=True)
    # The owner's star; grantees star through their grant row.
    is_starred: bool = Field(default=False)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class Resource(ResourceBase, table=True):
    """Default resource table — ``driveshare_resources``."""

    __tablename__ = "driveshare_resources"
