"""AccessGrant and PublicLink models.

Provides ``AccessGrantBase`` / ``PublicLinkBase`` (non-table) and the
concrete ``AccessGrant`` / ``PublicLink`` tables.  Concrete subclasses carry
the unique constraints that back the one-grant-per-email and
one-link-per-resource invariants.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel


class AccessGrantBase(SQLModel):
    """Base fields for a per-user grant. Subclass with ``table=True`` for a concrete table."""

    id: int | None = Field(default=None, primary_key=True)
    resource_id: int = Field(index=True)
    resource_kind: str = Field(default="file")
    grantee_email: str = Field(index=True)
    permission: str = Field(default="view")
    granted_by: int | None = Field(default=None)
    is_starred: bool = Field(default=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )


class AccessGrant(AccessGrantBase, table=True):
    """Default grant table — ``driveshare_access_grants``."""

    __tablename__ = "driveshare_access_grants"
    __table_args__ = (
        UniqueConstraint("resource_id", "grantee_email", name="uq_grant_resource_email"),
    )


class PublicLinkBase(SQLModel):
    """Base fields for a public bearer link. Subclass with ``table=True`` for a concrete table."""

    id: int | None = Field(default=None, primary_key=True)
    resource_id: int = Field(index=True)
    resource_kind: str = Field(default="file")
    token: str = Field(index=True)
    permission: str = Field(default="view")
    created_by: int | None = Field(default=None)
    access_count: int = Field(default=0)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )
    expires_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )


class PublicLink(PublicLinkBase, table=True):
    """Default link table — ``driveshare_public_links``."""

    __tablename__ = "driveshare_public_links"
    __table_args__ = (
        UniqueConstraint("resource_id", name="uq_link_resource"),
        UniqueConstraint("token", name="uq_link_token"),
    )
