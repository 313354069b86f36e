"""Tests for database models and custom table names."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from driveshare import DriveAsync
from driveshare.access.types import ResourceKind
from driveshare.models import (
    AccessGrant,
    AccessGrantBase,
    PublicLink,
    Resource,
    ResourceBase,
    User,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

    from driveshare.config import Settings


class ArchiveResource(ResourceBase, table=True):
    __tablename__ = "archive_resources"


class ArchiveGrant(AccessGrantBase, table=True):
    __tablename__ = "archive_grants"


# ---------------------------------------------------------------------------
# Table creation & defaults
# ---------------------------------------------------------------------------


class TestTableCreation:
    async def test_default_tables_exist(self, async_engine: AsyncEngine):
        async with async_engine.connect() as conn:
            names = await conn.run_sync(lambda c: inspect(c).get_table_names())
        for table in (
            "driveshare_users",
            "driveshare_resources",
            "driveshare_access_grants",
            "driveshare_public_links",
        ):
            assert table in names


class TestDefaults:
    async def test_resource_defaults(self, async_session: AsyncSession):
        row = Resource(kind=ResourceKind.FOLDER.value, name="Team", owner_id=1)
        async_session.add(row)
        await async_session.flush()
        assert row.id is not None
        assert row.kind == "folder"
        assert not row.is_deleted
        assert not row.is_starred
        assert row.parent_id is None
        assert row.created_at is not None
        assert row.content is None

    async def test_file_content_round_trip(self, async_session: AsyncSession):
        row = Resource(kind=ResourceKind.FILE.value, name="a.bin", owner_id=1, content=b"\x00\x01")
        async_session.add(row)
        await async_session.commit()
        result = await async_session.execute(select(Resource).where(Resource.id == row.id))
        assert result.scalar_one().content == b"\x00\x01"


# ---------------------------------------------------------------------------
# Unique constraints
# ---------------------------------------------------------------------------


class TestConstraints:
    async def test_grant_unique_per_resource_and_email(self, async_session: AsyncSession):
        async_session.add(AccessGrant(resource_id=1, grantee_email="a@x.com"))
        await async_session.flush()
        async_session.add(AccessGrant(resource_id=1, grantee_email="a@x.com"))
        with pytest.raises(IntegrityError):
            await async_session.flush()

    async def test_single_link_per_resource(self, async_session: AsyncSession):
        async_session.add(PublicLink(resource_id=1, token="t1"))
        await async_session.flush()
        async_session.add(PublicLink(resource_id=1, token="t2"))
        with pytest.raises(IntegrityError):
            await async_session.flush()

    async def test_unique_user_email(self, async_session: AsyncSession):
        async_session.add(User(email="a@x.com"))
        await async_session.flush()
        async_session.add(User(email="a@x.com"))
        with pytest.raises(IntegrityError):
            await async_session.flush()


# ---------------------------------------------------------------------------
# Custom models through the facade
# ---------------------------------------------------------------------------


class TestCustomModels:
    async def test_facade_uses_custom_tables(
        self, async_engine: AsyncEngine, async_session: AsyncSession, settings: Settings
    ):
        drive = DriveAsync(
            settings=settings,
            engine=async_engine,
            resource_model=ArchiveResource,
            grant_model=ArchiveGrant,
        )
        owner = await drive.create_user("owner@example.com")
        await drive.create_user("alice@x.com")
        box = await drive.create_folder(owner, "Box")
        await drive.share(owner, ResourceKind.FOLDER, box.id, "alice@x.com", "view")

        archived = await async_session.execute(select(ArchiveResource))
        assert [r.name for r in archived.scalars().all()] == ["Box"]
        default = await async_session.execute(select(Resource))
        assert default.scalars().all() == []
        grants = await async_session.execute(select(ArchiveGrant))
        assert [g.grantee_email for g in grants.scalars().all()] == ["alice@x.com"]
        await drive.close()
