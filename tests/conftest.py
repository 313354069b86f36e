"""Shared fixtures for driveshare tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from driveshare import DriveAsync
from driveshare.access.grants import AccessGrantService
from driveshare.access.links import PublicLinkService
from driveshare.access.resolver import VisibilityResolver
from driveshare.access.resources import ResourceService
from driveshare.access.trash import TrashService
from driveshare.access.types import Actor
from driveshare.config import Settings
from driveshare.models import AccessGrant, PublicLink, Resource

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncEngine


@pytest.fixture
async def async_engine() -> AsyncIterator[AsyncEngine]:
    """Async in-memory SQLite engine with all tables created.

    ``StaticPool`` keeps one connection so every session sees the same database.
    """
    eng = create_async_engine("sqlite+aiosqlite://", echo=False, poolclass=StaticPool)
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def async_session(async_engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Async SQLModel session, rolled back after each test."""
    factory = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Services (session-per-call, no facade)
# ---------------------------------------------------------------------------


@pytest.fixture
def resources() -> ResourceService:
    return ResourceService(Resource)


@pytest.fixture
def grants() -> AccessGrantService:
    return AccessGrantService(AccessGrant)


@pytest.fixture
def links() -> PublicLinkService:
    return PublicLinkService(PublicLink, base_url="https://drive.test")


@pytest.fixture
def resolver(resources: ResourceService, grants: AccessGrantService) -> VisibilityResolver:
    return VisibilityResolver(resources, grants)


@pytest.fixture
def trash(
    resources: ResourceService, grants: AccessGrantService, links: PublicLinkService
) -> TrashService:
    return TrashService(resources, grants, links)


@pytest.fixture
def owner_actor() -> Actor:
    return Actor(id=1, email="owner@example.com", full_name="Olivia Owner")


@pytest.fixture
def alice_actor() -> Actor:
    return Actor(id=2, email="alice@x.com", full_name="Alice")


@pytest.fixture
def bob_actor() -> Actor:
    return Actor(id=3, email="bob@x.com", full_name="Bob")


# ---------------------------------------------------------------------------
# Facade
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite://",
        jwt_secret="test-secret",
        public_base_url="https://drive.test",
        sweep_interval_seconds=0,
        log_level="DEBUG",
    )


@pytest.fixture
async def drive(async_engine: AsyncEngine, settings: Settings) -> AsyncIterator[DriveAsync]:
    d = DriveAsync(settings=settings, engine=async_engine)
    yield d
    await d.close()


@pytest.fixture
async def owner(drive: DriveAsync) -> Actor:
    return await drive.create_user("owner@example.com", "Olivia Owner")


@pytest.fixture
async def alice(drive: DriveAsync) -> Actor:
    return await drive.create_user("alice@x.com", "Alice")


@pytest.fixture
async def bob(drive: DriveAsync) -> Actor:
    return await drive.create_user("bob@x.com", "Bob")
