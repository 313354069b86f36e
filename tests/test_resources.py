"""Tests for ResourceService — stars, search candidates and owner lookups."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from driveshare.access.types import ResourceKind
from driveshare.access.utils import utcnow

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from driveshare.access.resources import ResourceService
    from driveshare.access.types import Actor
    from driveshare.models import ResourceBase


@pytest.fixture
async def team(
    resources: ResourceService, async_session: AsyncSession, owner_actor: Actor
) -> ResourceBase:
    return await resources.create(
        async_session, kind=ResourceKind.FOLDER, name="Team", owner_id=owner_actor.id
    )


async def _file(
    resources: ResourceService,
    session: AsyncSession,
    name: str,
    owner: Actor,
    parent: ResourceBase | None = None,
) -> ResourceBase:
    return await resources.create(
        session, kind=ResourceKind.FILE, name=name, owner_id=owner.id, parent=parent
    )


# ---------------------------------------------------------------------------
# Stars
# ---------------------------------------------------------------------------


class TestStars:
    async def test_toggle_flips_and_keeps_updated_at(
        self,
        resources: ResourceService,
        async_session: AsyncSession,
        team: ResourceBase,
    ):
        before = team.updated_at
        await resources.toggle_star(async_session, team)
        assert team.is_starred is True
        assert team.updated_at == before
        await resources.toggle_star(async_session, team)
        assert team.is_starred is False

    async def test_starred_is_per_owner_and_skips_trash(
        self,
        resources: ResourceService,
        async_session: AsyncSession,
        owner_actor: Actor,
        alice_actor: Actor,
        team: ResourceBase,
    ):
        plan = await _file(resources, async_session, "plan.txt", owner_actor, team)
        old = await _file(resources, async_session, "old.txt", owner_actor)
        mine = await _file(resources, async_session, "mine.txt", alice_actor)
        for resource in (team, plan, old, mine):
            await resources.toggle_star(async_session, resource)
        old.deleted_at = utcnow()
        await async_session.flush()

        starred = await resources.starred(async_session, owner_actor.id)
        assert [r.name for r in starred] == ["plan.txt", "Team"]
        files = await resources.starred(async_session, owner_actor.id, ResourceKind.FILE)
        assert [r.name for r in files] == ["plan.txt"]
        assert [r.name for r in await resources.starred(async_session, alice_actor.id)] == [
            "mine.txt"
        ]


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


class TestSearch:
    async def test_case_insensitive_substring(
        self,
        resources: ResourceService,
        async_session: AsyncSession,
        owner_actor: Actor,
        team: ResourceBase,
    ):
        await _file(resources, async_session, "Quarterly Report.pdf", owner_actor, team)
        await _file(resources, async_session, "report-draft.txt", owner_actor)
        await _file(resources, async_session, "notes.txt", owner_actor)

        found = await resources.search(async_session, "REPORT", owner_ids=[owner_actor.id])
        assert [r.name for r in found] == ["Quarterly Report.pdf", "report-draft.txt"]

    async def test_wildcards_are_literal(
        self,
        resources: ResourceService,
        async_session: AsyncSession,
        owner_actor: Actor,
    ):
        await _file(resources, async_session, "100%_done.txt", owner_actor)
        await _file(resources, async_session, "100 done.txt", owner_actor)

        found = await resources.search(async_session, "100%_", owner_ids=[owner_actor.id])
        assert [r.name for r in found] == ["100%_done.txt"]
        assert await resources.search(async_session, "_", owner_ids=[owner_actor.id]) == found

    async def test_filters_owner_kind_and_trash(
        self,
        resources: ResourceService,
        async_session: AsyncSession,
        owner_actor: Actor,
        alice_actor: Actor,
        team: ResourceBase,
    ):
        await _file(resources, async_session, "team-notes.txt", owner_actor, team)
        await _file(resources, async_session, "team-alice.txt", alice_actor)
        gone = await _file(resources, async_session, "team-old.txt", owner_actor)
        gone.deleted_at = utcnow()
        await async_session.flush()

        found = await resources.search(async_session, "team", owner_ids=[owner_actor.id])
        assert [r.name for r in found] == ["Team", "team-notes.txt"]
        folders = await resources.search(
            async_session, "team", owner_ids=[owner_actor.id], kind=ResourceKind.FOLDER
        )
        assert [r.name for r in folders] == ["Team"]
        both = await resources.search(
            async_session, "team", owner_ids=[owner_actor.id, alice_actor.id]
        )
        assert {r.name for r in both} == {"Team", "team-notes.txt", "team-alice.txt"}
        assert await resources.search(async_session, "team", owner_ids=[]) == []

    async def test_owner_ids(
        self,
        resources: ResourceService,
        async_session: AsyncSession,
        owner_actor: Actor,
        alice_actor: Actor,
        team: ResourceBase,
    ):
        doc = await _file(resources, async_session, "doc.txt", owner_actor, team)
        mine = await _file(resources, async_session, "mine.txt", alice_actor)
        ids = [team.id, doc.id, mine.id]
        assert await resources.owner_ids(async_session, ids) == {  # type: ignore[arg-type]
            owner_actor.id,
            alice_actor.id,
        }
        assert await resources.owner_ids(async_session, []) == set()
