"""AccessGrantService — per-user grant CRUD.

Stateless service that receives the grant model at construction and a
session at call time.  Owner checks happen here; user-directory lookups
(does the grantee exist?) belong to the caller.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError
from sqlmodel import func, select

from .exceptions import (
    AlreadyGrantedError,
    GrantNotFoundError,
    InvalidInputError,
    PermissionDeniedError,
)
from .permissions import parse_grantable, require_owner
from .utils import normalize_email, utcnow

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from driveshare.models.resources import ResourceBase
    from driveshare.models.shares import AccessGrantBase

    from .types import Actor

logger = logging.getLogger(__name__)


class AccessGrantService:
    """Manages per-user grants on files and folders.

    Constructor receives the concrete grant model so callers can use
    custom SQLModel subclasses with different table names.
    """

    def __init__(self, grant_model: type[AccessGrantBase]) -> None:
        self._grant_model = grant_model

    # ------------------------------------------------------------------
    # Mutations (owner only)
    # ------------------------------------------------------------------

    async def grant(
        self,
        session: AsyncSession,
        actor: Actor,
        resource: ResourceBase,
        grantee_email: str,
        permission: str,
    ) -> AccessGrantBase:
        """Create a grant. Flushes but does not commit.

        Raises ``AlreadyGrantedError`` if *grantee_email* already holds a
        grant on *resource*; callers wanting upsert semantics should use
        ``update_permission`` on that grant instead.
        """
        require_owner(actor.id, resource.owner_id, "share this item")
        email = normalize_email(grantee_email)
        level = parse_grantable(permission)
        if email == actor.email.lower():
            raise InvalidInputError("You cannot share an item with yourself")

        assert resource.id is not None
        if await self.find(session, resource.id, email) is not None:
            raise AlreadyGrantedError(f"Already shared with {email}")

        grant = self._grant_model(
            resource_id=resource.id,
            resource_kind=resource.kind,
            grantee_email=email,
            permission=level.value,
            granted_by=actor.id,
        )
        session.add(grant)
        try:
            await session.flush()
        except IntegrityError as exc:
            # A concurrent grant won the unique constraint.
            raise AlreadyGrantedError(f"Already shared with {email}") from exc
        logger.info("Granted %s on %s %s to %s", level.value, resource.kind, resource.id, email)
        return grant

    async def update_permission(
        self,
        session: AsyncSession,
        actor: Actor,
        resource: ResourceBase,
        grant_id: int,
        permission: str,
    ) -> AccessGrantBase:
        """Change a grant's permission. A no-op if it is unchanged."""
        require_owner(actor.id, resource.owner_id, "change sharing settings")
        level = parse_grantable(permission)
        grant = await self.get(session, resource, grant_id)
        if grant.permission == level.value:
            return grant
        grant.permission = level.value
        grant.updated_at = utcnow()
        await session.flush()
        return grant

    async def revoke(
        self,
        session: AsyncSession,
        actor: Actor,
        resource: ResourceBase,
        grant_id: int,
    ) -> AccessGrantBase:
        """Delete one grant. Returns the removed row."""
        require_owner(actor.id, resource.owner_id, "revoke access")
        grant = await self.get(session, resource, grant_id)
        await session.delete(grant)
        await session.flush()
        return grant

    async def remove_self(
        self,
        session: AsyncSession,
        actor: Actor,
        resource: ResourceBase,
    ) -> AccessGrantBase:
        """Let a grantee drop their own grant on *resource*."""
        assert resource.id is not None
        grant = await self.find(session, resource.id, actor.email)
        if grant is None:
            raise GrantNotFoundError("You don't have access to this item")
        await session.delete(grant)
        await session.flush()
        return grant

    async def toggle_star(
        self,
        session: AsyncSession,
        actor: Actor,
        resource: ResourceBase,
    ) -> AccessGrantBase:
        """Flip the star on the actor's own grant for *resource*."""
        assert resource.id is not None
        grant = await self.find(session, resource.id, actor.email)
        if grant is None:
            raise GrantNotFoundError("Only items shared with you directly can be starred")
        grant.is_starred = not grant.is_starred
        await session.flush()
        return grant

    async def delete_all(self, session: AsyncSession, resource_id: int) -> int:
        """Delete every grant on *resource_id*. Returns the number removed."""
        grants = await self._list(session, resource_id)
        for grant in grants:
            await session.delete(grant)
        if grants:
            await session.flush()
        return len(grants)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_for_resource(
        self,
        session: AsyncSession,
        actor: Actor,
        resource: ResourceBase,
    ) -> list[AccessGrantBase]:
        """List grants on *resource*. Only the owner may see them."""
        if actor.id != resource.owner_id:
            raise PermissionDeniedError(
                "You do not have permission to view shares for this item"
            )
        assert resource.id is not None
        return await self._list(session, resource.id)

    async def find(
        self,
        session: AsyncSession,
        resource_id: int,
        grantee_email: str,
    ) -> AccessGrantBase | None:
        """Return the grant for (*resource_id*, *grantee_email*) if any."""
        model = self._grant_model
        result = await session.execute(
            select(model).where(
                model.resource_id == resource_id,
                model.grantee_email == grantee_email.lower(),
            )
        )
        return result.scalar_one_or_none()

    async def find_many(
        self,
        session: AsyncSession,
        resource_ids: Sequence[int],
        grantee_email: str,
    ) -> dict[int, AccessGrantBase]:
        """Return grants for *grantee_email* on any of *resource_ids*, keyed by resource."""
        if not resource_ids:
            return {}
        model = self._grant_model
        result = await session.execute(
            select(model).where(
                model.grantee_email == grantee_email.lower(),
                model.resource_id.in_(list(resource_ids)),  # type: ignore[union-attr]
            )
        )
        return {g.resource_id: g for g in result.scalars().all()}

    async def list_for_grantee(
        self,
        session: AsyncSession,
        grantee_email: str,
    ) -> list[AccessGrantBase]:
        """List all grants held by *grantee_email*."""
        model = self._grant_model
        result = await session.execute(
            select(model)
            .where(model.grantee_email == grantee_email.lower())
            .order_by(model.created_at.desc())  # type: ignore[union-attr]
        )
        return list(result.scalars().all())

    async def count_by_resource(
        self,
        session: AsyncSession,
        resource_ids: Sequence[int],
    ) -> dict[int, int]:
        """Return ``{resource_id: grant_count}`` for resources with any grants."""
        if not resource_ids:
            return {}
        model = self._grant_model
        result = await session.execute(
            select(model.resource_id, func.count())
            .where(model.resource_id.in_(list(resource_ids)))  # type: ignore[union-attr]
            .group_by(model.resource_id)
        )
        return {rid: count for rid, count in result.all()}

    async def get(
        self,
        session: AsyncSession,
        resource: ResourceBase,
        grant_id: int,
    ) -> AccessGrantBase:
        """Fetch a grant, requiring that it belongs to *resource*."""
        grant = await session.get(self._grant_model, grant_id)
        if grant is None or grant.resource_id != resource.id:
            raise GrantNotFoundError(f"Share not found: {grant_id}")
        return grant

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _list(self, session: AsyncSession, resource_id: int) -> list[AccessGrantBase]:
        model = self._grant_model
        result = await session.execute(
            select(model)
            .where(model.resource_id == resource_id)
            .order_by(model.id)  # type: ignore[arg-type]
        )
        return list(result.scalars().all())
