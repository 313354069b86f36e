"""PublicLinkService — single-active-link issuance and token resolution."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from .exceptions import ConflictError, InvalidInputError, LinkExpiredError, LinkNotFoundError
from .permissions import parse_grantable, require_owner
from .utils import as_utc, new_token, utcnow

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from sqlalchemy.ext.asyncio import AsyncSession

    from driveshare.models.resources import ResourceBase
    from driveshare.models.shares import PublicLinkBase

    from .types import Actor

logger = logging.getLogger(__name__)


class PublicLinkService:
    """Issues, looks up, and revokes public bearer links.

    At most one link exists per resource; issuing a new one deletes the
    previous row in the same transaction so the old token stops resolving.
    """

    def __init__(
        self,
        link_model: type[PublicLinkBase],
        *,
        base_url: str = "http://localhost:3000",
    ) -> None:
        self._link_model = link_model
        self._base_url = base_url.rstrip("/")

    def url_for(self, token: str) -> str:
        """Public URL of the share page for *token*."""
        return f"{self._base_url}/s/{token}"

    async def create_link(
        self,
        session: AsyncSession,
        actor: Actor,
        resource: ResourceBase,
        permission: str = "view",
        *,
        expires_in_days: int | None = None,
    ) -> PublicLinkBase:
        """Create or replace the link on *resource*. Flushes but does not commit."""
        require_owner(actor.id, resource.owner_id, "create a share link")
        level = parse_grantable(permission)
        expires_at = None
        if expires_in_days is not None:
            if expires_in_days <= 0:
                raise InvalidInputError("expiresIn must be a positive number of days")
            expires_at = utcnow() + timedelta(days=expires_in_days)

        assert resource.id is not None
        existing = await self.find_for_resource(session, resource.id)
        if existing is not None:
            await session.delete(existing)
            await session.flush()

        link = self._link_model(
            resource_id=resource.id,
            resource_kind=resource.kind,
            token=new_token(),
            permission=level.value,
            created_by=actor.id,
            expires_at=expires_at,
        )
        session.add(link)
        try:
            await session.flush()
        except IntegrityError as exc:
            raise ConflictError("A share link was created concurrently; retry") from exc
        logger.info(
            "Issued %s link for %s %s (replaced=%s)",
            level.value,
            resource.kind,
            resource.id,
            existing is not None,
        )
        return link

    async def get_link(
        self,
        session: AsyncSession,
        actor: Actor,
        resource: ResourceBase,
    ) -> PublicLinkBase | None:
        """Return the current link on *resource*, owner only."""
        require_owner(actor.id, resource.owner_id, "view the share link")
        assert resource.id is not None
        return await self.find_for_resource(session, resource.id)

    async def revoke_link(
        self,
        session: AsyncSession,
        actor: Actor,
        resource: ResourceBase,
    ) -> PublicLinkBase:
        """Delete the active link on *resource*."""
        require_owner(actor.id, resource.owner_id, "revoke the share link")
        assert resource.id is not None
        link = await self.find_for_resource(session, resource.id)
        if link is None:
            raise LinkNotFoundError("No active share link for this item")
        await session.delete(link)
        await session.flush()
        return link

    async def resolve_token(
        self,
        session: AsyncSession,
        token: str,
        *,
        now: datetime | None = None,
        count_access: bool = True,
    ) -> PublicLinkBase:
        """Look up *token*, checking expiry. Bumps ``access_count`` by default."""
        model = self._link_model
        result = await session.execute(select(model).where(model.token == token))
        link = result.scalar_one_or_none()
        if link is None:
            raise LinkNotFoundError("Invalid or expired share link")
        expires_at = as_utc(link.expires_at)
        if expires_at is not None and expires_at <= (now or utcnow()):
            raise LinkExpiredError("This share link has expired")
        if count_access:
            link.access_count += 1
            await session.flush()
        return link

    async def find_for_resource(
        self,
        session: AsyncSession,
        resource_id: int,
    ) -> PublicLinkBase | None:
        model = self._link_model
        result = await session.execute(select(model).where(model.resource_id == resource_id))
        return result.scalar_one_or_none()

    async def find_for_resources(
        self,
        session: AsyncSession,
        resource_ids: Sequence[int],
    ) -> dict[int, PublicLinkBase]:
        """Return ``{resource_id: link}`` for those of *resource_ids* that have one."""
        if not resource_ids:
            return {}
        model = self._link_model
        result = await session.execute(
            select(model).where(model.resource_id.in_(list(resource_ids)))  # type: ignore[union-attr]
        )
        return {link.resource_id: link for link in result.scalars().all()}

    async def delete_for_resource(self, session: AsyncSession, resource_id: int) -> bool:
        """Delete the link on *resource_id* if present. Returns True if one existed."""
        link = await self.find_for_resource(session, resource_id)
        if link is None:
            return False
        await session.delete(link)
        await session.flush()
        return True
