"""TrashService — soft delete with cascade, restore, purge, and retention."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from sqlmodel import select

from .exceptions import ConflictError, NotEmptyError
from .permissions import require_owner
from .types import ResourceKind
from .utils import as_utc, utcnow

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy.ext.asyncio import AsyncSession

    from driveshare.models.resources import ResourceBase

    from .grants import AccessGrantService
    from .links import PublicLinkService
    from .resources import ResourceService
    from .types import Actor

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 30


class TrashService:
    """Lifecycle gate: ``active -> trashed -> purged`` plus ``trashed -> active``.

    Grants and links on a trashed resource are left in place so a restore
    brings sharing back unchanged; they are only deleted on purge.
    """

    def __init__(
        self,
        resources: ResourceService,
        grants: AccessGrantService,
        links: PublicLinkService,
        *,
        retention_days: int = DEFAULT_RETENTION_DAYS,
    ) -> None:
        self._resources = resources
        self._grants = grants
        self._links = links
        self.retention_days = retention_days

    async def move_to_trash(
        self,
        session: AsyncSession,
        actor_id: int,
        resource: ResourceBase,
    ) -> list[ResourceBase]:
        """Trash *resource* and, for folders, every active descendant.

        Permission (owner or edit) must already have been checked.  Returns
        all rows that changed state, *resource* first.
        """
        if resource.is_deleted:
            raise ConflictError(f"{resource.name!r} is already in the trash")
        now = utcnow()
        affected = [resource]
        if resource.kind == ResourceKind.FOLDER.value:
            affected.extend(
                d for d in await self._resources.descendants(session, resource)
                if not d.is_deleted
            )
        for row in affected:
            row.deleted_at = now
            row.deleted_by = actor_id
            row.trash_root_id = resource.id
        await session.flush()
        logger.info(
            "Trashed %s %s (%d rows) by user %s",
            resource.kind, resource.id, len(affected), actor_id,
        )
        return affected

    async def restore(
        self,
        session: AsyncSession,
        actor: Actor,
        resource: ResourceBase,
    ) -> list[ResourceBase]:
        """Bring *resource* and the rows trashed with it back to active."""
        require_owner(actor.id, resource.owner_id, "restore this item")
        if not resource.is_deleted:
            raise ConflictError(f"{resource.name!r} is not in the trash")
        if resource.parent_id is not None:
            parent = await self._resources.get(session, resource.parent_id)
            if parent.is_deleted:
                raise ConflictError("Restore the parent folder first")

        restored = [resource]
        if resource.kind == ResourceKind.FOLDER.value:
            restored.extend(
                d for d in await self._resources.descendants(session, resource)
                if d.is_deleted and d.trash_root_id == resource.id
            )
        now = utcnow()
        for row in restored:
            row.deleted_at = None
            row.deleted_by = None
            row.trash_root_id = None
            row.updated_at = now
        await session.flush()
        logger.info("Restored %s %s (%d rows)", resource.kind, resource.id, len(restored))
        return restored

    async def purge(self, session: AsyncSession, resource: ResourceBase) -> None:
        """Delete a trashed row for good, along with its grants and link."""
        assert resource.id is not None
        if resource.kind == ResourceKind.FOLDER.value:
            if await self._resources.count_children(session, resource.id):
                raise NotEmptyError(f"Folder {resource.name!r} still contains items")
        await self._grants.delete_all(session, resource.id)
        await self._links.delete_for_resource(session, resource.id)
        await session.delete(resource)
        await session.flush()

    async def permanent_delete(
        self,
        session: AsyncSession,
        actor: Actor,
        resource: ResourceBase,
    ) -> None:
        """Owner-initiated purge of a single trashed item."""
        require_owner(actor.id, resource.owner_id, "permanently delete this item")
        if not resource.is_deleted:
            raise ConflictError("Item must be in the trash before permanent deletion")
        await self.purge(session, resource)
        logger.info("Purged %s %s", resource.kind, resource.id)

    async def list_trash(
        self,
        session: AsyncSession,
        owner_id: int,
        kind: ResourceKind | str | None = None,
    ) -> list[ResourceBase]:
        return await self._resources.owned(session, owner_id, deleted=True, kind=kind)

    # ------------------------------------------------------------------
    # Bulk planning (executed item by item by the caller)
    # ------------------------------------------------------------------

    async def empty_plan(self, session: AsyncSession, owner_id: int) -> list[int]:
        """Ids to purge when *owner_id* empties the trash, deepest first."""
        roots = await self._resources.owned(session, owner_id, deleted=True)
        return await self._deepest_first(session, roots)

    async def expired_plan(
        self,
        session: AsyncSession,
        *,
        now: datetime | None = None,
    ) -> list[int]:
        """Ids trashed longer than the retention window, deepest first."""
        cutoff = (now or utcnow()) - timedelta(days=self.retention_days)
        model = self._resources.model
        result = await session.execute(
            select(model).where(model.deleted_at.is_not(None))  # type: ignore[union-attr]
        )
        expired = [
            r for r in result.scalars().all()
            if (deleted_at := as_utc(r.deleted_at)) is not None and deleted_at <= cutoff
        ]
        return await self._deepest_first(session, expired)

    async def _deepest_first(
        self,
        session: AsyncSession,
        roots: list[ResourceBase],
    ) -> list[int]:
        rows: dict[int, ResourceBase] = {}
        for root in roots:
            assert root.id is not None
            rows[root.id] = root
            if root.kind == ResourceKind.FOLDER.value:
                for d in await self._resources.descendants(session, root):
                    assert d.id is not None
                    rows[d.id] = d
        depths = {rid: await self._resources.depth(session, row) for rid, row in rows.items()}
        return sorted(rows, key=lambda rid: (-depths[rid], rid))
