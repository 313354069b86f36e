"""ResourceService — file/folder rows and tree queries.

Mechanical storage operations only; permission decisions are made by
``VisibilityResolver`` before any of these are called.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlmodel import func, select

from .exceptions import ConflictError, InvalidInputError, ResourceNotFoundError
from .types import ResourceKind
from .utils import MAX_TREE_DEPTH, utcnow, validate_name

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from driveshare.models.resources import ResourceBase

logger = logging.getLogger(__name__)


class ResourceService:
    """Creates, renames, moves, and walks files and folders."""

    def __init__(self, resource_model: type[ResourceBase]) -> None:
        self._resource_model = resource_model

    @property
    def model(self) -> type[ResourceBase]:
        return self._resource_model

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    async def get(
        self,
        session: AsyncSession,
        resource_id: int,
        kind: ResourceKind | str | None = None,
    ) -> ResourceBase:
        """Fetch a row by id, optionally requiring a kind."""
        resource = await session.get(self._resource_model, resource_id)
        if resource is None or (kind is not None and resource.kind != ResourceKind(kind).value):
            label = ResourceKind(kind).value.capitalize() if kind is not None else "Item"
            raise ResourceNotFoundError(f"{label} not found: {resource_id}")
        return resource

    async def ancestors(self, session: AsyncSession, resource: ResourceBase) -> list[ResourceBase]:
        """Return the parent chain of *resource*, nearest first.

        Guards against cycles and over-deep chains; either ends the walk.
        """
        chain: list[ResourceBase] = []
        seen = {resource.id}
        parent_id = resource.parent_id
        while parent_id is not None:
            if parent_id in seen or len(chain) >= MAX_TREE_DEPTH:
                logger.warning("Parent chain of %s is cyclic or too deep", resource.id)
                break
            parent = await session.get(self._resource_model, parent_id)
            if parent is None:
                break
            seen.add(parent_id)
            chain.append(parent)
            parent_id = parent.parent_id
        return chain

    async def children(
        self,
        session: AsyncSession,
        folder_id: int,
        *,
        include_deleted: bool = False,
        owner_ids: Sequence[int] | None = None,
    ) -> list[ResourceBase]:
        """List direct children of *folder_id*, folders first then by name."""
        model = self._resource_model
        conditions = [model.parent_id == folder_id]
        if not include_deleted:
            conditions.append(model.deleted_at.is_(None))  # type: ignore[union-attr]
        if owner_ids is not None:
            conditions.append(model.owner_id.in_(list(owner_ids)))  # type: ignore[attr-defined]
        result = await session.execute(select(model).where(*conditions))
        rows = list(result.scalars().all())
        rows.sort(key=lambda r: (r.kind != ResourceKind.FOLDER.value, r.name.lower()))
        return rows

    async def descendants(self, session: AsyncSession, folder: ResourceBase) -> list[ResourceBase]:
        """Every row below *folder*, breadth first, including trashed rows."""
        model = self._resource_model
        found: list[ResourceBase] = []
        seen = {folder.id}
        frontier = [folder.id]
        while frontier:
            result = await session.execute(
                select(model).where(model.parent_id.in_(frontier))  # type: ignore[union-attr]
            )
            level = [r for r in result.scalars().all() if r.id not in seen]
            seen.update(r.id for r in level)
            found.extend(level)
            frontier = [r.id for r in level if r.kind == ResourceKind.FOLDER.value]
        return found

    async def roots(
        self,
        session: AsyncSession,
        owner_id: int,
        kind: ResourceKind | str | None = None,
    ) -> list[ResourceBase]:
        """Active top-level items owned by *owner_id*."""
        model = self._resource_model
        conditions = [
            model.owner_id == owner_id,
            model.parent_id.is_(None),  # type: ignore[union-attr]
            model.deleted_at.is_(None),  # type: ignore[union-attr]
        ]
        if kind is not None:
            conditions.append(model.kind == ResourceKind(kind).value)
        result = await session.execute(select(model).where(*conditions).order_by(model.name))
        return list(result.scalars().all())

    async def owned(
        self,
        session: AsyncSession,
        owner_id: int,
        *,
        deleted: bool,
        kind: ResourceKind | str | None = None,
    ) -> list[ResourceBase]:
        """Items owned by *owner_id*, either active or trashed."""
        model = self._resource_model
        deleted_cond = (
            model.deleted_at.is_not(None)  # type: ignore[union-attr]
            if deleted
            else model.deleted_at.is_(None)  # type: ignore[union-attr]
        )
        conditions = [model.owner_id == owner_id, deleted_cond]
        if kind is not None:
            conditions.append(model.kind == ResourceKind(kind).value)
        result = await session.execute(select(model).where(*conditions).order_by(model.id))
        return list(result.scalars().all())

    async def count_children(self, session: AsyncSession, folder_id: int) -> int:
        """Number of child rows (active or trashed) under *folder_id*."""
        model = self._resource_model
        result = await session.execute(
            select(func.count()).select_from(model).where(model.parent_id == folder_id)
        )
        return int(result.scalar_one())

    async def depth(self, session: AsyncSession, resource: ResourceBase) -> int:
        return len(await self.ancestors(session, resource))

    async def owner_ids(self, session: AsyncSession, resource_ids: Sequence[int]) -> set[int]:
        """Distinct owners of *resource_ids*."""
        if not resource_ids:
            return set()
        model = self._resource_model
        result = await session.execute(
            select(model.owner_id)
            .where(model.id.in_(list(resource_ids)))  # type: ignore[union-attr]
            .distinct()
        )
        return set(result.scalars().all())

    # ------------------------------------------------------------------
    # Stars and search
    # ------------------------------------------------------------------

    async def starred(
        self,
        session: AsyncSession,
        owner_id: int,
        kind: ResourceKind | str | None = None,
    ) -> list[ResourceBase]:
        """Untrashed items *owner_id* has starred, by name."""
        model = self._resource_model
        conditions = [
            model.owner_id == owner_id,
            model.is_starred.is_(True),  # type: ignore[attr-defined]
            model.deleted_at.is_(None),  # type: ignore[union-attr]
        ]
        if kind is not None:
            conditions.append(model.kind == ResourceKind(kind).value)
        result = await session.execute(
            select(model).where(*conditions).order_by(func.lower(model.name), model.id)
        )
        return list(result.scalars().all())

    async def search(
        self,
        session: AsyncSession,
        query: str,
        *,
        owner_ids: Sequence[int],
        kind: ResourceKind | str | None = None,
    ) -> list[ResourceBase]:
        """Untrashed items of *owner_ids* whose name contains *query*, ignoring case.

        Wildcards in *query* match literally.  No access check is made here;
        callers filter the candidates through the resolver.
        """
        if not owner_ids:
            return []
        model = self._resource_model
        conditions = [
            model.name.icontains(query, autoescape=True),  # type: ignore[attr-defined]
            model.owner_id.in_(list(owner_ids)),  # type: ignore[attr-defined]
            model.deleted_at.is_(None),  # type: ignore[union-attr]
        ]
        if kind is not None:
            conditions.append(model.kind == ResourceKind(kind).value)
        result = await session.execute(
            select(model).where(*conditions).order_by(func.lower(model.name), model.id)
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create(
        self,
        session: AsyncSession,
        *,
        kind: ResourceKind | str,
        name: str,
        owner_id: int,
        parent: ResourceBase | None = None,
        content: bytes | None = None,
        mime_type: str | None = None,
    ) -> ResourceBase:
        """Insert a file or folder row. Flushes but does not commit."""
        kind = ResourceKind(kind)
        if parent is not None:
            self._require_active_folder(parent)
        resource = self._resource_model(
            kind=kind.value,
            name=validate_name(name),
            owner_id=owner_id,
            parent_id=parent.id if parent is not None else None,
        )
        if kind is ResourceKind.FILE:
            data = content or b""
            resource.content = data
            resource.size_bytes = len(data)
            resource.mime_type = mime_type or "application/octet-stream"
        session.add(resource)
        await session.flush()
        return resource

    async def rename(self, session: AsyncSession, resource: ResourceBase, name: str) -> ResourceBase:
        resource.name = validate_name(name)
        resource.updated_at = utcnow()
        await session.flush()
        return resource

    async def toggle_star(self, session: AsyncSession, resource: ResourceBase) -> ResourceBase:
        """Flip the owner's star. Not a content change, so ``updated_at`` stays."""
        resource.is_starred = not resource.is_starred
        await session.flush()
        return resource

    async def move(
        self,
        session: AsyncSession,
        resource: ResourceBase,
        new_parent: ResourceBase | None,
    ) -> ResourceBase:
        """Re-parent *resource*; rejects moves that would create a cycle."""
        if resource.is_deleted:
            raise ConflictError("Cannot move an item that is in the trash")
        if new_parent is None:
            if resource.parent_id is None:
                raise ConflictError("Item is already in this location")
            resource.parent_id = None
        else:
            self._require_active_folder(new_parent)
            if new_parent.id == resource.parent_id:
                raise ConflictError("Item is already in this location")
            if new_parent.id == resource.id or any(
                a.id == resource.id for a in await self.ancestors(session, new_parent)
            ):
                raise InvalidInputError("Cannot move a folder into itself or its subfolder")
            resource.parent_id = new_parent.id
        resource.updated_at = utcnow()
        await session.flush()
        return resource

    @staticmethod
    def _require_active_folder(parent: ResourceBase) -> None:
        if parent.kind != ResourceKind.FOLDER.value:
            raise InvalidInputError("Parent must be a folder")
        if parent.is_deleted:
            raise ConflictError("Cannot place items inside a folder in the trash")
