"""VisibilityResolver — who may see a resource, at what level, and which children.

Resolution order for ``can_access``:

1. Trashed (directly or through an ancestor): denied, except for the owner
   when the caller asks for the trash view.
2. Owner: ``owner``.
3. Grant for the actor's email on the resource itself.
4. Grant on the nearest ancestor that has the same owner.  The walk stops at
   the first ancestor owned by someone else, so a grantee never inherits
   into items another user created.
5. Denied.

Folder listings are creator-scoped: the owner sees only the items the owner
created; a grantee sees the owner's items plus the grantee's own.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .exceptions import InvalidInputError, PermissionDeniedError, ResourceNotFoundError
from .permissions import Permission
from .types import AccessDecision, ResourceKind

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from driveshare.models.resources import ResourceBase

    from .grants import AccessGrantService
    from .resources import ResourceService
    from .types import Actor

logger = logging.getLogger(__name__)

REASON_OWNER = "owner"
REASON_GRANT = "grant"
REASON_INHERITED = "inherited"
REASON_TRASHED = "trashed"
REASON_NO_GRANT = "no-grant"


class VisibilityResolver:
    """Composes ownership, grants, and trash state into access decisions."""

    def __init__(self, resources: ResourceService, grants: AccessGrantService) -> None:
        self._resources = resources
        self._grants = grants

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    async def is_trashed(self, session: AsyncSession, resource: ResourceBase) -> bool:
        """True if *resource* or any ancestor is in the trash."""
        if resource.is_deleted:
            return True
        return any(a.is_deleted for a in await self._resources.ancestors(session, resource))

    async def can_access(
        self,
        session: AsyncSession,
        actor: Actor,
        resource: ResourceBase,
        *,
        include_trashed: bool = False,
    ) -> AccessDecision:
        """Decide whether *actor* may access *resource* and at what level."""
        ancestors = await self._resources.ancestors(session, resource)
        is_owner = actor.id == resource.owner_id

        if resource.is_deleted or any(a.is_deleted for a in ancestors):
            if include_trashed and is_owner:
                return AccessDecision(True, Permission.OWNER, REASON_OWNER)
            return AccessDecision(False, None, REASON_TRASHED)

        if is_owner:
            return AccessDecision(True, Permission.OWNER, REASON_OWNER)

        # Only ancestors created by the same owner can pass a grant down.
        chain = [resource]
        for ancestor in ancestors:
            if ancestor.owner_id != resource.owner_id:
                break
            chain.append(ancestor)

        grants = await self._grants.find_many(
            session, [r.id for r in chain if r.id is not None], actor.email
        )
        for node in chain:
            grant = grants.get(node.id)  # type: ignore[arg-type]
            if grant is not None:
                reason = REASON_GRANT if node is resource else REASON_INHERITED
                return AccessDecision(True, Permission(grant.permission), reason)

        return AccessDecision(False, None, REASON_NO_GRANT)

    async def require(
        self,
        session: AsyncSession,
        actor: Actor,
        resource: ResourceBase,
        required: Permission | str = Permission.VIEW,
        *,
        include_trashed: bool = False,
    ) -> Permission:
        """Return the actor's permission or raise if it is insufficient."""
        decision = await self.can_access(
            session, actor, resource, include_trashed=include_trashed
        )
        if not decision.allowed or decision.permission is None:
            if decision.reason == REASON_TRASHED:
                raise ResourceNotFoundError(f"{resource.name!r} is in the trash")
            raise PermissionDeniedError("You don't have access to this item")
        if not decision.permission.satisfies(required):
            raise PermissionDeniedError(
                f"You need {Permission(required).value} permission for this action"
            )
        return decision.permission

    # ------------------------------------------------------------------
    # Folder listings
    # ------------------------------------------------------------------

    @staticmethod
    def visible_owner_ids(actor: Actor, folder: ResourceBase) -> list[int]:
        """Creators whose items *actor* sees inside *folder*."""
        if actor.id == folder.owner_id:
            return [folder.owner_id]
        return [folder.owner_id, actor.id]

    async def list_visible_children(
        self,
        session: AsyncSession,
        actor: Actor,
        folder: ResourceBase,
    ) -> list[ResourceBase]:
        """Active children of *folder* that *actor* is allowed to see."""
        if folder.kind != ResourceKind.FOLDER.value:
            raise InvalidInputError("Only folders have children")
        await self.require(session, actor, folder, Permission.VIEW)
        assert folder.id is not None
        return await self._resources.children(
            session, folder.id, owner_ids=self.visible_owner_ids(actor, folder)
        )

    async def list_link_children(
        self,
        session: AsyncSession,
        folder: ResourceBase,
    ) -> list[ResourceBase]:
        """Children an anonymous link bearer sees: the folder owner's view."""
        assert folder.id is not None
        return await self._resources.children(session, folder.id, owner_ids=[folder.owner_id])

    async def is_within_link_scope(
        self,
        session: AsyncSession,
        root: ResourceBase,
        target: ResourceBase,
    ) -> bool:
        """True if *target* is *root* or lies under it along an owner-created chain."""
        if target.id == root.id:
            return True
        if target.owner_id != root.owner_id or target.is_deleted:
            return False
        for ancestor in await self._resources.ancestors(session, target):
            if ancestor.id == root.id:
                return True
            if ancestor.owner_id != root.owner_id or ancestor.is_deleted:
                return False
        return False
