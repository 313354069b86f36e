"""DriveAsync — primary async facade over the sharing and lifecycle services."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel, select

from driveshare.access.exceptions import (
    AlreadyGrantedError,
    ConflictError,
    DriveShareError,
    InvalidInputError,
    LinkNotFoundError,
    PermissionDeniedError,
    ResourceNotFoundError,
    UserNotFoundError,
)
from driveshare.access.grants import AccessGrantService
from driveshare.access.links import PublicLinkService
from driveshare.access.permissions import Permission, require_owner
from driveshare.access.resolver import VisibilityResolver
from driveshare.access.resources import ResourceService
from driveshare.access.trash import TrashService
from driveshare.access.types import (
    AccessDecision,
    Actor,
    BulkResult,
    FileInfo,
    FolderInfo,
    FolderListing,
    GrantInfo,
    LinkInfo,
    ResourceInfo,
    ResourceKind,
    SharedByMeItem,
    SharedLinkView,
    SharedWithMeItem,
    resource_info,
)
from driveshare.access.utils import MAX_SEARCH_LIMIT, SEARCH_LIMIT, normalize_email
from driveshare.config import Settings
from driveshare.events import DriveEvent, EventBus, EventType
from driveshare.models.resources import Resource
from driveshare.models.shares import AccessGrant, PublicLink
from driveshare.models.users import User

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Sequence
    from datetime import datetime

    from sqlalchemy.ext.asyncio import AsyncEngine

    from driveshare.models.resources import ResourceBase
    from driveshare.models.shares import AccessGrantBase, PublicLinkBase
    from driveshare.models.users import UserBase

logger = logging.getLogger(__name__)


class DriveAsync:
    """Async entry point: users, resources, sharing, public links, and trash.

    Every public method runs in its own transaction, committed on success
    and rolled back on any exception.  Events are emitted only after the
    commit.  Bulk operations (``bulk_move``, ``empty_trash``,
    ``sweep_expired``) use one transaction per item and report counts
    instead of failing the batch.

    Usage::

        drive = DriveAsync(settings=Settings(database_url="sqlite+aiosqlite://"))
        await drive.init_db()
        owner = await drive.create_user("owner@example.com")
        team = await drive.create_folder(owner, "Team")
        await drive.share(owner, ResourceKind.FOLDER, team.id, "alice@x.com", "edit")
    """

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        engine: AsyncEngine | None = None,
        session_factory: Callable[..., AsyncSession] | None = None,
        user_model: type[UserBase] = User,
        resource_model: type[ResourceBase] = Resource,
        grant_model: type[AccessGrantBase] = AccessGrant,
        link_model: type[PublicLinkBase] = PublicLink,
    ) -> None:
        if engine is not None and session_factory is not None:
            raise ValueError("Provide engine or session_factory, not both")
        self.settings = settings or Settings()
        self._owns_engine = engine is None and session_factory is None
        if self._owns_engine:
            engine = create_async_engine(self.settings.database_url, echo=self.settings.echo_sql)
        self._engine = engine
        if session_factory is None:
            assert engine is not None
            session_factory = async_sessionmaker(
                engine, class_=AsyncSession, expire_on_commit=False
            )
        self._session_factory = session_factory
        self._user_model = user_model

        self.resources = ResourceService(resource_model)
        self.grants = AccessGrantService(grant_model)
        self.links = PublicLinkService(link_model, base_url=self.settings.public_base_url)
        self.resolver = VisibilityResolver(self.resources, self.grants)
        self.trash_service = TrashService(
            self.resources,
            self.grants,
            self.links,
            retention_days=self.settings.trash_retention_days,
        )
        self.events = EventBus()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def init_db(self) -> None:
        """Create all tables on the configured engine."""
        if self._engine is None:
            raise RuntimeError("init_db requires an engine; create tables yourself")
        async with self._engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def close(self) -> None:
        """Dispose the engine if this instance created it."""
        self.events.clear()
        if self._owns_engine and self._engine is not None:
            await self._engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session; commit on success, roll back on error."""
        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def create_user(self, email: str, full_name: str = "") -> Actor:
        """Register a user in the directory grants are addressed against."""
        address = normalize_email(email)
        try:
            async with self.session() as session:
                user = self._user_model(email=address, full_name=full_name)
                session.add(user)
                await session.flush()
                return self._actor(user)
        except IntegrityError as exc:
            raise ConflictError(f"Email already registered: {address}") from exc

    async def get_actor(self, user_id: int) -> Actor:
        async with self.session() as session:
            user = await session.get(self._user_model, user_id)
            if user is None:
                raise UserNotFoundError(f"User not found: {user_id}")
            return self._actor(user)

    async def get_actor_by_email(self, email: str) -> Actor:
        async with self.session() as session:
            user = await self._user_by_email(session, email)
            if user is None:
                raise UserNotFoundError(f"User not found with email: {email}")
            return self._actor(user)

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    async def create_folder(
        self, actor: Actor, name: str, parent_id: int | None = None
    ) -> FolderInfo:
        """Create a folder at the root or inside a folder the actor can edit."""
        async with self.session() as session:
            parent = await self._writable_parent(session, actor, parent_id)
            folder = await self.resources.create(
                session,
                kind=ResourceKind.FOLDER,
                name=name,
                owner_id=actor.id,
                parent=parent,
            )
            info = resource_info(folder, Permission.OWNER.value)
        assert isinstance(info, FolderInfo)
        return info

    async def upload_file(
        self,
        actor: Actor,
        name: str,
        content: bytes,
        *,
        mime_type: str | None = None,
        folder_id: int | None = None,
    ) -> FileInfo:
        """Store a file; the uploader becomes its owner even inside shared folders."""
        async with self.session() as session:
            parent = await self._writable_parent(session, actor, folder_id)
            file = await self.resources.create(
                session,
                kind=ResourceKind.FILE,
                name=name,
                owner_id=actor.id,
                parent=parent,
                content=content,
                mime_type=mime_type,
            )
            info = resource_info(file, Permission.OWNER.value)
        logger.info("User %s uploaded file %s (%d bytes)", actor.id, info.id, len(content))
        assert isinstance(info, FileInfo)
        return info

    async def get_item(
        self, actor: Actor, kind: ResourceKind | str, resource_id: int
    ) -> ResourceInfo:
        async with self.session() as session:
            resource = await self.resources.get(session, resource_id, kind)
            permission = await self.resolver.require(session, actor, resource)
            starred = await self._grantee_star(session, actor, resource)
            return resource_info(resource, permission.value, starred=starred)

    async def read_file(self, actor: Actor, file_id: int) -> tuple[FileInfo, bytes]:
        """Return metadata and content of a file the actor can view."""
        async with self.session() as session:
            file = await self.resources.get(session, file_id, ResourceKind.FILE)
            permission = await self.resolver.require(session, actor, file)
            info = resource_info(file, permission.value)
            data = file.content or b""
        assert isinstance(info, FileInfo)
        return info, data

    async def list_root(
        self, actor: Actor, kind: ResourceKind | str | None = None
    ) -> list[ResourceInfo]:
        """The actor's own top-level items."""
        async with self.session() as session:
            rows = await self.resources.roots(session, actor.id, kind)
            return [resource_info(r, Permission.OWNER.value) for r in rows]

    async def list_folder(self, actor: Actor, folder_id: int) -> FolderListing:
        """A folder with the children visible to *actor*."""
        async with self.session() as session:
            folder = await self.resources.get(session, folder_id, ResourceKind.FOLDER)
            permission = await self.resolver.require(session, actor, folder)
            children = await self.resolver.list_visible_children(session, actor, folder)
            foreign = [
                r.id for r in (folder, *children) if r.id is not None and r.owner_id != actor.id
            ]
            direct = await self.grants.find_many(session, foreign, actor.email)
            return self._listing(folder, children, permission.value, actor, direct)

    async def list_files(self, actor: Actor, folder_id: int | None = None) -> list[FileInfo]:
        """Files at the actor's root, or the visible files of a folder."""
        if folder_id is None:
            roots = await self.list_root(actor, ResourceKind.FILE)
            return [info for info in roots if isinstance(info, FileInfo)]
        return (await self.list_folder(actor, folder_id)).files

    async def list_subfolders(self, actor: Actor, folder_id: int) -> list[FolderInfo]:
        return (await self.list_folder(actor, folder_id)).subfolders

    async def rename(
        self, actor: Actor, kind: ResourceKind | str, resource_id: int, name: str
    ) -> ResourceInfo:
        async with self.session() as session:
            resource = await self.resources.get(session, resource_id, kind)
            permission = await self.resolver.require(session, actor, resource, Permission.EDIT)
            await self.resources.rename(session, resource, name)
            return resource_info(resource, permission.value)

    async def move(
        self,
        actor: Actor,
        kind: ResourceKind | str,
        resource_id: int,
        target_folder_id: int | None,
    ) -> ResourceInfo:
        """Move an owned item to the root or into another owned folder."""
        async with self.session() as session:
            resource = await self.resources.get(session, resource_id, kind)
            require_owner(actor.id, resource.owner_id, "move this item")
            target = None
            if target_folder_id is not None:
                target = await self.resources.get(session, target_folder_id, ResourceKind.FOLDER)
                require_owner(actor.id, target.owner_id, "move items into this folder")
                if await self.resolver.is_trashed(session, target):
                    raise ConflictError("Cannot move to a folder in the trash")
            await self.resources.move(session, resource, target)
            return resource_info(resource, Permission.OWNER.value)

    async def bulk_move(
        self,
        actor: Actor,
        items: Sequence[tuple[ResourceKind | str, int]],
        target_folder_id: int | None,
    ) -> BulkResult:
        """Best-effort move of several items; each succeeds or fails alone."""
        outcome = BulkResult()
        for kind, resource_id in items:
            try:
                await self.move(actor, kind, resource_id, target_folder_id)
            except DriveShareError as exc:
                logger.warning("Bulk move of %s %s failed: %s", kind, resource_id, exc)
                outcome.record_failure(resource_id, str(exc))
            else:
                outcome.success_count += 1
        return outcome

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    async def can_access(
        self,
        actor: Actor,
        kind: ResourceKind | str,
        resource_id: int,
        *,
        include_trashed: bool = False,
    ) -> AccessDecision:
        async with self.session() as session:
            resource = await self.resources.get(session, resource_id, kind)
            return await self.resolver.can_access(
                session, actor, resource, include_trashed=include_trashed
            )

    # ------------------------------------------------------------------
    # Grants
    # ------------------------------------------------------------------

    async def grant(
        self,
        actor: Actor,
        kind: ResourceKind | str,
        resource_id: int,
        email: str,
        permission: str,
        *,
        send_email: bool = False,
    ) -> GrantInfo:
        """Create a grant; ``AlreadyGrantedError`` if the email already holds one."""
        async with self.session() as session:
            resource = await self._active(session, kind, resource_id)
            address = normalize_email(email)
            require_owner(actor.id, resource.owner_id, "share this item")
            if await self._user_by_email(session, address) is None:
                raise UserNotFoundError(f"User not found with email: {address}")
            grant = await self.grants.grant(session, actor, resource, address, permission)
            info = self._grant_info(grant)
        await self._emit(
            EventType.GRANT_CREATED,
            info,
            actor,
            details={"send_email": send_email, "resource_name": resource.name},
        )
        return info

    async def share(
        self,
        actor: Actor,
        kind: ResourceKind | str,
        resource_id: int,
        email: str,
        permission: str,
        *,
        send_email: bool = False,
    ) -> tuple[GrantInfo, bool]:
        """Grant, or update the existing grant's permission. Returns ``(grant, created)``."""
        address = normalize_email(email)
        async with self.session() as session:
            await self._active(session, kind, resource_id)
            existing = await self.grants.find(session, resource_id, address)
            existing_id = existing.id if existing is not None else None
        if existing_id is None:
            try:
                info = await self.grant(
                    actor, kind, resource_id, address, permission, send_email=send_email
                )
            except AlreadyGrantedError:
                # Lost a race with a concurrent grant; fall through to update.
                async with self.session() as session:
                    existing = await self.grants.find(session, resource_id, address)
                    if existing is None:
                        raise
                    existing_id = existing.id
            else:
                return info, True
        assert existing_id is not None
        return await self.update_grant(actor, kind, resource_id, existing_id, permission), False

    async def update_grant(
        self,
        actor: Actor,
        kind: ResourceKind | str,
        resource_id: int,
        grant_id: int,
        permission: str,
    ) -> GrantInfo:
        async with self.session() as session:
            resource = await self._active(session, kind, resource_id)
            require_owner(actor.id, resource.owner_id, "change sharing settings")
            before = await self.grants.get(session, resource, grant_id)
            previous = before.permission
            grant = await self.grants.update_permission(
                session, actor, resource, grant_id, permission
            )
            info = self._grant_info(grant)
        if previous != info.permission:
            await self._emit(EventType.GRANT_UPDATED, info, actor)
        return info

    async def revoke_grant(
        self,
        actor: Actor,
        kind: ResourceKind | str,
        resource_id: int,
        grant_id: int,
    ) -> GrantInfo:
        async with self.session() as session:
            resource = await self.resources.get(session, resource_id, kind)
            grant = await self.grants.revoke(session, actor, resource, grant_id)
            info = self._grant_info(grant)
        await self._emit(EventType.GRANT_REVOKED, info, actor)
        return info

    async def remove_self(
        self, actor: Actor, kind: ResourceKind | str, resource_id: int
    ) -> GrantInfo:
        """Drop the actor's own grant on someone else's item."""
        async with self.session() as session:
            resource = await self.resources.get(session, resource_id, kind)
            grant = await self.grants.remove_self(session, actor, resource)
            info = self._grant_info(grant)
        await self._emit(EventType.GRANT_REVOKED, info, actor, details={"self_removed": True})
        return info

    async def list_grants(
        self, actor: Actor, kind: ResourceKind | str, resource_id: int
    ) -> list[GrantInfo]:
        async with self.session() as session:
            resource = await self.resources.get(session, resource_id, kind)
            grants = await self.grants.list_for_resource(session, actor, resource)
            return [self._grant_info(g) for g in grants]

    async def remove_all_access(
        self, actor: Actor, kind: ResourceKind | str, resource_id: int
    ) -> int:
        """Delete every grant and the link, then trash the item. Returns grants removed."""
        async with self.session() as session:
            resource = await self.resources.get(session, resource_id, kind)
            require_owner(actor.id, resource.owner_id, "remove all access")
            removed = await self.grants.delete_all(session, resource_id)
            had_link = await self.links.delete_for_resource(session, resource_id)
            affected = await self.trash_service.move_to_trash(session, actor.id, resource)
            resource_kind = resource.kind
        logger.info(
            "Removed all access to %s %s (%d grants, link=%s)",
            resource_kind, resource_id, removed, had_link,
        )
        await self.events.emit(
            DriveEvent(
                EventType.RESOURCE_TRASHED,
                resource_id,
                resource_kind,
                actor_id=actor.id,
                details={"rows": len(affected), "access_removed": True},
            )
        )
        return removed

    async def shared_with_me(
        self, actor: Actor, kind: ResourceKind | str | None = None
    ) -> list[SharedWithMeItem]:
        """Items granted to the actor, excluding anything in the trash."""
        wanted = ResourceKind(kind).value if kind is not None else None
        items: list[SharedWithMeItem] = []
        async with self.session() as session:
            for grant in await self.grants.list_for_grantee(session, actor.email):
                resource = await session.get(self.resources.model, grant.resource_id)
                if resource is None or (wanted is not None and resource.kind != wanted):
                    continue
                if await self.resolver.is_trashed(session, resource):
                    continue
                owner = await session.get(self._user_model, resource.owner_id)
                assert grant.id is not None
                items.append(
                    SharedWithMeItem(
                        resource=resource_info(
                            resource, grant.permission, starred=grant.is_starred
                        ),
                        permission=grant.permission,
                        grant_id=grant.id,
                        owner_email=owner.email if owner is not None else None,
                        shared_at=grant.created_at,
                    )
                )
        return items

    async def shared_by_me(
        self, actor: Actor, kind: ResourceKind | str | None = None
    ) -> list[SharedByMeItem]:
        """Active owned items that carry grants or a public link."""
        async with self.session() as session:
            owned = await self.resources.owned(session, actor.id, deleted=False, kind=kind)
            ids = [r.id for r in owned if r.id is not None]
            counts = await self.grants.count_by_resource(session, ids)
            links = await self.links.find_for_resources(session, ids)
            items = []
            for resource in owned:
                count = counts.get(resource.id, 0)  # type: ignore[arg-type]
                link = links.get(resource.id)  # type: ignore[arg-type]
                if not count and link is None:
                    continue
                items.append(
                    SharedByMeItem(
                        resource=resource_info(resource, Permission.OWNER.value),
                        share_count=count,
                        has_public_link=link is not None,
                        public_link=self.links.url_for(link.token) if link is not None else None,
                    )
                )
            return items

    # ------------------------------------------------------------------
    # Stars and search
    # ------------------------------------------------------------------

    async def toggle_star(
        self, actor: Actor, kind: ResourceKind | str, resource_id: int
    ) -> ResourceInfo:
        """Flip the actor's private star on an item.

        Owners star the item itself.  Anyone else stars their own grant, so
        the item must be shared with them directly; access inherited from a
        folder raises ``GrantNotFoundError``.
        """
        async with self.session() as session:
            resource = await self._active(session, kind, resource_id)
            permission = await self.resolver.require(session, actor, resource)
            if resource.owner_id == actor.id:
                await self.resources.toggle_star(session, resource)
                starred = resource.is_starred
            else:
                grant = await self.grants.toggle_star(session, actor, resource)
                starred = grant.is_starred
            logger.debug(
                "User %s %s %s %s",
                actor.id,
                "starred" if starred else "unstarred",
                resource.kind,
                resource.id,
            )
            return resource_info(resource, permission.value, starred=starred)

    async def starred(
        self, actor: Actor, kind: ResourceKind | str | None = None
    ) -> list[ResourceInfo]:
        """The actor's starred items: owned first, then those shared directly."""
        wanted = ResourceKind(kind).value if kind is not None else None
        items: list[ResourceInfo] = []
        async with self.session() as session:
            for resource in await self.resources.starred(session, actor.id, kind):
                if not await self.resolver.is_trashed(session, resource):
                    items.append(resource_info(resource, Permission.OWNER.value))
            for grant in await self.grants.list_for_grantee(session, actor.email):
                if not grant.is_starred:
                    continue
                resource = await session.get(self.resources.model, grant.resource_id)
                if resource is None or (wanted is not None and resource.kind != wanted):
                    continue
                if await self.resolver.is_trashed(session, resource):
                    continue
                items.append(resource_info(resource, grant.permission, starred=True))
        return items

    async def search(
        self,
        actor: Actor,
        query: str,
        kind: ResourceKind | str | None = None,
        *,
        limit: int = SEARCH_LIMIT,
    ) -> list[ResourceInfo]:
        """Items whose name contains *query* that the actor can open, by name.

        Candidates are the actor's own items and those of users who shared
        something with the actor; each one is checked with
        ``VisibilityResolver.can_access`` and reported at the resolved level.
        """
        query = (query or "").strip()
        if not query:
            raise InvalidInputError("Search query is required")
        if not 1 <= limit <= MAX_SEARCH_LIMIT:
            raise InvalidInputError(f"limit must be between 1 and {MAX_SEARCH_LIMIT}")
        results: list[ResourceInfo] = []
        async with self.session() as session:
            held = {
                g.resource_id: g for g in await self.grants.list_for_grantee(session, actor.email)
            }
            owners = {actor.id} | await self.resources.owner_ids(session, list(held))
            candidates = await self.resources.search(
                session, query, owner_ids=sorted(owners), kind=kind
            )
            for resource in candidates:
                decision = await self.resolver.can_access(session, actor, resource)
                if not decision.allowed or decision.permission is None:
                    continue
                grant = held.get(resource.id) if resource.owner_id != actor.id else None  # type: ignore[arg-type]
                results.append(
                    resource_info(
                        resource,
                        decision.permission.value,
                        starred=grant.is_starred if grant is not None else None,
                    )
                )
                if len(results) >= limit:
                    break
        logger.debug("Search %r by user %s matched %d items", query, actor.id, len(results))
        return results

    # ------------------------------------------------------------------
    # Public links
    # ------------------------------------------------------------------

    async def create_link(
        self,
        actor: Actor,
        kind: ResourceKind | str,
        resource_id: int,
        permission: str = "view",
        *,
        expires_in_days: int | None = None,
    ) -> LinkInfo:
        """Issue a link, replacing any previous one for the item."""
        async with self.session() as session:
            resource = await self._active(session, kind, resource_id)
            link = await self.links.create_link(
                session, actor, resource, permission, expires_in_days=expires_in_days
            )
            info = self._link_info(link)
        await self.events.emit(
            DriveEvent(
                EventType.LINK_CREATED,
                info.resource_id,
                info.resource_kind,
                actor_id=actor.id,
                permission=info.permission,
            )
        )
        return info

    async def get_link(
        self, actor: Actor, kind: ResourceKind | str, resource_id: int
    ) -> LinkInfo | None:
        async with self.session() as session:
            resource = await self.resources.get(session, resource_id, kind)
            link = await self.links.get_link(session, actor, resource)
            return self._link_info(link) if link is not None else None

    async def revoke_link(
        self, actor: Actor, kind: ResourceKind | str, resource_id: int
    ) -> None:
        async with self.session() as session:
            resource = await self.resources.get(session, resource_id, kind)
            link = await self.links.revoke_link(session, actor, resource)
            resource_kind = link.resource_kind
        await self.events.emit(
            DriveEvent(EventType.LINK_REVOKED, resource_id, resource_kind, actor_id=actor.id)
        )

    async def open_link(self, token: str, *, now: datetime | None = None) -> SharedLinkView:
        """Anonymous resolution of a token to a file, or a folder with its contents."""
        async with self.session() as session:
            link, root = await self._link_root(session, token, now=now, count_access=True)
            return await self._link_view(session, root, link.permission)

    async def open_link_folder(
        self, token: str, subfolder_id: int, *, now: datetime | None = None
    ) -> SharedLinkView:
        """Anonymous descent into a subfolder of a linked folder."""
        async with self.session() as session:
            link, root = await self._link_root(session, token, now=now)
            if root.kind != ResourceKind.FOLDER.value:
                raise ResourceNotFoundError("This share link does not point at a folder")
            subfolder = await self.resources.get(session, subfolder_id, ResourceKind.FOLDER)
            if not await self.resolver.is_within_link_scope(session, root, subfolder):
                raise ResourceNotFoundError("This folder is not within the shared folder")
            return await self._link_view(session, subfolder, link.permission)

    async def download_via_link(
        self,
        token: str,
        file_id: int | None = None,
        *,
        now: datetime | None = None,
    ) -> tuple[FileInfo, bytes]:
        """Anonymous content fetch; *file_id* is required for folder links."""
        async with self.session() as session:
            link, root = await self._link_root(session, token, now=now)
            if root.kind == ResourceKind.FILE.value:
                if file_id is not None and file_id != root.id:
                    raise ResourceNotFoundError("This file is not part of the share")
                file = root
            else:
                if file_id is None:
                    raise InvalidInputError("fileId is required for folder share links")
                file = await self.resources.get(session, file_id, ResourceKind.FILE)
                if not await self.resolver.is_within_link_scope(session, root, file):
                    raise ResourceNotFoundError("This file is not within the shared folder")
            info = resource_info(file, link.permission)
            data = file.content or b""
        assert isinstance(info, FileInfo)
        return info, data

    # ------------------------------------------------------------------
    # Trash
    # ------------------------------------------------------------------

    async def trash(self, actor: Actor, kind: ResourceKind | str, resource_id: int) -> int:
        """Move an item (and a folder's subtree) to the trash. Returns rows changed."""
        async with self.session() as session:
            resource = await self.resources.get(session, resource_id, kind)
            await self.resolver.require(session, actor, resource, Permission.EDIT)
            affected = await self.trash_service.move_to_trash(session, actor.id, resource)
            resource_kind = resource.kind
        await self.events.emit(
            DriveEvent(
                EventType.RESOURCE_TRASHED,
                resource_id,
                resource_kind,
                actor_id=actor.id,
                details={"rows": len(affected)},
            )
        )
        return len(affected)

    async def restore(
        self, actor: Actor, kind: ResourceKind | str, resource_id: int
    ) -> ResourceInfo:
        async with self.session() as session:
            resource = await self.resources.get(session, resource_id, kind)
            restored = await self.trash_service.restore(session, actor, resource)
            info = resource_info(resource, Permission.OWNER.value)
        await self.events.emit(
            DriveEvent(
                EventType.RESOURCE_RESTORED,
                resource_id,
                info.kind.value,
                actor_id=actor.id,
                details={"rows": len(restored)},
            )
        )
        return info

    async def permanent_delete(
        self, actor: Actor, kind: ResourceKind | str, resource_id: int
    ) -> None:
        async with self.session() as session:
            resource = await self.resources.get(session, resource_id, kind)
            await self.trash_service.permanent_delete(session, actor, resource)
            resource_kind = resource.kind
        await self.events.emit(
            DriveEvent(EventType.RESOURCE_PURGED, resource_id, resource_kind, actor_id=actor.id)
        )

    async def list_trash(
        self, actor: Actor, kind: ResourceKind | str | None = None
    ) -> list[ResourceInfo]:
        async with self.session() as session:
            rows = await self.trash_service.list_trash(session, actor.id, kind)
            return [resource_info(r, Permission.OWNER.value) for r in rows]

    async def empty_trash(self, actor: Actor) -> BulkResult:
        """Purge the actor's trash deepest first, one transaction per item."""
        async with self.session() as session:
            plan = await self.trash_service.empty_plan(session, actor.id)
        outcome = await self._purge_each(plan, actor_id=actor.id)
        logger.info(
            "User %s emptied trash: %d purged, %d failed",
            actor.id, outcome.success_count, outcome.error_count,
        )
        return outcome

    async def sweep_expired(self, *, now: datetime | None = None) -> BulkResult:
        """Purge everything trashed longer than the retention window."""
        async with self.session() as session:
            plan = await self.trash_service.expired_plan(session, now=now)
        outcome = await self._purge_each(plan)
        if plan:
            logger.info(
                "Retention sweep: %d purged, %d failed",
                outcome.success_count, outcome.error_count,
            )
        return outcome

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _purge_each(self, plan: list[int], *, actor_id: int | None = None) -> BulkResult:
        outcome = BulkResult()
        for resource_id in plan:
            try:
                async with self.session() as session:
                    resource = await self.resources.get(session, resource_id)
                    resource_kind = resource.kind
                    await self.trash_service.purge(session, resource)
            except DriveShareError as exc:
                logger.warning("Purge of %s failed: %s", resource_id, exc)
                outcome.record_failure(resource_id, str(exc))
                continue
            outcome.success_count += 1
            await self.events.emit(
                DriveEvent(EventType.RESOURCE_PURGED, resource_id, resource_kind, actor_id=actor_id)
            )
        return outcome

    async def _active(
        self, session: AsyncSession, kind: ResourceKind | str, resource_id: int
    ) -> ResourceBase:
        resource = await self.resources.get(session, resource_id, kind)
        if await self.resolver.is_trashed(session, resource):
            raise ResourceNotFoundError(f"{resource.name!r} is in the trash")
        return resource

    async def _writable_parent(
        self, session: AsyncSession, actor: Actor, parent_id: int | None
    ) -> ResourceBase | None:
        if parent_id is None:
            return None
        parent = await self.resources.get(session, parent_id, ResourceKind.FOLDER)
        try:
            await self.resolver.require(session, actor, parent, Permission.EDIT)
        except PermissionDeniedError as exc:
            raise PermissionDeniedError(
                "You need edit permission to add items to this folder"
            ) from exc
        return parent

    async def _link_root(
        self,
        session: AsyncSession,
        token: str,
        *,
        now: datetime | None = None,
        count_access: bool = False,
    ) -> tuple[PublicLinkBase, ResourceBase]:
        link = await self.links.resolve_token(
            session, token, now=now, count_access=count_access
        )
        root = await session.get(self.resources.model, link.resource_id)
        if root is None or await self.resolver.is_trashed(session, root):
            raise LinkNotFoundError("Invalid or expired share link")
        return link, root

    async def _link_view(
        self,
        session: AsyncSession,
        target: ResourceBase,
        permission: str,
    ) -> SharedLinkView:
        info = resource_info(target, permission)
        if target.kind != ResourceKind.FOLDER.value:
            return SharedLinkView(resource=info, permission=permission)
        children = await self.resolver.list_link_children(session, target)
        listing = self._listing(target, children, permission)
        assert isinstance(info, FolderInfo)
        info.item_count = listing.item_count
        return SharedLinkView(resource=info, permission=permission, listing=listing)

    def _listing(
        self,
        folder: ResourceBase,
        children: list[ResourceBase],
        permission: str,
        actor: Actor | None = None,
        grants: dict[int, AccessGrantBase] | None = None,
    ) -> FolderListing:
        """Build a listing; *grants* are the viewer's direct grants keyed by resource id."""
        grants = grants or {}
        folder_grant = grants.get(folder.id)  # type: ignore[arg-type]
        folder_info = resource_info(
            folder,
            permission,
            starred=folder_grant.is_starred if folder_grant is not None else None,
        )
        assert isinstance(folder_info, FolderInfo)
        listing = FolderListing(folder=folder_info, permission=permission)
        for child in children:
            grant = grants.get(child.id)  # type: ignore[arg-type]
            if actor is not None and child.owner_id == actor.id:
                info = resource_info(child, Permission.OWNER.value)
            elif grant is not None:
                # A grant on the child is nearer than the one inherited from the folder.
                info = resource_info(child, grant.permission, starred=grant.is_starred)
            else:
                info = resource_info(child, permission)
            if isinstance(info, FolderInfo):
                listing.subfolders.append(info)
            else:
                listing.files.append(info)
        folder_info.item_count = listing.item_count
        return listing

    async def _grantee_star(
        self, session: AsyncSession, actor: Actor, resource: ResourceBase
    ) -> bool | None:
        """The star on the actor's direct grant, or None to fall back to the row."""
        if resource.owner_id == actor.id or resource.id is None:
            return None
        grant = await self.grants.find(session, resource.id, actor.email)
        return grant.is_starred if grant is not None else None

    async def _user_by_email(self, session: AsyncSession, email: str) -> UserBase | None:
        model = self._user_model
        result = await session.execute(select(model).where(model.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def _emit(
        self,
        event_type: EventType,
        grant: GrantInfo,
        actor: Actor,
        *,
        details: dict | None = None,
    ) -> None:
        await self.events.emit(
            DriveEvent(
                event_type,
                grant.resource_id,
                grant.resource_kind,
                actor_id=actor.id,
                grantee_email=grant.email,
                permission=grant.permission,
                details=details or {},
            )
        )

    @staticmethod
    def _actor(user: UserBase) -> Actor:
        assert user.id is not None
        return Actor(id=user.id, email=user.email, full_name=user.full_name)

    @staticmethod
    def _grant_info(grant: AccessGrantBase) -> GrantInfo:
        assert grant.id is not None
        return GrantInfo(
            id=grant.id,
            resource_id=grant.resource_id,
            resource_kind=grant.resource_kind,
            email=grant.grantee_email,
            permission=grant.permission,
            granted_by=grant.granted_by,
            created_at=grant.created_at,
            updated_at=grant.updated_at,
        )

    def _link_info(self, link: PublicLinkBase) -> LinkInfo:
        return LinkInfo(
            resource_id=link.resource_id,
            resource_kind=link.resource_kind,
            token=link.token,
            url=self.links.url_for(link.token),
            permission=link.permission,
            expires_at=link.expires_at,
            access_count=link.access_count,
            created_at=link.created_at,
        )
