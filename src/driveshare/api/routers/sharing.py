"""Per-user grants and public links on files and folders."""

from __future__ import annotations

from fastapi import APIRouter, status

from driveshare.api.deps import ActorDep, DriveDep
from driveshare.api.schemas import (
    AccessOut,
    GrantOut,
    LinkOut,
    ResourceCollection,
    ShareLinkRequest,
    ShareRequest,
    SharedByMeOut,
    SharedWithMeOut,
    UpdateShareRequest,
    envelope,
)

router = APIRouter(prefix="/api", tags=["sharing"])


# ---------------------------------------------------------------------------
# Listings (literal paths, declared before the {resource_id} routes)
# ---------------------------------------------------------------------------


@router.get("/{collection}/shared-with-me")
async def shared_with_me(collection: ResourceCollection, drive: DriveDep, actor: ActorDep):
    items = await drive.shared_with_me(actor, collection.kind)
    return envelope([SharedWithMeOut.from_item(i) for i in items])


@router.get("/{collection}/shared-by-me")
async def shared_by_me(collection: ResourceCollection, drive: DriveDep, actor: ActorDep):
    items = await drive.shared_by_me(actor, collection.kind)
    return envelope([SharedByMeOut.from_item(i) for i in items])


# ---------------------------------------------------------------------------
# Grants
# ---------------------------------------------------------------------------


@router.post("/{collection}/{resource_id}/share")
async def share(
    collection: ResourceCollection,
    resource_id: int,
    body: ShareRequest,
    drive: DriveDep,
    actor: ActorDep,
):
    grant, created = await drive.share(
        actor,
        collection.kind,
        resource_id,
        body.email,
        body.permission,
        send_email=body.send_email,
    )
    message = f"Shared with {grant.email}" if created else "Permission updated"
    return envelope(GrantOut.from_info(grant), message)


@router.get("/{collection}/{resource_id}/shares")
async def list_shares(
    collection: ResourceCollection, resource_id: int, drive: DriveDep, actor: ActorDep
):
    grants = await drive.list_grants(actor, collection.kind, resource_id)
    return envelope([GrantOut.from_info(g) for g in grants])


@router.delete("/{collection}/{resource_id}/shares/all")
async def remove_all_access(
    collection: ResourceCollection, resource_id: int, drive: DriveDep, actor: ActorDep
):
    removed = await drive.remove_all_access(actor, collection.kind, resource_id)
    return envelope({"removedShares": removed}, "All access removed; item moved to trash")


@router.patch("/{collection}/{resource_id}/shares/{share_id}")
async def update_share(
    collection: ResourceCollection,
    resource_id: int,
    share_id: int,
    body: UpdateShareRequest,
    drive: DriveDep,
    actor: ActorDep,
):
    grant = await drive.update_grant(actor, collection.kind, resource_id, share_id, body.permission)
    return envelope(GrantOut.from_info(grant))


@router.delete("/{collection}/{resource_id}/shares/{share_id}")
async def revoke_share(
    collection: ResourceCollection,
    resource_id: int,
    share_id: int,
    drive: DriveDep,
    actor: ActorDep,
):
    await drive.revoke_grant(actor, collection.kind, resource_id, share_id)
    return envelope(None, "Access revoked")


@router.delete("/{collection}/{resource_id}/remove-me")
async def remove_me(
    collection: ResourceCollection, resource_id: int, drive: DriveDep, actor: ActorDep
):
    await drive.remove_self(actor, collection.kind, resource_id)
    return envelope(None, "You have been removed from this item")


@router.get("/{collection}/{resource_id}/access")
async def check_access(
    collection: ResourceCollection, resource_id: int, drive: DriveDep, actor: ActorDep
):
    decision = await drive.can_access(actor, collection.kind, resource_id)
    return envelope(AccessOut.from_decision(decision))


# ---------------------------------------------------------------------------
# Public link
# ---------------------------------------------------------------------------


@router.post("/{collection}/{resource_id}/share-link", status_code=status.HTTP_201_CREATED)
async def create_share_link(
    collection: ResourceCollection,
    resource_id: int,
    body: ShareLinkRequest,
    drive: DriveDep,
    actor: ActorDep,
):
    link = await drive.create_link(
        actor,
        collection.kind,
        resource_id,
        body.permission,
        expires_in_days=body.expires_in,
    )
    return envelope(LinkOut.from_info(link))


@router.get("/{collection}/{resource_id}/share-link")
async def get_share_link(
    collection: ResourceCollection, resource_id: int, drive: DriveDep, actor: ActorDep
):
    link = await drive.get_link(actor, collection.kind, resource_id)
    return envelope(LinkOut.from_info(link) if link is not None else None)


@router.delete("/{collection}/{resource_id}/share-link")
async def revoke_share_link(
    collection: ResourceCollection, resource_id: int, drive: DriveDep, actor: ActorDep
):
    await drive.revoke_link(actor, collection.kind, resource_id)
    return envelope(None, "Share link revoked")
