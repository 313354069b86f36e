"""Trash lifecycle: move to trash, restore, permanent delete, empty."""

from __future__ import annotations

from fastapi import APIRouter

from driveshare.api.deps import ActorDep, DriveDep
from driveshare.api.schemas import BulkResultOut, ResourceCollection, ResourceOut, envelope

router = APIRouter(prefix="/api", tags=["trash"])


@router.get("/{collection}/trash")
async def list_trash(collection: ResourceCollection, drive: DriveDep, actor: ActorDep):
    items = await drive.list_trash(actor, collection.kind)
    return envelope([ResourceOut.from_info(i) for i in items])


@router.delete("/trash")
async def empty_trash(drive: DriveDep, actor: ActorDep):
    result = await drive.empty_trash(actor)
    return envelope(BulkResultOut.from_result(result))


@router.delete("/{collection}/{resource_id}")
async def move_to_trash(
    collection: ResourceCollection, resource_id: int, drive: DriveDep, actor: ActorDep
):
    await drive.trash(actor, collection.kind, resource_id)
    return envelope(None, "Moved to trash")


@router.post("/{collection}/{resource_id}/restore")
async def restore(
    collection: ResourceCollection, resource_id: int, drive: DriveDep, actor: ActorDep
):
    info = await drive.restore(actor, collection.kind, resource_id)
    return envelope(ResourceOut.from_info(info), "Restored")


@router.delete("/{collection}/{resource_id}/permanent")
async def permanent_delete(
    collection: ResourceCollection, resource_id: int, drive: DriveDep, actor: ActorDep
):
    await drive.permanent_delete(actor, collection.kind, resource_id)
    return envelope(None, "Permanently deleted")
