"""File and folder CRUD: create, upload, list, download, rename, move, star, search."""

from __future__ import annotations

from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, File, Form, Query, Response, UploadFile, status

from driveshare.access.types import ResourceKind
from driveshare.access.utils import MAX_SEARCH_LIMIT, SEARCH_LIMIT
from driveshare.api.deps import ActorDep, DriveDep
from driveshare.api.schemas import (
    BulkMoveRequest,
    BulkResultOut,
    CreateFolderRequest,
    FolderContentsOut,
    MoveRequest,
    RenameRequest,
    ResourceCollection,
    ResourceOut,
    envelope,
)

router = APIRouter(prefix="/api", tags=["resources"])


def attachment(name: str, data: bytes, mime_type: str | None) -> Response:
    return Response(
        content=data,
        media_type=mime_type or "application/octet-stream",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(name)}"},
    )


# ---------------------------------------------------------------------------
# Stars and search (literal segments, so declared before ``{folder_id}``)
# ---------------------------------------------------------------------------


@router.get("/{collection}/starred")
async def list_starred(collection: ResourceCollection, drive: DriveDep, actor: ActorDep):
    items = await drive.starred(actor, collection.kind)
    return envelope([ResourceOut.from_info(i) for i in items])


@router.get("/{collection}/search")
async def search(
    collection: ResourceCollection,
    drive: DriveDep,
    actor: ActorDep,
    q: str = "",
    limit: Annotated[int, Query(ge=1, le=MAX_SEARCH_LIMIT)] = SEARCH_LIMIT,
):
    items = await drive.search(actor, q, collection.kind, limit=limit)
    return envelope([ResourceOut.from_info(i) for i in items])


@router.post("/{collection}/{resource_id}/star")
async def toggle_star(
    collection: ResourceCollection, resource_id: int, drive: DriveDep, actor: ActorDep
):
    info = await drive.toggle_star(actor, collection.kind, resource_id)
    return envelope(ResourceOut.from_info(info), "Starred" if info.starred else "Unstarred")


# ---------------------------------------------------------------------------
# Folders
# ---------------------------------------------------------------------------


@router.get("/folders")
async def list_root_folders(drive: DriveDep, actor: ActorDep):
    items = await drive.list_root(actor, ResourceKind.FOLDER)
    return envelope([ResourceOut.from_info(i) for i in items])


@router.post("/folders", status_code=status.HTTP_201_CREATED)
async def create_folder(body: CreateFolderRequest, drive: DriveDep, actor: ActorDep):
    folder = await drive.create_folder(actor, body.name, body.parent_id)
    return envelope(ResourceOut.from_info(folder), "Folder created")


@router.get("/folders/{folder_id}")
async def get_folder(folder_id: int, drive: DriveDep, actor: ActorDep):
    listing = await drive.list_folder(actor, folder_id)
    return envelope(FolderContentsOut.from_listing(listing))


@router.get("/folders/{folder_id}/subfolders")
async def list_subfolders(folder_id: int, drive: DriveDep, actor: ActorDep):
    folders = await drive.list_subfolders(actor, folder_id)
    return envelope([ResourceOut.from_info(f) for f in folders])


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


@router.get("/files")
async def list_files(
    drive: DriveDep,
    actor: ActorDep,
    folder_id: Annotated[int | None, Query(alias="folderId")] = None,
):
    files = await drive.list_files(actor, folder_id)
    return envelope([ResourceOut.from_info(f) for f in files])


@router.post("/files/upload", status_code=status.HTTP_201_CREATED)
async def upload_file(
    drive: DriveDep,
    actor: ActorDep,
    file: Annotated[UploadFile, File()],
    folder_id: Annotated[int | None, Form(alias="folderId")] = None,
):
    content = await file.read()
    info = await drive.upload_file(
        actor,
        file.filename or "untitled",
        content,
        mime_type=file.content_type,
        folder_id=folder_id,
    )
    return envelope(ResourceOut.from_info(info), "File uploaded")


@router.get("/files/{file_id}")
async def get_file(file_id: int, drive: DriveDep, actor: ActorDep):
    info = await drive.get_item(actor, ResourceKind.FILE, file_id)
    return envelope(ResourceOut.from_info(info))


@router.get("/files/{file_id}/download")
async def download_file(file_id: int, drive: DriveDep, actor: ActorDep):
    info, data = await drive.read_file(actor, file_id)
    return attachment(info.name, data, info.mime_type)


# ---------------------------------------------------------------------------
# Rename and move
# ---------------------------------------------------------------------------


@router.post("/items/move")
async def bulk_move(body: BulkMoveRequest, drive: DriveDep, actor: ActorDep):
    result = await drive.bulk_move(
        actor, [(item.type, item.id) for item in body.items], body.target_folder_id
    )
    return envelope(BulkResultOut.from_result(result))


@router.put("/{collection}/{resource_id}")
async def rename(
    collection: ResourceCollection,
    resource_id: int,
    body: RenameRequest,
    drive: DriveDep,
    actor: ActorDep,
):
    info = await drive.rename(actor, collection.kind, resource_id, body.name)
    return envelope(ResourceOut.from_info(info))


@router.patch("/{collection}/{resource_id}")
async def move(
    collection: ResourceCollection,
    resource_id: int,
    body: MoveRequest,
    drive: DriveDep,
    actor: ActorDep,
):
    info = await drive.move(actor, collection.kind, resource_id, body.target_folder_id)
    return envelope(ResourceOut.from_info(info), "Moved")
