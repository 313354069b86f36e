"""Anonymous ``/s/{token}`` routes. The token is the only credential."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query

from driveshare.api.deps import DriveDep
from driveshare.api.routers.resources import attachment
from driveshare.api.schemas import SharedViewOut, envelope

router = APIRouter(prefix="/s", tags=["public"])


@router.get("/{token}")
async def open_shared(token: str, drive: DriveDep):
    view = await drive.open_link(token)
    return envelope(SharedViewOut.from_view(view))


@router.get("/{token}/download")
async def download_shared(
    token: str,
    drive: DriveDep,
    file_id: Annotated[int | None, Query(alias="fileId")] = None,
):
    info, data = await drive.download_via_link(token, file_id)
    return attachment(info.name, data, info.mime_type)


@router.get("/{token}/folder/{subfolder_id}")
async def open_shared_subfolder(token: str, subfolder_id: int, drive: DriveDep):
    view = await drive.open_link_folder(token, subfolder_id)
    return envelope(SharedViewOut.from_view(view))
