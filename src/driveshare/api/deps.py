"""FastAPI dependencies: the drive held on ``app.state`` and the current actor."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from driveshare._drive_async import DriveAsync
from driveshare.access.exceptions import AuthenticationRequiredError, UserNotFoundError
from driveshare.access.types import Actor

from .security import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


def get_drive(request: Request) -> DriveAsync:
    return request.app.state.drive


async def get_current_actor(
    drive: Annotated[DriveAsync, Depends(get_drive)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Actor:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationRequiredError("Not authenticated")
    user_id = decode_access_token(credentials.credentials, drive.settings)
    try:
        return await drive.get_actor(user_id)
    except UserNotFoundError as exc:
        raise AuthenticationRequiredError("User no longer exists") from exc


DriveDep = Annotated[DriveAsync, Depends(get_drive)]
ActorDep = Annotated[Actor, Depends(get_current_actor)]
