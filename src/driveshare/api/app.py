"""FastAPI application factory."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from driveshare import __version__
from driveshare._drive_async import DriveAsync
from driveshare.access.exceptions import (
    AuthenticationRequiredError,
    ConflictError,
    DriveShareError,
    InvalidInputError,
    LinkExpiredError,
    NotFoundError,
    PermissionDeniedError,
)
from driveshare.api.routers import ROUTERS
from driveshare.config import Settings
from driveshare.events import DriveEvent, EventType

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match decides the status.
ERROR_STATUS: tuple[tuple[type[DriveShareError], int], ...] = (
    (AuthenticationRequiredError, status.HTTP_401_UNAUTHORIZED),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (LinkExpiredError, status.HTTP_410_GONE),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
)


def status_for(exc: DriveShareError) -> int:
    for exc_type, code in ERROR_STATUS:
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def handle_drive_error(request: Request, exc: DriveShareError) -> JSONResponse:
    code = status_for(exc)
    if code >= 500:
        logger.error("Unhandled %s on %s %s", type(exc).__name__, request.method, request.url.path)
    headers = {"WWW-Authenticate": "Bearer"} if code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=code, content={"message": str(exc)}, headers=headers)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render malformed request bodies like any other invalid input: 400 with a message."""
    problems = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())[1:])
        message = error.get("msg", "invalid")
        problems.append(f"{field}: {message}" if field else message)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "; ".join(problems) or "Invalid request"},
    )


async def log_share_notification(event: DriveEvent) -> None:
    """Stand-in for the mail sender: record that a share notification is due."""
    if event.details.get("send_email"):
        logger.info(
            "Share notification for %s: %s %r shared with %s permission",
            event.grantee_email,
            event.resource_kind,
            event.details.get("resource_name"),
            event.permission,
        )


async def run_sweeper(drive: DriveAsync, interval: float) -> None:
    """Purge trash past the retention window every *interval* seconds."""
    while True:
        await asyncio.sleep(interval)
        try:
            await drive.sweep_expired()
        except Exception:
            logger.exception("Trash retention sweep failed")


def create_app(settings: Settings | None = None, *, drive: DriveAsync | None = None) -> FastAPI:
    """Build the app around *drive*, or a new ``DriveAsync`` from *settings*.

    When *drive* is passed in, the caller owns its tables and lifetime.
    """
    if settings is None:
        settings = drive.settings if drive is not None else Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    owns_drive = drive is None
    if drive is None:
        drive = DriveAsync(settings=settings)
    drive.events.register(EventType.GRANT_CREATED, log_share_notification)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if owns_drive:
            await drive.init_db()
        sweeper = None
        if settings.sweep_interval_seconds > 0:
            sweeper = asyncio.create_task(run_sweeper(drive, settings.sweep_interval_seconds))
        logger.info("driveshare %s ready", __version__)
        yield
        if sweeper is not None:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
        if owns_drive:
            await drive.close()

    app = FastAPI(title="driveshare", version=__version__, lifespan=lifespan)
    app.state.drive = drive
    app.state.settings = settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(DriveShareError, handle_drive_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_validation_error)  # type: ignore[arg-type]
    for router in ROUTERS:
        app.include_router(router)
    return app
