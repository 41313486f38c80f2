"""FastAPI application for the LiveKit room and recording controller."""
from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from .core.config import settings
from .core.errors import (
    CollaboratorUnavailableError,
    ControllerError,
    CredentialSigningError,
    InvalidServerUrlError,
    ParticipantNotFoundError,
    RecordingNotFoundError,
    RecordingStartError,
    RemoteRequestError,
    RoomNotFoundError,
)
from .routers import recordings as recordings_router
from .routers import rooms as rooms_router
from .routers import tokens as tokens_router
from .services.livekit_adapters import open_livekit_api

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(name)s [%(levelname)s] %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)

_NOT_FOUND_ERRORS = (RoomNotFoundError, ParticipantNotFoundError, RecordingNotFoundError)
_REMOTE_CODE_STATUS = {
    "invalid_argument": status.HTTP_400_BAD_REQUEST,
    "malformed": status.HTTP_400_BAD_REQUEST,
    "already_exists": status.HTTP_409_CONFLICT,
    "failed_precondition": status.HTTP_409_CONFLICT,
    "resource_exhausted": status.HTTP_429_TOO_MANY_REQUESTS,
    "unauthenticated": status.HTTP_502_BAD_GATEWAY,
    "permission_denied": status.HTTP_502_BAD_GATEWAY,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Hold one server API client for the lifetime of the process."""

    app.state.livekit_api = open_livekit_api(settings)
    logger.info("LiveKit controller initialized with URL: %s", settings.livekit_url)
    try:
        yield
    finally:
        await app.state.livekit_api.aclose()
        app.state.livekit_api = None


app = FastAPI(title="LiveKit Controller API", version="1.0.0", lifespan=lifespan)

if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(rooms_router.router, prefix="/livekit", tags=["livekit"])
app.include_router(tokens_router.router, prefix="/livekit", tags=["livekit"])
app.include_router(recordings_router.router, prefix="/livekit", tags=["recordings"])


def error_status(exc: BaseException | None) -> int:
    """HTTP status for a controller error; start failures use their cause."""

    if isinstance(exc, RecordingStartError):
        return error_status(exc.cause)
    if isinstance(exc, _NOT_FOUND_ERRORS):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, InvalidServerUrlError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, RemoteRequestError):
        return _REMOTE_CODE_STATUS.get(exc.code, status.HTTP_502_BAD_GATEWAY)
    if isinstance(exc, (CredentialSigningError, CollaboratorUnavailableError)):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@app.exception_handler(ControllerError)
async def controller_error_handler(request: Request, exc: ControllerError) -> JSONResponse:
    status_code = error_status(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error": type(exc).__name__, **exc.details},
    )


@app.get("/api/health", tags=["meta"])
async def health() -> dict[str, str]:
    """Simple liveness probe."""

    return {"status": "ok"}


@app.head("/api/health", tags=["meta"])
async def health_head() -> Response:
    """Allow HEAD for uptime monitors that only need the status code."""

    return Response(status_code=200)


@app.get("/robots.txt", response_class=PlainTextResponse, include_in_schema=False)
async def robots() -> PlainTextResponse:
    """Serve a minimal robots.txt to avoid 404 noise."""

    return PlainTextResponse("User-agent: *\nDisallow: /")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "livekit_controller.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )
