"""FastAPI dependencies wiring the services to their remote collaborators.

Tests override ``get_signer``, ``get_room_directory`` and ``get_egress_control``
with fakes; everything else is built from those per request."""
from __future__ import annotations

from datetime import timedelta
from typing import Any

from fastapi import Depends, Request

from ..services.grants import GrantBuilder, Signer
from ..services.livekit_adapters import LiveKitEgressControl, LiveKitRoomDirectory, LiveKitSigner
from ..services.recordings import EgressControl, RecordingOrchestrator, S3Defaults
from ..services.rooms import RoomDirectory, RoomService
from .config import Settings, get_settings
from .errors import CollaboratorUnavailableError


def get_livekit_api(request: Request) -> Any:
    """Return the server API client opened in the application lifespan."""

    client = getattr(request.app.state, "livekit_api", None)
    if client is None:
        raise CollaboratorUnavailableError("LiveKit API client is not initialised")
    return client


def get_signer(settings: Settings = Depends(get_settings)) -> Signer:
    return LiveKitSigner(
        settings.livekit_api_key,
        settings.livekit_api_secret,
        ttl=timedelta(seconds=settings.livekit_token_ttl_seconds),
    )


def get_room_directory(client: Any = Depends(get_livekit_api)) -> RoomDirectory:
    return LiveKitRoomDirectory(client.room)


def get_egress_control(client: Any = Depends(get_livekit_api)) -> EgressControl:
    return LiveKitEgressControl(client.egress)


def get_grant_builder(
    signer: Signer = Depends(get_signer),
    settings: Settings = Depends(get_settings),
) -> GrantBuilder:
    return GrantBuilder(signer, public_url=settings.livekit_url, viewer_base_url=settings.viewer_base_url)


def get_room_service(
    directory: RoomDirectory = Depends(get_room_directory),
    settings: Settings = Depends(get_settings),
) -> RoomService:
    return RoomService(directory, public_url=settings.livekit_url, api_key=settings.livekit_api_key)


def get_recording_orchestrator(
    directory: RoomDirectory = Depends(get_room_directory),
    egress: EgressControl = Depends(get_egress_control),
    grants: GrantBuilder = Depends(get_grant_builder),
    settings: Settings = Depends(get_settings),
) -> RecordingOrchestrator:
    return RecordingOrchestrator(
        directory,
        egress,
        grants,
        internal_url=settings.livekit_internal_url,
        s3_defaults=S3Defaults(
            access_key=settings.s3_access_key,
            secret=settings.s3_secret_key,
            region=settings.s3_region,
            endpoint=settings.s3_endpoint,
        ),
    )
