"""Adapters binding the room, grant and recording services to the LiveKit SDK.

Each adapter translates between the SDK's protobuf messages and the service
dataclasses, and maps Twirp and transport failures onto the error taxonomy."""
from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Any, Awaitable, TypeVar

import aiohttp
from livekit import api
from livekit.protocol import egress as proto_egress
from livekit.protocol import models as proto_models

from ..core.config import Settings
from ..core.errors import (
    CollaboratorUnavailableError,
    ControllerError,
    ParticipantNotFoundError,
    RecordingNotFoundError,
    RemoteRequestError,
    RoomNotFoundError,
)
from .grants import AccessClaims
from .recordings import EgressOptions, EgressRecord, OutputDescriptor, RecordingPreset
from .rooms import ParticipantRecord, RoomRecord, RoomSettings, TrackRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

TWIRP_NOT_FOUND = "not_found"

_PRESETS: dict[RecordingPreset, int] = {
    RecordingPreset.HD_30: proto_egress.EncodingOptionsPreset.H264_720P_30,
    RecordingPreset.HD_60: proto_egress.EncodingOptionsPreset.H264_720P_60,
    RecordingPreset.FULL_HD_30: proto_egress.EncodingOptionsPreset.H264_1080P_30,
    RecordingPreset.FULL_HD_60: proto_egress.EncodingOptionsPreset.H264_1080P_60,
}


def open_livekit_api(settings: Settings) -> api.LiveKitAPI:
    """Create the shared server API client; must run inside the event loop."""

    return api.LiveKitAPI(
        url=settings.livekit_http_url,
        api_key=settings.livekit_api_key,
        api_secret=settings.livekit_api_secret,
    )


async def _remote(
    operation: str,
    call: Awaitable[T],
    *,
    details: dict[str, Any],
    not_found: type[ControllerError] | None = None,
) -> T:
    """Await a server API call, translating its failures."""

    try:
        return await call
    except api.TwirpError as exc:
        if not_found is not None and exc.code == TWIRP_NOT_FOUND:
            raise not_found(f"{operation}: {exc.message}", details) from exc
        raise RemoteRequestError(
            f"{operation} rejected ({exc.code}): {exc.message}",
            {**details, "code": exc.code},
            code=exc.code,
        ) from exc
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        logger.warning("LiveKit server unreachable during %s: %s", operation, exc)
        raise CollaboratorUnavailableError(f"{operation} failed: {exc}", details) from exc


def _enum_name(wrapper: Any, value: int) -> str:
    try:
        return wrapper.Name(value)
    except ValueError:
        return str(value)


def _room_record(room: proto_models.Room) -> RoomRecord:
    return RoomRecord(
        name=room.name,
        sid=room.sid,
        empty_timeout=room.empty_timeout,
        max_participants=room.max_participants,
        creation_time=room.creation_time,
        num_participants=room.num_participants,
        metadata=room.metadata,
        active_recording=room.active_recording,
    )


def _track_record(track: proto_models.TrackInfo) -> TrackRecord:
    return TrackRecord(
        sid=track.sid,
        name=track.name,
        kind=_enum_name(proto_models.TrackType, track.type),
        muted=track.muted,
    )


def _participant_record(participant: proto_models.ParticipantInfo) -> ParticipantRecord:
    return ParticipantRecord(
        identity=participant.identity,
        sid=participant.sid,
        name=participant.name,
        state=_enum_name(proto_models.ParticipantInfo.State, participant.state),
        joined_at=participant.joined_at,
        metadata=participant.metadata,
        tracks=[_track_record(track) for track in participant.tracks],
    )


def _egress_record(info: proto_egress.EgressInfo) -> EgressRecord:
    location = info.file_results[0].location if len(info.file_results) else None
    return EgressRecord(
        egress_id=info.egress_id,
        status=_enum_name(proto_egress.EgressStatus, info.status),
        room_name=info.room_name,
        kind=info.WhichOneof("request"),
        started_at=info.started_at or None,
        ended_at=info.ended_at or None,
        error=info.error,
        location=location or None,
    )


def _file_output(output: OutputDescriptor) -> api.EncodedFileOutput:
    file_output = api.EncodedFileOutput(file_type=output.file_type, filepath=output.filepath)
    if output.s3 is not None:
        file_output.s3.CopyFrom(
            api.S3Upload(
                access_key=output.s3.access_key,
                secret=output.s3.secret,
                region=output.s3.region,
                endpoint=output.s3.endpoint,
                bucket=output.s3.bucket,
                force_path_style=output.s3.force_path_style,
            )
        )
    return file_output


class LiveKitSigner:
    """Sign access claims into a LiveKit JWT."""

    def __init__(self, api_key: str, api_secret: str, *, ttl: timedelta) -> None:
        self._api_key = api_key
        self._api_secret = api_secret
        self._ttl = ttl

    def sign(self, claims: AccessClaims) -> str:
        grants = api.VideoGrants(
            room_join=claims.video.room_join,
            room=claims.video.room,
            can_publish=claims.video.can_publish,
            can_subscribe=claims.video.can_subscribe,
            can_publish_data=claims.video.can_publish_data,
            hidden=claims.video.hidden,
        )
        token = (
            api.AccessToken(self._api_key, self._api_secret)
            .with_identity(claims.identity)
            .with_name(claims.name)
            .with_metadata(claims.metadata)
            .with_grants(grants)
            .with_ttl(self._ttl)
        )
        return token.to_jwt()


class LiveKitRoomDirectory:
    """Room directory backed by the LiveKit room service."""

    def __init__(self, service: Any) -> None:
        self._service = service

    async def lookup_room(self, name: str) -> RoomRecord | None:
        response = await _remote(
            "list rooms",
            self._service.list_rooms(api.ListRoomsRequest(names=[name])),
            details={"room_name": name},
        )
        for room in response.rooms:
            if room.name == name:
                return _room_record(room)
        return None

    async def list_rooms(self) -> list[RoomRecord]:
        response = await _remote("list rooms", self._service.list_rooms(api.ListRoomsRequest()), details={})
        return [_room_record(room) for room in response.rooms]

    async def create_room(self, settings: RoomSettings) -> RoomRecord:
        request = api.CreateRoomRequest(
            name=settings.name,
            empty_timeout=settings.empty_timeout,
            max_participants=settings.max_participants,
        )
        room = await _remote("create room", self._service.create_room(request), details={"room_name": settings.name})
        return _room_record(room)

    async def update_room_metadata(self, name: str, metadata: str) -> RoomRecord:
        room = await _remote(
            "update room metadata",
            self._service.update_room_metadata(api.UpdateRoomMetadataRequest(room=name, metadata=metadata)),
            details={"room_name": name},
            not_found=RoomNotFoundError,
        )
        return _room_record(room)

    async def delete_room(self, name: str) -> None:
        await _remote(
            "delete room",
            self._service.delete_room(api.DeleteRoomRequest(room=name)),
            details={"room_name": name},
            not_found=RoomNotFoundError,
        )

    async def list_participants(self, room: str) -> list[ParticipantRecord]:
        response = await _remote(
            "list participants",
            self._service.list_participants(api.ListParticipantsRequest(room=room)),
            details={"room_name": room},
            not_found=RoomNotFoundError,
        )
        return [_participant_record(participant) for participant in response.participants]

    async def remove_participant(self, room: str, identity: str) -> None:
        await _remote(
            "remove participant",
            self._service.remove_participant(api.RoomParticipantIdentity(room=room, identity=identity)),
            details={"room_name": room, "identity": identity},
            not_found=ParticipantNotFoundError,
        )

    async def mute_track(self, room: str, identity: str, track_sid: str, muted: bool) -> TrackRecord:
        request = api.MuteRoomTrackRequest(room=room, identity=identity, track_sid=track_sid, muted=muted)
        response = await _remote(
            "mute track",
            self._service.mute_published_track(request),
            details={"room_name": room, "identity": identity, "track_sid": track_sid},
            not_found=ParticipantNotFoundError,
        )
        return _track_record(response.track)


class LiveKitEgressControl:
    """Egress control backed by the LiveKit egress service."""

    def __init__(self, service: Any) -> None:
        self._service = service

    async def start_composite(
        self, room_name: str, output: OutputDescriptor, options: EgressOptions
    ) -> EgressRecord:
        request = api.RoomCompositeEgressRequest(
            room_name=room_name,
            audio_only=options.audio_only,
            video_only=options.video_only,
            preset=_PRESETS[options.preset],
            file_outputs=[_file_output(output)],
        )
        info = await _remote(
            "start room composite egress",
            self._service.start_room_composite_egress(request),
            details={"room_name": room_name},
        )
        return _egress_record(info)

    async def start_web(self, url: str, output: OutputDescriptor, options: EgressOptions) -> EgressRecord:
        request = api.WebEgressRequest(
            url=url,
            audio_only=options.audio_only,
            video_only=options.video_only,
            preset=_PRESETS[options.preset],
            file_outputs=[_file_output(output)],
        )
        info = await _remote(
            "start web egress",
            self._service.start_web_egress(request),
            details={"filepath": output.filepath},
        )
        return _egress_record(info)

    async def stop(self, egress_id: str) -> EgressRecord:
        info = await _remote(
            "stop egress",
            self._service.stop_egress(api.StopEgressRequest(egress_id=egress_id)),
            details={"egress_id": egress_id},
            not_found=RecordingNotFoundError,
        )
        return _egress_record(info)

    async def list(self, room_name: str | None = None) -> list[EgressRecord]:
        request = api.ListEgressRequest(room_name=room_name) if room_name else api.ListEgressRequest()
        response = await _remote(
            "list egress",
            self._service.list_egress(request),
            details={"room_name": room_name} if room_name else {},
        )
        return [_egress_record(info) for info in response.items]
