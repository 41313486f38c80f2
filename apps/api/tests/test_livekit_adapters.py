"""Tests for the LiveKit SDK adapters using mocked service clients."""
from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock

import aiohttp
import pytest
from livekit import api
from livekit.protocol import egress as proto_egress
from livekit.protocol import models as proto_models
from livekit.protocol import room as proto_room

from livekit_controller.core.errors import (
    CollaboratorUnavailableError,
    ParticipantNotFoundError,
    RecordingNotFoundError,
    RemoteRequestError,
    RoomNotFoundError,
)
from livekit_controller.services import livekit_adapters
from livekit_controller.services.grants import SessionGrant, build_claims
from livekit_controller.services.recordings import (
    EgressOptions,
    OutputDescriptor,
    RecordingPreset,
    S3Upload,
    recorder_bot_grant,
)
from livekit_controller.services.rooms import RoomSettings


def test_signer_produces_verifiable_jwt():
    signer = livekit_adapters.LiveKitSigner("devkey", "secret-secret-secret-secret-1234", ttl=timedelta(hours=1))
    claims = build_claims(SessionGrant(identity="alice", room="r1", name="Alice"))

    token = signer.sign(claims)

    verified = api.TokenVerifier("devkey", "secret-secret-secret-secret-1234").verify(token)
    assert verified.identity == "alice"
    assert verified.name == "Alice"
    assert verified.video.room == "r1"
    assert verified.video.room_join is True
    assert verified.video.can_publish is True


def test_signer_keeps_recorder_bot_hidden():
    signer = livekit_adapters.LiveKitSigner("devkey", "secret-secret-secret-secret-1234", ttl=timedelta(hours=1))

    token = signer.sign(build_claims(recorder_bot_grant("r1")))

    verified = api.TokenVerifier("devkey", "secret-secret-secret-secret-1234").verify(token)
    assert verified.identity == "egress-recorder-bot"
    assert verified.video.hidden is True
    assert verified.video.can_publish is False


@pytest.mark.asyncio
async def test_lookup_room_maps_the_matching_entry():
    service = SimpleNamespace(
        list_rooms=AsyncMock(
            return_value=proto_room.ListRoomsResponse(
                rooms=[proto_models.Room(name="r1", sid="RM_1", num_participants=2, empty_timeout=300)]
            )
        )
    )
    directory = livekit_adapters.LiveKitRoomDirectory(service)

    room = await directory.lookup_room("r1")

    assert room.name == "r1"
    assert room.sid == "RM_1"
    assert room.num_participants == 2
    request = service.list_rooms.await_args.args[0]
    assert list(request.names) == ["r1"]


@pytest.mark.asyncio
async def test_lookup_room_returns_none_when_absent():
    service = SimpleNamespace(list_rooms=AsyncMock(return_value=proto_room.ListRoomsResponse()))

    assert await livekit_adapters.LiveKitRoomDirectory(service).lookup_room("ghost") is None


@pytest.mark.asyncio
async def test_create_room_forwards_settings():
    service = SimpleNamespace(
        create_room=AsyncMock(return_value=proto_models.Room(name="lobby", empty_timeout=60, max_participants=4))
    )

    room = await livekit_adapters.LiveKitRoomDirectory(service).create_room(
        RoomSettings(name="lobby", empty_timeout=60, max_participants=4)
    )

    request = service.create_room.await_args.args[0]
    assert (request.name, request.empty_timeout, request.max_participants) == ("lobby", 60, 4)
    assert room.max_participants == 4


@pytest.mark.asyncio
async def test_twirp_not_found_maps_to_domain_error():
    service = SimpleNamespace(delete_room=AsyncMock(side_effect=api.TwirpError("not_found", "room not found", status=404)))

    with pytest.raises(RoomNotFoundError) as excinfo:
        await livekit_adapters.LiveKitRoomDirectory(service).delete_room("ghost")

    assert excinfo.value.details == {"room_name": "ghost"}


@pytest.mark.asyncio
async def test_participant_not_found():
    service = SimpleNamespace(
        remove_participant=AsyncMock(side_effect=api.TwirpError("not_found", "participant not found", status=404))
    )

    with pytest.raises(ParticipantNotFoundError):
        await livekit_adapters.LiveKitRoomDirectory(service).remove_participant("r1", "bob")


@pytest.mark.asyncio
async def test_other_twirp_errors_keep_their_code():
    service = SimpleNamespace(
        create_room=AsyncMock(side_effect=api.TwirpError("invalid_argument", "bad name", status=400))
    )

    with pytest.raises(RemoteRequestError) as excinfo:
        await livekit_adapters.LiveKitRoomDirectory(service).create_room(RoomSettings(name="x"))

    assert excinfo.value.code == "invalid_argument"


@pytest.mark.asyncio
async def test_transport_failure_is_unavailable():
    service = SimpleNamespace(list_rooms=AsyncMock(side_effect=aiohttp.ClientConnectionError("refused")))

    with pytest.raises(CollaboratorUnavailableError):
        await livekit_adapters.LiveKitRoomDirectory(service).list_rooms()


@pytest.mark.asyncio
async def test_list_participants_maps_tracks():
    participant = proto_models.ParticipantInfo(
        identity="alice",
        sid="PA_1",
        state=proto_models.ParticipantInfo.State.ACTIVE,
        tracks=[proto_models.TrackInfo(sid="TR_1", type=proto_models.TrackType.AUDIO, muted=True)],
    )
    service = SimpleNamespace(
        list_participants=AsyncMock(return_value=proto_room.ListParticipantsResponse(participants=[participant]))
    )

    [record] = await livekit_adapters.LiveKitRoomDirectory(service).list_participants("r1")

    assert record.identity == "alice"
    assert record.state == "ACTIVE"
    assert record.tracks[0].kind == "AUDIO"
    assert record.tracks[0].muted is True


@pytest.mark.asyncio
async def test_mute_track_returns_updated_track():
    service = SimpleNamespace(
        mute_published_track=AsyncMock(
            return_value=proto_room.MuteRoomTrackResponse(track=proto_models.TrackInfo(sid="TR_1", muted=True))
        )
    )

    track = await livekit_adapters.LiveKitRoomDirectory(service).mute_track("r1", "alice", "TR_1", True)

    request = service.mute_published_track.await_args.args[0]
    assert (request.room, request.identity, request.track_sid, request.muted) == ("r1", "alice", "TR_1", True)
    assert track.sid == "TR_1"
    assert track.muted is True


@pytest.mark.asyncio
async def test_start_composite_builds_file_output_with_s3():
    service = SimpleNamespace(
        start_room_composite_egress=AsyncMock(
            return_value=proto_egress.EgressInfo(
                egress_id="EG_1",
                room_name="r1",
                status=proto_egress.EgressStatus.EGRESS_STARTING,
            )
        )
    )
    output = OutputDescriptor(
        file_type=1,
        filepath="r1-42.mp4",
        s3=S3Upload(bucket="b1", region="us-east-1", endpoint="http://minio:9000", access_key="k", secret="s"),
    )

    record = await livekit_adapters.LiveKitEgressControl(service).start_composite(
        "r1", output, EgressOptions(audio_only=True, preset=RecordingPreset.FULL_HD_30)
    )

    request = service.start_room_composite_egress.await_args.args[0]
    assert request.room_name == "r1"
    assert request.audio_only is True
    assert request.preset == proto_egress.EncodingOptionsPreset.H264_1080P_30
    [file_output] = request.file_outputs
    assert file_output.filepath == "r1-42.mp4"
    assert file_output.file_type == proto_egress.EncodedFileType.MP4
    assert file_output.s3.bucket == "b1"
    assert file_output.s3.force_path_style is True
    assert record.egress_id == "EG_1"
    assert record.status == "EGRESS_STARTING"


@pytest.mark.asyncio
async def test_start_web_sends_url():
    service = SimpleNamespace(
        start_web_egress=AsyncMock(return_value=proto_egress.EgressInfo(egress_id="EG_2"))
    )

    await livekit_adapters.LiveKitEgressControl(service).start_web(
        "https://viewer.example.com/custom?token=t",
        OutputDescriptor(file_type=3, filepath="r1-42.webm"),
        EgressOptions(),
    )

    request = service.start_web_egress.await_args.args[0]
    assert request.url == "https://viewer.example.com/custom?token=t"
    assert request.file_outputs[0].file_type == 3
    assert not request.file_outputs[0].HasField("s3")


@pytest.mark.asyncio
async def test_stop_unknown_egress():
    service = SimpleNamespace(stop_egress=AsyncMock(side_effect=api.TwirpError("not_found", "egress not found", status=404)))

    with pytest.raises(RecordingNotFoundError):
        await livekit_adapters.LiveKitEgressControl(service).stop("EG_x")


@pytest.mark.asyncio
async def test_list_egress_maps_results():
    info = proto_egress.EgressInfo(
        egress_id="EG_1",
        room_name="r1",
        status=proto_egress.EgressStatus.EGRESS_COMPLETE,
        started_at=10,
        ended_at=20,
        file_results=[proto_egress.FileInfo(location="s3://b1/r1-42.mp4")],
    )
    service = SimpleNamespace(list_egress=AsyncMock(return_value=proto_egress.ListEgressResponse(items=[info])))

    [record] = await livekit_adapters.LiveKitEgressControl(service).list("r1")

    request = service.list_egress.await_args.args[0]
    assert request.room_name == "r1"
    assert record.status == "EGRESS_COMPLETE"
    assert record.location == "s3://b1/r1-42.mp4"
    assert (record.started_at, record.ended_at) == (10, 20)
