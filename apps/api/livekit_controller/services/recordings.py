"""Recording (egress) orchestration.

Decides the capture strategy, builds the output descriptor, and issues exactly
one start command per call against the remote egress API. Session state lives
only in that API: status, stop and list calls always go back to it."""
from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass
from typing import Callable, Protocol

from ..core.errors import RecordingNotFoundError, RecordingStartError, RoomNotFoundError
from .grants import Capabilities, GrantBuilder, SessionGrant
from .rooms import RoomDirectory

logger = logging.getLogger(__name__)

RECORDER_BOT_IDENTITY = "egress-recorder-bot"


class CaptureStrategy(str, enum.Enum):
    ROOM_COMPOSITE = "ROOM_COMPOSITE"
    WEB = "WEB"


class OutputFormat(str, enum.Enum):
    MP4 = "mp4"
    OGG = "ogg"
    WEBM = "webm"

    @property
    def file_type(self) -> int:
        """Numeric file-type code understood by the egress API."""

        return FILE_TYPE_CODES[self]

    @property
    def extension(self) -> str:
        return self.value


FILE_TYPE_CODES: dict[OutputFormat, int] = {
    OutputFormat.MP4: 1,
    OutputFormat.OGG: 2,
    OutputFormat.WEBM: 3,
}


class RecordingPreset(str, enum.Enum):
    HD_30 = "preset-hd-30"
    HD_60 = "preset-hd-60"
    FULL_HD_30 = "preset-full-hd-30"
    FULL_HD_60 = "preset-full-hd-60"


class RecordingStatus(str, enum.Enum):
    STARTING = "STARTING"
    ACTIVE = "ACTIVE"
    STOPPING = "STOPPING"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"
    ABORTED = "ABORTED"
    LIMIT_REACHED = "LIMIT_REACHED"
    # Status name this build does not know; the raw name stays on the session.
    UNKNOWN = "UNKNOWN"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATUSES


_TERMINAL_STATUSES = frozenset(
    {
        RecordingStatus.COMPLETE,
        RecordingStatus.FAILED,
        RecordingStatus.ABORTED,
        RecordingStatus.LIMIT_REACHED,
    }
)

_EGRESS_STATUS_NAMES: dict[str, RecordingStatus] = {
    "EGRESS_STARTING": RecordingStatus.STARTING,
    "EGRESS_ACTIVE": RecordingStatus.ACTIVE,
    "EGRESS_ENDING": RecordingStatus.STOPPING,
    "EGRESS_COMPLETE": RecordingStatus.COMPLETE,
    "EGRESS_FAILED": RecordingStatus.FAILED,
    "EGRESS_ABORTED": RecordingStatus.ABORTED,
    "EGRESS_LIMIT_REACHED": RecordingStatus.LIMIT_REACHED,
}


def interpret_status(value: str | None) -> RecordingStatus:
    """Translate an egress API status name.

    An absent status reads as STARTING and a name this build does not know
    reads as UNKNOWN; reading a status never raises.
    """

    if not value:
        return RecordingStatus.STARTING
    if value in _EGRESS_STATUS_NAMES:
        return _EGRESS_STATUS_NAMES[value]
    try:
        return RecordingStatus(value)
    except ValueError:
        logger.warning("Unrecognised egress status: %s", value)
        return RecordingStatus.UNKNOWN


@dataclass(frozen=True, slots=True)
class S3Sink:
    """Caller-chosen S3-compatible destination."""

    bucket: str
    region: str | None = None
    endpoint: str | None = None
    force_path_style: bool = True


@dataclass(frozen=True, slots=True)
class S3Defaults:
    """Credentials and location used when a sink leaves them out."""

    access_key: str = ""
    secret: str = ""
    region: str = "us-east-1"
    endpoint: str = ""


@dataclass(frozen=True, slots=True)
class S3Upload:
    bucket: str
    region: str
    endpoint: str
    access_key: str
    secret: str
    force_path_style: bool = True


@dataclass(frozen=True, slots=True)
class OutputDescriptor:
    file_type: int
    filepath: str
    s3: S3Upload | None = None


@dataclass(frozen=True, slots=True)
class EgressOptions:
    # Both flags may be set together; the capture pipeline decides what that means.
    audio_only: bool = False
    video_only: bool = False
    preset: RecordingPreset = RecordingPreset.HD_30


@dataclass(frozen=True, slots=True)
class RecordingRequest:
    room_name: str
    strategy: CaptureStrategy = CaptureStrategy.ROOM_COMPOSITE
    output_format: OutputFormat = OutputFormat.MP4
    audio_only: bool = False
    video_only: bool = False
    sink: S3Sink | None = None
    room_url: str | None = None
    preset: RecordingPreset = RecordingPreset.HD_30

    def __post_init__(self) -> None:
        if not self.room_name or not self.room_name.strip():
            raise ValueError("room_name must not be empty")


@dataclass(slots=True)
class EgressRecord:
    """Egress entry as reported by the remote API."""

    egress_id: str
    status: str | None = None
    room_name: str = ""
    kind: str | None = None
    started_at: int | None = None
    ended_at: int | None = None
    error: str = ""
    location: str | None = None


@dataclass(slots=True)
class RecordingSession:
    egress_id: str
    status: RecordingStatus
    raw_status: str = ""
    room_name: str = ""
    kind: str | None = None
    started_at: int | None = None
    ended_at: int | None = None
    error: str = ""
    location: str | None = None


class EgressControl(Protocol):
    """Remote egress control API."""

    async def start_composite(
        self, room_name: str, output: OutputDescriptor, options: EgressOptions
    ) -> EgressRecord:
        ...

    async def start_web(self, url: str, output: OutputDescriptor, options: EgressOptions) -> EgressRecord:
        ...

    async def stop(self, egress_id: str) -> EgressRecord:
        ...

    async def list(self, room_name: str | None = None) -> list[EgressRecord]:
        ...


def recorder_bot_grant(room_name: str) -> SessionGrant:
    """Grant for the headless browser: subscribes, never publishes, stays hidden."""

    return SessionGrant(
        identity=RECORDER_BOT_IDENTITY,
        room=room_name,
        capabilities=Capabilities(
            can_publish=False,
            can_subscribe=True,
            can_publish_data=True,
            hidden=True,
        ),
    )


def build_filename(room_name: str, output_format: OutputFormat, now_ms: int) -> str:
    return f"{room_name}-{now_ms}.{output_format.extension}"


def build_output(request: RecordingRequest, *, now_ms: int, s3_defaults: S3Defaults) -> OutputDescriptor:
    """Describe where the finished file goes: a bare path or an S3 upload."""

    filepath = build_filename(request.room_name, request.output_format, now_ms)
    upload = None
    if request.sink is not None:
        sink = request.sink
        upload = S3Upload(
            bucket=sink.bucket,
            region=sink.region if sink.region is not None else s3_defaults.region,
            endpoint=sink.endpoint if sink.endpoint is not None else s3_defaults.endpoint,
            access_key=s3_defaults.access_key,
            secret=s3_defaults.secret,
            force_path_style=sink.force_path_style,
        )
    return OutputDescriptor(file_type=request.output_format.file_type, filepath=filepath, s3=upload)


def to_session(record: EgressRecord) -> RecordingSession:
    return RecordingSession(
        egress_id=record.egress_id,
        status=interpret_status(record.status),
        raw_status=record.status or "",
        room_name=record.room_name,
        kind=record.kind,
        started_at=record.started_at,
        ended_at=record.ended_at,
        error=record.error,
        location=record.location,
    )


class RecordingOrchestrator:
    """Start, stop and inspect recordings without keeping any local state."""

    def __init__(
        self,
        rooms: RoomDirectory,
        egress: EgressControl,
        grants: GrantBuilder,
        *,
        internal_url: str,
        s3_defaults: S3Defaults | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._rooms = rooms
        self._egress = egress
        self._grants = grants
        self._internal_url = internal_url
        self._s3_defaults = s3_defaults or S3Defaults()
        self._clock = clock

    async def start_recording(self, request: RecordingRequest) -> RecordingSession:
        """Start one egress for ``request``.

        Any failure, including an unknown room, is raised as
        ``RecordingStartError`` with the original error chained. No egress
        command is sent once an earlier step has failed.
        """

        try:
            return await self._start(request)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Failed to start recording for room %s", request.room_name)
            raise RecordingStartError(
                f"Failed to start recording for room {request.room_name}: {exc}",
                {"room_name": request.room_name, "strategy": request.strategy.value},
                cause=exc,
            ) from exc

    async def _start(self, request: RecordingRequest) -> RecordingSession:
        room = await self._rooms.lookup_room(request.room_name)
        if room is None:
            raise RoomNotFoundError(f"Room not found: {request.room_name}", {"room_name": request.room_name})

        now_ms = int(self._clock() * 1000)
        output = build_output(request, now_ms=now_ms, s3_defaults=self._s3_defaults)
        options = EgressOptions(
            audio_only=request.audio_only,
            video_only=request.video_only,
            preset=request.preset,
        )

        if request.strategy is CaptureStrategy.WEB:
            credential = await self._grants.mint(recorder_bot_grant(request.room_name))
            url = request.room_url or self._grants.build_viewer_url(self._internal_url, credential)
            record = await self._egress.start_web(url, output, options)
        else:
            record = await self._egress.start_composite(request.room_name, output, options)

        session = to_session(record)
        logger.info(
            "%s egress started for room %s, egress ID: %s, output: %s",
            request.strategy.value,
            request.room_name,
            session.egress_id,
            output.filepath,
        )
        return session

    async def stop_recording(self, egress_id: str) -> RecordingSession:
        try:
            record = await self._egress.stop(egress_id)
        except Exception:
            logger.exception("Failed to stop recording %s", egress_id)
            raise
        logger.info("Recording stopped, egress ID: %s", egress_id)
        return to_session(record)

    async def get_status(self, egress_id: str) -> RecordingSession:
        """Look ``egress_id`` up in the full egress list.

        The egress API has no get-by-id; this scans every entry, so frequent
        pollers should cache above this layer.
        """

        try:
            records = await self._egress.list()
        except Exception:
            logger.exception("Failed to get recording status %s", egress_id)
            raise
        for record in records:
            if record.egress_id == egress_id:
                logger.info("Retrieved recording status for egress ID: %s", egress_id)
                return to_session(record)
        raise RecordingNotFoundError(f"Recording not found: {egress_id}", {"egress_id": egress_id})

    async def list_recordings(self, room_name: str | None = None) -> list[RecordingSession]:
        try:
            records = await self._egress.list(room_name)
        except Exception:
            logger.exception("Failed to list recordings")
            raise
        logger.info("Listed %d recordings", len(records))
        return [to_session(record) for record in records]
