"""Recording (egress) endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from ..core.dependencies import get_recording_orchestrator
from ..schemas import recordings as recordings_schema
from ..services.recordings import RecordingOrchestrator, RecordingRequest, S3Sink

router = APIRouter()


@router.post("/recordings/start", response_model=recordings_schema.StartRecordingResponse)
async def start_recording(
    payload: recordings_schema.StartRecordingRequest,
    orchestrator: RecordingOrchestrator = Depends(get_recording_orchestrator),
) -> recordings_schema.StartRecordingResponse:
    """Start recording a room with the chosen capture strategy."""

    sink = None
    if payload.s3_bucket is not None:
        sink = S3Sink(bucket=payload.s3_bucket, region=payload.s3_region, endpoint=payload.s3_endpoint)

    session = await orchestrator.start_recording(
        RecordingRequest(
            room_name=payload.room_name,
            strategy=payload.recording_type,
            output_format=payload.output_format,
            audio_only=payload.audio_only,
            video_only=payload.video_only,
            sink=sink,
            room_url=payload.room_url,
            preset=payload.preset,
        )
    )
    return recordings_schema.StartRecordingResponse(egress_id=session.egress_id, status=session.status)


@router.post("/recordings/{egress_id}/stop", response_model=recordings_schema.RecordingResponse)
async def stop_recording(
    egress_id: str,
    orchestrator: RecordingOrchestrator = Depends(get_recording_orchestrator),
) -> recordings_schema.RecordingResponse:
    session = await orchestrator.stop_recording(egress_id)
    return recordings_schema.RecordingResponse.model_validate(session)


@router.get("/recordings", response_model=list[recordings_schema.RecordingResponse])
async def list_recordings(
    room_name: str | None = None,
    orchestrator: RecordingOrchestrator = Depends(get_recording_orchestrator),
) -> list[recordings_schema.RecordingResponse]:
    """List recordings, optionally only those of one room."""

    sessions = await orchestrator.list_recordings(room_name)
    return [recordings_schema.RecordingResponse.model_validate(session) for session in sessions]


@router.get("/recordings/{egress_id}", response_model=recordings_schema.RecordingResponse)
async def get_recording_status(
    egress_id: str,
    orchestrator: RecordingOrchestrator = Depends(get_recording_orchestrator),
) -> recordings_schema.RecordingResponse:
    session = await orchestrator.get_status(egress_id)
    return recordings_schema.RecordingResponse.model_validate(session)
