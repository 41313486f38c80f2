"""Data contracts for recording endpoints."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..services.recordings import CaptureStrategy, OutputFormat, RecordingPreset, RecordingStatus


class StartRecordingRequest(BaseModel):
    room_name: str = Field(..., min_length=1, pattern=r"\S", description="Name of the room to record")
    recording_type: CaptureStrategy = Field(default=CaptureStrategy.ROOM_COMPOSITE)
    output_format: OutputFormat = Field(default=OutputFormat.MP4)
    preset: RecordingPreset = Field(default=RecordingPreset.HD_30)
    audio_only: bool = Field(default=False)
    video_only: bool = Field(default=False)
    s3_bucket: str | None = Field(default=None, min_length=1, description="S3-compatible bucket for the file")
    s3_region: str | None = Field(default=None, description="Overrides the configured S3 region")
    s3_endpoint: str | None = Field(default=None, description="Overrides the configured S3 endpoint")
    room_url: str | None = Field(default=None, description="Web capture URL; auto-generated if omitted")

    @model_validator(mode="after")
    def _s3_overrides_need_bucket(self) -> "StartRecordingRequest":
        if self.s3_bucket is None and (self.s3_region is not None or self.s3_endpoint is not None):
            raise ValueError("s3_region and s3_endpoint require s3_bucket")
        return self


class StartRecordingResponse(BaseModel):
    egress_id: str
    status: RecordingStatus


class RecordingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    egress_id: str
    status: RecordingStatus
    raw_status: str = Field(default="", description="Status name exactly as reported by the egress API")
    room_name: str = ""
    kind: str | None = None
    started_at: int | None = None
    ended_at: int | None = None
    error: str = ""
    location: str | None = None
