"""Data contracts for room and participant endpoints."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ServerInfoResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    url: str = Field(..., description="Public LiveKit server URL")
    api_key: str = Field(..., description="API key id (never the secret)")


class CreateRoomRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Unique name for the room")
    empty_timeout: int = Field(default=300, ge=0, description="Seconds before an empty room is deleted")
    max_participants: int = Field(default=0, ge=0, description="Participant cap; 0 means unlimited")


class UpdateRoomRequest(BaseModel):
    metadata: str = Field(..., description="Opaque room metadata, replaced as a whole")


class RoomResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sid: str
    name: str
    empty_timeout: int
    max_participants: int
    creation_time: int
    num_participants: int
    metadata: str = ""
    active_recording: bool = False


class TrackResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sid: str
    name: str = ""
    kind: str = ""
    muted: bool = False


class ParticipantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sid: str
    identity: str
    name: str = ""
    state: str = ""
    joined_at: int = 0
    metadata: str = ""
    tracks: list[TrackResponse] = Field(default_factory=list)


class MuteTrackResponse(BaseModel):
    message: str
    track: TrackResponse
