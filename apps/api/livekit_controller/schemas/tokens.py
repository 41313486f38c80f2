"""Data contracts for token endpoints."""
from __future__ import annotations

from pydantic import BaseModel, Field


class CreateTokenRequest(BaseModel):
    room_name: str = Field(..., min_length=1, pattern=r"\S", description="Name of the room to join")
    participant_name: str = Field(..., min_length=1, pattern=r"\S", description="Unique identity of the participant")
    display_name: str | None = Field(default=None, description="Shown to others; defaults to the identity")
    metadata: str = Field(default="", description="Custom participant metadata")
    # None means "not supplied" and resolves to the documented default.
    can_publish: bool | None = Field(default=None, description="Publish audio/video (default true)")
    can_subscribe: bool | None = Field(default=None, description="Subscribe to other tracks (default true)")
    can_publish_data: bool | None = Field(default=None, description="Send data messages (default true)")
    hidden: bool | None = Field(default=None, description="Hide from other participants (default false)")


class CreateTokenResponse(BaseModel):
    token: str = Field(..., description="JWT to connect to the LiveKit room")
    test_room_url: str = Field(..., description="Join link for the hosted web viewer")
