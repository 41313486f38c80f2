"""Access token endpoint."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from ..core.dependencies import get_grant_builder
from ..schemas.tokens import CreateTokenRequest, CreateTokenResponse
from ..services.grants import Capabilities, GrantBuilder, SessionGrant

router = APIRouter()


@router.post("/token", response_model=CreateTokenResponse)
async def create_token(
    payload: CreateTokenRequest,
    grants: GrantBuilder = Depends(get_grant_builder),
) -> CreateTokenResponse:
    """Return a room access token and a hosted-viewer join link."""

    grant = SessionGrant(
        identity=payload.participant_name,
        room=payload.room_name,
        metadata=payload.metadata,
        name=payload.display_name,
        capabilities=Capabilities.resolve(
            can_publish=payload.can_publish,
            can_subscribe=payload.can_subscribe,
            can_publish_data=payload.can_publish_data,
            hidden=payload.hidden,
        ),
    )
    minted = await grants.mint_token(grant)
    return CreateTokenResponse(token=minted.credential, test_room_url=minted.viewer_url)
