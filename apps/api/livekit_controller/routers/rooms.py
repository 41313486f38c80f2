"""Room and participant endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status

from ..core.dependencies import get_room_service
from ..schemas import rooms as rooms_schema
from ..services.rooms import RoomService, RoomSettings

router = APIRouter()


@router.get("/info", response_model=rooms_schema.ServerInfoResponse)
async def get_info(service: RoomService = Depends(get_room_service)) -> rooms_schema.ServerInfoResponse:
    """Return the server URL and API key id clients connect with."""

    return rooms_schema.ServerInfoResponse.model_validate(service.connection_info())


@router.post("/rooms", status_code=status.HTTP_201_CREATED, response_model=rooms_schema.RoomResponse)
async def create_room(
    payload: rooms_schema.CreateRoomRequest,
    service: RoomService = Depends(get_room_service),
) -> rooms_schema.RoomResponse:
    """Create a room with the requested timeout and participant cap."""

    room = await service.create_room(
        RoomSettings(
            name=payload.name,
            empty_timeout=payload.empty_timeout,
            max_participants=payload.max_participants,
        )
    )
    return rooms_schema.RoomResponse.model_validate(room)


@router.get("/rooms", response_model=list[rooms_schema.RoomResponse])
async def list_rooms(service: RoomService = Depends(get_room_service)) -> list[rooms_schema.RoomResponse]:
    rooms = await service.list_rooms()
    return [rooms_schema.RoomResponse.model_validate(room) for room in rooms]


@router.get("/rooms/{room_name}", response_model=rooms_schema.RoomResponse)
async def get_room(room_name: str, service: RoomService = Depends(get_room_service)) -> rooms_schema.RoomResponse:
    room = await service.get_room(room_name)
    return rooms_schema.RoomResponse.model_validate(room)


@router.patch("/rooms/{room_name}", response_model=rooms_schema.RoomResponse)
async def update_room(
    room_name: str,
    payload: rooms_schema.UpdateRoomRequest,
    service: RoomService = Depends(get_room_service),
) -> rooms_schema.RoomResponse:
    """Replace the room metadata."""

    room = await service.update_room_metadata(room_name, payload.metadata)
    return rooms_schema.RoomResponse.model_validate(room)


@router.delete("/rooms/{room_name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room(room_name: str, service: RoomService = Depends(get_room_service)) -> Response:
    """Delete a room and disconnect everyone in it."""

    await service.delete_room(room_name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/rooms/{room_name}/participants", response_model=list[rooms_schema.ParticipantResponse])
async def list_participants(
    room_name: str,
    service: RoomService = Depends(get_room_service),
) -> list[rooms_schema.ParticipantResponse]:
    participants = await service.list_participants(room_name)
    return [rooms_schema.ParticipantResponse.model_validate(participant) for participant in participants]


@router.delete(
    "/rooms/{room_name}/participants/{participant_identity}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_participant(
    room_name: str,
    participant_identity: str,
    service: RoomService = Depends(get_room_service),
) -> Response:
    await service.remove_participant(room_name, participant_identity)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/rooms/{room_name}/participants/{participant_identity}/mute",
    response_model=rooms_schema.MuteTrackResponse,
)
async def mute_participant(
    room_name: str,
    participant_identity: str,
    track_sid: str = Query(..., min_length=1),
    muted: bool = Query(...),
    service: RoomService = Depends(get_room_service),
) -> rooms_schema.MuteTrackResponse:
    """Mute or unmute one published track."""

    track = await service.mute_track(room_name, participant_identity, track_sid, muted)
    return rooms_schema.MuteTrackResponse(
        message=f"Track {'muted' if muted else 'unmuted'} successfully",
        track=rooms_schema.TrackResponse.model_validate(track),
    )
