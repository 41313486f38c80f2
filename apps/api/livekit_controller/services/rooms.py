"""Room and participant management.

Every operation is a passthrough to the remote room directory; nothing is
cached here."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

from ..core.errors import RoomNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_EMPTY_TIMEOUT = 300
UNLIMITED_PARTICIPANTS = 0


@dataclass(slots=True)
class RoomRecord:
    name: str
    sid: str = ""
    empty_timeout: int = 0
    max_participants: int = 0
    creation_time: int = 0
    num_participants: int = 0
    metadata: str = ""
    active_recording: bool = False


@dataclass(slots=True)
class TrackRecord:
    sid: str
    name: str = ""
    kind: str = ""
    muted: bool = False


@dataclass(slots=True)
class ParticipantRecord:
    identity: str
    sid: str = ""
    name: str = ""
    state: str = ""
    joined_at: int = 0
    metadata: str = ""
    tracks: list[TrackRecord] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class RoomSettings:
    """Creation options; ``max_participants=0`` means unlimited."""

    name: str
    empty_timeout: int = DEFAULT_EMPTY_TIMEOUT
    max_participants: int = UNLIMITED_PARTICIPANTS


class RoomDirectory(Protocol):
    """Remote authority for rooms and their membership."""

    async def lookup_room(self, name: str) -> RoomRecord | None:
        ...

    async def list_rooms(self) -> list[RoomRecord]:
        ...

    async def create_room(self, settings: RoomSettings) -> RoomRecord:
        ...

    async def update_room_metadata(self, name: str, metadata: str) -> RoomRecord:
        ...

    async def delete_room(self, name: str) -> None:
        ...

    async def list_participants(self, room: str) -> list[ParticipantRecord]:
        ...

    async def remove_participant(self, room: str, identity: str) -> None:
        ...

    async def mute_track(self, room: str, identity: str, track_sid: str, muted: bool) -> TrackRecord:
        ...


@dataclass(slots=True)
class ConnectionInfo:
    url: str
    api_key: str


class RoomService:
    """Thin front end over the room directory that logs each call."""

    def __init__(self, directory: RoomDirectory, *, public_url: str, api_key: str) -> None:
        self._directory = directory
        self._public_url = public_url
        self._api_key = api_key

    def connection_info(self) -> ConnectionInfo:
        """Return the public server address and key id; never the secret."""

        return ConnectionInfo(url=self._public_url, api_key=self._api_key)

    async def create_room(self, settings: RoomSettings) -> RoomRecord:
        try:
            room = await self._directory.create_room(settings)
        except Exception:
            logger.exception("Failed to create room %s", settings.name)
            raise
        logger.info("Room created: %s", room.name)
        return room

    async def list_rooms(self) -> list[RoomRecord]:
        try:
            rooms = await self._directory.list_rooms()
        except Exception:
            logger.exception("Failed to list rooms")
            raise
        logger.info("Listed %d rooms", len(rooms))
        return rooms

    async def get_room(self, name: str) -> RoomRecord:
        try:
            room = await self._directory.lookup_room(name)
        except Exception:
            logger.exception("Failed to get room %s", name)
            raise
        if room is None:
            raise RoomNotFoundError(f"Room not found: {name}", {"room_name": name})
        logger.info("Retrieved room: %s", name)
        return room

    async def update_room_metadata(self, name: str, metadata: str) -> RoomRecord:
        try:
            room = await self._directory.update_room_metadata(name, metadata)
        except Exception:
            logger.exception("Failed to update room %s", name)
            raise
        logger.info("Room metadata updated: %s", name)
        return room

    async def delete_room(self, name: str) -> None:
        try:
            await self._directory.delete_room(name)
        except Exception:
            logger.exception("Failed to delete room %s", name)
            raise
        logger.info("Room deleted: %s", name)

    async def list_participants(self, room: str) -> list[ParticipantRecord]:
        try:
            participants = await self._directory.list_participants(room)
        except Exception:
            logger.exception("Failed to list participants in room %s", room)
            raise
        logger.info("Listed %d participants in room: %s", len(participants), room)
        return participants

    async def remove_participant(self, room: str, identity: str) -> None:
        try:
            await self._directory.remove_participant(room, identity)
        except Exception:
            logger.exception("Failed to remove participant %s from room %s", identity, room)
            raise
        logger.info("Participant %s removed from room: %s", identity, room)

    async def mute_track(self, room: str, identity: str, track_sid: str, muted: bool) -> TrackRecord:
        try:
            track = await self._directory.mute_track(room, identity, track_sid, muted)
        except Exception:
            logger.exception("Failed to change mute state of track %s for %s", track_sid, identity)
            raise
        logger.info(
            "Track %s %s for participant %s in room: %s",
            track_sid,
            "muted" if muted else "unmuted",
            identity,
            room,
        )
        return track
