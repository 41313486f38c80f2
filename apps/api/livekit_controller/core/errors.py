"""Error taxonomy shared by the grant, room, and recording services."""
from __future__ import annotations

from typing import Any


class ControllerError(Exception):
    """Base error carrying the identifiers of the failed operation."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class RoomNotFoundError(ControllerError):
    """Raised when the room directory does not know the requested room."""


class ParticipantNotFoundError(ControllerError):
    """Raised when a participant or track is unknown to the room directory."""


class RecordingNotFoundError(ControllerError):
    """Raised when the egress API does not know the requested egress id."""


class CredentialSigningError(ControllerError):
    """Raised when the signer fails to produce a bearer credential."""


class InvalidServerUrlError(ControllerError):
    """Raised when a media server URL cannot be embedded in a join link."""


class CollaboratorUnavailableError(ControllerError):
    """Raised on network or transport failures from a remote collaborator."""


class RemoteRequestError(ControllerError):
    """Raised when a collaborator rejects a request it understood.

    ``code`` holds the collaborator's error code (``invalid_argument``,
    ``failed_precondition`` and so on).
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None, *, code: str = "unknown") -> None:
        super().__init__(message, details)
        self.code = code


class RecordingStartError(ControllerError):
    """Raised when any step of starting a recording fails.

    The originating error is chained as ``__cause__`` and kept on ``cause``.
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        *,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, details)
        self.cause = cause
