"""Room access grant builder.

Turns a requested identity and capability flags into a signed bearer credential.
The claims follow the expiring JWT layout: subject, display name, metadata and
a room-scoped video grant."""
from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Protocol
from urllib.parse import quote, urlsplit

from ..core.errors import CredentialSigningError, InvalidServerUrlError

logger = logging.getLogger(__name__)

DEFAULT_VIEWER_BASE_URL = "https://meet.livekit.io"
SERVER_URL_SCHEMES = frozenset({"ws", "wss", "http", "https"})
VIEWER_URL_SCHEMES = frozenset({"http", "https"})
# Characters encodeURIComponent leaves alone; the hosted viewer decodes that form.
_URI_COMPONENT_SAFE = "!*'()"


@dataclass(frozen=True, slots=True)
class Capabilities:
    """Room permissions carried by a grant."""

    can_publish: bool = True
    can_subscribe: bool = True
    can_publish_data: bool = True
    hidden: bool = False

    @classmethod
    def resolve(
        cls,
        *,
        can_publish: bool | None = None,
        can_subscribe: bool | None = None,
        can_publish_data: bool | None = None,
        hidden: bool | None = None,
    ) -> "Capabilities":
        """Build capabilities where an omitted (``None``) flag takes its default."""

        defaults = cls()
        return cls(
            can_publish=defaults.can_publish if can_publish is None else can_publish,
            can_subscribe=defaults.can_subscribe if can_subscribe is None else can_subscribe,
            can_publish_data=defaults.can_publish_data if can_publish_data is None else can_publish_data,
            hidden=defaults.hidden if hidden is None else hidden,
        )


@dataclass(frozen=True, slots=True)
class SessionGrant:
    """Request to mint a credential for one identity in one room."""

    identity: str
    room: str
    metadata: str = ""
    name: str | None = None
    capabilities: Capabilities = field(default_factory=Capabilities)

    def __post_init__(self) -> None:
        if not self.identity or not self.identity.strip():
            raise ValueError("identity must not be empty")
        if not self.room or not self.room.strip():
            raise ValueError("room must not be empty")


@dataclass(frozen=True, slots=True)
class RoomJoinGrant:
    room: str
    can_publish: bool
    can_subscribe: bool
    can_publish_data: bool
    hidden: bool
    room_join: bool = True


@dataclass(frozen=True, slots=True)
class AccessClaims:
    identity: str
    name: str
    metadata: str
    video: RoomJoinGrant


class Signer(Protocol):
    """Produces an opaque bearer string for a claims payload."""

    def sign(self, claims: AccessClaims) -> str | Awaitable[str]:
        ...


@dataclass(slots=True)
class MintedToken:
    credential: str
    viewer_url: str


def build_claims(grant: SessionGrant) -> AccessClaims:
    """Bind identity, display name, metadata and the room grant into claims."""

    caps = grant.capabilities
    return AccessClaims(
        identity=grant.identity,
        name=grant.name or grant.identity,
        metadata=grant.metadata,
        video=RoomJoinGrant(
            room=grant.room,
            can_publish=caps.can_publish,
            can_subscribe=caps.can_subscribe,
            can_publish_data=caps.can_publish_data,
            hidden=caps.hidden,
        ),
    )


def check_url(url: str, schemes: frozenset[str], *, field_name: str = "server_url") -> None:
    """Raise ``InvalidServerUrlError`` unless ``url`` has an allowed scheme and a host."""

    try:
        parts = urlsplit(url)
        valid = parts.scheme in schemes and bool(parts.hostname)
    except ValueError:
        valid = False
    if not valid:
        raise InvalidServerUrlError(f"Invalid {field_name}: {url!r}", {field_name: url})


def build_viewer_url(viewer_base_url: str, server_url: str, credential: str) -> str:
    """Return a hosted-viewer join link for ``credential`` against ``server_url``."""

    check_url(viewer_base_url, VIEWER_URL_SCHEMES, field_name="viewer_base_url")
    check_url(server_url, SERVER_URL_SCHEMES)

    encoded_server = quote(server_url, safe=_URI_COMPONENT_SAFE)
    encoded_token = quote(credential, safe=_URI_COMPONENT_SAFE)
    return f"{viewer_base_url.rstrip('/')}/custom?liveKitUrl={encoded_server}&token={encoded_token}"


class GrantBuilder:
    """Mint room credentials and join links."""

    def __init__(
        self,
        signer: Signer,
        *,
        public_url: str,
        viewer_base_url: str = DEFAULT_VIEWER_BASE_URL,
    ) -> None:
        check_url(viewer_base_url, VIEWER_URL_SCHEMES, field_name="viewer_base_url")
        self._signer = signer
        self._public_url = public_url
        self._viewer_base_url = viewer_base_url

    async def mint(self, grant: SessionGrant) -> str:
        """Sign ``grant`` into an opaque bearer credential.

        Any failure raised by the signer surfaces as ``CredentialSigningError``.
        """

        claims = build_claims(grant)
        try:
            credential = self._signer.sign(claims)
            if inspect.isawaitable(credential):
                credential = await credential
        except CredentialSigningError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.exception("Failed to sign credential for %s in room %s", grant.identity, grant.room)
            raise CredentialSigningError(
                f"Failed to sign credential for {grant.identity} in room {grant.room}: {exc}",
                {"identity": grant.identity, "room": grant.room},
            ) from exc

        logger.info("Token created for %s in room: %s", grant.identity, grant.room)
        return credential

    def build_viewer_url(self, server_url: str, credential: str) -> str:
        return build_viewer_url(self._viewer_base_url, server_url, credential)

    async def mint_token(self, grant: SessionGrant) -> MintedToken:
        """Mint a credential plus a viewer link against the public server address."""

        credential = await self.mint(grant)
        return MintedToken(
            credential=credential,
            viewer_url=self.build_viewer_url(self._public_url, credential),
        )
