"""Domain models for contacts and the endpoints that list them.

Includes the `ContactRecord` value object produced by the response parser,
the immutable `EndpointConfig` catalog entry, and the session-scoped
`DiscoveryState` memo shared by the fetch and removal services.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import urlencode

from contactsweep.domain.models.common import PublicIdentifier, Urn

PROFILE_URL_TEMPLATE = "https://www.linkedin.com/in/{}/"


@dataclass(frozen=True)
class ContactRecord:
    """Normalized representation of one connection, independent of API revision."""
    first_name: str = ""
    last_name: str = ""
    headline: str = ""
    public_identifier: PublicIdentifier = PublicIdentifier("")
    entity_urn: Urn = Urn("")
    connection_urn: Urn = Urn("")
    connected_at: Optional[int] = None
    profile_picture: str = ""

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def profile_url(self) -> str:
        if not self.public_identifier:
            return ""
        return PROFILE_URL_TEMPLATE.format(self.public_identifier)

    @property
    def is_removable(self) -> bool:
        """A record can be removed only if some identifying field is present."""
        return bool(self.connection_urn or self.entity_urn or self.public_identifier)

    @property
    def label(self) -> str:
        """Human-readable label used in progress reports and error messages."""
        return self.name or self.public_identifier or self.connection_urn or self.entity_urn

    def to_dict(self) -> Dict[str, Any]:
        """Serializes using the camelCase field names of the web API."""
        return {
            "firstName": self.first_name,
            "lastName": self.last_name,
            "name": self.name,
            "headline": self.headline,
            "publicIdentifier": self.public_identifier,
            "profileUrl": self.profile_url,
            "entityUrn": self.entity_urn,
            "connectionUrn": self.connection_urn,
            "connectedAt": self.connected_at,
            "profilePicture": self.profile_picture,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContactRecord":
        """Rebuilds a record from `to_dict` output (derived fields are ignored)."""
        def text(key: str) -> str:
            value = data.get(key)
            return value if isinstance(value, str) else ""

        connected_at = data.get("connectedAt")
        if isinstance(connected_at, bool) or not isinstance(connected_at, (int, float)):
            connected_at = None
        return cls(
            first_name=text("firstName"),
            last_name=text("lastName"),
            headline=text("headline"),
            public_identifier=PublicIdentifier(text("publicIdentifier")),
            entity_urn=Urn(text("entityUrn")),
            connection_urn=Urn(text("connectionUrn") or text("entityUrn")),
            connected_at=int(connected_at) if connected_at is not None else None,
            profile_picture=text("profilePicture"),
        )


@dataclass(frozen=True)
class EndpointConfig:
    """One candidate request template for the 'list contacts' operation."""
    name: str
    url: str
    params: Tuple[Tuple[str, str], ...] = ()

    def url_for(self, start: int) -> str:
        """Returns the full page URL for the given offset."""
        query = dict(self.params)
        query["start"] = str(start)
        return f"{self.url}?{urlencode(query)}"


@dataclass
class DiscoveryState:
    """Per-session memo of what worked. Written on success, never invalidated."""
    endpoint: Optional[EndpointConfig] = None
    removal_strategy: Optional[str] = None
