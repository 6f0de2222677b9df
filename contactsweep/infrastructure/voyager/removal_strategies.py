"""Request shapes for removing one connection.

The correct mutation is not documented and has changed between API
revisions, so each shape is a pure builder: given a record it returns the
request to send, or None when the record lacks the identifier that shape
needs (the strategy is then skipped, not attempted).
"""

import json
from dataclasses import dataclass
from typing import Callable, Optional, Tuple
from urllib.parse import quote

from contactsweep.domain.models.contact import ContactRecord

from .endpoints import BASE_URL

REMOVE_ENDPOINT = BASE_URL + "/voyager/api/relationships/dash/memberRelationships?action=removeFromMyConnections"
MEMBER_RELATIONSHIP_DECORATION = "com.linkedin.voyager.dash.deco.relationships.MemberRelationship-34"
CONNECTION_RESOURCE_URL = BASE_URL + "/voyager/api/relationships/dash/connections/{}"
PROFILE_ACTIONS_URL = BASE_URL + "/voyager/api/identity/profiles/{}/profileActions?action=disconnect"


@dataclass(frozen=True)
class RemovalRequest:
    """A fully-formed removal request, minus the session headers."""
    method: str
    url: str
    body: Optional[str] = None


@dataclass(frozen=True)
class RemovalStrategy:
    """A named builder for one removal request shape."""
    name: str
    build: Callable[[ContactRecord], Optional[RemovalRequest]]


def _profile_actions_disconnect(record: ContactRecord) -> Optional[RemovalRequest]:
    if not record.public_identifier:
        return None
    return RemovalRequest("POST", PROFILE_ACTIONS_URL.format(quote(record.public_identifier, safe="")))


def _member_relationships_decorated(record: ContactRecord) -> Optional[RemovalRequest]:
    if not record.connection_urn:
        return None
    url = f"{REMOVE_ENDPOINT}&decorationId={MEMBER_RELATIONSHIP_DECORATION}"
    return RemovalRequest("POST", url, json.dumps({"connectionUrn": record.connection_urn}))


def _member_relationships(record: ContactRecord) -> Optional[RemovalRequest]:
    if not record.connection_urn:
        return None
    return RemovalRequest("POST", REMOVE_ENDPOINT, json.dumps({"connectionUrn": record.connection_urn}))


def _connection_remove_action(record: ContactRecord) -> Optional[RemovalRequest]:
    # Only relationship URNs address a connection resource
    if "fsd_connection" not in record.connection_urn:
        return None
    url = CONNECTION_RESOURCE_URL.format(quote(record.connection_urn, safe="")) + "?action=removeConnection"
    return RemovalRequest("POST", url, "{}")


def _connection_delete(record: ContactRecord) -> Optional[RemovalRequest]:
    if not record.connection_urn:
        return None
    return RemovalRequest("DELETE", CONNECTION_RESOURCE_URL.format(quote(record.connection_urn, safe="")))


REMOVAL_STRATEGIES: Tuple[RemovalStrategy, ...] = (
    RemovalStrategy("profile-actions-disconnect", _profile_actions_disconnect),
    RemovalStrategy("member-relationships-decorated", _member_relationships_decorated),
    RemovalStrategy("member-relationships", _member_relationships),
    RemovalStrategy("connection-remove-action", _connection_remove_action),
    RemovalStrategy("connection-delete", _connection_delete),
)
