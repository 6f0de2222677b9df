import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import parse_qs, urlparse

import pytest
from typer.testing import CliRunner

from contactsweep.domain.interfaces.transport import Transport
from contactsweep.domain.models.common import RateSettings
from contactsweep.domain.models.contact import ContactRecord, DiscoveryState
from contactsweep.domain.models.http import TransportResponse
from contactsweep.infrastructure.auth.cookie_credentials import CookieCredentialProvider
from contactsweep.infrastructure.config import settings

COOKIE_HEADER = 'li_at=AQEDAT; JSESSIONID="ajax:1234567890"'


@dataclass
class SentRequest:
    url: str
    method: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None
    timeout: float = 0.0

    @property
    def start(self) -> Optional[int]:
        values = parse_qs(urlparse(self.url).query).get("start")
        return int(values[0]) if values else None


class FakeTransport(Transport):
    """In-memory Transport. `handler(request)` returns a payload, a TransportResponse or an exception."""

    def __init__(self, handler: Callable[[SentRequest], Any]):
        self.handler = handler
        self.calls: List[SentRequest] = []
        self.closed = False

    async def send(self, url, method="GET", headers=None, body=None, timeout=30.0):
        request = SentRequest(url, method, dict(headers or {}), body, timeout)
        self.calls.append(request)
        outcome = self.handler(request)
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, TransportResponse):
            return outcome
        return TransportResponse(status_code=200, text=json.dumps(outcome))

    async def aclose(self):
        self.closed = True


def make_profile(i: int) -> Dict[str, Any]:
    return {
        "$type": "com.linkedin.voyager.dash.identity.profile.Profile",
        "entityUrn": f"urn:li:fsd_profile:P{i}",
        "firstName": f"First{i}",
        "lastName": f"Last{i}",
        "headline": f"Engineer number {i}",
        "publicIdentifier": f"person-{i}",
    }


def make_connection(i: int) -> Dict[str, Any]:
    return {
        "$type": "com.linkedin.voyager.dash.relationships.Connection",
        "entityUrn": f"urn:li:fsd_connection:C{i}",
        "connectedMember": f"urn:li:fsd_profile:P{i}",
        "createdAt": 1700000000000 + i,
    }


def make_page(start: int, count: int, total: int = 0) -> Dict[str, Any]:
    """A normalized list page holding contacts start..start+count-1."""
    included: List[Dict[str, Any]] = []
    for i in range(start, start + count):
        included.append(make_profile(i))
        included.append(make_connection(i))
    paging = {"start": start, "count": 40}
    if total:
        paging["total"] = total
    return {"data": {"paging": paging, "*elements": [c["entityUrn"] for c in included[1::2]]}, "included": included}


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def fake_transport():
    """Factory for FakeTransport instances."""
    return FakeTransport


@pytest.fixture
def page_factory():
    return make_page


@pytest.fixture
def credentials():
    return CookieCredentialProvider(COOKIE_HEADER)


@pytest.fixture
def discovery_state():
    return DiscoveryState()


@pytest.fixture
def instant_rate_settings():
    """Rate settings with every delay at zero so tests never sleep."""
    return RateSettings(
        min_delay=0.0,
        max_delay=0.0,
        batch_size=10,
        batch_pause_min=0.0,
        batch_pause_max=0.0,
        jitter=0.0,
        backoff=0.0,
    )


@pytest.fixture
def sample_records():
    return [
        ContactRecord(
            first_name=f"First{i}",
            last_name=f"Last{i}",
            headline=f"Engineer number {i}",
            public_identifier=f"person-{i}",
            entity_urn=f"urn:li:fsd_profile:P{i}",
            connection_urn=f"urn:li:fsd_connection:C{i}",
        )
        for i in range(5)
    ]


@pytest.fixture(autouse=True)
def isolated_config():
    """Keeps test config overrides from leaking between tests."""
    settings.clear_test_config()
    yield
    settings.clear_test_config()
