"""Endpoint catalog and request headers for the Voyager API.

The server exposes several parallel revisions of the connections list; the
catalog is ordered from most to least likely to work.
"""

from typing import Dict, Tuple

from contactsweep.domain.interfaces.credentials import CredentialProvider
from contactsweep.domain.models.contact import EndpointConfig

BASE_URL = "https://www.linkedin.com"
PAGE_SIZE = 40

CONNECTIONS_URL = BASE_URL + "/voyager/api/relationships/dash/connections"
LEGACY_CONNECTIONS_URL = BASE_URL + "/voyager/api/relationships/connections"
DECORATION_PREFIX = "com.linkedin.voyager.dash.deco.web.mynetwork.ConnectionList-"

_SEARCH_PARAMS: Tuple[Tuple[str, str], ...] = (
    ("count", str(PAGE_SIZE)),
    ("q", "search"),
    ("sortType", "RECENTLY_ADDED"),
)


def _decorated(revision: int) -> Tuple[Tuple[str, str], ...]:
    return (("decorationId", f"{DECORATION_PREFIX}{revision}"),) + _SEARCH_PARAMS


ENDPOINT_CATALOG: Tuple[EndpointConfig, ...] = (
    EndpointConfig("dash-v17", CONNECTIONS_URL, _decorated(17)),
    EndpointConfig("dash-v16", CONNECTIONS_URL, _decorated(16)),
    EndpointConfig("dash-v15", CONNECTIONS_URL, _decorated(15)),
    EndpointConfig("dash-no-decoration", CONNECTIONS_URL, _SEARCH_PARAMS),
    EndpointConfig("legacy", LEGACY_CONNECTIONS_URL, _SEARCH_PARAMS),
)


def build_headers(credentials: CredentialProvider) -> Dict[str, str]:
    """Standard headers for Voyager requests.

    Raises:
        NotAuthenticatedError: If credentials are unavailable.
    """
    return {
        "csrf-token": credentials.get_csrf_token(),
        "Cookie": credentials.get_cookie_header(),
        "accept": "application/vnd.linkedin.normalized+json+2.1",
        "x-restli-protocol-version": "2.0.0",
        "x-li-lang": "en_US",
        "x-li-page-instance": "urn:li:page:d_flagship3_people_connections;",
    }
