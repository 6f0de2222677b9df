"""Concrete implementation of the Transport interface using httpx.

Hides the specifics of the HTTP library and translates its outcomes into
the domain's normalized response and error types.
"""

import asyncio
import logging
from typing import Dict, Optional

import httpx

from contactsweep.domain.errors import (
    HttpStatusError,
    RateLimitedError,
    RequestTimeoutError,
    TransportError,
)
from contactsweep.domain.interfaces.transport import Transport
from contactsweep.domain.models.http import TransportResponse

logger = logging.getLogger(__name__)


class HttpxTransport(Transport):
    """httpx implementation of the Transport interface."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        """Initializes the transport.

        Args:
            client: Optional pre-built AsyncClient (tests pass one backed by
                httpx.MockTransport). Created lazily on first use otherwise,
                so that it binds to the running event loop.
        """
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            # Cookies are sent explicitly per request; never let the jar accumulate them.
            self._client = httpx.AsyncClient(follow_redirects=False)
        return self._client

    async def send(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        body: Optional[str] = None,
        timeout: float = 30.0,
    ) -> TransportResponse:
        """Sends one request, enforcing a hard wall-clock timeout."""
        client = self._get_client()
        logger.debug(f"{method} {url}")
        try:
            # httpx timeouts are per phase; wait_for bounds the whole call.
            response = await asyncio.wait_for(
                client.request(method, url, headers=headers, content=body, timeout=timeout),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.warning(f"{method} {url} timed out after {timeout:.1f}s")
            raise RequestTimeoutError(url, timeout) from e
        except httpx.HTTPError as e:
            logger.warning(f"{method} {url} failed: {type(e).__name__}: {e}")
            raise TransportError(f"Network error for {url}: {e}") from e

        if response.status_code == 429:
            logger.warning(f"{method} {url} returned 429")
            raise RateLimitedError()
        if not response.is_success:
            logger.info(f"{method} {url} returned {response.status_code}")
            raise HttpStatusError(response.status_code, response.text, url=url)

        return TransportResponse(
            status_code=response.status_code,
            text=response.text,
            headers=dict(response.headers),
        )

    async def aclose(self) -> None:
        """Closes the underlying client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
