"""Interface for the HTTP transport.

Defines the contract for issuing exactly one request with a hard timeout and
returning a normalized outcome. Retry policy belongs to callers.
"""

import abc
from typing import Dict, Optional

from ..models.http import TransportResponse


class Transport(abc.ABC):
    """Abstract Base Class for single-shot HTTP requests."""

    @abc.abstractmethod
    async def send(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        body: Optional[str] = None,
        timeout: float = 30.0,
    ) -> TransportResponse:
        """Sends one request and returns its 2xx response.

        Args:
            url: Absolute request URL, including query string.
            method: HTTP method.
            headers: Request headers.
            body: Optional request body, already serialized.
            timeout: Wall-clock budget in seconds for the whole call.

        Returns:
            The TransportResponse for a 2xx status.

        Raises:
            RateLimitedError: On HTTP 429.
            RequestTimeoutError: If the timeout elapses.
            HttpStatusError: On any other non-2xx status.
            TransportError: On network failure.
        """
        pass

    async def aclose(self) -> None:
        """Releases any pooled connections."""
        pass
