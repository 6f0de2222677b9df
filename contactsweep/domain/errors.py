"""Error taxonomy shared by every layer.

Transient conditions (RateLimitedError, RequestTimeoutError) are recovered
close to where they occur. Exhaustion and authentication conditions reach the
command surface with a human-readable message. Parse misses are never errors.
"""

BODY_PREVIEW_CHARS = 500


class ContactSweepError(Exception):
    """Base class for all errors raised by contactsweep."""


class NotAuthenticatedError(ContactSweepError):
    """Raised when the CSRF token or session cookie is unavailable."""

    def __init__(self, message: str = "Not logged into LinkedIn: no JSESSIONID session cookie available."):
        super().__init__(message)


class RateLimitedError(ContactSweepError):
    """Raised when the server answers 429. Global, never strategy-specific."""

    def __init__(self, message: str = "Rate limited by LinkedIn (HTTP 429)."):
        super().__init__(message)


class RequestTimeoutError(ContactSweepError):
    """Raised when a request exceeds its wall-clock budget."""

    def __init__(self, url: str, timeout: float):
        self.url = url
        self.timeout = timeout
        super().__init__(f"Request timed out after {timeout:.1f}s: {url}")


class TransportError(ContactSweepError):
    """Raised for network failures and undecodable responses."""


class HttpStatusError(TransportError):
    """Raised for non-2xx responses other than 429."""

    def __init__(self, status_code: int, body: str = "", url: str = ""):
        self.status_code = status_code
        self.body = body[:BODY_PREVIEW_CHARS]
        self.url = url
        super().__init__(f"HTTP {status_code} from {url or 'server'}: {self.body}")


class NoWorkingEndpointError(ContactSweepError):
    """Raised when no catalog endpoint returned usable data."""

    def __init__(self, tried: int = 0):
        self.tried = tried
        super().__init__(
            f"No working LinkedIn API endpoint found after trying {tried} candidate(s). "
            "Re-run with --log-level DEBUG for diagnostic details."
        )


class AllStrategiesFailedError(ContactSweepError):
    """Raised when every applicable removal strategy failed for a record."""

    def __init__(self, record_name: str):
        self.record_name = record_name
        super().__init__(f"All removal strategies failed for {record_name}")


class ConfigurationError(ContactSweepError):
    """Raised when a configuration value cannot be used."""
