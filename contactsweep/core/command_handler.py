"""Command Handler: the command surface the front end talks to.

Receives commands from the main entry point (main.py) and delegates the work
to the application services (ContactFetchService, ContactRemovalService) and
the RateLimiter. Owns the session's DiscoveryState. Errors that reach this
layer are turned into `{"error": reason}` results; nothing raises to the
caller.
"""

import logging
from typing import Any, Callable, Dict, Optional, Sequence, Union

from contactsweep.core.services.fetch_service import ContactFetchService, FetchProgressCallback
from contactsweep.core.services.removal_service import ContactRemovalService
from contactsweep.domain.errors import ContactSweepError
from contactsweep.domain.interfaces.credentials import CredentialProvider
from contactsweep.domain.models.common import BulkResult, RemoveProgress
from contactsweep.domain.models.contact import ContactRecord, DiscoveryState
from contactsweep.infrastructure.resilience.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

RemoveProgressCallback = Callable[[RemoveProgress], None]


class CommandHandler:
    """Handles incoming commands and delegates to appropriate services."""

    def __init__(
        self,
        credentials: CredentialProvider,
        fetch_service: ContactFetchService,
        removal_service: ContactRemovalService,
        rate_limiter: RateLimiter,
        discovery_state: Optional[DiscoveryState] = None,
    ):
        """Initializes the CommandHandler with required services.

        The fetch and removal services must share `discovery_state`.
        """
        self.credentials = credentials
        self.fetch_service = fetch_service
        self.removal_service = removal_service
        self.rate_limiter = rate_limiter
        self.discovery_state = discovery_state if discovery_state is not None else fetch_service.discovery_state

    async def handle_fetch_all(self, progress: Optional[FetchProgressCallback] = None) -> Dict[str, Any]:
        """Handles 'fetch all'. Returns {"records": [...]} or {"error": reason}."""
        logger.info("Handling 'fetch all' command.")
        try:
            records = await self.fetch_service.fetch_all(progress)
        except ContactSweepError as e:
            logger.error(f"Fetch failed: {e}")
            return {"error": str(e)}
        except Exception as e:
            logger.error(f"Unexpected error during fetch: {e}", exc_info=True)
            return {"error": f"Unexpected error: {e}"}
        return {"records": records}

    async def handle_bulk_remove(
        self,
        records: Sequence[ContactRecord],
        progress: Optional[RemoveProgressCallback] = None,
    ) -> Union[BulkResult, Dict[str, Any]]:
        """Handles 'bulk remove'. Returns a BulkResult or {"error": reason}."""
        logger.info(f"Handling 'bulk remove' command for {len(records)} contact(s).")
        if self.rate_limiter.is_running:
            return {"error": "A bulk removal is already in progress."}
        if not self.credentials.is_authenticated():
            return {"error": "Not logged into LinkedIn. Provide your session cookies and try again."}

        unidentified = sum(1 for r in records if not r.is_removable)
        if unidentified:
            # These fail with AllStrategiesFailedError and are reported per item.
            logger.warning(f"{unidentified} record(s) carry no identifier and cannot be removed.")
        try:
            return await self.rate_limiter.run(list(records), self.removal_service.remove, progress)
        except Exception as e:
            logger.error(f"Bulk removal aborted: {e}", exc_info=True)
            return {"error": f"Bulk removal aborted: {e}"}

    def handle_pause(self) -> Dict[str, Any]:
        self.rate_limiter.pause()
        return {"success": True}

    def handle_resume(self) -> Dict[str, Any]:
        self.rate_limiter.resume()
        return {"success": True}

    def handle_cancel(self) -> Dict[str, Any]:
        self.rate_limiter.cancel()
        return {"success": True}

    def handle_check_auth(self) -> Dict[str, Any]:
        authenticated = self.credentials.is_authenticated()
        logger.info(f"Auth check: {'authenticated' if authenticated else 'not authenticated'}")
        return {"authenticated": authenticated}

    async def aclose(self) -> None:
        """Releases network resources held by the services."""
        await self.fetch_service.transport.aclose()
        if self.removal_service.transport is not self.fetch_service.transport:
            await self.removal_service.transport.aclose()
