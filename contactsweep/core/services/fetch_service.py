"""Application Service for listing all contacts.

Finds a working list endpoint (discovery) and then pages through it until the
reported total is reached or the server stops returning data. Throttling and
timeouts mid-pagination are waited out and the same offset is retried; any
other failure ends pagination with whatever was collected so far.
"""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from contactsweep.domain.errors import (
    ContactSweepError,
    NoWorkingEndpointError,
    RateLimitedError,
    RequestTimeoutError,
)
from contactsweep.domain.events.api_events import (
    EndpointDiscovered,
    PageFetched,
    RateLimitBackoff,
    dispatch_event,
)
from contactsweep.domain.interfaces.credentials import CredentialProvider
from contactsweep.domain.interfaces.transport import Transport
from contactsweep.domain.models.common import TOTAL_UNKNOWN, FetchProgress
from contactsweep.domain.models.contact import ContactRecord, DiscoveryState, EndpointConfig
from contactsweep.infrastructure.voyager.endpoints import ENDPOINT_CATALOG, PAGE_SIZE, build_headers
from contactsweep.infrastructure.voyager.response_parser import extract_total, parse_connections

logger = logging.getLogger(__name__)

PLACEHOLDER_TOTAL = 10000
RATE_LIMIT_COOLDOWN = 30.0
TIMEOUT_COOLDOWN = 5.0
PAGE_DELAY_RANGE = (0.3, 0.5)
MAX_EMPTY_PAGES = 2

FetchProgressCallback = Callable[[FetchProgress], None]


@dataclass
class PageResult:
    """Parsed records of one page plus the total the server reported (0 if none)."""
    records: List[ContactRecord] = field(default_factory=list)
    total: int = 0

    @property
    def has_data(self) -> bool:
        return bool(self.records) or self.total > 0


class ContactFetchService:
    """Discovers a list endpoint and paginates it."""

    def __init__(
        self,
        transport: Transport,
        credentials: CredentialProvider,
        discovery_state: DiscoveryState,
        catalog: Sequence[EndpointConfig] = ENDPOINT_CATALOG,
        page_size: int = PAGE_SIZE,
        list_timeout: float = 30.0,
        rate_limit_cooldown: float = RATE_LIMIT_COOLDOWN,
        timeout_cooldown: float = TIMEOUT_COOLDOWN,
        page_delay: Tuple[float, float] = PAGE_DELAY_RANGE,
        placeholder_total: int = PLACEHOLDER_TOTAL,
        rng: Optional[random.Random] = None,
    ):
        """Initializes the ContactFetchService.

        Args:
            transport: Sends the list requests.
            credentials: Supplies the CSRF token and cookie header.
            discovery_state: Session memo shared with the removal service.
            catalog: Candidate endpoints, most likely first.
            page_size: Offset increment between pages.
            list_timeout: Per-request budget in seconds.
            rate_limit_cooldown: Wait before retrying a page after a 429.
            timeout_cooldown: Wait before retrying a page after a timeout.
            page_delay: (min, max) random delay between successful pages.
            placeholder_total: Ceiling used until the server reports a total.
            rng: Random source for the page delay.
        """
        self.transport = transport
        self.credentials = credentials
        self.discovery_state = discovery_state
        self.catalog = tuple(catalog)
        self.page_size = page_size
        self.list_timeout = list_timeout
        self.rate_limit_cooldown = rate_limit_cooldown
        self.timeout_cooldown = timeout_cooldown
        self.page_delay = page_delay
        self.placeholder_total = placeholder_total
        self._rng = rng or random.Random()
        logger.info(f"ContactFetchService initialized with {len(self.catalog)} candidate endpoint(s).")

    async def fetch_page(self, config: EndpointConfig, start: int, headers: Dict[str, str]) -> PageResult:
        """Fetches and parses one page. Transport errors propagate."""
        response = await self.transport.send(
            config.url_for(start), method="GET", headers=headers, timeout=self.list_timeout,
        )
        payload = response.json()
        return PageResult(records=parse_connections(payload), total=extract_total(payload))

    async def discover(self) -> PageResult:
        """Returns page zero from the first endpoint that yields data.

        A previously committed endpoint is tried first. The winner is stored in
        the discovery state.

        Raises:
            NotAuthenticatedError: Before any request, if credentials are missing.
            RateLimitedError: As soon as any candidate answers 429.
            NoWorkingEndpointError: If no candidate yields data.
        """
        headers = build_headers(self.credentials)
        remembered = self.discovery_state.endpoint

        if remembered is not None:
            try:
                page = await self.fetch_page(remembered, 0, headers)
            except RateLimitedError:
                raise
            except ContactSweepError as e:
                logger.warning(f"Remembered endpoint '{remembered.name}' failed ({e}); rescanning catalog.")
            else:
                if page.has_data:
                    logger.info(f"Using remembered endpoint '{remembered.name}'.")
                    dispatch_event(EndpointDiscovered(
                        endpoint=remembered.name, records=len(page.records), reported_total=page.total, warm=True,
                    ))
                    return page
                logger.warning(f"Remembered endpoint '{remembered.name}' returned no data; rescanning catalog.")

        tried = 0
        for config in self.catalog:
            if remembered is not None and config == remembered:
                continue
            tried += 1
            logger.debug(f"Trying endpoint '{config.name}'")
            try:
                page = await self.fetch_page(config, 0, headers)
            except RateLimitedError:
                logger.warning(f"Rate limited while probing '{config.name}'; aborting discovery.")
                raise
            except ContactSweepError as e:
                logger.info(f"Endpoint '{config.name}' failed: {e}")
                continue

            if not page.has_data:
                logger.info(f"Endpoint '{config.name}' responded but yielded no contacts.")
                continue

            logger.info(f"Endpoint '{config.name}' works: {len(page.records)} contacts, total {page.total}.")
            self.discovery_state.endpoint = config
            dispatch_event(EndpointDiscovered(
                endpoint=config.name, records=len(page.records), reported_total=page.total,
            ))
            return page

        raise NoWorkingEndpointError(tried + (1 if remembered is not None else 0))

    def _delay(self) -> float:
        low, high = self.page_delay
        return self._rng.uniform(low, high)

    async def fetch_all(self, progress: Optional[FetchProgressCallback] = None) -> List[ContactRecord]:
        """Fetches every contact, reporting (fetched, total) after each page.

        The reported total is 0 while the server has not reported one.

        Raises:
            NotAuthenticatedError, RateLimitedError, NoWorkingEndpointError:
                From discovery only. Failures after page zero never raise.
        """
        first_page = await self.discover()
        config = self.discovery_state.endpoint
        headers = build_headers(self.credentials)

        records: List[ContactRecord] = list(first_page.records)
        known_total = first_page.total
        estimate = known_total or self.placeholder_total

        def report() -> None:
            if progress is not None:
                progress(FetchProgress(fetched=len(records), total=known_total or TOTAL_UNKNOWN))

        report()
        if not first_page.records:
            logger.info("Page zero is empty; nothing more to fetch.")
            return records

        start = self.page_size
        empty_pages = 0
        while start < estimate:
            await asyncio.sleep(self._delay())
            try:
                page = await self.fetch_page(config, start, headers)
            except RateLimitedError:
                logger.warning(f"Rate limited at offset {start}; waiting {self.rate_limit_cooldown:.0f}s.")
                dispatch_event(RateLimitBackoff(operation="fetch", delay_seconds=self.rate_limit_cooldown, start=start))
                await asyncio.sleep(self.rate_limit_cooldown)
                continue
            except RequestTimeoutError:
                logger.warning(f"Timed out at offset {start}; waiting {self.timeout_cooldown:.0f}s.")
                await asyncio.sleep(self.timeout_cooldown)
                continue
            except ContactSweepError as e:
                logger.error(f"Pagination stopped at offset {start}: {e}")
                break

            dispatch_event(PageFetched(
                endpoint=config.name, start=start, records=len(page.records), reported_total=page.total,
            ))
            if page.total > known_total:
                if not known_total:
                    logger.info(f"Server reported total {page.total}.")
                known_total = page.total
                estimate = known_total

            if page.records:
                empty_pages = 0
                records.extend(page.records)
            else:
                empty_pages += 1
            report()

            if empty_pages >= MAX_EMPTY_PAGES:
                logger.info(f"{MAX_EMPTY_PAGES} consecutive empty pages at offset {start}; stopping.")
                break
            start += self.page_size

        logger.info(f"Fetched {len(records)} contacts (reported total {known_total or 'unknown'}).")
        return records
