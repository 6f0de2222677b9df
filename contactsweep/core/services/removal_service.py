"""Application Service for removing one contact.

Tries each applicable request shape in turn, remembered winner first. A 429
is global and aborts the whole attempt; every other failure just moves on
to the next shape.
"""

import logging
from typing import List, Sequence

from contactsweep.domain.errors import AllStrategiesFailedError, ContactSweepError, RateLimitedError
from contactsweep.domain.events.api_events import RemovalSucceeded, dispatch_event
from contactsweep.domain.interfaces.credentials import CredentialProvider
from contactsweep.domain.interfaces.transport import Transport
from contactsweep.domain.models.contact import ContactRecord, DiscoveryState
from contactsweep.infrastructure.voyager.endpoints import build_headers
from contactsweep.infrastructure.voyager.removal_strategies import REMOVAL_STRATEGIES, RemovalStrategy

logger = logging.getLogger(__name__)


class ContactRemovalService:
    """Removes single contacts using the ordered strategy set."""

    def __init__(
        self,
        transport: Transport,
        credentials: CredentialProvider,
        discovery_state: DiscoveryState,
        strategies: Sequence[RemovalStrategy] = REMOVAL_STRATEGIES,
        timeout: float = 15.0,
    ):
        self.transport = transport
        self.credentials = credentials
        self.discovery_state = discovery_state
        self.strategies = tuple(strategies)
        self.timeout = timeout

    def ordered_strategies(self) -> List[RemovalStrategy]:
        """Strategies in attempt order: remembered winner first, then the fixed order."""
        winner = self.discovery_state.removal_strategy
        first = [s for s in self.strategies if s.name == winner]
        return first + [s for s in self.strategies if s.name != winner]

    async def remove(self, record: ContactRecord) -> None:
        """Removes one contact.

        Raises:
            NotAuthenticatedError: If credentials are missing.
            RateLimitedError: On a 429 from any attempt.
            AllStrategiesFailedError: If no applicable strategy succeeded.
        """
        headers = build_headers(self.credentials)
        for strategy in self.ordered_strategies():
            request = strategy.build(record)
            if request is None:
                logger.debug(f"Strategy '{strategy.name}' not applicable to {record.label}")
                continue

            request_headers = dict(headers)
            if request.method == "POST":
                request_headers["content-type"] = "application/json"

            try:
                response = await self.transport.send(
                    request.url,
                    method=request.method,
                    headers=request_headers,
                    body=request.body,
                    timeout=self.timeout,
                )
            except RateLimitedError:
                raise
            except ContactSweepError as e:
                logger.info(f"Strategy '{strategy.name}' failed for {record.label}: {e}")
                continue

            if self.discovery_state.removal_strategy != strategy.name:
                logger.info(f"Remembering removal strategy '{strategy.name}'.")
            self.discovery_state.removal_strategy = strategy.name
            dispatch_event(RemovalSucceeded(
                item=record.label, strategy=strategy.name, status_code=response.status_code,
            ))
            return

        raise AllStrategiesFailedError(record.label)
