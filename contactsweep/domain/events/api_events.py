"""Domain Events related to API calls and resilience.

Examples include events for when an endpoint is discovered, a page is
fetched, a backoff is scheduled, or a removal succeeds or fails.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)

# Base Event Class
@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass

# --- Acquisition Events ---

@dataclass
class EndpointDiscovered(DomainEvent):
    """Event triggered when a catalog endpoint is committed for the session."""
    endpoint: str
    records: int
    reported_total: int
    warm: bool = False
    timestamp: float = field(default_factory=time.time)

@dataclass
class PageFetched(DomainEvent):
    """Event triggered after each page of contacts is parsed."""
    endpoint: str
    start: int
    records: int
    reported_total: int
    timestamp: float = field(default_factory=time.time)

# --- Resilience Events ---

@dataclass
class RateLimitBackoff(DomainEvent):
    """Event triggered when a 429 forces a cooldown before retrying."""
    operation: str  # 'fetch' or 'remove'
    delay_seconds: float
    start: Optional[int] = None
    item: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

# --- Mutation Events ---

@dataclass
class RemovalSucceeded(DomainEvent):
    """Event triggered when a removal strategy returns a 2xx response."""
    item: str
    strategy: str
    status_code: int
    timestamp: float = field(default_factory=time.time)

@dataclass
class RemovalFailed(DomainEvent):
    """Event triggered when an item is recorded as failed in a bulk run."""
    item: str
    error_message: str
    timestamp: float = field(default_factory=time.time)


def dispatch_event(event: DomainEvent) -> None:
    """Publishes a domain event. Events currently go to the DEBUG log only."""
    logger.debug(f"EVENT: {event}")
