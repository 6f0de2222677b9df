"""Defines common Value Objects used across different domain contexts.

These objects represent simple values or concepts like URNs, progress
payloads, rate settings and bulk-run outcomes, ensuring consistency and
type safety between the services and the UI collaborator.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, NewType, Optional, TypedDict

# === Identity Context ===

# Using NewType for semantic clarity, although they are strings at runtime.
Urn = NewType("Urn", str)                          # e.g. urn:li:fsd_profile:ACoAA...
PublicIdentifier = NewType("PublicIdentifier", str)  # Profile slug, e.g. "jane-doe-123"

# === File System Context ===

FilePath = NewType("FilePath", str)  # Path to a contact export (.json or .csv)

# === Removal Progress Context ===

RemovalStatus = NewType("RemovalStatus", str)

STATUS_REMOVING = RemovalStatus("removing")
STATUS_REMOVED = RemovalStatus("removed")
STATUS_RATE_LIMITED = RemovalStatus("rate_limited")
STATUS_BATCH_PAUSE = RemovalStatus("batch_pause")
STATUS_FAILED = RemovalStatus("failed")
STATUS_CANCELLED = RemovalStatus("cancelled")
STATUS_DONE = RemovalStatus("done")

# Sentinel total for fetch progress while the server has not reported one.
TOTAL_UNKNOWN = 0

# --- Structured Data ---

class FetchProgress(TypedDict):
    """Progress of a paginated fetch; total is TOTAL_UNKNOWN until reported."""
    fetched: int
    total: int

class RemoveProgress(TypedDict):
    """Progress of a bulk removal run, pushed once per state change."""
    completed: int
    total: int
    current_item: Optional[str]
    status: RemovalStatus

@dataclass(frozen=True)
class RateSettings:
    """Value Object for the bulk-removal cadence. Durations are in seconds."""
    min_delay: float = 2.0
    max_delay: float = 5.0
    batch_size: int = 10
    batch_pause_min: float = 15.0
    batch_pause_max: float = 30.0
    jitter: float = 0.3
    backoff: float = 60.0

    def __post_init__(self) -> None:
        if self.batch_size <= 0:
            raise ValueError("batch_size must be positive.")
        if self.min_delay > self.max_delay or self.batch_pause_min > self.batch_pause_max:
            raise ValueError("Delay ranges must satisfy min <= max.")

@dataclass
class FailedItem:
    """One item a bulk run could not process, with the reason."""
    item: Any
    error: str

@dataclass
class BulkResult:
    """Outcome of one bulk-removal invocation. Not persisted."""
    completed: int = 0
    failed: List[FailedItem] = field(default_factory=list)
    cancelled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Converts the result to the command-surface response shape."""
        failed = []
        for entry in self.failed:
            item = entry.item.to_dict() if hasattr(entry.item, "to_dict") else entry.item
            failed.append({"item": item, "error": entry.error})
        return {"completed": self.completed, "failed": failed, "cancelled": self.cancelled}
