"""Implementation of the bulk-removal rate limiter.

Runs one mutation at a time with randomized, jittered delays between items
and a longer pause every `batch_size` items, so the cadence never looks
mechanical. A 429 triggers one backoff and exactly one retry of the same
item. The run can be paused, resumed and cancelled from outside the loop;
every sleep and every pause wakes up immediately on cancellation.
"""

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Optional, Sequence

from contactsweep.domain.errors import ContactSweepError, RateLimitedError
from contactsweep.domain.events.api_events import RateLimitBackoff, RemovalFailed, dispatch_event
from contactsweep.domain.models.common import (
    STATUS_BATCH_PAUSE,
    STATUS_CANCELLED,
    STATUS_DONE,
    STATUS_FAILED,
    STATUS_RATE_LIMITED,
    STATUS_REMOVED,
    STATUS_REMOVING,
    BulkResult,
    FailedItem,
    RateSettings,
    RemovalStatus,
    RemoveProgress,
)

logger = logging.getLogger(__name__)

# Scheduler states
STATE_IDLE = "idle"
STATE_RUNNING = "running"
STATE_PAUSED = "paused"
STATE_COMPLETED = "completed"
STATE_CANCELLED = "cancelled"

ProgressCallback = Callable[[RemoveProgress], None]


def _default_label(item: Any) -> str:
    return str(getattr(item, "label", item))


class RateLimiter:
    """Pausable, resumable, cancellable sequential executor."""

    def __init__(
        self,
        settings: Optional[RateSettings] = None,
        rng: Optional[random.Random] = None,
    ):
        """Initializes the rate limiter.

        Args:
            settings: Delay and batch configuration. Defaults to RateSettings().
            rng: Random source for delays (tests pass a seeded one).
        """
        self.settings = settings or RateSettings()
        self._rng = rng or random.Random()
        self._paused = False
        self._cancelled = False
        self._state = STATE_IDLE
        # Created per run so they bind to the loop that runs it.
        self._resume_event: Optional[asyncio.Event] = None
        self._cancel_event: Optional[asyncio.Event] = None
        logger.info(
            f"RateLimiter initialized: delay {self.settings.min_delay}-{self.settings.max_delay}s, "
            f"batch of {self.settings.batch_size} then {self.settings.batch_pause_min}-{self.settings.batch_pause_max}s, "
            f"jitter {self.settings.jitter:.0%}, backoff {self.settings.backoff}s"
        )

    # --- State & control ---

    @property
    def state(self) -> str:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state in (STATE_RUNNING, STATE_PAUSED)

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def pause(self) -> None:
        """Suspends the run before the next item starts."""
        self._paused = True
        if self._resume_event is not None:
            self._resume_event.clear()
        logger.info("Removal paused.")

    def resume(self) -> None:
        """Releases a pause."""
        self._paused = False
        if self._resume_event is not None:
            self._resume_event.set()
        logger.info("Removal resumed.")

    def cancel(self) -> None:
        """Stops the run at the next check point. Also releases any pause."""
        self._cancelled = True
        self._paused = False
        if self._resume_event is not None:
            self._resume_event.set()
        if self._cancel_event is not None:
            self._cancel_event.set()
        logger.info("Removal cancellation requested.")

    # --- Delays ---

    def _add_jitter(self, base: float) -> float:
        return max(0.0, base + base * self.settings.jitter * self._rng.uniform(-1.0, 1.0))

    def item_delay(self) -> float:
        """Delay between two items, in seconds."""
        return self._add_jitter(self._rng.uniform(self.settings.min_delay, self.settings.max_delay))

    def batch_pause(self) -> float:
        """Pause after a full batch, in seconds."""
        return self._add_jitter(self._rng.uniform(self.settings.batch_pause_min, self.settings.batch_pause_max))

    async def sleep(self, seconds: float) -> None:
        """Sleeps for `seconds`, returning early if the run is cancelled."""
        if self._cancel_event is None or seconds <= 0:
            await asyncio.sleep(0)
            return
        try:
            await asyncio.wait_for(self._cancel_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass  # the full duration elapsed

    async def _wait_while_paused(self) -> None:
        while self._paused and not self._cancelled:
            self._state = STATE_PAUSED
            await self._resume_event.wait()
        self._state = STATE_RUNNING

    # --- Execution ---

    async def run(
        self,
        items: Sequence[Any],
        remove_one: Callable[[Any], Awaitable[Any]],
        on_progress: Optional[ProgressCallback] = None,
        label: Callable[[Any], str] = _default_label,
    ) -> BulkResult:
        """Processes `items` strictly in order, one at a time.

        Args:
            items: Items to process.
            remove_one: Coroutine function performing one mutation.
            on_progress: Receives one RemoveProgress per state change.
            label: Renders an item for progress reports.

        Returns:
            BulkResult with completed count, failures and cancelled flag.
        """
        try:
            return await self._process(items, remove_one, on_progress, label)
        finally:
            # An escaped error must not leave the limiter looking busy
            if self.is_running:
                self._state = STATE_IDLE

    async def _process(
        self,
        items: Sequence[Any],
        remove_one: Callable[[Any], Awaitable[Any]],
        on_progress: Optional[ProgressCallback],
        label: Callable[[Any], str],
    ) -> BulkResult:
        self._paused = False
        self._cancelled = False
        self._resume_event = asyncio.Event()
        self._resume_event.set()
        self._cancel_event = asyncio.Event()
        self._state = STATE_RUNNING

        result = BulkResult()
        total = len(items)

        def report(current_item: Optional[str], status: RemovalStatus) -> None:
            if on_progress is not None:
                on_progress(RemoveProgress(
                    completed=result.completed, total=total, current_item=current_item, status=status,
                ))

        def record_failure(item: Any, name: str, error: Exception) -> None:
            result.failed.append(FailedItem(item=item, error=str(error)))
            dispatch_event(RemovalFailed(item=name, error_message=str(error)))
            if isinstance(error, ContactSweepError):
                logger.warning(f"Failed to remove {name}: {error}")
            else:
                logger.error(f"Unexpected error removing {name}: {error}", exc_info=error)
            report(name, STATUS_FAILED)

        logger.info(f"Starting bulk removal of {total} item(s).")
        for index, item in enumerate(items):
            if self._cancelled:
                return self._finish_cancelled(result, report)
            await self._wait_while_paused()
            if self._cancelled:
                return self._finish_cancelled(result, report)

            name = label(item)
            report(name, STATUS_REMOVING)
            try:
                await remove_one(item)
                result.completed += 1
                report(name, STATUS_REMOVED)
            except RateLimitedError:
                report(name, STATUS_RATE_LIMITED)
                logger.warning(f"Rate limited while removing {name}; backing off {self.settings.backoff:.0f}s")
                dispatch_event(RateLimitBackoff(operation="remove", delay_seconds=self.settings.backoff, item=name))
                await self.sleep(self.settings.backoff)
                if not self._cancelled:
                    try:
                        await remove_one(item)
                        result.completed += 1
                        report(name, STATUS_REMOVED)
                    except Exception as retry_error:
                        record_failure(item, name, retry_error)
            except Exception as error:
                record_failure(item, name, error)

            if index < total - 1 and not self._cancelled:
                processed = index + 1
                if processed % self.settings.batch_size == 0:
                    report(None, STATUS_BATCH_PAUSE)
                    delay = self.batch_pause()
                    logger.info(f"Batch of {self.settings.batch_size} done; pausing {delay:.1f}s")
                    await self.sleep(delay)
                else:
                    await self.sleep(self.item_delay())

        if self._cancelled:
            return self._finish_cancelled(result, report)

        self._state = STATE_COMPLETED
        report(None, STATUS_DONE)
        logger.info(f"Bulk removal done: {result.completed} removed, {len(result.failed)} failed.")
        return result

    def _finish_cancelled(self, result: BulkResult, report: Callable[[Optional[str], RemovalStatus], None]) -> BulkResult:
        result.cancelled = True
        self._state = STATE_CANCELLED
        report(None, STATUS_CANCELLED)
        logger.info(f"Bulk removal cancelled: {result.completed} removed, {len(result.failed)} failed.")
        return result
