import asyncio
import random
from dataclasses import replace

import pytest

from contactsweep.domain.errors import AllStrategiesFailedError, RateLimitedError
from contactsweep.domain.models.common import RateSettings
from contactsweep.infrastructure.resilience.rate_limiter import (
    STATE_CANCELLED,
    STATE_COMPLETED,
    STATE_IDLE,
    RateLimiter,
)


def _statuses(events):
    return [e["status"] for e in events]


@pytest.mark.parametrize("count,batch_size", [(1, 10), (10, 10), (11, 10), (25, 10), (7, 3)])
def test_counts_and_batch_pauses(instant_rate_settings, count, batch_size):
    limiter = RateLimiter(replace(instant_rate_settings, batch_size=batch_size))
    events = []

    async def remove_one(item):
        return None

    result = asyncio.run(limiter.run(list(range(count)), remove_one, events.append))

    assert result.completed == count
    assert result.failed == []
    assert result.cancelled is False
    statuses = _statuses(events)
    assert statuses.count("removed") == count
    assert statuses.count("batch_pause") == (count - 1) // batch_size
    assert statuses[-1] == "done"
    assert limiter.state == STATE_COMPLETED


def test_items_processed_in_order(instant_rate_settings):
    limiter = RateLimiter(instant_rate_settings)
    seen = []

    async def remove_one(item):
        seen.append(item)

    asyncio.run(limiter.run(["a", "b", "c"], remove_one))
    assert seen == ["a", "b", "c"]


def test_cancel_after_k_items(instant_rate_settings):
    limiter = RateLimiter(instant_rate_settings)
    events = []
    calls = []

    async def remove_one(item):
        calls.append(item)
        if len(calls) == 3:
            limiter.cancel()

    result = asyncio.run(limiter.run(list(range(10)), remove_one, events.append))

    assert calls == [0, 1, 2]
    assert result.completed == 3
    assert result.cancelled is True
    assert _statuses(events)[-1] == "cancelled"
    assert "done" not in _statuses(events)
    assert limiter.state == STATE_CANCELLED


def test_cancel_during_last_item_still_reports_cancelled(instant_rate_settings):
    limiter = RateLimiter(instant_rate_settings)
    events = []

    async def remove_one(item):
        limiter.cancel()

    result = asyncio.run(limiter.run(["only"], remove_one, events.append))
    assert result.completed == 1
    assert result.cancelled is True
    assert _statuses(events) == ["removing", "removed", "cancelled"]


def test_rate_limited_then_success_retries_once(instant_rate_settings):
    limiter = RateLimiter(instant_rate_settings)
    events = []
    attempts = {"a": 0}

    async def remove_one(item):
        attempts[item] += 1
        if attempts[item] == 1:
            raise RateLimitedError()

    result = asyncio.run(limiter.run(["a"], remove_one, events.append))

    assert attempts["a"] == 2
    assert result.completed == 1
    assert _statuses(events) == ["removing", "rate_limited", "removed", "done"]


def test_rate_limited_twice_fails_with_retry_reason(instant_rate_settings):
    limiter = RateLimiter(instant_rate_settings)
    attempts = []

    async def remove_one(item):
        attempts.append(item)
        if len(attempts) == 1:
            raise RateLimitedError()
        raise AllStrategiesFailedError("Ada")

    result = asyncio.run(limiter.run(["a", "b"], remove_one))

    assert attempts == ["a", "a", "b"]
    assert result.completed == 0
    assert [f.item for f in result.failed] == ["a", "b"]
    assert result.failed[0].error == "All removal strategies failed for Ada"


def test_other_failures_are_not_retried(instant_rate_settings):
    limiter = RateLimiter(instant_rate_settings)
    calls = []

    async def remove_one(item):
        calls.append(item)
        if item == "bad":
            raise ValueError("boom")

    events = []
    result = asyncio.run(limiter.run(["ok", "bad", "ok2"], remove_one, events.append))

    assert calls == ["ok", "bad", "ok2"]
    assert result.completed == 2
    assert result.failed[0].error == "boom"
    assert "failed" in _statuses(events)


def test_pause_blocks_until_resume(instant_rate_settings):
    limiter = RateLimiter(instant_rate_settings)
    calls = []

    async def remove_one(item):
        calls.append(item)
        if item == 0:
            limiter.pause()

    async def scenario():
        task = asyncio.create_task(limiter.run([0, 1, 2], remove_one))
        for _ in range(20):
            await asyncio.sleep(0)
        paused_calls = list(calls)
        paused_state = limiter.state
        limiter.resume()
        result = await task
        return paused_calls, paused_state, result

    paused_calls, paused_state, result = asyncio.run(scenario())
    assert paused_calls == [0]
    assert paused_state == "paused"
    assert result.completed == 3


def test_cancel_releases_pause(instant_rate_settings):
    limiter = RateLimiter(instant_rate_settings)

    async def remove_one(item):
        limiter.pause()

    async def scenario():
        task = asyncio.create_task(limiter.run([0, 1], remove_one))
        for _ in range(10):
            await asyncio.sleep(0)
        limiter.cancel()
        return await asyncio.wait_for(task, timeout=1)

    result = asyncio.run(scenario())
    assert result.completed == 1
    assert result.cancelled is True


def test_cancel_interrupts_long_delay():
    settings = RateSettings(min_delay=60, max_delay=60, batch_pause_min=60, batch_pause_max=60, jitter=0, backoff=60)
    limiter = RateLimiter(settings)

    async def remove_one(item):
        return None

    async def scenario():
        task = asyncio.create_task(limiter.run([0, 1], remove_one))
        await asyncio.sleep(0.05)
        limiter.cancel()
        return await asyncio.wait_for(task, timeout=1)

    result = asyncio.run(scenario())
    assert result.completed == 1
    assert result.cancelled is True


def test_delays_stay_within_jittered_bounds():
    settings = RateSettings(min_delay=2, max_delay=5, batch_pause_min=15, batch_pause_max=30, jitter=0.3)
    limiter = RateLimiter(settings, rng=random.Random(7))
    for _ in range(200):
        assert 2 * 0.7 <= limiter.item_delay() <= 5 * 1.3
        assert 15 * 0.7 <= limiter.batch_pause() <= 30 * 1.3


def test_invalid_settings_rejected():
    with pytest.raises(ValueError):
        RateSettings(batch_size=0)
    with pytest.raises(ValueError):
        RateSettings(min_delay=5, max_delay=1)


def test_error_escaping_run_returns_limiter_to_idle(instant_rate_settings):
    limiter = RateLimiter(instant_rate_settings)
    removed = []

    async def remove_one(item):
        removed.append(item)

    def failing_progress(progress):
        if progress["status"] == "removing":
            raise RuntimeError("progress sink closed")

    with pytest.raises(RuntimeError):
        asyncio.run(limiter.run(["a", "b"], remove_one, failing_progress))
    assert removed == []
    assert limiter.state == STATE_IDLE
    assert not limiter.is_running

    result = asyncio.run(limiter.run(["c"], remove_one))
    assert result.completed == 1
    assert limiter.state == STATE_COMPLETED
