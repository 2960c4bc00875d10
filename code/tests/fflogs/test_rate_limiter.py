import asyncio
import time
from unittest.mock import AsyncMock, patch

from kansoku.fflogs.rate_limiter import RateLimiter


def _usage(spent, reset_in=3500, limit=3600):
    return {
        "pointsSpentThisHour": spent,
        "limitPerHour": limit,
        "pointsResetIn": reset_in,
    }


def test_initial_state():
    rl = RateLimiter()
    assert rl.points_remaining == rl.limit_per_hour
    assert rl.is_safe


def test_update_state():
    rl = RateLimiter()
    rl.update(_usage(100))
    assert rl.points_remaining == 3500
    assert rl.limit_per_hour == 3600


def test_is_not_safe_near_limit():
    rl = RateLimiter(safety_margin=0.1)
    rl.update(_usage(3500, reset_in=300))
    assert not rl.is_safe


async def test_wait_if_needed_returns_immediately_when_safe():
    rl = RateLimiter()
    rl.update(_usage(100))
    with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        await rl.wait_if_needed()
        mock_sleep.assert_not_called()


async def test_wait_if_needed_sleeps_when_not_safe():
    rl = RateLimiter(safety_margin=0.1)
    rl.update(_usage(3500, reset_in=300))
    with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        await rl.wait_if_needed()
        mock_sleep.assert_called_once_with(300)


async def test_wait_resets_spent_points_after_sleeping():
    rl = RateLimiter()
    rl.update(_usage(3500, reset_in=300))
    with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        await rl.wait_if_needed()
        await rl.wait_if_needed()
    assert mock_sleep.call_count == 1
    assert rl.is_safe


class TestSleepBounds:
    async def test_wait_sleeps_capped_duration(self, monkeypatch):
        slept = []

        async def mock_sleep(duration):
            slept.append(duration)

        monkeypatch.setattr(asyncio, "sleep", mock_sleep)

        rl = RateLimiter()
        rl.update(_usage(3500, reset_in=7200))
        await rl.wait_if_needed()
        assert slept == [RateLimiter.MAX_SLEEP_SECONDS]

    async def test_wait_floors_at_one_second(self, monkeypatch):
        slept = []

        async def mock_sleep(duration):
            slept.append(duration)

        monkeypatch.setattr(asyncio, "sleep", mock_sleep)

        rl = RateLimiter()
        rl.update(_usage(3500, reset_in=0))
        await rl.wait_if_needed()
        assert slept == [1]


class TestMarkThrottled:
    def test_uses_retry_after(self):
        rl = RateLimiter()
        before = time.monotonic()
        rl.mark_throttled(retry_after=120)
        assert rl._throttled_until >= before + 119

    def test_falls_back_to_reset_in(self):
        rl = RateLimiter()
        rl.update(_usage(3500, reset_in=300))
        before = time.monotonic()
        rl.mark_throttled(retry_after=None)
        assert rl._throttled_until >= before + 299

    def test_fallback_60s(self):
        rl = RateLimiter()
        before = time.monotonic()
        rl.mark_throttled(retry_after=None)
        assert before + 59 <= rl._throttled_until <= before + 61

    def test_capped_at_max(self):
        rl = RateLimiter()
        before = time.monotonic()
        rl.mark_throttled(retry_after=9999)
        assert rl._throttled_until <= before + RateLimiter.MAX_SLEEP_SECONDS + 1

    async def test_throttle_takes_priority_over_points(self, monkeypatch):
        slept = []

        async def mock_sleep(duration):
            slept.append(duration)

        monkeypatch.setattr(asyncio, "sleep", mock_sleep)

        rl = RateLimiter()
        rl.update(_usage(3500, reset_in=300))
        rl._throttled_until = time.monotonic() + 5

        await rl.wait_if_needed()
        assert len(slept) == 1
        assert slept[0] < 10
        assert rl._throttled_until == 0.0
