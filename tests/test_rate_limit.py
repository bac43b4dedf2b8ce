"""Tests for the interval rate limiter."""

from unittest.mock import AsyncMock, patch

import pytest

from formbot.utils.rate_limit import IntervalRateLimiter


def test_negative_interval_rejected() -> None:
    """Test that a negative interval is a configuration error."""
    with pytest.raises(ValueError, match="interval_seconds"):
        IntervalRateLimiter(-1)


def test_token_available_before_first_acquire() -> None:
    """Test that a fresh limiter has nothing to wait for."""
    assert IntervalRateLimiter(5).seconds_until_available() == 0.0


@pytest.mark.asyncio
async def test_first_acquire_is_immediate() -> None:
    """Test that the first document is not delayed."""
    limiter = IntervalRateLimiter(5)

    with patch("formbot.utils.rate_limit.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        waited = await limiter.acquire()

    assert waited == 0.0
    mock_sleep.assert_not_called()


@pytest.mark.asyncio
async def test_second_acquire_waits_remaining_interval() -> None:
    """Test that the next acquire sleeps for what is left of the interval."""
    clock = iter([100.0, 100.25, 101.0])
    limiter = IntervalRateLimiter(1.0, clock=lambda: next(clock))

    with patch("formbot.utils.rate_limit.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        await limiter.acquire()
        waited = await limiter.acquire()

    assert waited == pytest.approx(0.75)
    mock_sleep.assert_awaited_once()
    assert mock_sleep.await_args.args[0] == pytest.approx(0.75)


@pytest.mark.asyncio
async def test_no_wait_once_interval_has_elapsed() -> None:
    """Test that slow documents are not delayed further."""
    clock = iter([100.0, 103.0, 103.0])
    limiter = IntervalRateLimiter(1.0, clock=lambda: next(clock))

    with patch("formbot.utils.rate_limit.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        await limiter.acquire()
        waited = await limiter.acquire()

    assert waited == 0.0
    mock_sleep.assert_not_called()


@pytest.mark.asyncio
async def test_zero_interval_never_sleeps() -> None:
    """Test that a zero delay disables pacing."""
    limiter = IntervalRateLimiter(0)

    with patch("formbot.utils.rate_limit.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        for _ in range(3):
            await limiter.acquire()

    mock_sleep.assert_not_called()


@pytest.mark.asyncio
async def test_reset_makes_token_available() -> None:
    """Test that reset clears the previous acquisition."""
    limiter = IntervalRateLimiter(60)
    await limiter.acquire()
    assert limiter.seconds_until_available() > 0

    limiter.reset()

    assert limiter.seconds_until_available() == 0.0
