import pytest

from app.main import FixedWindowRateLimiter


@pytest.mark.asyncio
async def test_fixed_window_blocks_after_max_requests():
    limiter = FixedWindowRateLimiter(window_sec=60, max_requests=3)

    results = [await limiter.hit("1.2.3.4", 1000.0) for _ in range(4)]

    assert [blocked for blocked, _ in results] == [False, False, False, True]
    assert results[-1][1] == 60


@pytest.mark.asyncio
async def test_window_resets_after_elapsed():
    limiter = FixedWindowRateLimiter(window_sec=60, max_requests=1)

    assert (await limiter.hit("client", 1000.0))[0] is False
    assert (await limiter.hit("client", 1010.0)) == (True, 50)
    assert (await limiter.hit("client", 1060.0))[0] is False


@pytest.mark.asyncio
async def test_identities_are_counted_separately():
    limiter = FixedWindowRateLimiter(window_sec=60, max_requests=1)

    assert (await limiter.hit("a", 1000.0))[0] is False
    assert (await limiter.hit("b", 1000.0))[0] is False
    assert (await limiter.hit("a", 1001.0))[0] is True
