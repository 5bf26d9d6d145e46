"""Unit tests for the token bucket rate limiter."""

import pytest
from fastapi import HTTPException

from studio_space.api.middleware.rate_limiter import RateLimiter


@pytest.mark.unit
class TestRateLimiter:
    """Unit tests for RateLimiter."""

    @pytest.mark.asyncio
    async def test_allows_burst_then_rejects(self) -> None:
        limiter = RateLimiter(requests_per_minute=6, burst_size=3)

        for _ in range(3):
            await limiter.check_rate_limit("10.0.0.1")

        with pytest.raises(HTTPException) as exc_info:
            await limiter.check_rate_limit("10.0.0.1")

        assert exc_info.value.status_code == 429
        assert exc_info.value.headers["Retry-After"] == "10"

    @pytest.mark.asyncio
    async def test_clients_have_separate_buckets(self) -> None:
        limiter = RateLimiter(requests_per_minute=6, burst_size=1)

        await limiter.check_rate_limit("10.0.0.1")
        await limiter.check_rate_limit("10.0.0.2")

        with pytest.raises(HTTPException):
            await limiter.check_rate_limit("10.0.0.1")

    @pytest.mark.asyncio
    async def test_stats_count_requests(self) -> None:
        limiter = RateLimiter(requests_per_minute=60, burst_size=5)

        assert limiter.get_client_stats("10.0.0.9")["total_requests"] == 0

        await limiter.check_rate_limit("10.0.0.9")
        await limiter.check_rate_limit("10.0.0.9")

        stats = limiter.get_client_stats("10.0.0.9")
        assert stats["total_requests"] == 2
        assert stats["limit_per_minute"] == 60
        assert stats["tokens_available"] == 3

    @pytest.mark.asyncio
    async def test_tokens_refill_over_time(self) -> None:
        now = [1000.0]
        limiter = RateLimiter(requests_per_minute=6, burst_size=1, clock=lambda: now[0])

        await limiter.check_rate_limit("10.0.0.3")
        with pytest.raises(HTTPException):
            await limiter.check_rate_limit("10.0.0.3")

        now[0] += 10
        await limiter.check_rate_limit("10.0.0.3")

    @pytest.mark.asyncio
    async def test_idle_buckets_are_swept(self) -> None:
        now = [0.0]
        limiter = RateLimiter(cleanup_interval=60, clock=lambda: now[0])
        await limiter.check_rate_limit("10.0.0.4")

        now[0] += 200
        await limiter.check_rate_limit("10.0.0.5")

        assert "10.0.0.4" not in limiter.buckets
        assert "10.0.0.5" in limiter.buckets
