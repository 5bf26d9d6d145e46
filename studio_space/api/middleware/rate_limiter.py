"""Rate limiting for the credential endpoints (signup, login, Google sign-in)."""

import math
import os
import time
from collections.abc import Callable

from fastapi import HTTPException, Request, status


class RateLimiter:
    """In-memory token bucket per client key.

    Each key starts with ``burst_size`` tokens and regains
    ``requests_per_minute`` tokens per minute up to that ceiling. State lives
    in the process, so each worker enforces its own budget.
    """

    def __init__(
        self,
        requests_per_minute: int = 10,
        burst_size: int = 5,
        cleanup_interval: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize rate limiter.

        Args:
            requests_per_minute: Sustained rate allowed per client
            burst_size: Requests a fresh client may make back to back
            cleanup_interval: Seconds between sweeps of idle buckets
            clock: Monotonic time source, replaceable in tests
        """
        self.requests_per_minute = requests_per_minute
        self.burst_size = burst_size
        self.cleanup_interval = cleanup_interval
        self.clock = clock

        # client key -> (tokens, last refill, requests served)
        self.buckets: dict[str, tuple[float, float, int]] = {}
        self.last_cleanup = clock()

    @property
    def retry_after(self) -> int:
        """Seconds until one token is back."""
        return math.ceil(60 / self.requests_per_minute)

    def _refill(self, client_key: str, now: float) -> tuple[float, int]:
        tokens, refilled_at, served = self.buckets.get(
            client_key, (float(self.burst_size), now, 0)
        )
        earned = (now - refilled_at) * self.requests_per_minute / 60.0
        tokens = min(tokens + earned, float(self.burst_size))
        self.buckets[client_key] = (tokens, now, served)
        return tokens, served

    def _sweep(self, now: float) -> None:
        # A bucket idle this long is full again; dropping it changes nothing
        idle_cutoff = now - self.cleanup_interval * 2
        for client_key in [k for k, (_, at, _) in self.buckets.items() if at < idle_cutoff]:
            del self.buckets[client_key]
        self.last_cleanup = now

    async def check_rate_limit(self, client_key: str) -> None:
        """Spend one token for ``client_key``.

        Raises:
            HTTPException: 429 with a Retry-After header when the bucket is empty
        """
        now = self.clock()
        if now - self.last_cleanup > self.cleanup_interval:
            self._sweep(now)

        tokens, served = self._refill(client_key, now)
        if tokens < 1.0:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail={
                    "error": "Rate limit exceeded",
                    "message": "Too many attempts, please try again later",
                    "limit_per_minute": self.requests_per_minute,
                    "retry_after": self.retry_after,
                },
                headers={"Retry-After": str(self.retry_after)},
            )

        self.buckets[client_key] = (tokens - 1.0, now, served + 1)

    def get_client_stats(self, client_key: str) -> dict:
        """Remaining budget and lifetime request count for a client."""
        if client_key not in self.buckets:
            return {
                "tokens_available": self.burst_size,
                "total_requests": 0,
                "limit_per_minute": self.requests_per_minute,
            }

        tokens, served = self._refill(client_key, self.clock())
        return {
            "tokens_available": int(tokens),
            "total_requests": served,
            "limit_per_minute": self.requests_per_minute,
        }


rate_limiter = RateLimiter(
    requests_per_minute=int(os.getenv("AUTH_RATE_LIMIT_PER_MINUTE", "10")),
    burst_size=int(os.getenv("AUTH_RATE_LIMIT_BURST", "5")),
)


async def check_rate_limit(request: Request) -> None:
    """FastAPI dependency limiting attempts per client IP.

    Example:
        @router.post("/login", dependencies=[Depends(check_rate_limit)])
        async def login(...):
            ...
    """
    # Credential endpoints are unauthenticated, so key on the client IP
    client_key = request.client.host if request.client else "unknown"
    await rate_limiter.check_rate_limit(client_key)
