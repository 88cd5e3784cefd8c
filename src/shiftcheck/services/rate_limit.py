"""Per-client request limits for the verification endpoints."""

import asyncio
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum

from fastapi import Request

# Proxy headers carrying the original client address, most trusted first
CLIENT_IP_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")


class RateLimitType(str, Enum):
    """Buckets with independent limits."""

    AUTH = "auth"
    VERIFY = "verify"


@dataclass(frozen=True)
class RateLimitConfig:
    requests: int
    window_seconds: int


RATE_LIMIT_CONFIG: dict[RateLimitType, RateLimitConfig] = {
    RateLimitType.AUTH: RateLimitConfig(requests=10, window_seconds=60),
    RateLimitType.VERIFY: RateLimitConfig(requests=30, window_seconds=60),
}


@dataclass
class RateLimitResult:
    """Outcome of recording one request against a bucket."""

    success: bool
    limit: int
    remaining: int
    reset: int  # Unix timestamp in seconds

    def headers(self) -> dict[str, str]:
        """``X-RateLimit-*`` headers, plus ``Retry-After`` when blocked."""
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset),
        }
        if not self.success:
            headers["Retry-After"] = str(max(0, self.reset - int(time.time())))
        return headers


class SlidingWindowLimiter:
    """In-process sliding window limiter.

    Each client key holds the timestamps of its requests inside the current
    window. Keys whose window has emptied are dropped on the next check, so
    memory stays proportional to recently active clients. State is local to
    one process.
    """

    def __init__(self, config: dict[RateLimitType, RateLimitConfig] = RATE_LIMIT_CONFIG):
        self.config = config
        self._hits: dict[tuple[RateLimitType, str], deque[float]] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._hits)

    async def hit(self, limit_type: RateLimitType, client: str) -> RateLimitResult:
        """Record a request from ``client`` and report whether it is allowed."""
        config = self.config[limit_type]
        now = time.time()

        async with self._lock:
            self._prune(now)
            hits = self._hits.setdefault((limit_type, client), deque())

            if len(hits) >= config.requests:
                return RateLimitResult(
                    success=False,
                    limit=config.requests,
                    remaining=0,
                    reset=int(hits[0] + config.window_seconds),
                )

            hits.append(now)
            return RateLimitResult(
                success=True,
                limit=config.requests,
                remaining=config.requests - len(hits),
                reset=int(hits[0] + config.window_seconds),
            )

    def _prune(self, now: float) -> None:
        for key in list(self._hits):
            hits = self._hits[key]
            cutoff = now - self.config[key[0]].window_seconds
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if not hits:
                del self._hits[key]

    def reset(self) -> None:
        """Forget all recorded requests."""
        self._hits.clear()


_limiter = SlidingWindowLimiter()


def get_rate_limiter() -> SlidingWindowLimiter:
    return _limiter


def get_client_ip(request: Request) -> str | None:
    """Best-effort client address, honouring common proxy headers."""
    for header in CLIENT_IP_HEADERS:
        value = request.headers.get(header)
        if value:
            # x-forwarded-for is a list, the first entry is the client
            return value.split(",")[0].strip()
    return request.client.host if request.client else None


async def check_rate_limit(request: Request, limit_type: RateLimitType) -> RateLimitResult:
    """Record a request against ``limit_type`` for the calling client."""
    client = get_client_ip(request) or "unknown"
    return await get_rate_limiter().hit(limit_type, client)
