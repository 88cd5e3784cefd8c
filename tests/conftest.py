"""Pytest configuration and fixtures."""

import os
from collections.abc import AsyncGenerator

# Set test environment before importing app
os.environ["ENVIRONMENT"] = "test"
os.environ["VERIFICATION_SECRET"] = "test-verification-secret-0123456789abcdef"

import pytest
from httpx import ASGITransport, AsyncClient

from shiftcheck.main import app
from shiftcheck.services.rate_limit import get_rate_limiter
from shiftcheck.services.verification import TokenConfig

# 2023-11-14T22:13:20Z
FROZEN_NOW_MS = 1_700_000_000_000
DAY_MS = 24 * 60 * 60 * 1000


class FrozenClock:
    """Controllable millisecond clock for token tests."""

    def __init__(self, now_ms: int = FROZEN_NOW_MS):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Start every test with an empty rate limiter."""
    get_rate_limiter().reset()
    yield
    get_rate_limiter().reset()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def token_config() -> TokenConfig:
    return TokenConfig(secret=b"topsecret", ttl_ms=DAY_MS)


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
