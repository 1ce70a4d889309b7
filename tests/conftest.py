"""Shared test fixtures."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from config.settings import Settings
from src.bootstrap import AppComponents, build_components
from src.main import create_app


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        WALLET_BACKEND="memory",
        PRICE_FEED_MODE="simulated",
        PRICE_SYMBOL="bitcoin",
        FEED_RETRY_DELAY_SECONDS=0.0,
        SYNC_RETRY_DELAY_SECONDS=0.01,
        TRADE_RATE_LIMIT_PER_MINUTE=0,
    )


@pytest.fixture
def components(test_settings: Settings) -> AppComponents:
    return build_components(test_settings)


@pytest.fixture
async def client(components: AppComponents) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints (lifespan not run: poller idle)."""
    app = create_app(components.settings, components)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def primed_client(
    components: AppComponents, client: AsyncClient
) -> AsyncClient:
    """Client whose price poller has observed one batch of samples."""
    await components.poller.poll_once()
    return client

