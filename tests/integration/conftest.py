"""Integration-test fixtures.

Pre-condition: a PostgreSQL reachable at DATABASE_URL with migrations applied
(alembic upgrade head) and WALLET_BACKEND=postgres. Without it every test in
this directory is skipped.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool stays valid across the entire test session.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from config.settings import settings
from src.main import app


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if settings.WALLET_BACKEND == "postgres":
        return
    skip = pytest.mark.skip(reason="needs PostgreSQL (WALLET_BACKEND=postgres)")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client with a primed price poller."""
    await app.state.components.poller.poll_once()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
