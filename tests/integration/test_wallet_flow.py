"""Integration tests for the PostgreSQL wallet store (requires running PG).

Uses the session-scoped client fixture from tests/integration/conftest.py.
All tests share one event loop to avoid asyncpg pool cross-loop errors.
"""

import asyncio
import uuid
from decimal import Decimal

import pytest
from httpx import AsyncClient

from src.pt_common.database import async_session_factory
from src.pt_common.enums import TradeKind
from src.pt_common.errors import WriteConflictError
from src.pt_wallet.domain.models import WalletState, WalletTrade
from src.pt_wallet.infrastructure.persistence import SqlTradeLog, SqlWalletStore

pytestmark = [pytest.mark.integration, pytest.mark.asyncio(loop_scope="session")]


def _user() -> str:
    return f"it_{uuid.uuid4().hex[:8]}"


def _store() -> SqlWalletStore:
    # a fresh app_id keeps every run's rows apart
    return SqlWalletStore(async_session_factory, app_id=f"it-{uuid.uuid4().hex[:8]}")


class TestSqlWalletStore:
    async def test_first_read_creates_default(self) -> None:
        store = _store()
        state = await store.read(_user())
        assert state == WalletState(Decimal("10000"), Decimal("0"), 0)

    async def test_concurrent_first_reads_converge(self) -> None:
        store = _store()
        user = _user()
        states = await asyncio.gather(*(store.read(user) for _ in range(5)))
        assert all(s == states[0] for s in states)

    async def test_write_round_trip_keeps_precision(self) -> None:
        store = _store()
        user = _user()
        shares = Decimal("1000") / Decimal("65000.37")
        stored = await store.write(user, WalletState(Decimal("9000"), shares))

        assert stored.version == 1
        reread = await store.read(user)
        assert reread.balance == Decimal("9000")
        assert abs(reread.shares - shares) < Decimal("1e-17")

    async def test_compare_and_swap(self) -> None:
        store = _store()
        user = _user()
        await store.read(user)
        await store.write(user, WalletState(Decimal("9000"), Decimal("10")), expected_version=0)
        with pytest.raises(WriteConflictError):
            await store.write(user, WalletState(Decimal("1"), Decimal("1")), expected_version=0)


class TestSqlTradeLog:
    async def test_append_then_list_newest_first(self) -> None:
        log = SqlTradeLog(async_session_factory, app_id=f"it-{uuid.uuid4().hex[:8]}")
        user = _user()
        for version, kind in ((1, TradeKind.BUY), (2, TradeKind.SELL)):
            await log.append(
                WalletTrade(
                    user_id=user,
                    kind=kind,
                    symbol="bitcoin",
                    price=Decimal("65000.5"),
                    shares=Decimal("0.015384"),
                    value=Decimal("1000"),
                    version=version,
                    executed_at=1_700_000_000_000 + version,
                )
            )

        trades = await log.list_recent(user, limit=10)

        assert [t.version for t in trades] == [2, 1]
        assert trades[0].kind == TradeKind.SELL
        assert trades[1].price == Decimal("65000.5")

class TestWalletEndpoints:
    async def test_trade_persists(self, client: AsyncClient) -> None:
        user = _user()
        resp = await client.post(f"/api/v1/wallet/{user}/trade", json={"type": "BUY"})
        assert resp.status_code == 200

        data = (await client.get(f"/api/v1/wallet/{user}")).json()["data"]
        assert data["balance"] == 9000.0
        assert data["version"] == 1

        trades = (await client.get(f"/api/v1/wallet/{user}/trades")).json()["data"]["trades"]
        assert [t["version"] for t in trades] == [1]

    async def test_portfolio_is_live(self, client: AsyncClient) -> None:
        data = (await client.get(f"/api/v1/wallet/{_user()}/portfolio")).json()["data"]
        assert data["status"] == "LIVE"
        assert data["value"] == 10000.0
