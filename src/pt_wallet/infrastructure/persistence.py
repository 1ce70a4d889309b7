"""SqlWalletStore: PostgreSQL implementation of WalletStoreProtocol.

One row per (app_id, user_id, doc_id) with doc_id always 'current_state'.
First-read-creates uses INSERT ... ON CONFLICT DO NOTHING, so concurrent first
reads converge on a single default row. Writes are last-writer-wins upserts;
passing expected_version switches to a version-guarded UPDATE (compare-and-swap).

Transaction ownership: each method opens and commits its own session.
Subscriptions are in-process: listeners are notified after commits made through
this store instance, not by changes written by other processes.
"""

import logging
from collections.abc import Callable
from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.pt_common.errors import InternalError, StoreUnavailableError, WriteConflictError
from src.pt_common.subscription import KeyedListeners, Subscription
from src.pt_common.enums import TradeKind
from src.pt_wallet.domain.models import DEFAULT_BALANCE, DOCUMENT_ID, WalletState, WalletTrade

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_ENSURE_SQL = text("""
    INSERT INTO wallet_states (app_id, user_id, doc_id, balance, shares, version)
    VALUES (:app_id, :user_id, :doc_id, :balance, 0, 0)
    ON CONFLICT (app_id, user_id, doc_id) DO NOTHING
""")

_GET_SQL = text("""
    SELECT balance, shares, version
    FROM wallet_states
    WHERE app_id = :app_id AND user_id = :user_id AND doc_id = :doc_id
""")

_UPSERT_SQL = text("""
    INSERT INTO wallet_states (app_id, user_id, doc_id, balance, shares, version)
    VALUES (:app_id, :user_id, :doc_id, :balance, :shares, 1)
    ON CONFLICT (app_id, user_id, doc_id) DO UPDATE
        SET balance = EXCLUDED.balance,
            shares = EXCLUDED.shares,
            version = wallet_states.version + 1,
            updated_at = NOW()
    RETURNING balance, shares, version
""")

_COMPARE_AND_SWAP_SQL = text("""
    UPDATE wallet_states
    SET balance = :balance,
        shares = :shares,
        version = version + 1,
        updated_at = NOW()
    WHERE app_id = :app_id AND user_id = :user_id AND doc_id = :doc_id
      AND version = :expected_version
    RETURNING balance, shares, version
""")


def _row_to_state(row: Any) -> WalletState:
    return WalletState(
        balance=Decimal(row.balance),
        shares=Decimal(row.shares),
        version=int(row.version),
    )


class SqlWalletStore:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        app_id: str,
        default_balance: Decimal = DEFAULT_BALANCE,
    ) -> None:
        self._session_factory = session_factory
        self._app_id = app_id
        self._default_balance = default_balance
        self._listeners: KeyedListeners[WalletState] = KeyedListeners()
        # users whose listeners last saw an error; the next successful read republishes
        self._failed: set[str] = set()

    def _key(self, user_id: str) -> dict[str, str]:
        return {"app_id": self._app_id, "user_id": user_id, "doc_id": DOCUMENT_ID}

    def _fail(self, user_id: str, err: StoreUnavailableError) -> StoreUnavailableError:
        if user_id in self._listeners:
            self._failed.add(user_id)
            self._listeners.publish_error(user_id, err)
        else:
            self._failed.discard(user_id)
        return err

    def subscriber_count(self, user_id: str) -> int:
        return self._listeners.count(user_id)

    async def _load(self, user_id: str) -> WalletState:
        key = self._key(user_id)
        try:
            async with self._session_factory() as db:
                await db.execute(_ENSURE_SQL, {**key, "balance": self._default_balance})
                row = (await db.execute(_GET_SQL, key)).fetchone()
                await db.commit()
        except (SQLAlchemyError, OSError) as exc:
            logger.warning("Wallet read failed for user %s: %s", user_id, exc)
            raise StoreUnavailableError(f"Wallet read failed: {exc}") from exc
        if row is None:
            raise InternalError(f"Wallet row missing after ensure for user {user_id}")
        return _row_to_state(row)

    def _recover(self, user_id: str, state: WalletState) -> None:
        if user_id in self._failed:
            self._failed.discard(user_id)
            self._listeners.publish(user_id, state)

    async def read(self, user_id: str) -> WalletState:
        """Errors are also pushed to the user's subscribers; the next successful
        read or write clears them."""
        try:
            state = await self._load(user_id)
        except StoreUnavailableError as err:
            self._fail(user_id, err)
            raise
        self._recover(user_id, state)
        return state

    async def write(
        self,
        user_id: str,
        new_state: WalletState,
        expected_version: int | None = None,
    ) -> WalletState:
        params = {**self._key(user_id), "balance": new_state.balance, "shares": new_state.shares}
        current_version: int | None = None
        try:
            async with self._session_factory() as db:
                if expected_version is None:
                    row = (await db.execute(_UPSERT_SQL, params)).fetchone()
                else:
                    row = (
                        await db.execute(
                            _COMPARE_AND_SWAP_SQL,
                            {**params, "expected_version": expected_version},
                        )
                    ).fetchone()
                    if row is None:
                        current = (await db.execute(_GET_SQL, self._key(user_id))).fetchone()
                        current_version = int(current.version) if current else None
                await db.commit()
        except (SQLAlchemyError, OSError) as exc:
            logger.warning("Wallet write failed for user %s: %s", user_id, exc)
            raise self._fail(user_id, StoreUnavailableError(f"Wallet write failed: {exc}")) from exc

        if row is None:
            raise WriteConflictError(user_id, expected_version or 0, current_version)
        stored = _row_to_state(row)
        self._failed.discard(user_id)
        self._listeners.publish(user_id, stored)
        return stored

    async def subscribe(
        self,
        user_id: str,
        on_change: Callable[[WalletState], None],
        on_error: Callable[[Exception], None] | None = None,
    ) -> Subscription[WalletState]:
        # Register before reading so a write that lands during the read is not lost
        sub = self._listeners.add(user_id, on_change, on_error)
        try:
            state = await self._load(user_id)
        except StoreUnavailableError:
            sub.cancel()
            raise
        self._recover(user_id, state)
        if not sub.delivered:
            sub.deliver(state)
        return sub


# ---------------------------------------------------------------------------
# Trade log
# ---------------------------------------------------------------------------

_APPEND_TRADE_SQL = text("""
    INSERT INTO wallet_trades
        (app_id, user_id, kind, symbol, price, shares, value, version, executed_at)
    VALUES
        (:app_id, :user_id, :kind, :symbol, :price, :shares, :value, :version, :executed_at)
""")

_LIST_TRADES_SQL = text("""
    SELECT user_id, kind, symbol, price, shares, value, version, executed_at
    FROM wallet_trades
    WHERE app_id = :app_id AND user_id = :user_id
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_trade(row: Any) -> WalletTrade:
    return WalletTrade(
        user_id=row.user_id,
        kind=TradeKind(row.kind),
        symbol=row.symbol,
        price=Decimal(row.price),
        shares=Decimal(row.shares),
        value=Decimal(row.value),
        version=int(row.version),
        executed_at=int(row.executed_at),
    )


class SqlTradeLog:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], app_id: str) -> None:
        self._session_factory = session_factory
        self._app_id = app_id

    async def append(self, trade: WalletTrade) -> None:
        params = {
            "app_id": self._app_id,
            "user_id": trade.user_id,
            "kind": trade.kind.value,
            "symbol": trade.symbol,
            "price": trade.price,
            "shares": trade.shares,
            "value": trade.value,
            "version": trade.version,
            "executed_at": trade.executed_at,
        }
        try:
            async with self._session_factory() as db:
                await db.execute(_APPEND_TRADE_SQL, params)
                await db.commit()
        except (SQLAlchemyError, OSError) as exc:
            logger.warning("Trade log append failed for user %s: %s", trade.user_id, exc)
            raise StoreUnavailableError(f"Trade log append failed: {exc}") from exc

    async def list_recent(self, user_id: str, limit: int = 50) -> list[WalletTrade]:
        try:
            async with self._session_factory() as db:
                rows = (
                    await db.execute(
                        _LIST_TRADES_SQL,
                        {"app_id": self._app_id, "user_id": user_id, "limit": limit},
                    )
                ).fetchall()
        except (SQLAlchemyError, OSError) as exc:
            logger.warning("Trade log read failed for user %s: %s", user_id, exc)
            raise StoreUnavailableError(f"Trade log read failed: {exc}") from exc
        return [_row_to_trade(r) for r in rows]
