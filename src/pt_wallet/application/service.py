"""WalletApplicationService: read-execute-write around the TradeEngine.

Trades for one user are serialized: a per-user asyncio.Lock guards the
read -> execute -> write sequence, and a request that arrives while that lock
is held is rejected (TradeInProgressError) rather than queued. is_busy()
exposes the same signal to callers. A lock lives only while a trade holds it.

Writes are last-writer-wins unless the service runs in compare-and-swap mode,
in which case the write is guarded by the version that was read.

Every committed trade is appended to the trade log after the wallet write.
"""

import asyncio
import logging
from collections.abc import Callable
from decimal import Decimal

from src.pt_common.datetime_utils import now_ms
from src.pt_common.enums import TradeKind, WriteMode
from src.pt_common.errors import StoreUnavailableError, TradeInProgressError
from src.pt_engine.engine import TradeEngine, rejection_error
from src.pt_engine.models import Rejection
from src.pt_market.application.poller import PricePoller
from src.pt_wallet.application.schemas import TradeResponse, WalletResponse, WalletTradeItem, WalletTradeListResponse
from src.pt_wallet.domain.models import WalletState, WalletTrade
from src.pt_wallet.domain.repository import TradeLogProtocol, WalletStoreProtocol

logger = logging.getLogger(__name__)


class WalletApplicationService:
    def __init__(
        self,
        store: WalletStoreProtocol,
        engine: TradeEngine,
        poller: PricePoller,
        write_mode: WriteMode = WriteMode.LAST_WRITER_WINS,
        trade_log: TradeLogProtocol | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._engine = engine
        self._poller = poller
        self._write_mode = write_mode
        self._trade_log = trade_log
        self._clock = clock
        self._locks: dict[str, asyncio.Lock] = {}

    def is_busy(self, user_id: str) -> bool:
        lock = self._locks.get(user_id)
        return lock is not None and lock.locked()

    async def get_wallet(self, user_id: str) -> WalletResponse:
        state = await self._store.read(user_id)
        return WalletResponse.from_state(user_id, state, busy=self.is_busy(user_id))

    async def execute_trade(self, user_id: str, kind: TradeKind) -> TradeResponse:
        if self.is_busy(user_id):
            raise TradeInProgressError(user_id)

        lock = self._locks.setdefault(user_id, asyncio.Lock())
        try:
            async with lock:
                current = await self._store.read(user_id)
                # Latest observed sample; a trade never waits for a fresh poll
                sample = self._poller.latest()
                price = sample.price if sample else None

                outcome = self._engine.execute(current, kind, price)
                if isinstance(outcome, Rejection):
                    logger.info(
                        "Trade rejected: user=%s kind=%s reason=%s",
                        user_id, kind.value, outcome.reason.value,
                    )
                    raise rejection_error(outcome, current, self._engine.buy_notional, price)

                expected = current.version if self._write_mode == WriteMode.COMPARE_AND_SWAP else None
                stored = await self._store.write(user_id, outcome, expected_version=expected)
        finally:
            if self._locks.get(user_id) is lock and not lock.locked():
                del self._locks[user_id]

        logger.info(
            "Trade executed: user=%s kind=%s price=%s balance=%s shares=%s",
            user_id, kind.value, price, stored.balance, stored.shares,
        )
        await self._record(user_id, kind, price, current, stored)
        return TradeResponse.from_result(user_id, kind, sample, current, stored)

    async def _record(
        self,
        user_id: str,
        kind: TradeKind,
        price: Decimal | None,
        before: WalletState,
        after: WalletState,
    ) -> None:
        if self._trade_log is None or price is None:
            return
        trade = WalletTrade(
            user_id=user_id,
            kind=kind,
            symbol=self._poller.symbol,
            price=price,
            shares=abs(after.shares - before.shares),
            value=abs(after.balance - before.balance),
            version=after.version,
            executed_at=self._clock(),
        )
        try:
            await self._trade_log.append(trade)
        except StoreUnavailableError as exc:
            # The wallet write is already committed; the trade still stands
            logger.error(
                "Trade log append failed: user=%s version=%d: %s", user_id, after.version, exc.message
            )

    async def get_trades(self, user_id: str, limit: int = 50) -> WalletTradeListResponse:
        """Committed trades for user_id, newest first."""
        trades = await self._trade_log.list_recent(user_id, limit) if self._trade_log else []
        return WalletTradeListResponse(
            user_id=user_id, trades=[WalletTradeItem.from_domain(t) for t in trades]
        )
