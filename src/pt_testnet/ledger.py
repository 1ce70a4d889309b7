"""TestnetLedger: in-memory wallet and trade log for the demo market.

One fixed user, no subscriptions: callers poll wallet(). The ledger is an
ordinary object handed to request handlers, so every app (and every test)
owns an isolated instance.

Trades follow the TradeEngine share accounting with the request amount as the
currency notional:
  BUY   spend `amount` at `price`              -> engine.buy(notional=amount)
  SELL  liquidate `amount` worth of the coin   -> engine.sell(fraction=amount / holding value, capped at 1)

Holdings are tracked per symbol against one shared cash balance. Every call
appends a TradeRecord, whether the trade was accepted or rejected; that
includes non-positive amounts and attempts on coins the market does not list.
"""

import logging
from collections import defaultdict
from collections.abc import Callable
from decimal import Decimal

from src.pt_common.datetime_utils import now_ms
from src.pt_common.decimals import ZERO
from src.pt_common.enums import RejectionReason, TradeKind
from src.pt_engine.engine import buy, sell
from src.pt_engine.models import Rejection
from src.pt_testnet.domain.models import TestnetTradeResult, TradeRecord
from src.pt_wallet.domain.models import DEFAULT_BALANCE, WalletState

logger = logging.getLogger(__name__)


def _sell_fraction(shares: Decimal, amount: Decimal, price: Decimal | None) -> Decimal:
    if price is None or price <= ZERO or shares == ZERO:
        # the engine rejects these cases before the fraction is used
        return Decimal("1")
    return min(Decimal("1"), amount / (shares * price))


class TestnetLedger:
    __test__ = False  # not a pytest test class despite the name

    def __init__(
        self,
        user_id: str = "testnet-user",
        initial_balance: Decimal = DEFAULT_BALANCE,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.user_id = user_id
        self._balance = initial_balance
        self._holdings: dict[str, Decimal] = {}
        self._version = 0
        self._history: dict[str, list[TradeRecord]] = defaultdict(list)
        self._clock = clock

    @property
    def balance(self) -> Decimal:
        return self._balance

    @property
    def holdings(self) -> dict[str, Decimal]:
        return {symbol: shares for symbol, shares in self._holdings.items() if shares > ZERO}

    def wallet(self, symbol: str | None = None) -> WalletState:
        shares = self._holdings.get(symbol, ZERO) if symbol else ZERO
        return WalletState(balance=self._balance, shares=shares, version=self._version)

    def history(self, symbol: str) -> list[TradeRecord]:
        return list(self._history.get(symbol, []))

    def trade(
        self, symbol: str, kind: TradeKind, amount: Decimal, price: Decimal | None
    ) -> TestnetTradeResult:
        if amount <= ZERO:
            rejection = Rejection(
                RejectionReason.INVALID_AMOUNT, f"Trade amount must be positive, got {amount}"
            )
            record = self.record_rejection(symbol, kind, amount, rejection.reason, price)
            return TestnetTradeResult(wallet=self.wallet(symbol), record=record, rejection=rejection)

        current = self.wallet(symbol)
        if kind == TradeKind.BUY:
            outcome = buy(current, amount, price)
        else:
            outcome = sell(current, _sell_fraction(current.shares, amount, price), price)

        if isinstance(outcome, Rejection):
            record = self.record_rejection(symbol, kind, amount, outcome.reason, price)
            return TestnetTradeResult(wallet=current, record=record, rejection=outcome)

        self._balance = outcome.balance
        self._holdings[symbol] = outcome.shares
        self._version += 1
        record = self._append(symbol, kind, amount, price, accepted=True, reason=None)
        return TestnetTradeResult(wallet=self.wallet(symbol), record=record, rejection=None)

    def record_rejection(
        self,
        symbol: str,
        kind: TradeKind,
        amount: Decimal,
        reason: RejectionReason,
        price: Decimal | None = None,
    ) -> TradeRecord:
        """Log an attempt that never reached the wallet."""
        return self._append(symbol, kind, amount, price, accepted=False, reason=reason.value)

    def _append(
        self,
        symbol: str,
        kind: TradeKind,
        amount: Decimal,
        price: Decimal | None,
        accepted: bool,
        reason: str | None,
    ) -> TradeRecord:
        record = TradeRecord(
            symbol=symbol,
            timestamp=self._clock(),
            price_at_execution=price,
            kind=kind,
            amount=amount,
            accepted=accepted,
            reason=reason,
        )
        self._history[symbol].append(record)
        logger.info(
            "Testnet %s %s amount=%s price=%s accepted=%s reason=%s",
            kind.value, symbol, amount, price, accepted, reason,
        )
        return record
