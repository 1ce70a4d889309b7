"""Pydantic schemas for pt_wallet API."""

from pydantic import BaseModel

from src.pt_common.decimals import money_display
from src.pt_common.enums import TradeKind
from src.pt_market.domain.models import PriceSample
from src.pt_wallet.domain.models import WalletState, WalletTrade

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class TradeRequestBody(BaseModel):
    type: TradeKind


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class WalletResponse(BaseModel):
    user_id: str
    balance: float
    balance_display: str
    shares: float
    version: int
    trade_in_progress: bool = False

    @classmethod
    def from_state(cls, user_id: str, state: WalletState, busy: bool = False) -> "WalletResponse":
        return cls(
            user_id=user_id,
            balance=float(state.balance),
            balance_display=money_display(state.balance),
            shares=float(state.shares),
            version=state.version,
            trade_in_progress=busy,
        )


class TradeResponse(BaseModel):
    type: TradeKind
    price: float
    price_time: int
    balance_change: float
    shares_change: float
    wallet: WalletResponse

    @classmethod
    def from_result(
        cls,
        user_id: str,
        kind: TradeKind,
        sample: PriceSample | None,
        before: WalletState,
        after: WalletState,
    ) -> "TradeResponse":
        return cls(
            type=kind,
            price=float(sample.price) if sample else 0.0,
            price_time=sample.time if sample else 0,
            balance_change=float(after.balance - before.balance),
            shares_change=float(after.shares - before.shares),
            wallet=WalletResponse.from_state(user_id, after),
        )


class WalletTradeItem(BaseModel):
    type: TradeKind
    symbol: str
    price: float
    shares: float
    value: float
    version: int
    executed_at: int

    @classmethod
    def from_domain(cls, trade: WalletTrade) -> "WalletTradeItem":
        return cls(
            type=trade.kind,
            symbol=trade.symbol,
            price=float(trade.price),
            shares=float(trade.shares),
            value=float(trade.value),
            version=trade.version,
            executed_at=trade.executed_at,
        )


class WalletTradeListResponse(BaseModel):
    user_id: str
    trades: list[WalletTradeItem]
