"""Pydantic schemas for pt_testnet API."""

from decimal import Decimal

from pydantic import BaseModel, Field

from src.pt_common.enums import TradeKind
from src.pt_testnet.domain.models import TradeRecord
from src.pt_wallet.domain.models import WalletState


class TestnetTradeRequest(BaseModel):
    coin: str = Field(..., min_length=1, description="Testnet coin id, e.g. 'bitcoin'")
    type: TradeKind
    # non-positive amounts are recorded by the ledger and then rejected
    amount: Decimal = Field(..., description="Currency notional of the trade")


class TestnetWalletItem(BaseModel):
    balance: float
    shares: float

    @classmethod
    def from_state(cls, state: WalletState) -> "TestnetWalletItem":
        return cls(balance=float(state.balance), shares=float(state.shares))


class TradeRecordItem(BaseModel):
    symbol: str
    timestamp: int
    price_at_execution: float | None
    type: TradeKind
    amount: float
    accepted: bool
    reason: str | None

    @classmethod
    def from_domain(cls, record: TradeRecord) -> "TradeRecordItem":
        return cls(
            symbol=record.symbol,
            timestamp=record.timestamp,
            price_at_execution=(
                float(record.price_at_execution) if record.price_at_execution is not None else None
            ),
            type=record.kind,
            amount=float(record.amount),
            accepted=record.accepted,
            reason=record.reason,
        )


class TestnetTradeResponse(BaseModel):
    wallet: TestnetWalletItem
    record: TradeRecordItem


class TestnetBalanceResponse(BaseModel):
    user_id: str
    balance: float
    holdings: dict[str, float]
