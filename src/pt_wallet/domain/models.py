"""Domain models for pt_wallet: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, replace
from decimal import Decimal

from src.pt_common.enums import TradeKind

DEFAULT_BALANCE = Decimal("10000")
DOCUMENT_ID = "current_state"


@dataclass(frozen=True)
class WalletState:
    balance: Decimal
    shares: Decimal
    version: int = 0   # store revision, bumped by every write

    def __post_init__(self) -> None:
        if self.balance < 0 or self.shares < 0:
            raise ValueError(
                f"WalletState cannot be negative: balance={self.balance}, shares={self.shares}"
            )

    @classmethod
    def initial(cls, balance: Decimal = DEFAULT_BALANCE) -> "WalletState":
        return cls(balance=balance, shares=Decimal("0"), version=0)

    def with_version(self, version: int) -> "WalletState":
        return replace(self, version=version)

    def value_at(self, price: Decimal) -> Decimal:
        """Portfolio value = balance + shares * price."""
        return self.balance + self.shares * price


@dataclass(frozen=True)
class WalletTrade:
    """One committed wallet trade. Append-only; never updated."""

    user_id: str
    kind: TradeKind
    symbol: str
    price: Decimal
    shares: Decimal      # shares bought or sold
    value: Decimal       # currency spent (BUY) or received (SELL)
    version: int         # wallet version produced by this trade
    executed_at: int     # epoch ms
