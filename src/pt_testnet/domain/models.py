"""Domain models for pt_testnet: append-only trade records."""

from dataclasses import dataclass
from decimal import Decimal

from src.pt_common.enums import TradeKind
from src.pt_engine.models import Rejection
from src.pt_wallet.domain.models import WalletState


@dataclass(frozen=True)
class TradeRecord:
    symbol: str
    timestamp: int                            # epoch ms
    price_at_execution: Decimal | None
    kind: TradeKind
    amount: Decimal                           # currency notional requested
    accepted: bool
    reason: str | None = None                 # RejectionReason value when rejected


@dataclass(frozen=True)
class TestnetTradeResult:
    wallet: WalletState                       # balance + holding of the traded symbol
    record: TradeRecord
    rejection: Rejection | None = None
