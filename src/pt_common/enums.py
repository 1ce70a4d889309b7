"""Global enums: wallet_states and API payloads use the string values."""

from enum import Enum


class TradeKind(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class RejectionReason(str, Enum):
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    NO_HOLDINGS = "NO_HOLDINGS"
    INVALID_PRICE = "INVALID_PRICE"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    UNKNOWN_COIN = "UNKNOWN_COIN"


class ViewStatus(str, Enum):
    """Health of a PortfolioView: only LIVE views carry a value."""
    LIVE = "LIVE"
    WAITING = "WAITING"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    FEED_UNAVAILABLE = "FEED_UNAVAILABLE"


class FeedMode(str, Enum):
    SIMULATED = "simulated"
    LIVE = "live"


class WalletBackend(str, Enum):
    MEMORY = "memory"
    POSTGRES = "postgres"


class WriteMode(str, Enum):
    LAST_WRITER_WINS = "last_writer_wins"
    COMPARE_AND_SWAP = "compare_and_swap"
