"""TradeEngine: pure trade-execution rules.

Given the current WalletState, a trade kind and the latest price, compute the
next WalletState or a Rejection. No storage access, no clock, no I/O: callers
read the wallet, call execute(), and write the result back themselves.

BUY spends a fixed notional:   shares_bought = notional / price
SELL liquidates a fraction:    proceeds = shares * fraction * price

Rejections are returned, never raised. Only a genuine arithmetic defect (a
result below zero by more than rounding noise) raises LedgerInvariantError.
"""

from dataclasses import dataclass
from decimal import Decimal

from src.pt_common.decimals import ZERO, settle_non_negative, to_decimal
from src.pt_common.enums import RejectionReason, TradeKind
from src.pt_common.errors import (
    AppError,
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidPriceError,
    NoHoldingsError,
)
from src.pt_engine.models import Rejection
from src.pt_wallet.domain.models import WalletState

DEFAULT_BUY_NOTIONAL = Decimal("1000")
DEFAULT_SELL_FRACTION = Decimal("0.5")

TradeOutcome = WalletState | Rejection


def _invalid_price(price: Decimal | None) -> Rejection:
    return Rejection(
        RejectionReason.INVALID_PRICE,
        f"Price feed has no usable price yet (got {price})",
    )


def buy(current: WalletState, notional: Decimal, price: Decimal | None) -> TradeOutcome:
    """Spend `notional` of balance on shares at `price`."""
    if price is None or price <= ZERO:
        return _invalid_price(price)
    if current.balance < notional:
        return Rejection(
            RejectionReason.INSUFFICIENT_BALANCE,
            f"Insufficient balance: required {notional}, available {current.balance}",
        )
    shares_bought = notional / price
    return WalletState(
        balance=settle_non_negative(current.balance - notional, "balance"),
        shares=settle_non_negative(current.shares + shares_bought, "shares"),
        version=current.version,
    )


def sell(current: WalletState, fraction: Decimal, price: Decimal | None) -> TradeOutcome:
    """Liquidate `fraction` of the current share holding at `price`."""
    if price is None or price <= ZERO:
        return _invalid_price(price)
    if current.shares == ZERO:
        return Rejection(RejectionReason.NO_HOLDINGS, "No holdings to sell")
    shares_sold = current.shares * fraction
    proceeds = shares_sold * price
    return WalletState(
        balance=settle_non_negative(current.balance + proceeds, "balance"),
        shares=settle_non_negative(current.shares - shares_sold, "shares"),
        version=current.version,
    )


@dataclass(frozen=True)
class TradeEngine:
    buy_notional: Decimal = DEFAULT_BUY_NOTIONAL
    sell_fraction: Decimal = DEFAULT_SELL_FRACTION

    def __post_init__(self) -> None:
        notional = to_decimal(self.buy_notional)
        fraction = to_decimal(self.sell_fraction)
        if notional <= ZERO:
            raise ValueError(f"buy_notional must be positive, got {notional}")
        if not (ZERO < fraction <= Decimal("1")):
            raise ValueError(f"sell_fraction must be in (0, 1], got {fraction}")
        # frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "buy_notional", notional)
        object.__setattr__(self, "sell_fraction", fraction)

    def execute(
        self, current: WalletState, kind: TradeKind, price: Decimal | None
    ) -> TradeOutcome:
        if kind == TradeKind.BUY:
            return buy(current, self.buy_notional, price)
        return sell(current, self.sell_fraction, price)


def rejection_error(
    rejection: Rejection,
    current: WalletState,
    notional: Decimal,
    price: Decimal | None,
    symbol: str | None = None,
) -> AppError:
    """Translate an engine Rejection into the AppError reported at the API boundary."""
    if rejection.reason == RejectionReason.INSUFFICIENT_BALANCE:
        return InsufficientBalanceError(notional, current.balance)
    if rejection.reason == RejectionReason.NO_HOLDINGS:
        return NoHoldingsError(symbol)
    if rejection.reason == RejectionReason.INVALID_AMOUNT:
        return InvalidAmountError(notional)
    return InvalidPriceError(price)
