"""PortfolioView: derived valuation. Built on demand, never persisted."""

from dataclasses import dataclass
from decimal import Decimal

from src.pt_common.enums import ViewStatus
from src.pt_market.domain.models import PriceSample
from src.pt_wallet.domain.models import WalletState


@dataclass(frozen=True)
class PortfolioView:
    user_id: str
    status: ViewStatus
    balance: Decimal | None = None
    shares: Decimal | None = None
    last_price: Decimal | None = None
    last_price_time: int | None = None
    value: Decimal | None = None   # only set when status is LIVE
    error: str | None = None


def compute_view(
    user_id: str,
    wallet: WalletState | None,
    sample: PriceSample | None,
    store_error: str | None = None,
    feed_error: str | None = None,
) -> PortfolioView:
    """value = balance + shares * last_price, or no value with the reason why."""
    if store_error is not None:
        status, error = ViewStatus.STORE_UNAVAILABLE, store_error
    elif feed_error is not None:
        status, error = ViewStatus.FEED_UNAVAILABLE, feed_error
    elif wallet is None or sample is None:
        status, error = ViewStatus.WAITING, None
    else:
        status, error = ViewStatus.LIVE, None

    return PortfolioView(
        user_id=user_id,
        status=status,
        balance=wallet.balance if wallet else None,
        shares=wallet.shares if wallet else None,
        last_price=sample.price if sample else None,
        last_price_time=sample.time if sample else None,
        value=wallet.value_at(sample.price) if status == ViewStatus.LIVE and wallet and sample else None,
        error=error,
    )
