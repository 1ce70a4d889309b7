"""Pydantic schema for PortfolioView payloads (HTTP and WebSocket)."""

from decimal import Decimal

from pydantic import BaseModel

from src.pt_common.enums import ViewStatus
from src.pt_sync.models import PortfolioView


def _num(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


class PortfolioViewResponse(BaseModel):
    user_id: str
    status: ViewStatus
    balance: float | None
    shares: float | None
    last_price: float | None
    last_price_time: int | None
    value: float | None
    error: str | None

    @classmethod
    def from_view(cls, view: PortfolioView) -> "PortfolioViewResponse":
        return cls(
            user_id=view.user_id,
            status=view.status,
            balance=_num(view.balance),
            shares=_num(view.shares),
            last_price=_num(view.last_price),
            last_price_time=view.last_price_time,
            value=_num(view.value),
            error=view.error,
        )
