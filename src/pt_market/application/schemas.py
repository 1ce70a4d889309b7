"""Pydantic schemas for pt_market API."""

from pydantic import BaseModel

from src.pt_common.datetime_utils import ms_to_iso
from src.pt_market.domain.models import Coin, PriceSample


class CoinItem(BaseModel):
    id: str
    name: str
    symbol: str

    @classmethod
    def from_domain(cls, coin: Coin) -> "CoinItem":
        return cls(id=coin.id, name=coin.name, symbol=coin.symbol)


class PricePoint(BaseModel):
    time: int          # epoch ms
    time_iso: str
    price: float

    @classmethod
    def from_domain(cls, sample: PriceSample) -> "PricePoint":
        return cls(time=sample.time, time_iso=ms_to_iso(sample.time), price=float(sample.price))


class LatestPriceResponse(BaseModel):
    symbol: str
    sample: PricePoint | None
    poller_running: bool
    feed_error: str | None
