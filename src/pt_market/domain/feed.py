"""PriceFeed Protocol: anything that can return a time-ordered price history.

Implementations raise FeedUnavailableError when the source cannot be reached
or returns something unusable, and CoinNotFoundError for unknown symbols.
"""

from typing import Protocol

from src.pt_market.domain.models import Coin, PriceSample


class PriceFeedProtocol(Protocol):
    async def fetch_history(self, symbol: str, points: int) -> list[PriceSample]: ...

    async def list_coins(self) -> list[Coin]: ...
