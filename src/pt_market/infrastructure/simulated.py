"""SimulatedPriceFeed: seeded random-walk market for the testnet coins.

Each coin starts from a base price and backfills `capacity` samples spaced
`step_seconds` apart, ending at the current clock. Later fetches append one
sample per elapsed step at the tail and drop the oldest, so each coin keeps
at most `capacity` samples.
"""

import random
import time
from collections.abc import Callable
from decimal import Decimal

from src.pt_common.errors import CoinNotFoundError
from src.pt_market.domain.models import Coin, PriceHistory, PriceSample

MAX_POINTS = 500
_PRICE_QUANTUM = Decimal("0.000001")

TESTNET_COINS: dict[str, tuple[Coin, Decimal]] = {
    "bitcoin": (Coin(id="bitcoin", name="Bitcoin", symbol="btc"), Decimal("65000")),
    "ethereum": (Coin(id="ethereum", name="Ethereum", symbol="eth"), Decimal("3200")),
    "solana": (Coin(id="solana", name="Solana", symbol="sol"), Decimal("150")),
    "cardano": (Coin(id="cardano", name="Cardano", symbol="ada"), Decimal("0.45")),
    "dogecoin": (Coin(id="dogecoin", name="Dogecoin", symbol="doge"), Decimal("0.15")),
}


class SimulatedPriceFeed:
    def __init__(
        self,
        seed: int = 42,
        step_seconds: float = 5.0,
        capacity: int = MAX_POINTS,
        volatility: float = 0.01,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._seed = seed
        self._step_ms = max(1, int(step_seconds * 1000))
        self._capacity = capacity
        self._volatility = volatility
        self._clock = clock
        self._histories: dict[str, PriceHistory] = {}
        self._rngs: dict[str, random.Random] = {}

    def _next_price(self, symbol: str, price: Decimal) -> Decimal:
        change = Decimal(str(round(self._rngs[symbol].gauss(0.0, self._volatility), 6)))
        next_price = (price * (Decimal("1") + change)).quantize(_PRICE_QUANTUM)
        return max(next_price, _PRICE_QUANTUM)

    def _advance(self, symbol: str) -> PriceHistory:
        if symbol not in TESTNET_COINS:
            raise CoinNotFoundError(symbol)
        now = int(self._clock() * 1000)
        window_start = now - (self._capacity - 1) * self._step_ms

        history = self._histories.get(symbol)
        if history is None:
            self._rngs[symbol] = random.Random(f"{self._seed}:{symbol}")
            history = PriceHistory(
                symbol, [PriceSample(time=window_start, price=TESTNET_COINS[symbol][1])]
            )
            self._histories[symbol] = history

        last = history.tail(1)[0]
        price = last.price
        # After a long idle period skip straight to the window instead of replaying it
        t = max(last.time + self._step_ms, window_start)
        while t <= now:
            price = self._next_price(symbol, price)
            history.append(PriceSample(time=t, price=price))
            t += self._step_ms
        history.trim(self._capacity)
        return history

    async def fetch_history(self, symbol: str, points: int) -> list[PriceSample]:
        points = min(max(points, 1), self._capacity)
        return self._advance(symbol).tail(points)

    async def latest(self, symbol: str) -> PriceSample | None:
        return self._advance(symbol).latest

    async def list_coins(self) -> list[Coin]:
        return [coin for coin, _ in TESTNET_COINS.values()]
