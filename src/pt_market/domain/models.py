"""Domain models for pt_market: pure dataclasses, no I/O."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class PriceSample:
    time: int        # epoch milliseconds
    price: Decimal   # > 0


@dataclass(frozen=True)
class Coin:
    id: str
    name: str
    symbol: str


class PriceHistory:
    """Append-only, time-ordered sequence of PriceSample for one symbol."""

    def __init__(self, symbol: str, samples: Iterable[PriceSample] = ()) -> None:
        self.symbol = symbol
        self._samples: list[PriceSample] = []
        for sample in samples:
            self.append(sample)

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[PriceSample]:
        return iter(self._samples)

    @property
    def latest(self) -> PriceSample | None:
        return self._samples[-1] if self._samples else None

    def append(self, sample: PriceSample) -> None:
        if sample.price <= 0:
            raise ValueError(f"{self.symbol}: price must be positive, got {sample.price}")
        last = self.latest
        if last is not None and sample.time < last.time:
            raise ValueError(
                f"{self.symbol}: sample at {sample.time} is older than last sample at {last.time}"
            )
        self._samples.append(sample)

    def merge(self, batch: Iterable[PriceSample]) -> list[PriceSample]:
        """Append the samples of a fetched batch that are newer than the last one.

        Non-positive prices and samples at or before the current tail are skipped.
        Returns the samples actually appended.
        """
        appended: list[PriceSample] = []
        for sample in sorted(batch, key=lambda s: s.time):
            last = self.latest
            if sample.price <= 0 or (last is not None and sample.time <= last.time):
                continue
            self._samples.append(sample)
            appended.append(sample)
        return appended

    def trim(self, max_points: int) -> None:
        """Drop the oldest samples so at most max_points remain."""
        if max_points > 0 and len(self._samples) > max_points:
            del self._samples[:-max_points]

    def tail(self, points: int) -> list[PriceSample]:
        if points <= 0:
            return []
        return self._samples[-points:]
