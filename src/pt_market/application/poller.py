"""PricePoller: interval polling of one symbol from a PriceFeed.

The poller owns the symbol's PriceHistory. Each poll fetches the most recent
`points` samples (with a bounded retry), merges the new ones into the history
(keeping at most `history_capacity` samples) and notifies subscribers with the latest sample. Trades read latest() and never
wait for a poll.

Lifecycle: start() spawns one asyncio task, stop() cancels and awaits it.
A stopped poller can be started again.
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable

from src.pt_common.errors import AppError, FeedUnavailableError
from src.pt_common.subscription import ListenerRegistry, Subscription
from src.pt_market.domain.feed import PriceFeedProtocol
from src.pt_market.domain.models import PriceHistory, PriceSample

logger = logging.getLogger(__name__)


class PricePoller:
    def __init__(
        self,
        feed: PriceFeedProtocol,
        symbol: str,
        interval_seconds: float = 5.0,
        points: int = 24,
        retry_attempts: int = 3,
        retry_delay_seconds: float = 0.5,
        history_capacity: int = 500,
    ) -> None:
        self.feed = feed
        self.symbol = symbol
        self.history = PriceHistory(symbol)
        self._interval = interval_seconds
        self._points = points
        self._retry_attempts = max(1, retry_attempts)
        self._retry_delay = retry_delay_seconds
        self._history_capacity = max(1, history_capacity)
        self._listeners: ListenerRegistry[PriceSample] = ListenerRegistry()
        self._task: asyncio.Task[None] | None = None
        self.last_error: AppError | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def latest(self) -> PriceSample | None:
        """Most recently observed sample; never blocks."""
        return self.history.latest

    def subscribe(
        self,
        on_sample: Callable[[PriceSample], None],
        on_error: Callable[[Exception], None] | None = None,
    ) -> Subscription[PriceSample]:
        sub = self._listeners.add(on_sample, on_error)
        latest = self.latest()
        if latest is not None:
            sub.deliver(latest)
        return sub

    async def _fetch_with_retry(self) -> list[PriceSample]:
        for attempt in range(1, self._retry_attempts + 1):
            try:
                return await self.feed.fetch_history(self.symbol, self._points)
            except FeedUnavailableError as exc:
                logger.warning(
                    "Price fetch for %s failed (attempt %d/%d): %s",
                    self.symbol, attempt, self._retry_attempts, exc.message,
                )
                if attempt == self._retry_attempts:
                    raise
                await asyncio.sleep(self._retry_delay)
        raise FeedUnavailableError(f"No attempts made for {self.symbol}")

    async def poll_once(self) -> list[PriceSample]:
        """Fetch and merge one batch. Returns the newly appended samples.

        Raises FeedUnavailableError after the retry budget is spent; subscribers
        are notified of the error first.
        """
        try:
            batch = await self._fetch_with_retry()
        except AppError as exc:
            self.last_error = exc
            self._listeners.publish_error(exc)
            raise
        self.last_error = None
        appended = self.history.merge(batch)
        self.history.trim(self._history_capacity)
        if appended:
            self._listeners.publish(appended[-1])
        return appended

    async def _run(self) -> None:
        logger.info("Price poller started: %s every %.1fs", self.symbol, self._interval)
        while True:
            try:
                await self.poll_once()
            except AppError:
                pass  # already logged and published to subscribers
            except Exception as exc:
                logger.exception("Unexpected price poll error for %s", self.symbol)
                self.last_error = FeedUnavailableError(str(exc))
                self._listeners.publish_error(self.last_error)
            await asyncio.sleep(self._interval)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=f"price-poller-{self.symbol}")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Price poller stopped: %s", self.symbol)

    def close(self) -> None:
        """Drop every subscriber. Use after stop() when tearing the poller down."""
        self._listeners.clear()
