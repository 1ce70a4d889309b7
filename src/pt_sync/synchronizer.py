"""StateSynchronizer: merges a user's wallet subscription with the price poller.

State is limited to the last-seen WalletState and PriceSample plus the current
error of each input. Every input event recomputes the PortfolioView in the
same call stack and forwards it to observers.

If the store subscription cannot be established, the view switches to
STORE_UNAVAILABLE and the subscription is retried in the background a bounded
number of times. Feed errors switch the view to FEED_UNAVAILABLE until the
next good sample arrives.
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable

from src.pt_common.errors import AppError, StoreUnavailableError
from src.pt_common.subscription import ListenerRegistry, Subscription
from src.pt_market.application.poller import PricePoller
from src.pt_market.domain.models import PriceSample
from src.pt_sync.models import PortfolioView, compute_view
from src.pt_wallet.domain.models import WalletState
from src.pt_wallet.domain.repository import WalletStoreProtocol

logger = logging.getLogger(__name__)


def _describe(exc: Exception) -> str:
    return exc.message if isinstance(exc, AppError) else str(exc)


class StateSynchronizer:
    def __init__(
        self,
        user_id: str,
        store: WalletStoreProtocol,
        poller: PricePoller,
        retry_attempts: int = 5,
        retry_delay_seconds: float = 1.0,
    ) -> None:
        self.user_id = user_id
        self._store = store
        self._poller = poller
        self._retry_attempts = max(1, retry_attempts)
        self._retry_delay = retry_delay_seconds

        self._wallet: WalletState | None = None
        self._sample: PriceSample | None = None
        self._store_error: str | None = None
        self._feed_error: str | None = None

        self._observers: ListenerRegistry[PortfolioView] = ListenerRegistry()
        self._wallet_sub: Subscription[WalletState] | None = None
        self._price_sub: Subscription[PriceSample] | None = None
        self._retry_task: asyncio.Task[None] | None = None
        self._started = False
        self.view = compute_view(user_id, None, None)

    @property
    def started(self) -> bool:
        return self._started

    def add_observer(self, callback: Callable[[PortfolioView], None]) -> Subscription[PortfolioView]:
        """Register an observer; it receives the current view immediately."""
        sub = self._observers.add(callback)
        sub.deliver(self.view)
        return sub

    # --- input handlers (synchronous) ---

    def _publish(self) -> None:
        if not self._started:
            return
        self.view = compute_view(
            self.user_id, self._wallet, self._sample, self._store_error, self._feed_error
        )
        self._observers.publish(self.view)

    def _on_wallet(self, state: WalletState) -> None:
        self._wallet = state
        self._store_error = None
        self._publish()

    def _on_store_error(self, exc: Exception) -> None:
        self._store_error = _describe(exc)
        self._publish()

    def _on_price(self, sample: PriceSample) -> None:
        self._sample = sample
        self._feed_error = None
        self._publish()

    def _on_feed_error(self, exc: Exception) -> None:
        self._feed_error = _describe(exc)
        self._publish()

    # --- lifecycle ---

    async def _try_subscribe_store(self) -> bool:
        try:
            sub = await self._store.subscribe(self.user_id, self._on_wallet, self._on_store_error)
        except StoreUnavailableError as exc:
            logger.warning("Wallet subscription for %s failed: %s", self.user_id, exc.message)
            self._on_store_error(exc)
            return False
        if not self._started:
            # stop() ran while the subscription was being set up
            sub.cancel()
            return True
        self._wallet_sub = sub
        return True

    async def _retry_store_subscription(self) -> None:
        for attempt in range(2, self._retry_attempts + 1):
            await asyncio.sleep(self._retry_delay)
            if not self._started:
                return
            logger.info(
                "Retrying wallet subscription for %s (attempt %d/%d)",
                self.user_id, attempt, self._retry_attempts,
            )
            if await self._try_subscribe_store():
                return
        logger.error(
            "Wallet subscription for %s failed after %d attempts", self.user_id, self._retry_attempts
        )

    async def start(self) -> None:
        if self._started:
            return
        self._started = True
        self._price_sub = self._poller.subscribe(self._on_price, self._on_feed_error)
        if not await self._try_subscribe_store() and self._retry_attempts > 1:
            self._retry_task = asyncio.create_task(
                self._retry_store_subscription(), name=f"wallet-resubscribe-{self.user_id}"
            )

    async def stop(self) -> None:
        """Release every subscription and pending retry; no callbacks fire afterwards."""
        self._started = False
        if self._wallet_sub is not None:
            self._wallet_sub.cancel()
            self._wallet_sub = None
        if self._price_sub is not None:
            self._price_sub.cancel()
            self._price_sub = None
        task, self._retry_task = self._retry_task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def close(self) -> None:
        self._observers.clear()
