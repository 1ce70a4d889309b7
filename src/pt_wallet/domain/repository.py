"""WalletStore Protocol: dependency inversion for testability.

Contract shared by every backend:
  read()      first read creates the default state, at most once per user
  write()     last-writer-wins unless expected_version is given (compare-and-swap)
  subscribe() delivers the current state before returning, then every change
              until the returned Subscription is cancelled
"""

from collections.abc import Callable
from typing import Protocol

from src.pt_common.subscription import Subscription
from src.pt_wallet.domain.models import WalletState, WalletTrade


class WalletStoreProtocol(Protocol):
    async def read(self, user_id: str) -> WalletState: ...

    async def write(
        self,
        user_id: str,
        new_state: WalletState,
        expected_version: int | None = None,
    ) -> WalletState: ...

    async def subscribe(
        self,
        user_id: str,
        on_change: Callable[[WalletState], None],
        on_error: Callable[[Exception], None] | None = None,
    ) -> Subscription[WalletState]: ...


class TradeLogProtocol(Protocol):
    async def append(self, trade: WalletTrade) -> None: ...

    async def list_recent(self, user_id: str, limit: int = 50) -> list[WalletTrade]: ...
