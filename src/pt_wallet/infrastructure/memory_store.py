"""InMemoryWalletStore: process-local WalletStore, plus the matching trade log.

Used by default and in tests. Every method runs to completion without
suspending, so read-create and subscribe-then-deliver are atomic with respect
to other coroutines on the same event loop.
"""

from collections import defaultdict
from collections.abc import Callable
from decimal import Decimal

from src.pt_common.errors import WriteConflictError
from src.pt_common.subscription import KeyedListeners, Subscription
from src.pt_wallet.domain.models import DEFAULT_BALANCE, WalletState, WalletTrade


class InMemoryWalletStore:
    def __init__(self, default_balance: Decimal = DEFAULT_BALANCE) -> None:
        self._default_balance = default_balance
        self._states: dict[str, WalletState] = {}
        self._listeners: KeyedListeners[WalletState] = KeyedListeners()

    def _get_or_create(self, user_id: str) -> WalletState:
        state = self._states.get(user_id)
        if state is None:
            state = WalletState.initial(self._default_balance)
            self._states[user_id] = state
        return state

    async def read(self, user_id: str) -> WalletState:
        return self._get_or_create(user_id)

    async def write(
        self,
        user_id: str,
        new_state: WalletState,
        expected_version: int | None = None,
    ) -> WalletState:
        current = self._get_or_create(user_id)
        if expected_version is not None and current.version != expected_version:
            raise WriteConflictError(user_id, expected_version, current.version)
        stored = new_state.with_version(current.version + 1)
        self._states[user_id] = stored
        self._listeners.publish(user_id, stored)
        return stored

    async def subscribe(
        self,
        user_id: str,
        on_change: Callable[[WalletState], None],
        on_error: Callable[[Exception], None] | None = None,
    ) -> Subscription[WalletState]:
        sub = self._listeners.add(user_id, on_change, on_error)
        sub.deliver(self._get_or_create(user_id))
        return sub

    def subscriber_count(self, user_id: str) -> int:
        return self._listeners.count(user_id)


class InMemoryTradeLog:
    def __init__(self) -> None:
        self._trades: dict[str, list[WalletTrade]] = defaultdict(list)

    async def append(self, trade: WalletTrade) -> None:
        self._trades[trade.user_id].append(trade)

    async def list_recent(self, user_id: str, limit: int = 50) -> list[WalletTrade]:
        """Newest first."""
        trades = self._trades.get(user_id, [])
        return list(reversed(trades[-limit:])) if limit > 0 else []
