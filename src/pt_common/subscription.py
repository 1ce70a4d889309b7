"""Observer list with cancellation tokens.

A ListenerRegistry fans a value out to every active Subscription. Listener
callbacks are plain synchronous callables; a listener that raises is logged and
skipped so it cannot starve the others.
"""

import logging
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[T], None]
ErrorListener = Callable[[Exception], None]


class Subscription(Generic[T]):
    """Cancellation token returned by every subscribe()."""

    def __init__(
        self,
        registry: "ListenerRegistry[T]",
        on_next: Listener[T],
        on_error: ErrorListener | None = None,
    ) -> None:
        self._registry = registry
        self._on_next = on_next
        self._on_error = on_error
        self._active = True
        self.delivered = False

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        """Stop delivery. Safe to call more than once."""
        if not self._active:
            return
        self._active = False
        self._registry._remove(self)

    def deliver(self, value: T) -> None:
        if not self._active:
            return
        self.delivered = True
        try:
            self._on_next(value)
        except Exception:
            logger.exception("Listener %r failed while handling %r", self._on_next, value)

    def deliver_error(self, exc: Exception) -> None:
        if not self._active or self._on_error is None:
            return
        try:
            self._on_error(exc)
        except Exception:
            logger.exception("Error listener %r failed while handling %r", self._on_error, exc)


class ListenerRegistry(Generic[T]):
    def __init__(self, on_empty: Callable[[], None] | None = None) -> None:
        self._subscriptions: list[Subscription[T]] = []
        self._on_empty = on_empty

    def __len__(self) -> int:
        return len(self._subscriptions)

    def add(self, on_next: Listener[T], on_error: ErrorListener | None = None) -> Subscription[T]:
        sub = Subscription(self, on_next, on_error)
        self._subscriptions.append(sub)
        return sub

    def publish(self, value: T) -> None:
        # Iterate over a copy: listeners may cancel themselves or others mid-publish
        for sub in list(self._subscriptions):
            sub.deliver(value)

    def publish_error(self, exc: Exception) -> None:
        for sub in list(self._subscriptions):
            sub.deliver_error(exc)

    def clear(self) -> None:
        for sub in list(self._subscriptions):
            sub.cancel()

    def _remove(self, sub: Subscription[T]) -> None:
        try:
            self._subscriptions.remove(sub)
        except ValueError:
            return
        if not self._subscriptions and self._on_empty is not None:
            self._on_empty()


class KeyedListeners(Generic[T]):
    """One ListenerRegistry per key, created on first subscribe and dropped
    when its last subscription is cancelled. Publishing to a key nobody
    listens to is a no-op."""

    def __init__(self) -> None:
        self._registries: dict[str, ListenerRegistry[T]] = {}

    def add(
        self, key: str, on_next: Listener[T], on_error: ErrorListener | None = None
    ) -> Subscription[T]:
        registry = self._registries.get(key)
        if registry is None:
            registry = ListenerRegistry(on_empty=lambda: self._drop(key, registry))
            self._registries[key] = registry
        return registry.add(on_next, on_error)

    def publish(self, key: str, value: T) -> None:
        registry = self._registries.get(key)
        if registry is not None:
            registry.publish(value)

    def publish_error(self, key: str, exc: Exception) -> None:
        registry = self._registries.get(key)
        if registry is not None:
            registry.publish_error(exc)

    def count(self, key: str) -> int:
        registry = self._registries.get(key)
        return len(registry) if registry is not None else 0

    def __contains__(self, key: str) -> bool:
        return key in self._registries

    def _drop(self, key: str, registry: "ListenerRegistry[T] | None") -> None:
        if self._registries.get(key) is registry:
            del self._registries[key]
