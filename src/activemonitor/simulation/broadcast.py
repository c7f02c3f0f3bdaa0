"""Per-subscriber fan-out of applied snapshots and alerts."""

from __future__ import annotations

import asyncio
from typing import Callable, Generic, TypeVar


T = TypeVar("T")

_CLOSED = object()


class Subscription(Generic[T]):
    """Unbounded async iterator fed by a :class:`Broadcaster`."""

    def __init__(self, on_close: Callable[[Subscription[T]], None]) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._on_close = on_close
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def pending(self) -> int:
        """Number of items delivered but not yet consumed."""
        return self._queue.qsize()

    def _deliver(self, item: T) -> None:
        if not self._closed:
            self._queue.put_nowait(item)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)
        self._on_close(self)

    def __aiter__(self) -> Subscription[T]:
        return self

    async def __anext__(self) -> T:
        item = await self._queue.get()
        if item is _CLOSED:
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        return item  # type: ignore[return-value]


class Broadcaster(Generic[T]):
    """Delivers every published item to all live subscriptions."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription[T]] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, *, replay: T | None = None) -> Subscription[T]:
        """Open a subscription. After ``close_all`` it is returned already closed."""
        subscription: Subscription[T] = Subscription(on_close=self._remove)
        if replay is not None:
            subscription._deliver(replay)
        if self._closed:
            subscription.close()
            return subscription
        self._subscriptions.append(subscription)
        return subscription

    def publish(self, item: T) -> None:
        for subscription in tuple(self._subscriptions):
            subscription._deliver(item)

    def close_all(self) -> None:
        self._closed = True
        for subscription in tuple(self._subscriptions):
            subscription.close()

    def _remove(self, subscription: Subscription[T]) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
