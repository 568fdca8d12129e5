"""Replay-latest broadcast of sync status to any number of async subscribers."""
from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Generic, TypeVar

T = TypeVar("T")

_CLOSED = object()


class StatusFeed(Generic[T]):
    """Keeps the latest value; every new subscriber gets it first, then each later publish."""

    def __init__(self, initial: T):
        self._value = initial
        self._subscribers: set[asyncio.Queue] = set()
        self._closed = False

    @property
    def value(self) -> T:
        return self._value

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, value: T) -> None:
        if self._closed:
            raise RuntimeError("Cannot publish to a closed status feed")
        self._value = value
        for queue in self._subscribers:
            queue.put_nowait(value)

    def close(self) -> None:
        """End every subscription after it has drained what was already published."""
        if self._closed:
            return
        self._closed = True
        for queue in self._subscribers:
            queue.put_nowait(_CLOSED)

    async def subscribe(self) -> AsyncIterator[T]:
        queue: asyncio.Queue = asyncio.Queue()
        queue.put_nowait(self._value)
        if self._closed:
            queue.put_nowait(_CLOSED)
        else:
            self._subscribers.add(queue)
        try:
            while True:
                item = await queue.get()
                if item is _CLOSED:
                    return
                yield item
        finally:
            self._subscribers.discard(queue)
