"""
Change-observable values.

A ValueStream keeps the latest value and fans every new value out to its
subscribers. Subscribers consume with `async for`, receiving the current
value first and then each later emission in order.

All emissions must happen on the event loop thread: stores do their blocking
work in worker threads and emit once they are back on the loop.
"""
import asyncio
import logging
from typing import Any, Generic, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UNSET = object()


class Subscription(Generic[T]):
    """Async iterator over the values emitted by one ValueStream."""

    def __init__(self, stream: "ValueStream[T]"):
        self._stream = stream
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def backlog(self) -> int:
        """Emissions received but not consumed yet."""
        return self._queue.qsize()

    def _push(self, value: Any):
        if not self._closed:
            self._queue.put_nowait(value)

    def close(self):
        if not self._closed:
            self._closed = True
            self._stream._unsubscribe(self)

    def __aiter__(self):
        return self

    async def __anext__(self) -> T:
        if self._closed:
            raise StopAsyncIteration
        return await self._queue.get()


class ValueStream(Generic[T]):

    def __init__(self, initial: Any = _UNSET, name: str = "stream"):
        self._value = initial
        self._name = name
        self._subscribers: List[Subscription[T]] = []

    @property
    def has_value(self) -> bool:
        return self._value is not _UNSET

    @property
    def value(self) -> T:
        if self._value is _UNSET:
            raise LookupError(f"{self._name} has not emitted a value yet")
        return self._value

    def emit(self, value: T):
        self._value = value
        for subscription in list(self._subscribers):
            subscription._push(value)
        logger.debug(f"{self._name} emitted to {len(self._subscribers)} subscriber(s)")

    def subscribe(self) -> Subscription[T]:
        subscription: Subscription[T] = Subscription(self)
        if self.has_value:
            subscription._push(self._value)
        self._subscribers.append(subscription)
        return subscription

    def _unsubscribe(self, subscription: Subscription[T]):
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
