from __future__ import annotations

import asyncio
import threading
from collections import deque
from typing import Callable, Deque, Generic, Optional, TypeVar

from loguru import logger

from .interfaces import Cancellable
from .models import Notification

T = TypeVar("T")
U = TypeVar("U")

Receiver = Callable[[Notification], None]
Attach = Callable[[Receiver, Callable[[], None]], Cancellable]


def _resolve(waiter: asyncio.Future) -> None:
    if not waiter.done():
        waiter.set_result(None)


class NotificationSequence:
    """Pull sequence over one dispatcher registration.

    The registration is made when the sequence is created, so notifications
    posted afterwards are buffered even before the first `__anext__`. Posting
    never suspends; the consuming task suspends in `__anext__` until something
    arrives or the sequence ends.

    Single consumer: one task iterates a given sequence. For fan-out, create
    one sequence per consumer.
    """

    def __init__(self, attach: Attach, maxsize: int = 0) -> None:
        self._buffer: Deque[Notification] = deque(maxlen=maxsize or None)
        self._lock = threading.Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._waiter: Optional[asyncio.Future] = None
        self._closed = False
        self._token: Optional[Cancellable] = attach(self._receive, self._finish)

    @property
    def closed(self) -> bool:
        return self._closed

    def _receive(self, notification: Notification) -> None:
        with self._lock:
            if self._closed:
                return
            if self._buffer.maxlen is not None and len(self._buffer) == self._buffer.maxlen:
                logger.debug("Sequence buffer full on {}, dropping oldest notification", notification.name)
            self._buffer.append(notification)
        self._wake()

    def _finish(self) -> None:
        # dispatcher dropped the registration; drain what is buffered, then stop
        with self._lock:
            self._closed = True
            self._token = None
        self._wake()

    def _wake(self) -> None:
        with self._lock:
            waiter, loop = self._waiter, self._loop
        if waiter is None or loop is None:
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            _resolve(waiter)
        elif not loop.is_closed():
            loop.call_soon_threadsafe(_resolve, waiter)

    def close(self) -> None:
        """Detach from the dispatcher and discard anything still buffered."""
        with self._lock:
            self._closed = True
            self._buffer.clear()
            token, self._token = self._token, None
        if token is not None:
            token.cancel()
        self._wake()

    async def aclose(self) -> None:
        self.close()

    def __aiter__(self) -> "NotificationSequence":
        return self

    async def __anext__(self) -> Notification:
        while True:
            with self._lock:
                if self._buffer:
                    return self._buffer.popleft()
                if self._closed:
                    raise StopAsyncIteration
                self._loop = asyncio.get_running_loop()
                waiter = self._waiter = self._loop.create_future()
            try:
                await waiter
            except asyncio.CancelledError:
                self.close()
                raise
            finally:
                with self._lock:
                    if self._waiter is waiter:
                        self._waiter = None

    async def __aenter__(self) -> "NotificationSequence":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()


class Publisher(Generic[T]):
    """Push stream over a registration factory.

    Every `sink` attaches an independent subscriber and returns its own
    cancellation handle; cancelling one leaves the others untouched.
    Values are delivered synchronously on the posting thread.
    """

    def __init__(self, attach: Callable[[Callable[[T], None]], Cancellable]) -> None:
        self._attach = attach

    def sink(self, receive: Callable[[T], None]) -> Cancellable:
        return self._attach(receive)

    def compact_map(self, transform: Callable[[T], Optional[U]]) -> "Publisher[U]":
        """Transform each value, dropping those that map to None."""
        upstream = self._attach

        def attach(receive: Callable[[U], None]) -> Cancellable:
            def forward(value: T) -> None:
                out = transform(value)
                if out is not None:
                    receive(out)

            return upstream(forward)

        return Publisher(attach)
