from __future__ import annotations

from typing import Any, AsyncIterator, Callable, Optional, Protocol, TypeVar

from .models import Notification

T = TypeVar("T")
U = TypeVar("U")


class Cancellable(Protocol):
    """Handle returned for every registration; cancelling detaches it."""

    def cancel(self) -> None:
        ...


class Stream(Protocol[T]):
    """Push stream: every `sink` is an independent subscriber."""

    def sink(self, receive: Callable[[T], None]) -> Cancellable:
        ...

    def compact_map(self, transform: Callable[[T], Optional[U]]) -> "Stream[U]":
        ...


class RawSequence(Protocol):
    """Pull sequence of raw notifications."""

    def __aiter__(self) -> AsyncIterator[Notification]:
        ...

    async def __anext__(self) -> Notification:
        ...

    async def aclose(self) -> None:
        ...


class Dispatcher(Protocol):
    """Broadcast primitive the typed layer is built on (depends on interface, not implementation)."""

    def post(self, notification: Notification) -> None:
        ...

    def notifications(self, name: str, *, sender: Any = None, buffer: Optional[int] = None) -> RawSequence:
        ...

    def publisher(self, name: str, *, sender: Any = None) -> Stream[Notification]:
        ...
