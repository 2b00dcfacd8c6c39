from __future__ import annotations

import threading
from collections import defaultdict
from typing import Any, Callable, DefaultDict, List, Mapping, MutableSet, Optional, Union

from loguru import logger

from ..common import weak
from ..core.config import get_config
from .models import Notification
from .stream import NotificationSequence, Publisher

Observer = Callable[[Notification], None]


class ObserverToken:
    """Registration handle returned by `NotificationCenter.add_observer`."""

    def __init__(self, center: "NotificationCenter", name: str, sender: Any = None) -> None:
        self.name = name
        self.sender = sender
        self.active = True
        self._center = center
        self._observer: Callable[[], Optional[Observer]] = weak.strong(None)
        self._on_close: Optional[Callable[[], Optional[Callable[[], None]]]] = None

    def _bind(self, fn: Observer, on_close: Optional[Callable[[], None]], weakly: bool) -> None:
        if weakly:
            self._observer = weak.ref(fn, self._collected)
            self._on_close = weak.ref(on_close) if on_close is not None else None
        else:
            self._observer = weak.strong(fn)
            self._on_close = weak.strong(on_close) if on_close is not None else None

    def _collected(self, _ref: object) -> None:
        # pruned from the center on its next pass
        self.active = False

    def observer(self) -> Optional[Observer]:
        return self._observer()

    def matches(self, notification: Notification) -> bool:
        return self.sender is None or notification.object is self.sender

    def close(self) -> None:
        """Tell the observer its registration ended (sequence end-of-stream)."""
        self.active = False
        fn = self._on_close() if self._on_close is not None else None
        if fn is not None:
            fn()

    def cancel(self) -> None:
        if self.active:
            self._center.remove_observer(self)

    def store_in(self, bag: Union[MutableSet["ObserverToken"], List["ObserverToken"]]) -> "ObserverToken":
        if isinstance(bag, list):
            bag.append(self)
        else:
            bag.add(self)
        return self

    def __enter__(self) -> "ObserverToken":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cancel()

    def __repr__(self) -> str:
        state = "active" if self.active else "cancelled"
        return f"<ObserverToken {self.name!r} {state}>"


class NotificationCenter:
    """In-process broadcast of named notifications.

    Delivery is synchronous, at-most-once, to whatever is registered at the
    time of `post`. Observers scoped to a sender only see notifications whose
    `object` is that very sender.
    """

    def __init__(self) -> None:
        self._observers: DefaultDict[str, List[ObserverToken]] = defaultdict(list)
        self._lock = threading.RLock()

    def _prune(self, name: str) -> None:
        observers = self._observers.get(name)
        if observers is None:
            return
        alive = [t for t in observers if t.active]
        if alive:
            self._observers[name] = alive
        else:
            del self._observers[name]

    def add_observer(
        self,
        name: str,
        fn: Observer,
        *,
        sender: Any = None,
        weak: bool = False,
        on_close: Optional[Callable[[], None]] = None,
    ) -> ObserverToken:
        """Register `fn` for notifications named `name`.

        With `weak=True` the center does not keep `fn` (or `on_close`) alive;
        the registration lapses once the callable is garbage collected.
        """
        token = ObserverToken(self, name, sender)
        token._bind(fn, on_close, weak)
        with self._lock:
            self._prune(name)
            self._observers[name].append(token)
            total = len(self._observers[name])
        logger.debug("Observer added for {} (total: {})", name, total)
        return token

    def remove_observer(self, token: ObserverToken) -> None:
        with self._lock:
            token.active = False
            observers = self._observers.get(token.name)
            if observers is not None and token in observers:
                observers.remove(token)
                if not observers:
                    del self._observers[token.name]
        logger.debug("Observer removed for {}", token.name)

    def observer_count(self, name: Optional[str] = None) -> int:
        with self._lock:
            names = [name] if name is not None else list(self._observers)
            for n in names:
                self._prune(n)
            return sum(len(self._observers.get(n, ())) for n in names)

    def post(self, notification: Notification) -> None:
        """Deliver to every matching observer.

        A failing observer does not stop delivery to the others; the first
        failure is re-raised once every observer has been called.
        """
        with self._lock:
            self._prune(notification.name)
            snapshot = list(self._observers.get(notification.name, ()))

        errors: list[Exception] = []
        delivered = 0
        for token in snapshot:
            if not token.active or not token.matches(notification):
                continue
            fn = token.observer()
            if fn is None:
                token.active = False
                continue
            try:
                fn(notification)
            except Exception as e:
                logger.opt(exception=e).error("Observer failed for {}", notification.name)
                errors.append(e)
            else:
                delivered += 1

        logger.trace("Posted {} ({} delivered, {} failed)", notification.name, delivered, len(errors))
        if errors:
            raise errors[0]

    def post_name(self, name: str, sender: Any = None, user_info: Optional[Mapping[str, Any]] = None) -> None:
        self.post(Notification(name=name, object=sender, user_info=user_info))

    def notifications(self, name: str, *, sender: Any = None, buffer: Optional[int] = None) -> NotificationSequence:
        """Pull sequence of notifications named `name`.

        The sequence registers weakly: dropping it without closing still
        releases the registration.
        """
        size = get_config().sequence_buffer if buffer is None else buffer

        def attach(receive: Observer, on_close: Callable[[], None]) -> ObserverToken:
            return self.add_observer(name, receive, sender=sender, weak=True, on_close=on_close)

        return NotificationSequence(attach, maxsize=size)

    def publisher(self, name: str, *, sender: Any = None) -> Publisher[Notification]:
        """Push stream of notifications named `name`; one registration per sink."""

        def attach(receive: Observer) -> ObserverToken:
            return self.add_observer(name, receive, sender=sender)

        return Publisher(attach)

    def clear(self) -> None:
        """Drop every registration and end every open sequence (primarily for tests)."""
        with self._lock:
            tokens = [t for observers in self._observers.values() for t in observers]
            self._observers.clear()
        for token in tokens:
            token.close()
        logger.debug("Cleared {} observer(s)", len(tokens))


default_center = NotificationCenter()
