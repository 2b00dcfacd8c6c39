from __future__ import annotations

import weakref
from typing import Any, Callable, Optional


def ref(thing: Any, callback: Optional[Callable[[Any], None]] = None) -> Callable[[], Any]:
    """Return a weak reference to the supplied argument, regardless of
    whether it is a plain callable or a bound method.

    A bound method is referenced through its instance (`WeakMethod`); a plain
    `weakref.ref` to a bound method would die immediately.
    """

    try:
        thing.__func__
        thing.__self__
    except AttributeError:
        return weakref.ref(thing, callback)
    else:
        return weakref.WeakMethod(thing, callback)


def strong(thing: Any) -> Callable[[], Any]:
    """Same call shape as `ref`, but keeps the referent alive."""
    return lambda: thing
