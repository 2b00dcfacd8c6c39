"""First-generation typed notifications.

Same envelope scheme as `Smuggled` under the `"BetterNotification"` namespace,
observed by channel name only: there is no sender scoping and no post helper.
Kept so producers and consumers still on the old channel names interoperate.
"""

from __future__ import annotations

from typing import Any, Optional, Type, TypeVar

from .core.adapter import SmuggledSequence, observe_sequence, observe_stream
from .core.envelope import decode, encode
from .core.identity import PayloadMarker
from .events.interfaces import Dispatcher, Stream
from .events.models import Notification


class BetterNotification(PayloadMarker, namespace="BetterNotification"):
    """Marker for first-generation notification types.

    Conforming types get `notification_name` and `user_info_key`, both
    `"BetterNotification:<module>.<qualname>"`.
    """


B = TypeVar("B", bound=BetterNotification)


def better(value: BetterNotification, sender: Any = None) -> Notification:
    return encode(value, sender)


def extract(notification: Notification, better_type: Type[B]) -> Optional[B]:
    return decode(notification, better_type)


def notifications(center: Dispatcher, better_type: Type[B]) -> SmuggledSequence[B]:
    return observe_sequence(center, better_type)


def publisher(center: Dispatcher, better_type: Type[B]) -> Stream[B]:
    return observe_stream(center, better_type)
