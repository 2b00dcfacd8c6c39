from __future__ import annotations

from typing import Any, Optional, Type, TypeVar

from .core.adapter import SmuggledSequence, observe_sequence, observe_stream
from .core.envelope import decode, decode_or_raise, encode
from .events.bus import NotificationCenter, default_center
from .events.interfaces import Stream
from .events.models import Notification
from .smuggled import Smuggled

C = TypeVar("C", bound=Smuggled)


def notification_for(contraband: Smuggled, *, sender: Any = None) -> Notification:
    """Create a notification that smuggles `contraband`.

    Args:
        contraband: The value to send.
        sender: An optional sender object.
    """
    return encode(contraband, sender)


def smuggle(contraband: Smuggled, *, sender: Any = None, center: Optional[NotificationCenter] = None) -> None:
    """Post a notification that smuggles `contraband`.

    Only observers registered at the time of the call see the value.
    Posting does not always appear to succeed, though: if an observer raises,
    the remaining observers are still called and the first exception is
    then re-raised here.
    """
    (center or default_center).post(encode(contraband, sender))


def smuggled(notification: Notification, contraband_type: Type[C]) -> Optional[C]:
    """Extract the `contraband_type` value from `notification`, or None."""
    return decode(notification, contraband_type)


def require_smuggled(notification: Notification, contraband_type: Type[C]) -> C:
    """Fail-fast variant of `smuggled`; raises MissingPayload or TypeMismatch."""
    return decode_or_raise(notification, contraband_type)


def notifications(
    contraband_type: Type[C],
    *,
    sender: Any = None,
    center: Optional[NotificationCenter] = None,
    buffer: Optional[int] = None,
) -> SmuggledSequence[C]:
    """Async sequence of `contraband_type` values.

    With `sender`, only notifications posted by that very object are seen.
    """
    return observe_sequence(center or default_center, contraband_type, sender, buffer=buffer)


def publisher(
    contraband_type: Type[C],
    *,
    sender: Any = None,
    center: Optional[NotificationCenter] = None,
) -> Stream[C]:
    """Push stream emitting `contraband_type` values."""
    return observe_stream(center or default_center, contraband_type, sender)
