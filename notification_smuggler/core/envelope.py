"""Encode typed payloads into notifications and narrow them back out.

Decoding never raises for a missing or mistyped payload: observers iterate
live streams that may carry foreign or malformed notifications, and one bad
notification must not end an observation. Failures are written to the
advisory log instead.
"""

from __future__ import annotations

from typing import Any, Optional, Type, TypeVar

from loguru import logger

from ..common.errors import MissingPayload, SmuggleError, TypeMismatch
from ..events.models import Notification
from .config import get_config
from .identity import PayloadMarker, identity_of

P = TypeVar("P", bound=PayloadMarker)


def encode(value: PayloadMarker, sender: Any = None) -> Notification:
    """Build the single-entry envelope for `value`, routed on its type's channel."""
    identity = identity_of(type(value))
    return Notification(name=identity.name, object=sender, user_info={identity.key: value})


def decode_or_raise(notification: Notification, payload_type: Type[P]) -> P:
    """Narrow the payload out of `notification`.

    Raises:
        MissingPayload: the payload key is absent (or there is no user info).
        TypeMismatch: the key holds something that is not a `payload_type`.
    """
    key = identity_of(payload_type).key
    user_info = notification.user_info or {}
    if key not in user_info:
        raise MissingPayload(payload_type=payload_type.__qualname__, key=key, channel=notification.name)

    value = user_info[key]
    if not isinstance(value, payload_type):
        raise TypeMismatch(
            payload_type=payload_type.__qualname__,
            key=key,
            channel=notification.name,
            actual=value,
        )
    return value


def report_decode_failure(exc: SmuggleError) -> None:
    data = exc.data or {}
    logger.log(get_config().decode_failure_level, "[{}] {}", data.get("payload_type", "?"), exc.message)


def decode(notification: Notification, payload_type: Type[P]) -> Optional[P]:
    """Like `decode_or_raise`, but logs the failure and returns None."""
    try:
        return decode_or_raise(notification, payload_type)
    except (MissingPayload, TypeMismatch) as exc:
        report_decode_failure(exc)
        return None
