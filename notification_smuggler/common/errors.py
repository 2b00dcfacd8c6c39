from __future__ import annotations

import reprlib
from dataclasses import dataclass
from typing import Any, Optional


def preview(value: Any) -> str:
    """Bounded repr of a foreign value; never raises."""
    try:
        return reprlib.repr(value)
    except Exception:
        return object.__repr__(value)


@dataclass(eq=False)
class SmuggleError(Exception):
    """Base error for envelope and channel failures.

    `code` is a stable machine-readable tag, `data` carries the fields the
    diagnostic log line is built from.
    """

    code: str
    message: str
    data: Optional[dict[str, Any]] = None

    def __str__(self) -> str:
        return self.message


class MissingPayload(SmuggleError):
    """The payload key is absent from the notification's user info."""

    def __init__(self, *, payload_type: str, key: str, channel: str) -> None:
        super().__init__(
            code="MISSING_PAYLOAD",
            message=f"Value not found in user_info[{key!r}] on {channel!r}",
            data={"payload_type": payload_type, "key": key, "channel": channel},
        )


class TypeMismatch(SmuggleError):
    """The payload key is present but holds a value of another type."""

    def __init__(self, *, payload_type: str, key: str, channel: str, actual: Any) -> None:
        actual_type = type(actual).__qualname__
        super().__init__(
            code="TYPE_MISMATCH",
            message=f"Failed to cast {preview(actual)} ({actual_type}) as {payload_type} from user_info[{key!r}] on {channel!r}",
            data={
                "payload_type": payload_type,
                "key": key,
                "channel": channel,
                "actual_type": actual_type,
            },
        )


class ChannelCollision(SmuggleError):
    """Two distinct payload types claimed the same channel name."""

    def __init__(self, *, channel: str, owner: str, claimant: str) -> None:
        super().__init__(
            code="CHANNEL_COLLISION",
            message=f"Channel {channel!r} already belongs to {owner}, cannot register {claimant}",
            data={"channel": channel, "owner": owner, "claimant": claimant},
        )
