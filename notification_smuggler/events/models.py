from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class Notification:
    """Raw broadcast envelope.

    Note:
    - `name` is the channel the notification is routed on.
    - `object` is the optional sender; observers scoped to a sender compare it
      by identity, never by equality.
    - `user_info` is untyped. Envelopes built by this package hold exactly one
      entry; notifications posted by other code may hold any number, or None.
    """

    name: str
    object: Any = None
    user_info: Optional[Mapping[str, Any]] = None
