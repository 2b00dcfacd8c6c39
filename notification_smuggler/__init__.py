"""Type-safe notifications over an untyped broadcast center."""

from __future__ import annotations

from .common.errors import ChannelCollision, MissingPayload, SmuggleError, TypeMismatch
from .common.log import configure_logging
from .core.adapter import SmuggledSequence
from .core.config import SmugglerConfig, get_config, reset_config, set_config
from .core.identity import ChannelIdentity, identity_of
from .events.bus import NotificationCenter, ObserverToken, default_center
from .events.models import Notification
from .events.stream import NotificationSequence, Publisher
from .smuggled import Smuggled
from .smuggling import notification_for, notifications, publisher, require_smuggled, smuggle, smuggled

__all__ = [
    "ChannelCollision",
    "ChannelIdentity",
    "MissingPayload",
    "Notification",
    "NotificationCenter",
    "NotificationSequence",
    "ObserverToken",
    "Publisher",
    "SmuggleError",
    "Smuggled",
    "SmuggledSequence",
    "SmugglerConfig",
    "TypeMismatch",
    "configure_logging",
    "default_center",
    "get_config",
    "identity_of",
    "notification_for",
    "notifications",
    "publisher",
    "require_smuggled",
    "reset_config",
    "set_config",
    "smuggle",
    "smuggled",
]

__version__ = "0.1.0"
