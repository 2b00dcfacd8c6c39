from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional

from loguru import logger

from ..common.errors import ChannelCollision
from .config import get_config


def qualified_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def channel_name(namespace: str, cls: type) -> str:
    """`<namespace>:<module>.<qualname>` for a payload type."""
    return f"{namespace}:{qualified_name(cls)}"


@dataclass(frozen=True)
class ChannelIdentity:
    """Channel name and payload key of one payload type.

    The user info key is the channel name itself. Producers and consumers
    both rely on the two matching, so the key is derived, never stored.
    """

    name: str

    @property
    def key(self) -> str:
        return self.name


class ChannelRegistry:
    """Process-wide map of channel name -> owning payload type."""

    def __init__(self) -> None:
        self._owners: Dict[str, type] = {}
        self._lock = threading.Lock()

    def register(self, cls: type, namespace: str, channel: Optional[str] = None) -> ChannelIdentity:
        name = channel or channel_name(namespace, cls)
        claimant = qualified_name(cls)
        with self._lock:
            owner = self._owners.get(name)
            # same qualified name means the class was redefined (reload, factory function)
            if owner is not None and owner is not cls and qualified_name(owner) != claimant:
                if get_config().strict_channels:
                    raise ChannelCollision(channel=name, owner=qualified_name(owner), claimant=claimant)
                logger.warning("Channel {} reassigned from {} to {}", name, qualified_name(owner), claimant)
            self._owners[name] = cls
        logger.debug("Registered {} on {}", claimant, name)
        return ChannelIdentity(name)

    def rebind(self, cls: type, identity: ChannelIdentity) -> ChannelIdentity:
        """Hand an existing channel to a rebuilt copy of its owner (e.g. a slots dataclass)."""
        with self._lock:
            self._owners[identity.name] = cls
        logger.debug("Rebound {} to rebuilt {}", identity.name, cls.__name__)
        return identity

    def owner(self, name: str) -> Optional[type]:
        with self._lock:
            return self._owners.get(name)

    def snapshot(self) -> dict[str, type]:
        with self._lock:
            return dict(self._owners)

    def clear(self) -> None:
        with self._lock:
            self._owners.clear()


channels = ChannelRegistry()


class PayloadMarker:
    """Root of the marker classes payload types derive from.

    A subclass declared with `namespace=...` is a marker root: it fixes the
    namespace tag for everything below it and has no channel of its own.
    Any other subclass is a payload type and is registered when the class
    statement runs; `channel=...` pins an explicit channel name.
    """

    namespace: ClassVar[str]
    notification_name: ClassVar[str]
    user_info_key: ClassVar[str]

    def __init_subclass__(cls, *, namespace: Optional[str] = None, channel: Optional[str] = None, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if namespace is not None:
            if channel is not None:
                raise TypeError(f"{cls.__qualname__}: a marker root cannot pin a channel")
            cls.namespace = namespace
            return
        if not hasattr(cls, "namespace"):
            raise TypeError(f"{cls.__qualname__} must derive from a marker root such as Smuggled")

        # a class rebuilt from another's namespace (dataclass slots=True) keeps its channel
        inherited = cls.__dict__.get("_channel_identity")
        if inherited is not None:
            identity = channels.rebind(cls, inherited)
        else:
            identity = channels.register(cls, cls.namespace, channel=channel)
        cls._channel_identity = identity
        cls.notification_name = identity.name
        cls.user_info_key = identity.key


def identity_of(cls: type) -> ChannelIdentity:
    """Channel identity of a payload type; TypeError for anything else."""
    identity = cls.__dict__.get("_channel_identity") if isinstance(cls, type) else None
    if identity is None:
        raise TypeError(f"{cls!r} is not a payload type")
    return identity
