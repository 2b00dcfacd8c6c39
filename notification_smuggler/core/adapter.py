from __future__ import annotations

from typing import Any, Callable, Generic, Optional, Type, TypeVar

from ..events.interfaces import Dispatcher, RawSequence, Stream
from ..events.models import Notification
from .envelope import decode
from .identity import PayloadMarker, identity_of

P = TypeVar("P", bound=PayloadMarker)

Decoder = Callable[[Notification], Optional[P]]


class SmuggledSequence(Generic[P]):
    """Async iterator of decoded payloads over a raw notification sequence.

    Notifications that fail to decode are skipped; the sequence only ends
    when the raw sequence ends. Cancelling the consuming task closes the raw
    sequence before anything else is decoded.
    """

    def __init__(self, raw: RawSequence, decoder: Decoder) -> None:
        self._raw = raw
        self._decode = decoder

    def __aiter__(self) -> "SmuggledSequence[P]":
        return self

    async def __anext__(self) -> P:
        while True:
            notification = await self._raw.__anext__()
            value = self._decode(notification)
            if value is not None:
                return value

    async def aclose(self) -> None:
        await self._raw.aclose()

    async def __aenter__(self) -> "SmuggledSequence[P]":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def _decoder(payload_type: Type[P]) -> Decoder:
    def decode_one(notification: Notification) -> Optional[P]:
        return decode(notification, payload_type)

    return decode_one


def observe_sequence(
    dispatcher: Dispatcher,
    payload_type: Type[P],
    sender: Any = None,
    *,
    buffer: Optional[int] = None,
) -> SmuggledSequence[P]:
    """Pull observation of `payload_type`, optionally scoped to one sender."""
    name = identity_of(payload_type).name
    raw = dispatcher.notifications(name, sender=sender, buffer=buffer)
    return SmuggledSequence(raw, _decoder(payload_type))


def observe_stream(dispatcher: Dispatcher, payload_type: Type[P], sender: Any = None) -> Stream[P]:
    """Push observation of `payload_type`; each `sink` is an independent subscriber."""
    name = identity_of(payload_type).name
    return dispatcher.publisher(name, sender=sender).compact_map(_decoder(payload_type))
