from __future__ import annotations

from .core.identity import PayloadMarker


class Smuggled(PayloadMarker, namespace="NotificationSmuggler"):
    """Marker for types that travel as notifications with associated data.

    Deriving from `Smuggled` registers the class under a channel name
    (`"NotificationSmuggler:<module>.<qualname>"`) that doubles as the user
    info key, so the value can be posted and observed without any manual
    `user_info` bookkeeping.

    Define a notification type::

        @dataclass(frozen=True)
        class AccountAuthenticated(Smuggled):
            account_id: str
            timestamp: datetime

    Post it::

        smuggle(AccountAuthenticated(account_id="abc123", timestamp=now))

    Observe it::

        async for authentication in notifications(AccountAuthenticated):
            print(f"Account {authentication.account_id} authenticated")

    Pin a channel explicitly with ``class Answer(Smuggled, channel="NS:Answer")``
    or introduce a namespace of your own with
    ``class AppEvent(Smuggled, namespace="App")``.

    Frozen dataclasses are recommended when values are observed from several
    tasks or threads: the same instance is handed to every subscriber.
    """
