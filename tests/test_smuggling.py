"""Typed observation end to end: post typed values, observe typed values.

The observing task and the test share one event loop. The observer has to
be registered before the post it expects, so every test yields to the loop
(`await asyncio.sleep(0)`) after starting the observing task. Posting never
waits on observers, so the two cannot block each other.
"""

import asyncio
import unittest
from dataclasses import dataclass

from notification_smuggler import (
    Notification,
    NotificationCenter,
    Smuggled,
    SmugglerConfig,
    default_center,
    notifications,
    publisher,
    reset_config,
    set_config,
    smuggle,
)
from notification_smuggler.core import envelope


@dataclass(frozen=True)
class Hitchhikers(Smuggled):
    answer: int


@dataclass(frozen=True)
class Answer(Smuggled, channel="NS:Answer"):
    value: int


class Grumpy:
    def __repr__(self):
        raise RuntimeError("no repr")


def imposter(payload="imposter"):
    return Notification(
        name=Hitchhikers.notification_name,
        object=None,
        user_info={Hitchhikers.user_info_key: payload},
    )


class SmugglingTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        set_config(SmugglerConfig())
        self.addCleanup(reset_config)
        self.center = NotificationCenter()

    def collect(self, sequence, into, limit=None):
        async def observe():
            async for value in sequence:
                into.append(value)
                if limit is not None and len(into) >= limit:
                    break

        return asyncio.create_task(observe())

    async def stop(self, task):
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


class TestAsyncSequence(SmugglingTestCase):
    async def test_receives_value(self):
        received = []
        task = self.collect(notifications(Hitchhikers, center=self.center), received, limit=1)
        await asyncio.sleep(0)

        smuggle(Hitchhikers(answer=42), center=self.center)
        await asyncio.wait_for(task, timeout=1)
        self.assertEqual(received, [Hitchhikers(answer=42)])

    async def test_ignores_invalid_payloads(self):
        received = []
        task = self.collect(notifications(Hitchhikers, center=self.center), received)
        self.addAsyncCleanup(self.stop, task)
        await asyncio.sleep(0)

        self.center.post(imposter())
        await asyncio.sleep(0.01)
        self.assertEqual(received, [])
        self.assertFalse(task.done())

    async def test_survives_malformed_notification(self):
        received = []
        task = self.collect(notifications(Hitchhikers, center=self.center), received, limit=2)
        await asyncio.sleep(0)

        self.center.post(imposter())
        smuggle(Hitchhikers(answer=1), center=self.center)
        self.center.post(Notification(name=Hitchhikers.notification_name))
        smuggle(Hitchhikers(answer=2), center=self.center)
        await asyncio.wait_for(task, timeout=1)
        self.assertEqual([h.answer for h in received], [1, 2])

    async def test_survives_unprintable_payload(self):
        received = []
        task = self.collect(notifications(Hitchhikers, center=self.center), received, limit=1)
        await asyncio.sleep(0)

        self.center.post(imposter(Grumpy()))
        smuggle(Hitchhikers(answer=42), center=self.center)
        await asyncio.wait_for(task, timeout=1)
        self.assertEqual(received, [Hitchhikers(answer=42)])

    async def test_fan_out(self):
        first, second = [], []
        tasks = [
            self.collect(notifications(Hitchhikers, center=self.center), first),
            self.collect(notifications(Hitchhikers, center=self.center), second),
        ]
        for task in tasks:
            self.addAsyncCleanup(self.stop, task)
        await asyncio.sleep(0)

        smuggle(Hitchhikers(answer=42), center=self.center)
        await asyncio.sleep(0.01)
        self.assertEqual(first, [Hitchhikers(answer=42)])
        self.assertEqual(second, [Hitchhikers(answer=42)])

    async def test_sender_filtering(self):
        s1, s2 = object(), object()
        scoped, unscoped = [], []
        tasks = [
            self.collect(notifications(Hitchhikers, sender=s1, center=self.center), scoped),
            self.collect(notifications(Hitchhikers, center=self.center), unscoped),
        ]
        for task in tasks:
            self.addAsyncCleanup(self.stop, task)
        await asyncio.sleep(0)

        smuggle(Hitchhikers(answer=2), sender=s2, center=self.center)
        smuggle(Hitchhikers(answer=0), center=self.center)
        smuggle(Hitchhikers(answer=1), sender=s1, center=self.center)
        await asyncio.sleep(0.01)
        self.assertEqual([h.answer for h in scoped], [1])
        self.assertEqual([h.answer for h in unscoped], [2, 0, 1])

    async def test_cancellation_stops_decoding(self):
        decoded = []
        real_decode = envelope.decode

        def counting(notification, payload_type):
            decoded.append(notification)
            return real_decode(notification, payload_type)

        received = []
        sequence = notifications(Hitchhikers, center=self.center)
        sequence._decode = lambda n: counting(n, Hitchhikers)
        task = self.collect(sequence, received)
        await asyncio.sleep(0)

        smuggle(Hitchhikers(answer=1), center=self.center)
        await asyncio.sleep(0)
        await self.stop(task)

        self.assertEqual(self.center.observer_count(Hitchhikers.notification_name), 0)
        smuggle(Hitchhikers(answer=2), center=self.center)
        await asyncio.sleep(0)
        self.assertEqual(len(decoded), 1)
        self.assertEqual([h.answer for h in received], [1])

    async def test_context_manager(self):
        async with notifications(Hitchhikers, center=self.center) as sequence:
            smuggle(Hitchhikers(answer=42), center=self.center)
            value = await asyncio.wait_for(sequence.__anext__(), timeout=1)
        self.assertEqual(value.answer, 42)
        self.assertEqual(self.center.observer_count(), 0)

    async def test_ends_when_center_clears(self):
        received = []
        task = self.collect(notifications(Hitchhikers, center=self.center), received)
        await asyncio.sleep(0)
        smuggle(Hitchhikers(answer=42), center=self.center)
        self.center.clear()
        await asyncio.wait_for(task, timeout=1)
        self.assertEqual(received, [Hitchhikers(answer=42)])


class TestPublisher(SmugglingTestCase):
    async def test_receives_value(self):
        received = []
        publisher(Hitchhikers, center=self.center).sink(received.append)
        await asyncio.sleep(0)

        smuggle(Hitchhikers(answer=42), center=self.center)
        self.assertEqual(received, [Hitchhikers(answer=42)])

    async def test_ignores_invalid_payloads(self):
        received = []
        publisher(Hitchhikers, center=self.center).sink(received.append)

        self.center.post(imposter())
        await asyncio.sleep(0.01)
        self.assertEqual(received, [])

    async def test_fan_out_and_detach(self):
        first, second = [], []
        stream = publisher(Hitchhikers, center=self.center)
        token = stream.sink(first.append)
        stream.sink(second.append)

        smuggle(Hitchhikers(answer=1), center=self.center)
        token.cancel()
        smuggle(Hitchhikers(answer=2), center=self.center)
        self.assertEqual([h.answer for h in first], [1])
        self.assertEqual([h.answer for h in second], [1, 2])

    async def test_sender_filtering(self):
        s1, s2 = object(), object()
        scoped, unscoped = [], []
        publisher(Hitchhikers, sender=s1, center=self.center).sink(scoped.append)
        publisher(Hitchhikers, center=self.center).sink(unscoped.append)

        smuggle(Hitchhikers(answer=2), sender=s2, center=self.center)
        smuggle(Hitchhikers(answer=1), sender=s1, center=self.center)
        self.assertEqual([h.answer for h in scoped], [1])
        self.assertEqual([h.answer for h in unscoped], [2, 1])

    async def test_unprintable_payload_does_not_reach_poster(self):
        received = []
        publisher(Hitchhikers, center=self.center).sink(received.append)

        self.center.post(imposter(Grumpy()))
        smuggle(Hitchhikers(answer=42), center=self.center)
        self.assertEqual(received, [Hitchhikers(answer=42)])

    async def test_failing_observer_is_reported_to_poster(self):
        received = []

        def explode(value):
            raise RuntimeError("observer bug")

        publisher(Hitchhikers, center=self.center).sink(explode)
        publisher(Hitchhikers, center=self.center).sink(received.append)

        with self.assertRaisesRegex(RuntimeError, "observer bug"):
            smuggle(Hitchhikers(answer=42), center=self.center)
        self.assertEqual(received, [Hitchhikers(answer=42)])

    async def test_late_subscriber_misses_earlier_posts(self):
        received = []
        smuggle(Hitchhikers(answer=1), center=self.center)
        publisher(Hitchhikers, center=self.center).sink(received.append)
        smuggle(Hitchhikers(answer=2), center=self.center)
        self.assertEqual([h.answer for h in received], [2])

    async def test_default_center(self):
        received = []
        token = publisher(Hitchhikers).sink(received.append)
        self.addCleanup(token.cancel)

        smuggle(Hitchhikers(answer=42))
        self.assertEqual(received, [Hitchhikers(answer=42)])
        self.assertGreaterEqual(default_center.observer_count(Hitchhikers.notification_name), 1)


class TestAnswerScenario(SmugglingTestCase):
    async def test_answer_on_pinned_channel(self):
        self.assertEqual(Answer.notification_name, "NS:Answer")
        received = []
        task = self.collect(notifications(Answer, center=self.center), received)
        self.addAsyncCleanup(self.stop, task)
        await asyncio.sleep(0)

        self.center.post_name("NS:Answer", user_info={"NS:Answer": "not an answer"})
        smuggle(Answer(value=42), center=self.center)
        await asyncio.wait_for(self._until(lambda: received), timeout=1)
        await asyncio.sleep(0.01)

        self.assertEqual(len(received), 1)
        self.assertEqual(received[0].value, 42)

    async def _until(self, predicate):
        while not predicate():
            await asyncio.sleep(0)


if __name__ == "__main__":
    unittest.main()
