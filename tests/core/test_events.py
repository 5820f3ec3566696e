"""Tests for event bus."""

from neuromask.core.events import EventBus, EventType


def test_subscribe_publish():
    bus = EventBus()
    received = []
    bus.subscribe(EventType.PRESET_APPLIED, lambda **kw: received.append(kw))
    bus.publish(EventType.PRESET_APPLIED, name="Cyber")
    assert received == [{"name": "Cyber"}]


def test_unsubscribe():
    bus = EventBus()
    received = []
    handler = lambda **kw: received.append(kw)
    bus.subscribe(EventType.BINDING_RELEASED, handler)
    bus.unsubscribe(EventType.BINDING_RELEASED, handler)
    bus.publish(EventType.BINDING_RELEASED, reason="tracking lost")
    assert len(received) == 0


def test_unsubscribe_unknown_handler_is_ignored():
    bus = EventBus()
    bus.unsubscribe(EventType.FRAME_UPDATE, lambda **kw: None)


def test_different_events_independent():
    bus = EventBus()
    received = []
    bus.subscribe(EventType.TRACKING_STARTED, lambda **kw: received.append("start"))
    bus.publish(EventType.TRACKING_STOPPED)
    assert len(received) == 0


def test_handler_may_unsubscribe_during_publish():
    bus = EventBus()
    calls = []

    def once(**kw):
        calls.append(1)
        bus.unsubscribe(EventType.CONFIG_CHANGED, once)

    bus.subscribe(EventType.CONFIG_CHANGED, once)
    bus.publish(EventType.CONFIG_CHANGED, config=None)
    bus.publish(EventType.CONFIG_CHANGED, config=None)
    assert calls == [1]


def test_clear():
    bus = EventBus()
    bus.subscribe(EventType.FRAME_UPDATE, lambda **kw: None)
    bus.clear()
    # Should not raise
    bus.publish(EventType.FRAME_UPDATE)
