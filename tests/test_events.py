"""Tests for event channels."""

import pytest
from pydantic import ValidationError

from agentflow.events import EventBus, EventType, MessageUpdated, NodeOutputUpdated, StatusChanged
from agentflow.llm import Message


class TestEventChannel:
    def test_publish_to_subscribers(self, event_bus):
        received = []
        event_bus.status_changed.subscribe(received.append)

        delivered = event_bus.publish(StatusChanged(node_id="n", previous="idle", current="running"))

        assert delivered == 1
        assert received[0].current == "running"
        assert event_bus.stats[EventType.STATUS_CHANGED.value] == {"subscribers": 1, "published": 1}

    def test_unsubscribe(self, event_bus):
        received = []
        unsubscribe = event_bus.subscribe(EventType.NODE_OUTPUT_UPDATED, received.append)
        unsubscribe()

        event_bus.publish(NodeOutputUpdated(node_id="n", result="x"))

        assert received == []

    def test_wrong_channel(self, event_bus):
        with pytest.raises(ValueError):
            event_bus.status_changed.publish(MessageUpdated(node_id="n", message=Message.user("hi")))

    def test_handler_errors_propagate(self, event_bus):
        def broken(event):
            raise RuntimeError("handler bug")

        event_bus.message_updated.subscribe(broken)
        with pytest.raises(RuntimeError):
            event_bus.publish(MessageUpdated(node_id="n", message=Message.user("hi")))

    def test_events_are_immutable(self):
        event = StatusChanged(node_id="n", previous="idle", current="running")
        with pytest.raises(ValidationError):
            event.current = "done"

    def test_independent_buses(self):
        first, second = EventBus(), EventBus()
        received = []
        first.status_changed.subscribe(received.append)

        second.publish(StatusChanged(node_id="n", previous="idle", current="running"))

        assert received == []
