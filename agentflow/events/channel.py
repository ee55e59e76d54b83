"""
Event Channels

Typed publish/subscribe, one channel per event kind.

Subscribers are registered at setup and invoked synchronously, in
registration order, on the task that publishes. A subscriber that
raises aborts the publish and the error reaches the publisher.
"""

import logging
from typing import Any, Callable, Generic, TypeVar

from agentflow.events.models import (
    BaseEvent,
    EventType,
    HandoffRequested,
    MessageUpdated,
    NodeOutputUpdated,
    StatusChanged,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=BaseEvent)


class EventChannel(Generic[E]):
    """Subscribers for one event kind."""

    def __init__(self, event_type: EventType):
        self.event_type = event_type
        self._handlers: list[Callable[[E], Any]] = []
        self._published = 0

    def __len__(self) -> int:
        return len(self._handlers)

    def subscribe(self, handler: Callable[[E], Any]) -> Callable[[], None]:
        """
        Register a handler.

        Returns:
            A callable that removes the handler again
        """
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def publish(self, event: E) -> int:
        """
        Deliver an event to every handler.

        Returns:
            Number of handlers invoked
        """
        if event.event_type != self.event_type:
            raise ValueError(f"Channel {self.event_type.value} cannot publish {event.event_type.value}")
        self._published += 1
        handlers = list(self._handlers)
        for handler in handlers:
            handler(event)
        return len(handlers)

    @property
    def stats(self) -> dict[str, Any]:
        return {"subscribers": len(self._handlers), "published": self._published}


class EventBus:
    """
    One channel per event kind.

    Usage:
        bus = EventBus()
        bus.node_output_updated.subscribe(lambda e: print(e.result))
    """

    def __init__(self):
        self.message_updated: EventChannel[MessageUpdated] = EventChannel(EventType.MESSAGE_UPDATED)
        self.status_changed: EventChannel[StatusChanged] = EventChannel(EventType.STATUS_CHANGED)
        self.node_output_updated: EventChannel[NodeOutputUpdated] = EventChannel(EventType.NODE_OUTPUT_UPDATED)
        self.handoff_requested: EventChannel[HandoffRequested] = EventChannel(EventType.HANDOFF_REQUESTED)
        self._channels: dict[EventType, EventChannel] = {
            channel.event_type: channel
            for channel in (
                self.message_updated,
                self.status_changed,
                self.node_output_updated,
                self.handoff_requested,
            )
        }

    def channel(self, event_type: EventType) -> EventChannel:
        return self._channels[event_type]

    def subscribe(self, event_type: EventType, handler: Callable[[BaseEvent], Any]) -> Callable[[], None]:
        return self._channels[event_type].subscribe(handler)

    def publish(self, event: BaseEvent) -> int:
        delivered = self._channels[event.event_type].publish(event)
        logger.debug(f"Published {event.event_type.value} for node {event.node_id} to {delivered} subscribers")
        return delivered

    @property
    def stats(self) -> dict[str, Any]:
        return {event_type.value: channel.stats for event_type, channel in self._channels.items()}
