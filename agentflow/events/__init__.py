"""
Events Module

Typed publish/subscribe for orchestration progress.
"""

from agentflow.events.channel import EventBus, EventChannel
from agentflow.events.models import (
    BaseEvent,
    EventType,
    HandoffRequested,
    MessageUpdated,
    NodeOutputUpdated,
    StatusChanged,
)

__all__ = [
    "EventBus",
    "EventChannel",
    "EventType",
    "BaseEvent",
    "MessageUpdated",
    "StatusChanged",
    "NodeOutputUpdated",
    "HandoffRequested",
]
