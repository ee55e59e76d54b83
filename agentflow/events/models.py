"""
Orchestration Event Models

Typed events published while agents, groups and flows run:
- node.message.updated: a node appended a conversation message
- node.status.changed: a node moved between IDLE/RUNNING/DONE/FAILED
- flow.node.output.updated: a flow node produced output
- group.handoff.requested: a MANUAL handoff is waiting for a resume

Events are immutable records delivered synchronously on the task that
owns the run.
"""

from datetime import datetime, timezone
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from agentflow.llm.domain import Message
from agentflow.planning.result import PlanningResult


class EventType(str, Enum):
    """Kinds of orchestration events."""
    MESSAGE_UPDATED = "node.message.updated"
    STATUS_CHANGED = "node.status.changed"
    NODE_OUTPUT_UPDATED = "flow.node.output.updated"
    HANDOFF_REQUESTED = "group.handoff.requested"


class BaseEvent(BaseModel):
    """Common identification and timing fields."""
    model_config = ConfigDict(frozen=True)

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier",
    )
    event_type: EventType
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred",
    )
    node_id: str = Field(..., description="Id of the node the event is about")
    node_name: str | None = Field(default=None, description="Name of that node")


class MessageUpdated(BaseEvent):
    """A node appended a message to its conversation."""
    event_type: EventType = EventType.MESSAGE_UPDATED
    message: Message


class StatusChanged(BaseEvent):
    """A node changed status."""
    event_type: EventType = EventType.STATUS_CHANGED
    previous: str
    current: str


class NodeOutputUpdated(BaseEvent):
    """
    A flow node produced output.

    Fires once per node execution, carrying the query that triggered
    the node and the result it produced.
    """
    event_type: EventType = EventType.NODE_OUTPUT_UPDATED
    flow_id: str | None = None
    query: str | None = None
    result: str | None = None


class HandoffRequested(BaseEvent):
    """An agent group suspended on a MANUAL handoff."""
    event_type: EventType = EventType.HANDOFF_REQUESTED
    round: int
    planning: PlanningResult | None = None
    candidates: list[str] = Field(
        default_factory=list,
        description="Agent names the resume may select",
    )
