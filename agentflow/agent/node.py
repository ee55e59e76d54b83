"""
Node

Base of everything that runs in an orchestration: agents, image agents
and agent groups. A node owns its identity, status, input/output, round
counter and short-term conversation.

Status moves IDLE -> RUNNING -> DONE | FAILED and is only changed by the
node's own run loop. Every change is published as StatusChanged, every
appended message as MessageUpdated, when an EventBus is attached.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from pydantic import BaseModel, Field

from agentflow.errors import PersistenceError
from agentflow.events.models import MessageUpdated, StatusChanged
from agentflow.llm.domain import Message, Usage

if TYPE_CHECKING:
    from agentflow.events import EventBus
    from agentflow.persistence import PersistenceProvider
    from agentflow.termination import Termination

logger = logging.getLogger(__name__)

NAME_PATTERN = re.compile(r"^[^\s<|\\/>]+$")


class NodeStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


class NodeType(str, Enum):
    AGENT = "agent"
    IMAGE_AGENT = "image_agent"
    GROUP = "group"


class AgentPersistence(BaseModel):
    """Persisted projection of a node: identity, status and conversation."""
    id: str
    name: str
    status: NodeStatus = NodeStatus.IDLE
    messages: list[Message] = Field(default_factory=list)

    @classmethod
    def of(cls, node: "Node") -> "AgentPersistence":
        return cls(id=node.id, name=node.name, status=node.status, messages=list(node.messages))

    def apply(self, node: "Node") -> None:
        if self.name != node.name:
            raise PersistenceError(
                f"Persisted state belongs to '{self.name}', not '{node.name}'",
                node_id=node.id,
            )
        node.messages = list(self.messages)
        node.status = self.status


class Node(ABC):
    """Unit of orchestration with identity, status and output."""

    node_type: NodeType

    def __init__(
        self,
        name: str,
        description: str = "",
        id: str | None = None,
        terminations: list["Termination"] | None = None,
        event_bus: "EventBus | None" = None,
        persistence_provider: "PersistenceProvider | None" = None,
    ):
        if not name or not NAME_PATTERN.match(name):
            raise ValueError(f"Invalid node name '{name}': must be non-empty without spaces or <|\\/>")
        self._id = id or str(uuid4())
        self._name = name
        self._description = description
        self.status = NodeStatus.IDLE
        self.input: str | None = None
        self.output: str | None = None
        self.round = 0
        self.parent: Node | None = None
        self.messages: list[Message] = []
        self.usage = Usage()
        self.terminations = list(terminations or [])
        self.event_bus = event_bus
        self.persistence_provider = persistence_provider

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def max_round(self) -> int:
        return 1

    def update_status(self, status: NodeStatus) -> None:
        previous = self.status
        if previous == status:
            return
        self.status = status
        if self.event_bus is not None:
            self.event_bus.status_changed.publish(StatusChanged(
                node_id=self.id,
                node_name=self.name,
                previous=previous.value,
                current=status.value,
            ))

    def add_message(self, message: Message) -> None:
        self.messages.append(message)
        if self.event_bus is not None:
            self.event_bus.message_updated.publish(MessageUpdated(
                node_id=self.id,
                node_name=self.name,
                message=message,
            ))

    def should_terminate(self) -> bool:
        """Whether any termination fires, evaluated in order."""
        return any(termination.terminate(self) for termination in self.terminations)

    def clear_short_term_memory(self) -> None:
        """Forget the conversation and the last run, back to IDLE."""
        self.messages = []
        self.input = None
        self.output = None
        self.round = 0
        self.update_status(NodeStatus.IDLE)

    async def run(self, query: str, variables: dict[str, Any] | None = None) -> str:
        """
        Run the node to completion.

        Args:
            query: Input for this run
            variables: Template variables shared with nested nodes

        Returns:
            The node output

        Raises:
            AgentFlowError: Any failure; the node is left FAILED
        """
        if self.status == NodeStatus.RUNNING:
            raise RuntimeError(f"Node {self.name} is already running")
        variables = {} if variables is None else variables
        self.input = query
        self.round = 0
        self.update_status(NodeStatus.RUNNING)
        try:
            output = await self._execute(query, variables)
        except Exception as e:
            self.update_status(NodeStatus.FAILED)
            logger.error(f"{self.node_type.value} {self.name} failed at round {self.round}: {e}")
            raise
        self.output = output
        self.update_status(NodeStatus.DONE)
        return output

    @abstractmethod
    async def _execute(self, query: str, variables: dict[str, Any]) -> str:
        ...

    def serialize(self) -> str:
        return AgentPersistence.of(self).model_dump_json()

    def deserialize(self, text: str) -> None:
        AgentPersistence.model_validate_json(text).apply(self)

    def _require_persistence(self) -> "PersistenceProvider":
        if self.persistence_provider is None:
            raise PersistenceError("Persistence provider is not set", node_id=self.id)
        return self.persistence_provider

    async def save(self, id: str | None = None) -> str:
        """
        Persist the node under an id (defaults to the node id).

        Returns:
            The id used
        """
        id = id or self.id
        await self._require_persistence().save(id, self.serialize())
        logger.debug(f"Saved {self.name} as {id}")
        return id

    async def load(self, id: str | None = None) -> None:
        """
        Restore the node from persisted state.

        Raises:
            PersistenceError: If nothing is stored under the id
        """
        id = id or self.id
        text = await self._require_persistence().load(id)
        if text is None:
            raise PersistenceError(f"No persisted state under '{id}'", node_id=self.id)
        self.deserialize(text)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, status={self.status.value})"
