"""
Flow Nodes

Persistable graph nodes. A node's persisted state is its `Domain`: a
pydantic projection holding only the persisted fields (id, type, type
token, name, position and kind-specific settings). Transient execution
state (the live agent, the last output) is never part of it.

Concrete node classes register under a type token with `@flow_node`;
a serialized flow records the token next to each node's text so the
right class can be rebuilt on load.
"""

from __future__ import annotations

import logging
from abc import ABC
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from agentflow.errors import GraphValidationError

if TYPE_CHECKING:
    from agentflow.flow.flow import Flow

logger = logging.getLogger(__name__)

# Separators LangGraph reserves in node names
RESERVED_ID_CHARACTERS = ("|", ":")

_FLOW_NODE_TYPES: dict[str, type["FlowNode"]] = {}


class FlowNodeType(str, Enum):
    START = "start"
    EXECUTE = "execute"
    AGENT = "agent"
    AGENT_GROUP = "agent_group"
    LLM = "llm"
    HANDOFF = "handoff"
    TOOL = "tool"


class FlowNodePosition(BaseModel):
    x: float = 0.0
    y: float = 0.0


def flow_node(type_token: str):
    """Register a FlowNode subclass under a type token."""
    def register(cls: type["FlowNode"]) -> type["FlowNode"]:
        if type_token in _FLOW_NODE_TYPES:
            raise ValueError(f"Flow node type token '{type_token}' already registered")
        cls.type_token = type_token
        _FLOW_NODE_TYPES[type_token] = cls
        return cls
    return register


def flow_node_class(type_token: str) -> type["FlowNode"]:
    cls = _FLOW_NODE_TYPES.get(type_token)
    if cls is None:
        raise GraphValidationError(f"Unknown flow node type '{type_token}'")
    return cls


class FlowNode(ABC):
    """
    Base class for flow graph nodes.

    Executable nodes take part in control flow through CONNECTION edges.
    The others are settings: they configure the node that points at them
    through a SETTING edge and are initialized before it runs.
    """

    type: ClassVar[FlowNodeType]
    type_token: ClassVar[str]
    type_description: ClassVar[str] = ""
    executable: ClassVar[bool] = False

    class Domain(BaseModel):
        """Persisted fields. Unknown fields are ignored on load."""
        model_config = ConfigDict(extra="ignore")

        id: str
        type: FlowNodeType
        type_token: str
        name: str = ""
        position: FlowNodePosition = Field(default_factory=FlowNodePosition)

    def __init__(self, id: str | None = None, name: str = "", position: FlowNodePosition | None = None):
        self.id = id or str(uuid4())
        self.name = name
        self.position = position or FlowNodePosition()
        self.initialized = False
        self.output: str | None = None

    def domain(self) -> "FlowNode.Domain":
        fields = type(self).Domain.model_fields
        return type(self).Domain.model_validate({field: getattr(self, field) for field in fields})

    def serialize(self) -> str:
        return self.domain().model_dump_json()

    def deserialize(self, text: str) -> None:
        """Populate this node in place from serialized text."""
        try:
            domain = type(self).Domain.model_validate_json(text)
        except ValidationError as e:
            raise GraphValidationError(f"Invalid {self.type_token} node", text=text) from e
        if domain.type_token != self.type_token or domain.type != self.type:
            raise GraphValidationError(
                f"Node of type {domain.type_token} cannot be loaded as {self.type_token}",
                node_id=domain.id,
            )
        for field in type(domain).model_fields:
            if field not in ("type", "type_token"):
                setattr(self, field, getattr(domain, field))
        self.initialized = False
        self.output = None

    def check(self, settings: list["FlowNode"]) -> None:
        """
        Validate the node and its settings.

        Raises:
            GraphValidationError: If the node is not usable
        """
        if not self.id:
            raise GraphValidationError("Flow node id cannot be empty")
        if any(c in self.id for c in RESERVED_ID_CHARACTERS):
            raise GraphValidationError(
                f"Flow node id cannot contain {RESERVED_ID_CHARACTERS}", node_id=self.id
            )

    def init(self, settings: list["FlowNode"], flow: "Flow") -> None:
        """Build runtime state from initialized settings."""
        pass

    def initialize(self, settings: list["FlowNode"], flow: "Flow") -> None:
        if self.initialized:
            return
        self.init(settings, flow)
        self.initialized = True

    async def execute(self, input: str | None, variables: dict[str, Any]) -> str | None:
        raise GraphValidationError(
            f"{self.type_token} node '{self.name}' is a setting and cannot execute",
            node_id=self.id,
        )

    def _settings_of(self, settings: list["FlowNode"], cls: type) -> list[Any]:
        return [s for s in settings if isinstance(s, cls)]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, name={self.name!r})"
