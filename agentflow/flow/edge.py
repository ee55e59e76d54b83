"""
Flow Edges

CONNECTION edges carry control flow, with an optional `value` matched
against the source node's output when it has several successors.
SETTING edges attach a configuration node to the node that uses it and
carry no payload.
"""

from __future__ import annotations

from abc import ABC
from enum import Enum
from typing import ClassVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, ValidationError

from agentflow.errors import GraphValidationError

_FLOW_EDGE_TYPES: dict[str, type["FlowEdge"]] = {}


class FlowEdgeType(str, Enum):
    CONNECTION = "connection"
    SETTING = "setting"


def flow_edge(type_token: str):
    """Register a FlowEdge subclass under a type token."""
    def register(cls: type["FlowEdge"]) -> type["FlowEdge"]:
        if type_token in _FLOW_EDGE_TYPES:
            raise ValueError(f"Flow edge type token '{type_token}' already registered")
        cls.type_token = type_token
        _FLOW_EDGE_TYPES[type_token] = cls
        return cls
    return register


def flow_edge_class(type_token: str) -> type["FlowEdge"]:
    cls = _FLOW_EDGE_TYPES.get(type_token)
    if cls is None:
        raise GraphValidationError(f"Unknown flow edge type '{type_token}'")
    return cls


class FlowEdge(ABC):
    """Directed edge between two nodes of the same flow."""

    type: ClassVar[FlowEdgeType]
    type_token: ClassVar[str]

    class Domain(BaseModel):
        model_config = ConfigDict(extra="ignore")

        id: str
        name: str = ""
        type: FlowEdgeType
        type_token: str
        source_node_id: str | None = None
        target_node_id: str | None = None

    def __init__(
        self,
        id: str | None = None,
        source_node_id: str | None = None,
        target_node_id: str | None = None,
        name: str = "",
    ):
        self.id = id or str(uuid4())
        self.name = name
        self.source_node_id = source_node_id
        self.target_node_id = target_node_id

    def connect(self, source_node_id: str, target_node_id: str) -> "FlowEdge":
        self.source_node_id = source_node_id
        self.target_node_id = target_node_id
        return self

    def domain(self) -> "FlowEdge.Domain":
        fields = type(self).Domain.model_fields
        return type(self).Domain.model_validate({field: getattr(self, field) for field in fields})

    def serialize(self) -> str:
        return self.domain().model_dump_json()

    def deserialize(self, text: str) -> None:
        try:
            domain = type(self).Domain.model_validate_json(text)
        except ValidationError as e:
            raise GraphValidationError(f"Invalid {self.type_token} edge", text=text) from e
        if domain.type_token != self.type_token or domain.type != self.type:
            raise GraphValidationError(
                f"Edge of type {domain.type_token} cannot be loaded as {self.type_token}",
                node_id=domain.id,
            )
        for field in type(domain).model_fields:
            if field not in ("type", "type_token"):
                setattr(self, field, getattr(domain, field))

    def check(self) -> None:
        """
        Raises:
            GraphValidationError: If the edge is not connected
        """
        if not self.id:
            raise GraphValidationError("Flow edge id cannot be empty")
        if not self.source_node_id or not self.target_node_id:
            raise GraphValidationError(f"Edge {self.id} must connect two nodes")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.source_node_id} -> {self.target_node_id})"


@flow_edge("connection")
class ConnectionEdge(FlowEdge):
    """Control-flow edge with an optional routing value."""

    type = FlowEdgeType.CONNECTION

    class Domain(FlowEdge.Domain):
        value: str | None = None

    def __init__(self, id: str | None = None, value: str | None = None, **kwargs):
        super().__init__(id, **kwargs)
        self.value = value

    def matches(self, output: str | None) -> bool:
        return output is not None and self.value is not None and output.strip().lower() == self.value.strip().lower()


@flow_edge("setting")
class SettingEdge(FlowEdge):
    """Configuration edge from a node to one of its settings."""

    type = FlowEdgeType.SETTING

    def check(self) -> None:
        super().check()
        if self.source_node_id == self.target_node_id:
            raise GraphValidationError(f"Setting edge {self.id} cannot point at its own source")
