"""
Flow

A persistable orchestration graph: nodes connected by CONNECTION edges
for control flow and SETTING edges for configuration.

The graph is a durable description. Running it (see FlowRunner) builds
the live agents from the node settings and compiles the CONNECTION
topology into a LangGraph state graph.

Cycles are allowed. `check(strict=True)` additionally requires every
CONNECTION cycle to pass through an agent or agent group node, the only
nodes whose loops are bounded by a termination.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from graphlib import CycleError, TopologicalSorter
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from pydantic import BaseModel, Field, ValidationError

from agentflow.errors import GraphValidationError, PersistenceError
from agentflow.flow.edge import ConnectionEdge, FlowEdge, FlowEdgeType, SettingEdge, flow_edge_class
from agentflow.flow.node import FlowNode, FlowNodeType, flow_node_class

if TYPE_CHECKING:
    from agentflow.events import EventBus
    from agentflow.llm import LLMProvider
    from agentflow.persistence import PersistenceProvider
    from agentflow.tool import ToolCall

logger = logging.getLogger(__name__)

TERMINABLE_NODE_TYPES = (FlowNodeType.AGENT, FlowNodeType.AGENT_GROUP)


class FlowStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


class TypedText(BaseModel):
    """One serialized element and the type token that rebuilds it."""
    type_token: str
    text: str


class FlowDomain(BaseModel):
    id: str
    name: str = ""
    description: str = ""
    nodes: list[TypedText] = Field(default_factory=list)
    edges: list[TypedText] = Field(default_factory=list)


class Flow:
    """Orchestration graph."""

    def __init__(
        self,
        id: str | None = None,
        name: str = "",
        description: str = "",
        llm_providers: dict[str, "LLMProvider"] | None = None,
        tools: dict[str, "ToolCall"] | list["ToolCall"] | None = None,
        event_bus: "EventBus | None" = None,
        persistence_provider: "PersistenceProvider | None" = None,
    ):
        """
        Args:
            id: Flow id (generated if omitted)
            name: Flow name
            description: What the flow does
            llm_providers: Providers LLM nodes refer to by name
            tools: Tools function tool nodes refer to by name
            event_bus: Receives NodeOutputUpdated and the agents' events
            persistence_provider: Storage for save/load
        """
        self.id = id or str(uuid4())
        self.name = name
        self.description = description
        self.nodes: list[FlowNode] = []
        self.edges: list[FlowEdge] = []
        self.llm_providers: dict[str, "LLMProvider"] = dict(llm_providers or {})
        if isinstance(tools, list):
            tools = {tool.name: tool for tool in tools}
        self.tools: dict[str, "ToolCall"] = dict(tools or {})
        self.event_bus = event_bus
        self.persistence_provider = persistence_provider
        self.status = FlowStatus.IDLE
        self.current_node_id: str | None = None

    # =========================================================================
    # Graph construction
    # =========================================================================

    def add_node(self, node: FlowNode) -> FlowNode:
        if self.find_node(node.id) is not None:
            raise GraphValidationError(f"Duplicate flow node id '{node.id}'", node_id=node.id)
        self.nodes.append(node)
        return node

    def add_edge(
        self,
        source_id: str,
        target_id: str,
        kind: FlowEdgeType = FlowEdgeType.CONNECTION,
        value: str | None = None,
        id: str | None = None,
    ) -> FlowEdge:
        """
        Connect two existing nodes.

        Args:
            source_id: Source node id
            target_id: Target node id
            kind: CONNECTION for control flow, SETTING for configuration
            value: Routing value (CONNECTION only)
            id: Edge id (generated if omitted)

        Raises:
            GraphValidationError: If a node is missing, the id is taken or
                a SETTING edge is given a value
        """
        for node_id in (source_id, target_id):
            if self.find_node(node_id) is None:
                raise GraphValidationError(f"Edge references unknown node '{node_id}'", node_id=node_id)
        kind = FlowEdgeType(kind)
        if kind == FlowEdgeType.SETTING:
            if value is not None:
                raise GraphValidationError("Setting edges carry no value")
            edge: FlowEdge = SettingEdge(id)
        else:
            edge = ConnectionEdge(id, value=value)
        if any(e.id == edge.id for e in self.edges):
            raise GraphValidationError(f"Duplicate flow edge id '{edge.id}'")
        edge.connect(source_id, target_id)
        edge.check()
        self.edges.append(edge)
        return edge

    # =========================================================================
    # Queries
    # =========================================================================

    def find_node(self, node_id: str) -> FlowNode | None:
        return next((node for node in self.nodes if node.id == node_id), None)

    def get_node(self, node_id: str) -> FlowNode:
        node = self.find_node(node_id)
        if node is None:
            raise GraphValidationError(f"Flow node '{node_id}' not found", node_id=node_id)
        return node

    def next_nodes(self, node: FlowNode) -> list[tuple[ConnectionEdge, FlowNode]]:
        return [
            (edge, self.get_node(edge.target_node_id))
            for edge in self.edges
            if edge.type == FlowEdgeType.CONNECTION and edge.source_node_id == node.id
        ]

    def node_settings(self, node: FlowNode) -> list[FlowNode]:
        return [
            self.get_node(edge.target_node_id)
            for edge in self.edges
            if edge.type == FlowEdgeType.SETTING and edge.source_node_id == node.id
        ]

    def initialize_node(self, node: FlowNode) -> None:
        """Initialize a node after its settings, recursively."""
        self._initialize(node, set())

    def _initialize(self, node: FlowNode, visiting: set[str]) -> None:
        if node.initialized:
            return
        if node.id in visiting:
            raise GraphValidationError(f"Setting cycle through node '{node.id}'", node_id=node.id)
        visiting.add(node.id)
        settings = self.node_settings(node)
        for setting in settings:
            self._initialize(setting, visiting)
        node.initialize(settings, self)
        visiting.discard(node.id)

    # =========================================================================
    # Validation
    # =========================================================================

    def check(self, strict: bool = False) -> None:
        """
        Validate the graph and every element's own check().

        Args:
            strict: Also require every CONNECTION cycle to contain an
                agent or agent group node

        Raises:
            GraphValidationError: On the first violation found
        """
        if not self.id:
            raise GraphValidationError("Flow id cannot be empty")
        if not self.nodes:
            raise GraphValidationError("Flow has no nodes", node_id=self.id)
        node_ids = [node.id for node in self.nodes]
        if len(node_ids) != len(set(node_ids)):
            raise GraphValidationError(f"Flow {self.id} has duplicate node ids")
        edge_ids = [edge.id for edge in self.edges]
        if len(edge_ids) != len(set(edge_ids)):
            raise GraphValidationError(f"Flow {self.id} has duplicate edge ids")
        for edge in self.edges:
            edge.check()
            for node_id in (edge.source_node_id, edge.target_node_id):
                if self.find_node(node_id) is None:
                    raise GraphValidationError(
                        f"Edge {edge.id} references unknown node '{node_id}'", node_id=node_id
                    )
        for node in self.nodes:
            node.check(self.node_settings(node))
        if strict:
            self._check_cycles()

    def _check_cycles(self) -> None:
        # Every cycle has a terminable node iff the graph without them is acyclic
        sorter = TopologicalSorter()
        for node in self.nodes:
            if node.type not in TERMINABLE_NODE_TYPES:
                sorter.add(node.id)
        for edge in self.edges:
            if edge.type != FlowEdgeType.CONNECTION:
                continue
            source = self.get_node(edge.source_node_id)
            target = self.get_node(edge.target_node_id)
            if source.type in TERMINABLE_NODE_TYPES or target.type in TERMINABLE_NODE_TYPES:
                continue
            sorter.add(target.id, source.id)
        try:
            sorter.prepare()
        except CycleError as e:
            cycle = e.args[1] if len(e.args) > 1 else []
            raise GraphValidationError(
                f"Cycle {cycle} has no agent or agent group node to terminate it",
                node_id=self.id,
            ) from e

    # =========================================================================
    # Persistence
    # =========================================================================

    def serialize(self) -> str:
        """Serialize the graph; each element serializes itself."""
        return FlowDomain(
            id=self.id,
            name=self.name,
            description=self.description,
            nodes=[TypedText(type_token=node.type_token, text=node.serialize()) for node in self.nodes],
            edges=[TypedText(type_token=edge.type_token, text=edge.serialize()) for edge in self.edges],
        ).model_dump_json()

    def deserialize(self, text: str) -> "Flow":
        """
        Replace this graph with a serialized one and validate it.

        The document is checked on a staged copy; on failure this flow
        is left unchanged. Registries, event bus and persistence provider
        are kept.

        Raises:
            GraphValidationError: If the text or an element is invalid
        """
        try:
            domain = FlowDomain.model_validate_json(text)
        except ValidationError as e:
            raise GraphValidationError("Invalid flow document", text=text) from e

        nodes = []
        for entry in domain.nodes:
            node = flow_node_class(entry.type_token)()
            node.deserialize(entry.text)
            nodes.append(node)
        edges = []
        for entry in domain.edges:
            edge = flow_edge_class(entry.type_token)()
            edge.deserialize(entry.text)
            edges.append(edge)

        staged = Flow(
            name=domain.name,
            description=domain.description,
            llm_providers=self.llm_providers,
            tools=self.tools,
        )
        staged.id = domain.id
        staged.nodes = nodes
        staged.edges = edges
        staged.check()

        self.id = staged.id
        self.name = staged.name
        self.description = staged.description
        self.nodes = staged.nodes
        self.edges = staged.edges
        self.status = FlowStatus.IDLE
        self.current_node_id = None
        logger.info(f"Loaded flow {self.id} with {len(nodes)} nodes and {len(edges)} edges")
        return self

    def _require_persistence(self, provider: "PersistenceProvider | None" = None) -> "PersistenceProvider":
        provider = provider or self.persistence_provider
        if provider is None:
            raise PersistenceError("Persistence provider is not set", node_id=self.id)
        return provider

    async def save(self, id: str | None = None, provider: "PersistenceProvider | None" = None) -> str:
        id = id or self.id
        await self._require_persistence(provider).save(id, self.serialize())
        return id

    async def load(self, id: str | None = None, provider: "PersistenceProvider | None" = None) -> "Flow":
        id = id or self.id
        text = await self._require_persistence(provider).load(id)
        if text is None:
            raise PersistenceError(f"No persisted flow under '{id}'", node_id=id)
        return self.deserialize(text)

    # =========================================================================
    # Execution
    # =========================================================================

    async def run(
        self,
        node_id: str,
        input: str,
        variables: dict[str, Any] | None = None,
        recursion_limit: int = 50,
    ) -> str | None:
        """
        Run the flow from a node until a node without successors.

        Returns:
            Output of the last node
        """
        from agentflow.flow.runner import FlowRunner

        return await FlowRunner(self, recursion_limit=recursion_limit).run(node_id, input, variables)

    def describe(self) -> dict[str, Any]:
        """Plain dict view of the persisted graph, for logging and debugging."""
        return json.loads(self.serialize())
