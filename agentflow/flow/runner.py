"""
Flow Runner

Compiles a Flow's CONNECTION topology into a LangGraph StateGraph and
runs it from a chosen node.

- one graph node per executable flow node reachable from the start node
- a single successor is a plain edge (its value is ignored)
- several successors are conditional edges: the output is matched
  case-insensitively against each edge value; edges without a value are
  the fallback; no match fails the run
- no successor ends the run

Each node's output is the next node's input. Settings are initialized
just before the node that owns them executes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from langgraph.errors import GraphRecursionError
from langgraph.graph import END, START, StateGraph
from typing_extensions import TypedDict

from agentflow.errors import FlowExecutionError
from agentflow.events import NodeOutputUpdated
from agentflow.flow.flow import Flow, FlowStatus

if TYPE_CHECKING:
    from agentflow.flow.edge import ConnectionEdge
    from agentflow.flow.node import FlowNode

logger = logging.getLogger(__name__)


# =============================================================================
# State Definition
# =============================================================================

class FlowState(TypedDict):
    """State passed between flow nodes."""
    # Input of the node about to run (the previous node's output)
    query: str | None
    # Output of the node that ran last
    output: str | None
    # Flow node ids in execution order
    visited: list[str]


class FlowRunner:
    """Executes one run of a Flow."""

    def __init__(self, flow: "Flow", recursion_limit: int = 50):
        self.flow = flow
        self.recursion_limit = recursion_limit

    def reachable(self, start: "FlowNode") -> list["FlowNode"]:
        """Executable nodes reachable from start through CONNECTION edges."""
        seen = [start]
        pending = [start]
        while pending:
            node = pending.pop()
            for _, target in self.flow.next_nodes(node):
                if target not in seen:
                    seen.append(target)
                    pending.append(target)
        not_executable = [node for node in seen if not node.executable]
        if not_executable:
            raise FlowExecutionError(
                f"Nodes {not_executable} are settings and cannot be connected",
                node_id=not_executable[0].id,
            )
        return seen

    def build(self, start: "FlowNode", variables: dict[str, Any]):
        """
        Build the executable graph for a run.

        Returns:
            Compiled StateGraph
        """
        workflow = StateGraph(FlowState)
        nodes = self.reachable(start)
        for node in nodes:
            workflow.add_node(node.id, self._node_fn(node, variables))
        workflow.add_edge(START, start.id)

        for node in nodes:
            successors = self.flow.next_nodes(node)
            if not successors:
                logger.debug(f"Adding terminal edge: {node.id} -> END")
                workflow.add_edge(node.id, END)
            elif len(successors) == 1:
                workflow.add_edge(node.id, successors[0][1].id)
            else:
                targets = {target.id for _, target in successors}
                workflow.add_conditional_edges(
                    node.id,
                    self._route_fn(node, [edge for edge, _ in successors]),
                    {target: target for target in targets},
                )
        return workflow.compile()

    def _node_fn(self, node: "FlowNode", variables: dict[str, Any]):
        flow = self.flow

        async def node_fn(state: FlowState) -> dict[str, Any]:
            query = state["query"]
            flow.current_node_id = node.id
            flow.initialize_node(node)
            logger.info(f"Flow {flow.name or flow.id}: executing {node.type_token} node '{node.name or node.id}'")
            output = await node.execute(query, variables)
            node.output = output
            if flow.event_bus is not None:
                flow.event_bus.publish(NodeOutputUpdated(
                    node_id=node.id,
                    node_name=node.name,
                    flow_id=flow.id,
                    query=query,
                    result=output,
                ))
            return {
                "query": output,
                "output": output,
                "visited": state["visited"] + [node.id],
            }

        return node_fn

    def _route_fn(self, node: "FlowNode", edges: list["ConnectionEdge"]):
        def route_fn(state: FlowState) -> str:
            output = state["output"]
            for edge in edges:
                if edge.matches(output):
                    return edge.target_node_id
            for edge in edges:
                if edge.value is None:
                    return edge.target_node_id
            raise FlowExecutionError(
                f"No connection from '{node.name or node.id}' matches output",
                node_id=node.id,
                text=output,
            )

        return route_fn

    async def run(self, node_id: str, input: str, variables: dict[str, Any] | None = None) -> str | None:
        """
        Run the flow from node_id.

        Returns:
            Output of the last executed node

        Raises:
            GraphValidationError: If the flow is invalid
            FlowExecutionError: If routing fails or the recursion limit is hit
            AgentFlowError: Whatever a node raised (the flow is FAILED)
        """
        flow = self.flow
        variables = variables if variables is not None else {}
        flow.check()
        start = flow.get_node(node_id)
        graph = self.build(start, variables)

        flow.status = FlowStatus.RUNNING
        logger.info(f"Running flow {flow.name or flow.id} from '{start.name or start.id}'")
        try:
            state = await graph.ainvoke(
                {"query": input, "output": None, "visited": []},
                config={"recursion_limit": self.recursion_limit},
            )
        except GraphRecursionError as e:
            flow.status = FlowStatus.FAILED
            logger.error(f"Flow {flow.id} exceeded recursion limit {self.recursion_limit}")
            raise FlowExecutionError(
                f"Flow exceeded recursion limit {self.recursion_limit}",
                node_id=flow.current_node_id,
            ) from e
        except Exception as e:
            flow.status = FlowStatus.FAILED
            logger.error(f"Flow {flow.id} failed at node {flow.current_node_id}: {e}")
            raise

        flow.status = FlowStatus.SUCCESS
        logger.info(f"Flow {flow.name or flow.id} finished after {len(state['visited'])} nodes")
        return state["output"]
