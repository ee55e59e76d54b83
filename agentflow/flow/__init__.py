"""
Flow Module

Persistable orchestration graph: nodes, edges, the Flow container and
the LangGraph-backed runner. Importing this package registers the
built-in node and edge types.
"""

from agentflow.flow.edge import (
    ConnectionEdge,
    FlowEdge,
    FlowEdgeType,
    SettingEdge,
    flow_edge,
    flow_edge_class,
)
from agentflow.flow.node import (
    FlowNode,
    FlowNodePosition,
    FlowNodeType,
    flow_node,
    flow_node_class,
)
from agentflow.flow.nodes import (
    AgentFlowNode,
    AgentGroupFlowNode,
    EmptyFlowNode,
    FunctionToolFlowNode,
    HandoffFlowNode,
    LLMFlowNode,
    ThrowErrorFlowNode,
)
from agentflow.flow.flow import Flow, FlowStatus
from agentflow.flow.runner import FlowRunner, FlowState

__all__ = [
    "ConnectionEdge",
    "FlowEdge",
    "FlowEdgeType",
    "SettingEdge",
    "flow_edge",
    "flow_edge_class",
    "FlowNode",
    "FlowNodePosition",
    "FlowNodeType",
    "flow_node",
    "flow_node_class",
    "AgentFlowNode",
    "AgentGroupFlowNode",
    "EmptyFlowNode",
    "FunctionToolFlowNode",
    "HandoffFlowNode",
    "LLMFlowNode",
    "ThrowErrorFlowNode",
    "Flow",
    "FlowStatus",
    "FlowRunner",
    "FlowState",
]
