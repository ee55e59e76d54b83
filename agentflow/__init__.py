# AgentFlow - Multi-agent orchestration core
# Agents and agent groups routed by planning, termination and handoff policies,
# composed into persistable flow graphs

__version__ = "0.1.0"

# Errors
from agentflow.errors import (
    AgentFlowError,
    FlowExecutionError,
    GraphValidationError,
    InvalidArgumentError,
    ModelInvocationError,
    PersistenceError,
    PlanningParseError,
    TerminationError,
    ToolExecutionError,
    UnknownAgentError,
)

# Agents
from agentflow.agent import (
    Agent,
    AgentGroup,
    ImageAgent,
    Node,
    NodeStatus,
    ReflectionConfig,
    create_moderator,
)

# Routing policies
from agentflow.handoff import HandoffType, create_handoff
from agentflow.planning import DefaultPlanning, PlanningResult
from agentflow.termination import (
    CotTermination,
    MaxRoundTermination,
    ScoreBasedTermination,
    StopWordTermination,
)

# Tools
from agentflow.tool import FunctionTool, ToolCall, ToolCallParameter, ToolCallParameterType

# Flow graph (LangGraph-based)
from agentflow.flow import Flow, FlowEdgeType, FlowStatus

__all__ = [
    "__version__",
    # Errors
    "AgentFlowError",
    "FlowExecutionError",
    "GraphValidationError",
    "InvalidArgumentError",
    "ModelInvocationError",
    "PersistenceError",
    "PlanningParseError",
    "TerminationError",
    "ToolExecutionError",
    "UnknownAgentError",
    # Agents
    "Agent",
    "AgentGroup",
    "ImageAgent",
    "Node",
    "NodeStatus",
    "ReflectionConfig",
    "create_moderator",
    # Routing policies
    "HandoffType",
    "create_handoff",
    "DefaultPlanning",
    "PlanningResult",
    "CotTermination",
    "MaxRoundTermination",
    "ScoreBasedTermination",
    "StopWordTermination",
    # Tools
    "FunctionTool",
    "ToolCall",
    "ToolCallParameter",
    "ToolCallParameterType",
    # Flow
    "Flow",
    "FlowEdgeType",
    "FlowStatus",
]
