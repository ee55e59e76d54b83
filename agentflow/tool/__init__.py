"""
Tool Invocation

Declarative tool descriptors, schema generation and argument coercion.
"""

from agentflow.tool.coerce import coerce
from agentflow.tool.parameter import ToolCallParameter, ToolCallParameterType
from agentflow.tool.tool import FunctionTool, ToolCall, describe

__all__ = [
    "ToolCall",
    "FunctionTool",
    "ToolCallParameter",
    "ToolCallParameterType",
    "describe",
    "coerce",
]
