"""
Error Taxonomy

Every failure the orchestration core can surface to its caller.
Each error carries enough context (node id, round, offending text)
to diagnose the aborted run without re-running it.

Propagation policy:
- Loops never swallow these; they mark the node FAILED and re-raise
- Errors wrap their cause with `raise ... from e`
"""

from __future__ import annotations


class AgentFlowError(Exception):
    """Base exception for orchestration errors."""

    def __init__(
        self,
        message: str,
        node_id: str | None = None,
        round: int | None = None,
        text: str | None = None,
    ):
        self.node_id = node_id
        self.round = round
        self.text = text
        super().__init__(self._format(message))

    def _format(self, message: str) -> str:
        context = []
        if self.node_id is not None:
            context.append(f"node={self.node_id}")
        if self.round is not None:
            context.append(f"round={self.round}")
        if context:
            message = f"{message} ({', '.join(context)})"
        if self.text:
            message = f"{message}: {self.text[:500]}"
        return message


class PlanningParseError(AgentFlowError):
    """Model output could not be parsed into a planning result."""
    pass


class UnknownAgentError(AgentFlowError):
    """Handoff target is not part of the agent group."""

    def __init__(self, agent_name: str | None, known: list[str], **kwargs):
        self.agent_name = agent_name
        self.known = known
        super().__init__(
            f"Unknown agent '{agent_name}', group has {known}",
            **kwargs,
        )


class ModelInvocationError(AgentFlowError):
    """The model call failed."""
    pass


class ToolExecutionError(AgentFlowError):
    """A tool call failed or could not be dispatched."""

    def __init__(self, message: str, tool_name: str | None = None, **kwargs):
        self.tool_name = tool_name
        if tool_name:
            message = f"Tool '{tool_name}': {message}"
        super().__init__(message, **kwargs)


class InvalidArgumentError(AgentFlowError, ValueError):
    """A tool argument could not be coerced to its declared type."""
    pass


class GraphValidationError(AgentFlowError):
    """A flow graph element failed validation."""
    pass


class TerminationError(AgentFlowError):
    """A termination predicate was given state that violates its contract."""
    pass


class PersistenceError(AgentFlowError):
    """Persistence is misconfigured or a provider operation failed."""
    pass


class FlowExecutionError(AgentFlowError):
    """A flow could not route to a next node or a node failed deliberately."""
    pass
