"""
Planning

Turns an agent's raw output into a PlanningResult.

The planner keeps the last parsed result. `planning()` runs the agent
and parses its reply; `local_planning()` parses previously captured text
without a model call; `direct_planning()` installs a decision made
elsewhere (DIRECT handoff). Malformed output raises PlanningParseError
and is never corrected or defaulted.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, ValidationError

from agentflow.errors import PlanningParseError
from agentflow.planning.result import PlanningResult

if TYPE_CHECKING:
    from agentflow.agent import Agent

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class Planning(ABC):
    """Routing decision state for an agent or group."""

    def __init__(self):
        self._result: PlanningResult | None = None

    @abstractmethod
    async def planning(self, agent: "Agent", query: str, variables: dict[str, Any] | None = None) -> str:
        """
        Run the agent and parse its output.

        Returns:
            The agent's raw output

        Raises:
            PlanningParseError: If the output is not a planning result
        """
        ...

    @abstractmethod
    def local_planning(self, text: str, shape: type[T] = PlanningResult) -> T:
        """Parse captured text into a result shape without a model call."""
        ...

    def direct_planning(self, result: PlanningResult) -> None:
        self._result = result

    @property
    def has_result(self) -> bool:
        return self._result is not None

    @property
    def result(self) -> PlanningResult:
        if self._result is None:
            raise RuntimeError("No planning result yet: planning() must succeed before reading its decision")
        return self._result

    def next_agent_name(self) -> str:
        return self.result.next_agent_name

    def next_query(self) -> str:
        return self.result.next_query

    def next_action(self) -> str:
        return self.result.next_step_action

    def planning_text(self) -> str:
        return self.result.planning

    def reset(self) -> None:
        self._result = None


class DefaultPlanning(Planning):
    """Planning from a JSON object in the agent's output."""

    async def planning(self, agent: "Agent", query: str, variables: dict[str, Any] | None = None) -> str:
        text = await agent.run(query, variables)
        try:
            self._result = self._parse(text, PlanningResult)
        except PlanningParseError as e:
            raise PlanningParseError(
                f"Agent {agent.name} output is not a planning result",
                node_id=agent.id,
                round=agent.round,
                text=text,
            ) from e
        parent = agent.parent.name if agent.parent else None
        logger.info(f"{parent or '-'}[{agent.name}] Planning: {self._result.planning}")
        logger.debug(f"{agent.name} planning result: {self._result.model_dump()}")
        return text

    def local_planning(self, text: str, shape: type[T] = PlanningResult) -> T:
        return self._parse(text, shape)

    def _parse(self, text: str | None, shape: type[T]) -> T:
        if not text or not text.strip():
            raise PlanningParseError("Empty planning output", text=text)
        try:
            return shape.model_validate_json(text)
        except ValidationError as e:
            raise PlanningParseError(f"Cannot parse planning output as {shape.__name__}", text=text) from e
