"""
Handoff Policies

A handoff picks the agent that runs the next round of an AgentGroup and
prepares its input. It writes the next query into the run's shared
variables under "query" and returns the decision; it never changes node
status, which belongs to the group loop.

Policies:
- AUTO: route to the agent named by the planning result, planned by the
  members themselves or by a moderator agent
- DIRECT: ignore planning, route to a fixed agent (or the next in order)
- HYBRID: AUTO, falling back to the DIRECT target for unknown names
- MANUAL: suspend until an external caller resumes with agent and query
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

from agentflow.errors import UnknownAgentError
from agentflow.events.models import HandoffRequested
from agentflow.planning.result import PlanningResult

if TYPE_CHECKING:
    from agentflow.agent import Agent, AgentGroup, Node
    from agentflow.planning import Planning

logger = logging.getLogger(__name__)

QUERY_VARIABLE = "query"


class HandoffType(str, Enum):
    AUTO = "auto"
    DIRECT = "direct"
    HYBRID = "hybrid"
    MANUAL = "manual"


@dataclass(frozen=True)
class HandoffDecision:
    """Agent and input for the next round."""
    agent: "Node"
    query: str


class Handoff(ABC):
    """Policy selecting the next agent of a group."""

    type: HandoffType
    # Whether members must emit a planning result each round
    requires_planning: bool = True
    moderator: "Agent | None" = None

    @abstractmethod
    async def handoff(
        self,
        group: "AgentGroup",
        planning: "Planning",
        variables: dict[str, Any],
    ) -> HandoffDecision:
        """
        Select the next agent.

        Raises:
            UnknownAgentError: If the selected agent is not in the group
        """
        ...

    async def plan(
        self,
        group: "AgentGroup",
        planning: "Planning",
        variables: dict[str, Any],
    ) -> None:
        """
        Plan the next round with the moderator, if any.

        The moderator receives the group roster and conversation. Runs
        after every member round, before the group's terminations.

        Raises:
            PlanningParseError: If the moderator output is not a planning result
        """
        if self.moderator is None:
            return
        await planning.planning(
            self.moderator,
            group.conversation(),
            {**variables, **group.group_variables()},
        )
        self.moderator.clear_short_term_memory()

    def _decide(self, agent: "Node", query: str, variables: dict[str, Any]) -> HandoffDecision:
        variables[QUERY_VARIABLE] = query
        logger.info(f"{self.type.value} handoff to {agent.name}")
        return HandoffDecision(agent=agent, query=query)

    def _require(self, group: "AgentGroup", name: str | None) -> "Node":
        agent = group.get_agent(name) if name else None
        if agent is None:
            raise UnknownAgentError(name, group.agent_names, node_id=group.id, round=group.round)
        return agent


class AutoHandoff(Handoff):
    """
    Trusts the planning result's next agent name verbatim.

    Without a moderator every member replies with a planning result. With
    one, members reply with plain content and the moderator plans.
    """

    type = HandoffType.AUTO

    def __init__(self, moderator: "Agent | None" = None):
        self.moderator = moderator

    @property
    def requires_planning(self) -> bool:
        return self.moderator is None

    async def handoff(self, group, planning, variables):
        agent = self._require(group, planning.next_agent_name())
        return self._decide(agent, planning.next_query(), variables)


class DirectHandoff(Handoff):
    """
    Routes without planning.

    With a target the same agent always runs next; without one, agents
    run in group order, wrapping around. The next query is the group's
    latest output (its input before any round finished).
    """

    type = HandoffType.DIRECT
    requires_planning = False

    def __init__(self, target: str | None = None):
        self.target = target

    def next_agent_name(self, group: "AgentGroup") -> str:
        if self.target:
            return self.target
        names = group.agent_names
        current = group.current_agent
        if current is None or current.name not in names:
            return names[0]
        return names[(names.index(current.name) + 1) % len(names)]

    async def handoff(self, group, planning, variables):
        agent = self._require(group, self.next_agent_name(group))
        query = group.output if group.output else (group.input or "")
        planning.direct_planning(PlanningResult(
            planning=f"direct handoff to {agent.name}",
            next_agent_name=agent.name,
            next_query=query,
        ))
        return self._decide(agent, query, variables)


class HybridHandoff(Handoff):
    """AUTO routing with a DIRECT fallback for names outside the group."""

    type = HandoffType.HYBRID

    def __init__(self, fallback: str, moderator: "Agent | None" = None):
        """
        Args:
            fallback: Agent that runs when the planned agent is unknown
            moderator: Agent planning each round (members plan when omitted)
        """
        self.auto = AutoHandoff(moderator)
        self.moderator = moderator
        self.fallback = fallback

    @property
    def requires_planning(self) -> bool:
        return self.moderator is None

    async def handoff(self, group, planning, variables):
        name = planning.next_agent_name()
        if name and group.get_agent(name) is not None:
            return await self.auto.handoff(group, planning, variables)
        logger.warning(f"Planned agent '{name}' not in group {group.name}, falling back to {self.fallback}")
        agent = self._require(group, self.fallback)
        query = planning.next_query() or group.output or group.input or ""
        return self._decide(agent, query, variables)


class ManualHandoff(Handoff):
    """
    Suspends the group until an external caller picks the next agent.

    The group publishes HandoffRequested and waits, with no timeout, for
    `resume(agent_name, query)`. An optional `on_request` callback is
    invoked with the request as well.
    """

    type = HandoffType.MANUAL

    def __init__(self, on_request: Callable[[HandoffRequested], Any] | None = None):
        self.on_request = on_request
        self._pending: asyncio.Future[tuple[str, str]] | None = None
        self._requested = asyncio.Event()
        self._request: HandoffRequested | None = None

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    @property
    def request(self) -> HandoffRequested | None:
        return self._request

    async def wait_requested(self) -> HandoffRequested:
        """Wait until a group is suspended on this handoff."""
        await self._requested.wait()
        if self._request is None:
            raise RuntimeError("Handoff was requested without a request record")
        return self._request

    def resume(self, agent_name: str, query: str) -> None:
        """Resume the suspended group with the next agent and query."""
        if not self.pending:
            raise RuntimeError("No handoff is waiting for a resume")
        self._pending.set_result((agent_name, query))

    async def handoff(self, group, planning, variables):
        self._request = HandoffRequested(
            node_id=group.id,
            node_name=group.name,
            round=group.round,
            planning=planning.result if planning.has_result else None,
            candidates=group.agent_names,
        )
        self._pending = asyncio.get_running_loop().create_future()
        if group.event_bus is not None:
            group.event_bus.handoff_requested.publish(self._request)
        if self.on_request is not None:
            self.on_request(self._request)
        self._requested.set()
        logger.info(f"Group {group.name} waiting for manual handoff at round {group.round}")
        try:
            agent_name, query = await self._pending
        finally:
            self._pending = None
            self._requested.clear()
        agent = self._require(group, agent_name)
        return self._decide(agent, query, variables)


def create_handoff(
    type: HandoffType | str,
    target: str | None = None,
    moderator: "Agent | None" = None,
) -> Handoff:
    """
    Create a handoff policy.

    Args:
        type: Policy kind
        target: DIRECT target or HYBRID fallback agent name
        moderator: Planning agent for AUTO and HYBRID

    Raises:
        ValueError: If HYBRID is requested without a fallback
    """
    type = HandoffType(type)
    if type == HandoffType.AUTO:
        return AutoHandoff(moderator)
    if type == HandoffType.DIRECT:
        return DirectHandoff(target)
    if type == HandoffType.HYBRID:
        if not target:
            raise ValueError("Hybrid handoff requires a fallback agent")
        return HybridHandoff(target, moderator)
    return ManualHandoff()
