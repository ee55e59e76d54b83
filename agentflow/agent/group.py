"""
Agent Group

A node whose rounds are run by its member agents, routed by a handoff.

Per round the current agent runs (through the planning step when the
handoff needs a planning result), the group records its output and
clears the agent's short-term memory, the group's terminations are
checked, and the handoff selects the agent and query for the next
round. The round counter starts at 1 and the group always stops at
its max round. A planning result that names no next agent also
completes the group.

With a moderated handoff the members reply with plain content and the
moderator plans every round from the roster and the conversation; it
also picks the first agent unless `start_agent` is given. The roster
and the group settings are exposed to prompts as `group_name`,
`group_description`, `group_agents` and `group_max_round`.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from agentflow.agent.node import Node, NodeType
from agentflow.handoff import AutoHandoff, Handoff
from agentflow.llm.domain import Message, RoleType
from agentflow.planning import DefaultPlanning, Planning
from agentflow.termination import MaxRoundTermination, StopWordTermination

if TYPE_CHECKING:
    from agentflow.events import EventBus
    from agentflow.persistence import PersistenceProvider
    from agentflow.termination import Termination

logger = logging.getLogger(__name__)

GROUP_NAME_VARIABLE = "group_name"
GROUP_DESCRIPTION_VARIABLE = "group_description"
GROUP_AGENTS_VARIABLE = "group_agents"
GROUP_MAX_ROUND_VARIABLE = "group_max_round"


class AgentGroup(Node):
    """Named collection of agents plus a handoff policy."""

    node_type = NodeType.GROUP

    def __init__(
        self,
        name: str,
        agents: list[Node],
        handoff: Handoff | None = None,
        planning: Planning | None = None,
        max_round: int = 3,
        start_agent: str | None = None,
        description: str = "",
        terminations: list["Termination"] | None = None,
        id: str | None = None,
        event_bus: "EventBus | None" = None,
        persistence_provider: "PersistenceProvider | None" = None,
    ):
        """
        Args:
            name: Group name
            agents: Member agents, in order
            handoff: Routing policy (defaults to AUTO)
            planning: Planning shared by the members' rounds
            max_round: Upper bound on rounds per run
            start_agent: Agent of the first round (defaults to the moderator's
                choice, or the first member without a moderator)
            terminations: Stop conditions (defaults to stop word, then max round)
        """
        super().__init__(
            name,
            description=description,
            id=id,
            terminations=(
                terminations if terminations is not None
                else [StopWordTermination(), MaxRoundTermination()]
            ),
            event_bus=event_bus,
            persistence_provider=persistence_provider,
        )
        if not agents:
            raise ValueError(f"Agent group {name} needs at least one agent")
        names = [agent.name for agent in agents]
        if len(names) != len(set(names)):
            raise ValueError(f"Agent group {name} has duplicate agent names: {names}")
        if max_round < 1:
            raise ValueError("max_round must be >= 1")
        if start_agent is not None and start_agent not in names:
            raise ValueError(f"Start agent '{start_agent}' is not in group {name}")

        self._agents = list(agents)
        self._max_round = max_round
        self.handoff = handoff or AutoHandoff()
        self.planning = planning or DefaultPlanning()
        self.start_agent = start_agent or names[0]
        self._explicit_start = start_agent is not None
        self.current_agent: Node | None = None
        for agent in self._agents:
            agent.parent = self
            if agent.event_bus is None:
                agent.event_bus = event_bus
        moderator = self.handoff.moderator
        if moderator is not None:
            moderator.parent = self
            if moderator.event_bus is None:
                moderator.event_bus = event_bus

    @property
    def agents(self) -> list[Node]:
        return list(self._agents)

    @property
    def agent_names(self) -> list[str]:
        return [agent.name for agent in self._agents]

    @property
    def max_round(self) -> int:
        return self._max_round

    def get_agent(self, name: str) -> Node | None:
        return next((agent for agent in self._agents if agent.name == name), None)

    def roster(self) -> str:
        """JSON description of the group and its members, shown to planners."""
        agents = []
        for agent in self._agents:
            info: dict[str, Any] = {"name": agent.name, "description": agent.description}
            tools = getattr(agent, "tools", None)
            if tools:
                info["functions"] = [tool.name for tool in tools]
            agents.append(info)
        return json.dumps(
            {"name": self.name, "description": self.description, "agents": agents},
            ensure_ascii=False,
        )

    def conversation(self) -> str:
        """The group's input and each member's output, one line per turn."""
        lines = [f"user<request>: {self.input}"] if self.input else []
        lines.extend(
            f"{message.name}<response>: {message.content}"
            for message in self.messages
            if message.role != RoleType.SYSTEM
        )
        return "\n".join(lines)

    def group_variables(self) -> dict[str, Any]:
        return {
            GROUP_NAME_VARIABLE: self.name,
            GROUP_DESCRIPTION_VARIABLE: self.description,
            GROUP_AGENTS_VARIABLE: self.roster(),
            GROUP_MAX_ROUND_VARIABLE: self.max_round,
        }

    def clear_short_term_memory(self) -> None:
        super().clear_short_term_memory()
        self.current_agent = None
        self.planning.reset()
        if self.handoff.moderator is not None:
            self.handoff.moderator.clear_short_term_memory()

    def _planned_finish(self) -> bool:
        # A planning result naming no agent completes the group
        if self.planning.has_result and self.planning.result.finished:
            logger.info(f"Group {self.name} planning named no next agent")
            return True
        return False

    async def _execute(self, query: str, variables: dict[str, Any]) -> str:
        self.planning.reset()
        self.current_agent = None
        agent = self.get_agent(self.start_agent)
        current = query
        if self.handoff.moderator is not None and not self._explicit_start:
            await self.handoff.plan(self, self.planning, variables)
            if self._planned_finish():
                return query
            decision = await self.handoff.handoff(self, self.planning, variables)
            agent, current = decision.agent, decision.query
        while True:
            self.round += 1
            self.current_agent = agent
            logger.info(f"Group {self.name} round {self.round}/{self.max_round}: {agent.name}")
            variables.update(self.group_variables())
            if self.handoff.requires_planning:
                output = await self.planning.planning(agent, current, variables)
            else:
                output = await agent.run(current, variables)
            self.output = output
            self.add_message(Message.assistant(output, name=agent.name))
            agent.clear_short_term_memory()

            await self.handoff.plan(self, self.planning, variables)
            if self.should_terminate() or self.round >= self.max_round or self._planned_finish():
                logger.info(f"Group {self.name} finished after {self.round} rounds")
                return output

            decision = await self.handoff.handoff(self, self.planning, variables)
            agent, current = decision.agent, decision.query
