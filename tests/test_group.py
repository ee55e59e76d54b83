"""Tests for the agent group execution loop."""

import asyncio
import json

import pytest

from agentflow.agent import Agent, AgentGroup, NodeStatus, create_moderator
from agentflow.errors import PlanningParseError, UnknownAgentError
from agentflow.handoff import AutoHandoff, DirectHandoff, HybridHandoff, ManualHandoff
from agentflow.llm import RoleType

from conftest import ScriptedLLMProvider, planning


def user_inputs(provider: ScriptedLLMProvider) -> list[str]:
    return [
        next(m.content for m in reversed(call["messages"]) if m.role == RoleType.USER)
        for call in provider.calls
    ]


class TestAutoGroup:
    """Rounds routed by each agent's planning result."""

    async def test_alternates_until_max_round(self):
        researcher = ScriptedLLMProvider(
            planning("writer", "write up the findings"),
            planning("writer", "final polish"),
        )
        writer = ScriptedLLMProvider(planning("researcher", "check the facts"))
        group = AgentGroup(
            "team",
            [Agent("researcher", researcher), Agent("writer", writer)],
            max_round=3,
        )
        variables = {}

        output = await group.run("quantum computing", variables)

        assert [m.name for m in group.messages] == ["researcher", "writer", "researcher"]
        assert all(m.role == RoleType.ASSISTANT for m in group.messages)
        assert user_inputs(researcher) == ["quantum computing", "check the facts"]
        assert user_inputs(writer) == ["write up the findings"]
        assert output == planning("writer", "final polish")
        assert group.round == 3
        assert group.status == NodeStatus.DONE
        assert variables["query"] == "check the facts"

    async def test_members_forget_between_rounds(self):
        researcher = ScriptedLLMProvider(planning("writer", "a"), planning("writer", "b"))
        writer = ScriptedLLMProvider(planning("researcher", "c"))
        group = AgentGroup("team", [Agent("researcher", researcher), Agent("writer", writer)])

        await group.run("topic")

        assert len(researcher.calls[1]["messages"]) == 1
        assert all(agent.status == NodeStatus.IDLE for agent in group.agents)

    async def test_stop_word(self):
        researcher = ScriptedLLMProvider(planning("writer", "unused", next_step="TERMINATE"))
        writer = ScriptedLLMProvider()
        group = AgentGroup("team", [Agent("researcher", researcher), Agent("writer", writer)], max_round=5)

        await group.run("topic")

        assert group.round == 1
        assert writer.calls == []

    async def test_start_agent(self):
        writer = ScriptedLLMProvider(planning("researcher", "x"))
        group = AgentGroup(
            "team",
            [Agent("researcher", ScriptedLLMProvider()), Agent("writer", writer)],
            max_round=1,
            start_agent="writer",
        )

        await group.run("topic")

        assert group.messages[0].name == "writer"

    async def test_unknown_agent_fails_group(self):
        researcher = ScriptedLLMProvider(planning("editor", "x"))
        group = AgentGroup("team", [Agent("researcher", researcher), Agent("writer", ScriptedLLMProvider())])

        with pytest.raises(UnknownAgentError) as info:
            await group.run("topic")

        assert group.status == NodeStatus.FAILED
        assert info.value.round == 1

    async def test_planning_parse_error_fails_group(self):
        group = AgentGroup(
            "team",
            [Agent("researcher", ScriptedLLMProvider("no json here")), Agent("writer", ScriptedLLMProvider())],
        )

        with pytest.raises(PlanningParseError):
            await group.run("topic")

        assert group.status == NodeStatus.FAILED
        assert group.get_agent("researcher").status == NodeStatus.DONE

    async def test_reply_without_planning_fields_fails_group(self):
        group = AgentGroup(
            "team",
            [Agent("a", ScriptedLLMProvider('{"answer": "hello"}')), Agent("b", ScriptedLLMProvider())],
        )

        with pytest.raises(PlanningParseError) as info:
            await group.run("hi")

        assert info.value.text == '{"answer": "hello"}'
        assert group.status == NodeStatus.FAILED

    async def test_blank_next_agent_completes_group(self):
        researcher = ScriptedLLMProvider(planning("", "", reasoning="nothing left to do"))
        writer = ScriptedLLMProvider()
        group = AgentGroup("team", [Agent("researcher", researcher), Agent("writer", writer)], max_round=5)

        await group.run("topic")

        assert group.round == 1
        assert writer.calls == []
        assert group.status == NodeStatus.DONE

    def test_validation(self):
        with pytest.raises(ValueError):
            AgentGroup("team", [])
        with pytest.raises(ValueError):
            AgentGroup("team", [Agent("a", ScriptedLLMProvider()), Agent("a", ScriptedLLMProvider())])
        with pytest.raises(ValueError):
            AgentGroup("team", [Agent("a", ScriptedLLMProvider())], start_agent="b")


class TestDirectGroup:
    async def test_members_see_group_variables(self):
        provider = ScriptedLLMProvider("done")
        member = Agent("solo", provider, description="Does it all", system_prompt="You are in {{group_name}}: {{group_agents}}")
        group = AgentGroup("crew", [member], handoff=DirectHandoff(), max_round=1, description="A crew of one")

        await group.run("task")

        system = provider.calls[0]["messages"][0].content
        assert system.startswith("You are in crew: ")
        assert json.loads(system.removeprefix("You are in crew: ")) == {
            "name": "crew",
            "description": "A crew of one",
            "agents": [{"name": "solo", "description": "Does it all"}],
        }

    async def test_round_robin_passes_output_along(self):
        first = ScriptedLLMProvider("outline", "final text")
        second = ScriptedLLMProvider("draft")
        group = AgentGroup(
            "pipeline",
            [Agent("planner", first), Agent("drafter", second)],
            handoff=DirectHandoff(),
            max_round=3,
        )

        output = await group.run("an essay")

        assert output == "final text"
        assert user_inputs(second) == ["outline"]
        assert user_inputs(first) == ["an essay", "draft"]


class TestHybridGroup:
    async def test_falls_back_for_unknown_agent(self):
        researcher = ScriptedLLMProvider(planning("editor", "review"))
        writer = ScriptedLLMProvider(planning("researcher", "x"))
        group = AgentGroup(
            "team",
            [Agent("researcher", researcher), Agent("writer", writer)],
            handoff=HybridHandoff("writer"),
            max_round=2,
        )

        await group.run("topic")

        assert user_inputs(writer) == ["review"]


class TestManualGroup:
    async def test_waits_for_resume(self, event_bus):
        handoff = ManualHandoff()
        researcher = ScriptedLLMProvider(planning("writer", "suggested"))
        writer = ScriptedLLMProvider(planning("researcher", "x"))
        group = AgentGroup(
            "team",
            [Agent("researcher", researcher), Agent("writer", writer)],
            handoff=handoff,
            max_round=2,
            event_bus=event_bus,
        )

        task = asyncio.create_task(group.run("topic"))
        request = await asyncio.wait_for(handoff.wait_requested(), timeout=1)
        assert request.node_id == group.id
        assert group.status == NodeStatus.RUNNING

        handoff.resume("writer", "human instruction")
        await asyncio.wait_for(task, timeout=1)

        assert user_inputs(writer) == ["human instruction"]
        assert group.status == NodeStatus.DONE


class TestNestedGroup:
    async def test_group_as_member(self):
        inner = AgentGroup(
            "inner",
            [Agent("solver", ScriptedLLMProvider(planning("checker", "verify")))],
            max_round=1,
        )
        outer_provider = ScriptedLLMProvider(planning("inner", "solve it"))
        outer = AgentGroup(
            "outer",
            [Agent("lead", outer_provider), inner],
            handoff=DirectHandoff("inner"),
            max_round=2,
        )

        output = await outer.run("a puzzle")

        assert output == planning("checker", "verify")
        assert inner.parent is outer


class TestModeratedGroup:
    """Members answer in plain text, a moderator plans every round."""

    def make_group(self, moderator: ScriptedLLMProvider, researcher, writer, **kwargs) -> AgentGroup:
        return AgentGroup(
            "newsroom",
            [
                Agent("researcher", researcher, description="Finds sources"),
                Agent("writer", writer, description="Writes articles"),
            ],
            handoff=AutoHandoff(create_moderator(moderator, goal="publish an article")),
            max_round=5,
            **kwargs,
        )

    async def test_moderator_routes_each_round(self):
        moderator = ScriptedLLMProvider(
            planning("researcher", "find sources on bees"),
            planning("writer", "write it up"),
            planning("", "", next_step="TERMINATE"),
        )
        researcher = ScriptedLLMProvider("three sources")
        writer = ScriptedLLMProvider("the article")
        group = self.make_group(moderator, researcher, writer)

        output = await group.run("an article on bees")

        assert output == "the article"
        assert group.round == 2
        assert user_inputs(researcher) == ["find sources on bees"]
        assert user_inputs(writer) == ["write it up"]
        system = moderator.calls[0]["messages"][0].content
        assert "newsroom" in system
        assert "Finds sources" in system and "Writes articles" in system
        assert "publish an article" in system
        assert moderator.calls[2]["messages"][-1].content == (
            "user<request>: an article on bees\n"
            "researcher<response>: three sources\n"
            "writer<response>: the article"
        )
        assert group.get_agent("researcher").status == NodeStatus.IDLE

    async def test_explicit_start_agent_skips_first_plan(self):
        moderator = ScriptedLLMProvider(planning("", "", next_step="TERMINATE"))
        writer = ScriptedLLMProvider("done")
        group = self.make_group(moderator, ScriptedLLMProvider(), writer, start_agent="writer")

        assert await group.run("short note") == "done"
        assert len(moderator.calls) == 1

    async def test_nothing_to_do(self):
        moderator = ScriptedLLMProvider(planning("", "", next_step="TERMINATE"))
        researcher = ScriptedLLMProvider()
        group = self.make_group(moderator, researcher, ScriptedLLMProvider())

        assert await group.run("already answered") == "already answered"
        assert researcher.calls == []
        assert group.status == NodeStatus.DONE

    async def test_moderator_parse_error_fails_group(self):
        moderator = ScriptedLLMProvider("I think the writer should go next")
        group = self.make_group(moderator, ScriptedLLMProvider(), ScriptedLLMProvider())

        with pytest.raises(PlanningParseError) as info:
            await group.run("topic")

        assert info.value.text == "I think the writer should go next"
        assert group.status == NodeStatus.FAILED
