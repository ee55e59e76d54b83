"""
Concrete Flow Nodes

Executable:
- EmptyFlowNode: passes its input through (typical start node)
- AgentFlowNode: runs an Agent built from its settings
- AgentGroupFlowNode: runs an AgentGroup of its agent settings
- ThrowErrorFlowNode: fails the flow with a fixed message

Settings:
- LLMFlowNode: resolves an LLMProvider from the flow's provider registry
- HandoffFlowNode: builds the group's handoff policy
- FunctionToolFlowNode: resolves a tool from the flow's tool registry
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from agentflow.agent import Agent, AgentGroup, ReflectionConfig, create_moderator
from agentflow.agent.agent import DEFAULT_CONTINUE_TEMPLATE
from agentflow.agent.node import NAME_PATTERN
from agentflow.errors import FlowExecutionError, GraphValidationError
from agentflow.flow.node import FlowNode, FlowNodeType, flow_node
from agentflow.handoff import HandoffType, create_handoff

if TYPE_CHECKING:
    from agentflow.flow.flow import Flow
    from agentflow.handoff import Handoff
    from agentflow.llm import LLMProvider
    from agentflow.tool import ToolCall

logger = logging.getLogger(__name__)


@flow_node("empty")
class EmptyFlowNode(FlowNode):
    type = FlowNodeType.START
    type_description = "Empty Node"
    executable = True

    async def execute(self, input, variables):
        return input


@flow_node("llm")
class LLMFlowNode(FlowNode):
    """Model selection for the agents that use it."""

    type = FlowNodeType.LLM
    type_description = "LLM Provider Node"

    class Domain(FlowNode.Domain):
        provider: str = "default"
        model: str | None = None
        temperature: float | None = None

    def __init__(
        self,
        id: str | None = None,
        name: str = "",
        provider: str = "default",
        model: str | None = None,
        temperature: float | None = None,
        **kwargs,
    ):
        super().__init__(id, name, **kwargs)
        self.provider = provider
        self.model = model
        self.temperature = temperature
        self.llm_provider: "LLMProvider | None" = None

    def init(self, settings, flow):
        provider = flow.llm_providers.get(self.provider)
        if provider is None:
            raise GraphValidationError(
                f"LLM provider '{self.provider}' is not registered on flow {flow.name}",
                node_id=self.id,
            )
        self.llm_provider = provider


@flow_node("function_tool")
class FunctionToolFlowNode(FlowNode):
    """A tool made available to the agent that uses it."""

    type = FlowNodeType.TOOL
    type_description = "Function Tool"

    class Domain(FlowNode.Domain):
        tool_name: str = ""

    def __init__(self, id: str | None = None, name: str = "", tool_name: str = "", **kwargs):
        super().__init__(id, name, **kwargs)
        self.tool_name = tool_name
        self.tool: "ToolCall | None" = None

    def check(self, settings):
        super().check(settings)
        if not self.tool_name:
            raise GraphValidationError("Function tool node needs a tool name", node_id=self.id)

    def init(self, settings, flow):
        tool = flow.tools.get(self.tool_name)
        if tool is None:
            raise GraphValidationError(
                f"Tool '{self.tool_name}' is not registered on flow {flow.name}",
                node_id=self.id,
            )
        self.tool = tool


@flow_node("handoff")
class HandoffFlowNode(FlowNode):
    """
    Handoff policy of the group that uses it.

    An AUTO or HYBRID handoff with an LLMFlowNode setting is moderated by
    an agent on that model.
    """

    type = FlowNodeType.HANDOFF
    type_description = "Handoff Node"

    class Domain(FlowNode.Domain):
        handoff_type: HandoffType = HandoffType.AUTO
        target: str | None = None
        goal: str = ""

    def __init__(
        self,
        id: str | None = None,
        name: str = "",
        handoff_type: HandoffType = HandoffType.AUTO,
        target: str | None = None,
        goal: str = "",
        **kwargs,
    ):
        super().__init__(id, name, **kwargs)
        self.handoff_type = HandoffType(handoff_type)
        self.target = target
        self.goal = goal
        self.handoff: "Handoff | None" = None

    def check(self, settings):
        super().check(settings)
        if self.handoff_type == HandoffType.HYBRID and not self.target:
            raise GraphValidationError("Hybrid handoff node needs a fallback target", node_id=self.id)
        llms = self._settings_of(settings, LLMFlowNode)
        if len(llms) > 1:
            raise GraphValidationError(
                f"Handoff node needs at most one LLM setting, has {len(llms)}", node_id=self.id
            )
        if llms and self.handoff_type not in (HandoffType.AUTO, HandoffType.HYBRID):
            raise GraphValidationError(
                f"Only auto and hybrid handoffs take a moderator, not {self.handoff_type.value}",
                node_id=self.id,
            )

    def init(self, settings, flow):
        self.check(settings)
        moderator = None
        llms = self._settings_of(settings, LLMFlowNode)
        if llms:
            moderator = create_moderator(llms[0].llm_provider, goal=self.goal, model=llms[0].model)
        self.handoff = create_handoff(self.handoff_type, self.target, moderator)


def _check_agent_name(node: FlowNode) -> None:
    if not node.name or not NAME_PATTERN.match(node.name):
        raise GraphValidationError(
            f"Name '{node.name}' is not a valid agent name", node_id=node.id
        )


@flow_node("agent")
class AgentFlowNode(FlowNode):
    """
    Agent node.

    Needs exactly one LLMFlowNode setting; FunctionToolFlowNode settings
    become the agent's tools, in edge order.
    """

    type = FlowNodeType.AGENT
    type_description = "AI Agent Node"
    executable = True

    class Domain(FlowNode.Domain):
        description: str = ""
        system_prompt: str = ""
        prompt_template: str | None = None
        reflection_enabled: bool = False
        reflection_max_round: int = 3
        reflection_continue_template: str = DEFAULT_CONTINUE_TEMPLATE

    def __init__(
        self,
        id: str | None = None,
        name: str = "",
        description: str = "",
        system_prompt: str = "",
        prompt_template: str | None = None,
        reflection_enabled: bool = False,
        reflection_max_round: int = 3,
        reflection_continue_template: str = DEFAULT_CONTINUE_TEMPLATE,
        **kwargs,
    ):
        super().__init__(id, name, **kwargs)
        self.description = description
        self.system_prompt = system_prompt
        self.prompt_template = prompt_template
        self.reflection_enabled = reflection_enabled
        self.reflection_max_round = reflection_max_round
        self.reflection_continue_template = reflection_continue_template
        self.agent: Agent | None = None

    def check(self, settings):
        super().check(settings)
        _check_agent_name(self)
        llms = self._settings_of(settings, LLMFlowNode)
        if len(llms) != 1:
            raise GraphValidationError(
                f"Agent node '{self.name}' needs exactly one LLM setting, has {len(llms)}",
                node_id=self.id,
            )
        unsupported = [s for s in settings if not isinstance(s, (LLMFlowNode, FunctionToolFlowNode))]
        if unsupported:
            raise GraphValidationError(
                f"Agent node '{self.name}' only accepts LLM and tool settings, got {unsupported}",
                node_id=self.id,
            )

    def init(self, settings, flow):
        self.check(settings)
        llm = self._settings_of(settings, LLMFlowNode)[0]
        tools = [s.tool for s in self._settings_of(settings, FunctionToolFlowNode)]
        self.agent = Agent(
            name=self.name,
            llm_provider=llm.llm_provider,
            description=self.description,
            system_prompt=self.system_prompt,
            prompt_template=self.prompt_template,
            model=llm.model,
            temperature=llm.temperature,
            tools=tools,
            reflection_config=ReflectionConfig(
                enabled=self.reflection_enabled,
                max_round=self.reflection_max_round,
                continue_template=self.reflection_continue_template,
            ),
            event_bus=flow.event_bus,
        )

    async def execute(self, input, variables):
        if self.agent is None:
            raise FlowExecutionError(f"Agent node '{self.name}' is not initialized", node_id=self.id)
        return await self.agent.run(input or "", variables)


@flow_node("agent_group")
class AgentGroupFlowNode(FlowNode):
    """
    Agent group node.

    Members are its AgentFlowNode / AgentGroupFlowNode settings, routed
    by its single HandoffFlowNode setting.
    """

    type = FlowNodeType.AGENT_GROUP
    type_description = "AI Agent Group Node"
    executable = True

    class Domain(FlowNode.Domain):
        description: str = ""
        max_round: int = 3

    def __init__(self, id: str | None = None, name: str = "", description: str = "", max_round: int = 3, **kwargs):
        super().__init__(id, name, **kwargs)
        self.description = description
        self.max_round = max_round
        self.agent_group: AgentGroup | None = None

    def check(self, settings):
        super().check(settings)
        _check_agent_name(self)
        members = self._settings_of(settings, (AgentFlowNode, AgentGroupFlowNode))
        if not members:
            raise GraphValidationError(
                f"Agent group node '{self.name}' needs agent settings", node_id=self.id
            )
        handoffs = self._settings_of(settings, HandoffFlowNode)
        if len(handoffs) != 1:
            raise GraphValidationError(
                f"Agent group node '{self.name}' needs exactly one handoff setting, has {len(handoffs)}",
                node_id=self.id,
            )
        if self.max_round < 1:
            raise GraphValidationError("max_round must be >= 1", node_id=self.id)

    def init(self, settings, flow):
        self.check(settings)
        agents = [
            s.agent if isinstance(s, AgentFlowNode) else s.agent_group
            for s in self._settings_of(settings, (AgentFlowNode, AgentGroupFlowNode))
        ]
        self.agent_group = AgentGroup(
            name=self.name,
            agents=agents,
            handoff=self._settings_of(settings, HandoffFlowNode)[0].handoff,
            max_round=self.max_round,
            description=self.description,
            event_bus=flow.event_bus,
        )

    async def execute(self, input, variables):
        if self.agent_group is None:
            raise FlowExecutionError(f"Agent group node '{self.name}' is not initialized", node_id=self.id)
        return await self.agent_group.run(input or "", variables)


@flow_node("throw_error")
class ThrowErrorFlowNode(FlowNode):
    type = FlowNodeType.EXECUTE
    type_description = "Throw Error Node"
    executable = True

    class Domain(FlowNode.Domain):
        message: str = ""

    def __init__(self, id: str | None = None, name: str = "", message: str = "", **kwargs):
        super().__init__(id, name, **kwargs)
        self.message = message

    async def execute(self, input: str | None, variables: dict[str, Any]) -> str | None:
        raise FlowExecutionError(self.message or "Flow stopped by error node", node_id=self.id, text=input)
