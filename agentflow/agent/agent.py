"""
Agent

A node that answers a query with a language model, optionally calling
tools and reflecting on its own output over several rounds.

Each round:
    1. build the prompt (system prompt + relevant memory, then the
       prompt template rendered with the variables)
    2. invoke the model; while it requests tools, execute them and feed
       the results back, at most `max_tool_call_turns` times
    3. append the output to memory
    4. with reflection enabled, stop when a termination fires or the
       max round is reached, otherwise continue with the reflection
       template as the next query

Model failures surface as ModelInvocationError and tool failures as
ToolExecutionError; the agent is left FAILED and nothing is retried
here (wrap the provider in RetryingLLMProvider for that).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from agentflow.agent.node import Node, NodeType
from agentflow.errors import ModelInvocationError, ToolExecutionError
from agentflow.llm.domain import CompletionResponse, Message
from agentflow.planning import DefaultPlanning, Planning
from agentflow.prompt import render
from agentflow.termination import MaxRoundTermination

if TYPE_CHECKING:
    from agentflow.events import EventBus
    from agentflow.llm import LLMProvider, StreamingCallback
    from agentflow.memory import Memory
    from agentflow.persistence import PersistenceProvider
    from agentflow.termination import Termination
    from agentflow.tool import ToolCall

logger = logging.getLogger(__name__)

DEFAULT_CONTINUE_TEMPLATE = """Review your previous answer and improve it.

Original request:
{{query}}

Previous answer:
{{output}}
"""


class ReflectionConfig(BaseModel):
    """Self-reflection settings of an agent."""

    enabled: bool = Field(
        default=False,
        description="Run more than one round, reflecting on the previous output",
    )
    max_round: int = Field(
        default=3,
        ge=1,
        description="Upper bound on rounds per run",
    )
    continue_template: str = Field(
        default=DEFAULT_CONTINUE_TEMPLATE,
        description="Mustache template for the next round's query ({{query}}, {{output}}, {{round}})",
    )


class Agent(Node):
    """Model-backed node."""

    node_type = NodeType.AGENT

    def __init__(
        self,
        name: str,
        llm_provider: "LLMProvider",
        description: str = "",
        system_prompt: str = "",
        prompt_template: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        tools: list["ToolCall"] | None = None,
        memory: "Memory | None" = None,
        memory_top_k: int = 5,
        planning: Planning | None = None,
        reflection_config: ReflectionConfig | None = None,
        terminations: list["Termination"] | None = None,
        max_tool_call_turns: int = 10,
        streaming_callback: "StreamingCallback | None" = None,
        id: str | None = None,
        event_bus: "EventBus | None" = None,
        persistence_provider: "PersistenceProvider | None" = None,
    ):
        """
        Args:
            name: Unique name, used by handoffs to address the agent
            llm_provider: Model invocation boundary
            description: What the agent does, shown to planners
            system_prompt: Mustache template for the system message
            prompt_template: Mustache template for the user message
                ({{query}} is the round's query); None sends the query as is
            model: Model override passed to the provider
            temperature: Temperature override passed to the provider
            tools: Tools the model may call, in declaration order
            memory: Memory appended after every round
            memory_top_k: Memory entries retrieved into the system prompt
            planning: Planning used when the agent routes a group
            reflection_config: Multi-round reflection settings
            terminations: Stop conditions checked after reflection rounds
                (defaults to max round)
            max_tool_call_turns: Bound on model/tool exchanges per round
            streaming_callback: Stream model output through this callback
        """
        super().__init__(
            name,
            description=description,
            id=id,
            terminations=terminations if terminations is not None else [MaxRoundTermination()],
            event_bus=event_bus,
            persistence_provider=persistence_provider,
        )
        tools = list(tools or [])
        names = [tool.function_name() for tool in tools]
        if len(names) != len(set(names)):
            raise ValueError(f"Agent {name} has duplicate tool names: {names}")
        if max_tool_call_turns < 1:
            raise ValueError("max_tool_call_turns must be >= 1")

        self.llm_provider = llm_provider
        self.system_prompt = system_prompt
        self.prompt_template = prompt_template
        self.model = model
        self.temperature = temperature
        self.tools = tools
        self.memory = memory
        self.memory_top_k = memory_top_k
        self.planning = planning or DefaultPlanning()
        self.reflection_config = reflection_config or ReflectionConfig()
        self.max_tool_call_turns = max_tool_call_turns
        self.streaming_callback = streaming_callback

    @property
    def max_round(self) -> int:
        return self.reflection_config.max_round

    def get_tool(self, name: str) -> "ToolCall | None":
        return next((t for t in self.tools if t.function_name() == name or t.name == name), None)

    async def _execute(self, query: str, variables: dict[str, Any]) -> str:
        current = query
        while True:
            self.round += 1
            logger.info(f"Agent {self.name} round {self.round}/{self.max_round}")
            output = await self._step(current, variables)
            self.output = output
            if self.memory is not None:
                await self.memory.add([output])
            if not self.reflection_config.enabled:
                return output
            if self.should_terminate() or self.round >= self.max_round:
                logger.info(f"Agent {self.name} finished after {self.round} rounds")
                return output
            current = render(self.reflection_config.continue_template, {
                **variables,
                "query": query,
                "output": output,
                "round": self.round,
            })

    async def _system_message(self, query: str, variables: dict[str, Any]) -> Message | None:
        system = render(self.system_prompt, variables)
        if self.memory is not None:
            entries = await self.memory.retrieve(query, top_k=self.memory_top_k)
            if entries:
                recalled = "\n".join(f"- {entry}" for entry in entries)
                system = f"{system}\n\nRelevant memory:\n{recalled}".strip()
        return Message.system(system) if system else None

    async def _step(self, query: str, variables: dict[str, Any]) -> str:
        if not self.messages:
            system = await self._system_message(query, variables)
            if system is not None:
                self.add_message(system)
        content = render(self.prompt_template, {**variables, "query": query}) if self.prompt_template else query
        self.add_message(Message.user(content))

        turns = 0
        while True:
            response = await self._invoke_model()
            self.usage.add(response.usage)
            reply = response.message.model_copy(update={"name": self.name})
            self.add_message(reply)
            if not response.tool_calls:
                return response.text

            turns += 1
            if turns > self.max_tool_call_turns:
                raise ToolExecutionError(
                    f"Exceeded {self.max_tool_call_turns} tool call turns",
                    node_id=self.id,
                    round=self.round,
                )
            # Every call of the batch is answered before a direct result returns
            direct_result: str | None = None
            for call in response.tool_calls:
                tool = self.get_tool(call.name)
                if tool is None:
                    raise ToolExecutionError(
                        "Model requested an unknown tool",
                        tool_name=call.name,
                        node_id=self.id,
                        round=self.round,
                    )
                try:
                    result = await tool.execute(call.arguments)
                except ToolExecutionError as e:
                    raise ToolExecutionError(
                        "Tool call failed",
                        tool_name=tool.name,
                        node_id=self.id,
                        round=self.round,
                        text=str(e),
                    ) from e
                self.add_message(Message.tool(result, tool_call_id=call.id, name=tool.name))
                if tool.direct_return and direct_result is None:
                    direct_result = result
            if direct_result is not None:
                return direct_result

    async def _invoke_model(self) -> CompletionResponse:
        try:
            if self.streaming_callback is not None:
                return await self.llm_provider.stream(
                    list(self.messages), self.streaming_callback, self.tools, self.model, self.temperature
                )
            return await self.llm_provider.completion(list(self.messages), self.tools, self.model, self.temperature)
        except Exception as e:
            raise ModelInvocationError(
                "Model invocation failed",
                node_id=self.id,
                round=self.round,
                text=str(e),
            ) from e
