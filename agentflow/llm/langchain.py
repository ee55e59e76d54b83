"""
LangChain LLM Provider

Adapts any LangChain chat model (see `create_llm`) to the LLMProvider port.

Conversation records are translated to LangChain messages, tools are bound
as OpenAI-style function schemas, and the model's tool calls are mapped
back to FunctionCall records with JSON-encoded arguments.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)

from agentflow.errors import ModelInvocationError
from agentflow.llm.domain import CompletionResponse, FunctionCall, Message, RoleType, Usage
from agentflow.llm.factory import LLMConfig, create_llm
from agentflow.llm.provider import LLMProvider, StreamingCallback
from agentflow.llm.registry import get_model_limits

if TYPE_CHECKING:
    from agentflow.tool import ToolCall

logger = logging.getLogger(__name__)


def to_langchain_message(message: Message) -> BaseMessage:
    """Translate a conversation record to a LangChain message."""
    if message.role == RoleType.SYSTEM:
        return SystemMessage(content=message.content)
    if message.role == RoleType.USER:
        return HumanMessage(content=message.content, name=message.name)
    if message.role == RoleType.TOOL:
        return ToolMessage(
            content=message.content,
            tool_call_id=message.tool_call_id or "",
            name=message.name,
        )
    return AIMessage(
        content=message.content,
        name=message.name,
        tool_calls=[
            {"name": call.name, "args": _decode_arguments(call.arguments), "id": call.id}
            for call in message.tool_calls
        ],
    )


def _decode_arguments(arguments: str) -> dict[str, Any]:
    try:
        decoded = json.loads(arguments or "{}")
    except json.JSONDecodeError:
        logger.warning(f"Replaying tool call with non-JSON arguments: {arguments[:200]}")
        return {}
    return decoded if isinstance(decoded, dict) else {}


def _content_text(content: Any) -> str:
    """Flatten string or content-block message content to text."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def from_langchain_message(message: AIMessage) -> Message:
    """Translate a LangChain reply to a conversation record."""
    calls = []
    for call in getattr(message, "tool_calls", None) or []:
        function_call = FunctionCall(name=call["name"], arguments=json.dumps(call.get("args") or {}))
        if call.get("id"):
            function_call.id = call["id"]
        calls.append(function_call)
    return Message.assistant(_content_text(message.content), tool_calls=calls)


def _usage(message: AIMessage) -> Usage:
    metadata = getattr(message, "usage_metadata", None) or {}
    return Usage(
        prompt_tokens=metadata.get("input_tokens", 0),
        completion_tokens=metadata.get("output_tokens", 0),
        total_tokens=metadata.get("total_tokens", 0),
    )


class LangChainLLMProvider(LLMProvider):
    """
    LLMProvider backed by a LangChain chat model.

    Chat models are created lazily per model identifier and cached, so a
    per-call `model` override reuses the same client on later calls.
    """

    def __init__(
        self,
        config: LLMConfig | None = None,
        llm: Any = None,
    ):
        """
        Args:
            config: Default model configuration
            llm: Pre-built chat model to use for the default model
                (skips `create_llm`)
        """
        self._config = config or LLMConfig()
        self._models: dict[str, Any] = {}
        if llm is not None:
            self._models[self._config.model] = llm

    @property
    def model(self) -> str:
        return self._config.model

    def _chat_model(self, model: str | None, temperature: float | None) -> Any:
        name = model or self._config.model
        llm = self._models.get(name)
        if llm is None:
            update: dict[str, Any] = {"model": name}
            if self._config.max_tokens is None:
                limits = get_model_limits(name)
                if limits is not None:
                    update["max_tokens"] = limits.max_output_tokens
            llm = create_llm(self._config.model_copy(update=update))
            self._models[name] = llm
        if temperature is not None and temperature != self._config.temperature:
            llm = llm.bind(temperature=temperature)
        return llm

    def _prepare(
        self,
        messages: list[Message],
        tools: list["ToolCall"] | None,
        model: str | None,
        temperature: float | None,
    ) -> tuple[Any, list[BaseMessage]]:
        llm = self._chat_model(model, temperature)
        if tools:
            llm = llm.bind_tools([tool.to_function_schema() for tool in tools])
        return llm, [to_langchain_message(m) for m in messages]

    async def completion(
        self,
        messages: list[Message],
        tools: list["ToolCall"] | None = None,
        model: str | None = None,
        temperature: float | None = None,
    ) -> CompletionResponse:
        llm, lc_messages = self._prepare(messages, tools, model, temperature)
        logger.debug(f"Invoking {model or self.model} with {len(lc_messages)} messages")
        try:
            reply = await llm.ainvoke(lc_messages)
        except Exception as e:
            raise ModelInvocationError(
                f"Model {model or self.model} invocation failed: {e}"
            ) from e

        metadata = dict(getattr(reply, "response_metadata", None) or {})
        return CompletionResponse(
            message=from_langchain_message(reply),
            usage=_usage(reply),
            finish_reason=metadata.get("finish_reason") or metadata.get("stop_reason"),
            metadata=metadata,
        )

    async def stream(
        self,
        messages: list[Message],
        callback: StreamingCallback,
        tools: list["ToolCall"] | None = None,
        model: str | None = None,
        temperature: float | None = None,
    ) -> CompletionResponse:
        llm, lc_messages = self._prepare(messages, tools, model, temperature)
        aggregate = None
        try:
            async for chunk in llm.astream(lc_messages):
                text = _content_text(chunk.content)
                if text:
                    callback.on_chunk(text)
                aggregate = chunk if aggregate is None else aggregate + chunk
        except Exception as e:
            error = ModelInvocationError(f"Model {model or self.model} stream failed: {e}")
            error.__cause__ = e
            callback.on_error(error)
            raise error

        reply = aggregate if aggregate is not None else AIMessage(content="")
        response = CompletionResponse(
            message=from_langchain_message(reply),
            usage=_usage(reply),
            metadata=dict(getattr(reply, "response_metadata", None) or {}),
        )
        callback.on_complete(response.text)
        return response

    def max_tokens(self, model: str | None = None) -> int | None:
        limits = get_model_limits(model or self.model)
        return limits.context_window if limits else None
