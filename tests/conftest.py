"""
Shared test fixtures.

ScriptedLLMProvider plays back canned replies in order and records every
conversation it was given, so tests can assert on prompts without a model.
"""

import json
from typing import Any

import pytest

from agentflow.errors import ModelInvocationError
from agentflow.events import EventBus
from agentflow.llm import CompletionResponse, FunctionCall, LLMProvider, Message
from agentflow.persistence import TemporaryPersistenceProvider


def reply(text: str = "", tool_calls: list[FunctionCall] | None = None) -> CompletionResponse:
    return CompletionResponse(message=Message.assistant(text, tool_calls=tool_calls))


def tool_call(name: str, **arguments: Any) -> CompletionResponse:
    return reply(tool_calls=[FunctionCall(name=name, arguments=json.dumps(arguments))])


def planning(name: str, query: str, next_step: str = "continue", reasoning: str = "") -> str:
    return json.dumps({
        "planning": reasoning or f"hand over to {name}",
        "name": name,
        "query": query,
        "next_step": next_step,
    })


class ScriptedLLMProvider(LLMProvider):
    """Replies with the scripted responses, one per call."""

    def __init__(self, *responses: str | CompletionResponse | Exception):
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    async def completion(self, messages, tools=None, model=None, temperature=None):
        self.calls.append({
            "messages": list(messages),
            "tools": list(tools or []),
            "model": model,
            "temperature": temperature,
        })
        if not self.responses:
            raise ModelInvocationError("Script exhausted")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, str):
            return reply(response)
        return response


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def temporary_persistence() -> TemporaryPersistenceProvider:
    return TemporaryPersistenceProvider()
