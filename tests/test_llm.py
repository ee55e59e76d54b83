"""Tests for the LangChain provider adapter, retries and model limits."""

import json

import pytest
from langchain_core.language_models.fake_chat_models import (
    FakeMessagesListChatModel,
    GenericFakeChatModel,
)
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_core.runnables import RunnableLambda

from agentflow.errors import ModelInvocationError
from agentflow.llm import (
    FunctionCall,
    LangChainLLMProvider,
    LLMConfig,
    Message,
    RetryingLLMProvider,
    StreamingCallback,
    create_llm,
    get_model_limits,
)
from agentflow.llm.langchain import to_langchain_message

from conftest import ScriptedLLMProvider


class RecordingCallback(StreamingCallback):
    def __init__(self):
        self.chunks: list[str] = []
        self.completed: list[str] = []
        self.errors: list[Exception] = []

    def on_chunk(self, chunk):
        self.chunks.append(chunk)

    def on_complete(self, text):
        self.completed.append(text)

    def on_error(self, error):
        self.errors.append(error)


class TestMessageConversion:
    """Conversation records to LangChain messages."""

    def test_roles(self):
        assert isinstance(to_langchain_message(Message.system("s")), SystemMessage)
        assert isinstance(to_langchain_message(Message.user("u")), HumanMessage)
        tool = to_langchain_message(Message.tool("42", tool_call_id="call_1", name="calc"))
        assert isinstance(tool, ToolMessage)
        assert tool.tool_call_id == "call_1"

    def test_assistant_tool_calls(self):
        call = FunctionCall(id="call_1", name="calc", arguments='{"x": 2}')
        message = to_langchain_message(Message.assistant("", tool_calls=[call]))

        assert isinstance(message, AIMessage)
        assert message.tool_calls[0]["name"] == "calc"
        assert message.tool_calls[0]["args"] == {"x": 2}
        assert message.tool_calls[0]["id"] == "call_1"


class TestLangChainLLMProvider:
    async def test_completion(self):
        provider = LangChainLLMProvider(llm=FakeMessagesListChatModel(responses=[AIMessage(content="hello")]))

        response = await provider.completion([Message.user("hi")])

        assert response.text == "hello"
        assert response.tool_calls == []

    async def test_tool_calls_mapped_back(self):
        reply = AIMessage(
            content="",
            tool_calls=[{"name": "weather", "args": {"city": "Oslo"}, "id": "call_9"}],
        )
        provider = LangChainLLMProvider(llm=FakeMessagesListChatModel(responses=[reply]))

        response = await provider.completion([Message.user("weather?")])

        call = response.tool_calls[0]
        assert call.id == "call_9"
        assert call.name == "weather"
        assert json.loads(call.arguments) == {"city": "Oslo"}

    async def test_failure_is_wrapped(self):
        def fail(_):
            raise RuntimeError("rate limited")

        provider = LangChainLLMProvider(llm=RunnableLambda(fail))

        with pytest.raises(ModelInvocationError, match="rate limited"):
            await provider.completion([Message.user("hi")])

    async def test_stream(self):
        llm = GenericFakeChatModel(messages=iter([AIMessage(content="hello streaming world")]))
        provider = LangChainLLMProvider(llm=llm)
        callback = RecordingCallback()

        response = await provider.stream([Message.user("hi")], callback)

        assert response.text == "hello streaming world"
        assert "".join(callback.chunks) == "hello streaming world"
        assert len(callback.chunks) > 1
        assert callback.completed == ["hello streaming world"]
        assert callback.errors == []

    def test_max_tokens_from_registry(self):
        provider = LangChainLLMProvider(LLMConfig(model="gpt-4o"), llm=FakeMessagesListChatModel(responses=[]))
        assert provider.max_tokens() == 128_000
        assert provider.max_tokens("unknown-model") is None


class TestRetryingLLMProvider:
    async def test_retries_then_succeeds(self):
        delegate = ScriptedLLMProvider(ModelInvocationError("flaky"), "ok")
        provider = RetryingLLMProvider(delegate, max_attempts=3, base_delay=0)

        response = await provider.completion([Message.user("q")])

        assert response.text == "ok"
        assert len(delegate.calls) == 2

    async def test_gives_up(self):
        delegate = ScriptedLLMProvider(*[ModelInvocationError("down")] * 3)
        provider = RetryingLLMProvider(delegate, max_attempts=2, base_delay=0)

        with pytest.raises(ModelInvocationError):
            await provider.completion([Message.user("q")])
        assert len(delegate.calls) == 2

    async def test_other_errors_not_retried(self):
        delegate = ScriptedLLMProvider(ValueError("bug"), "ok")

        with pytest.raises(ValueError):
            await RetryingLLMProvider(delegate, base_delay=0).completion([Message.user("q")])
        assert len(delegate.calls) == 1

    def test_backoff_is_capped(self):
        provider = RetryingLLMProvider(ScriptedLLMProvider(), base_delay=1.0, max_delay=5.0)
        assert [provider._delay(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 5.0]


class TestModelLimits:
    def test_lookup(self):
        assert get_model_limits("gpt-4o").context_window == 128_000
        assert get_model_limits("azure/gpt-4o-mini").max_output_tokens == 16_384
        assert get_model_limits("gpt-4o-mini-2024-07-18") == get_model_limits("gpt-4o-mini")
        assert get_model_limits("mystery") is None
        assert get_model_limits(None) is None


class TestCreateLLM:
    def test_openai_requires_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            create_llm(LLMConfig(model="gpt-4o-mini"))

    def test_azure_requires_endpoint(self, monkeypatch):
        monkeypatch.delenv("AZURE_OPENAI_ENDPOINT", raising=False)
        with pytest.raises(ValueError, match="AZURE_OPENAI_ENDPOINT"):
            create_llm(LLMConfig(model="azure/gpt-4o"))

    def test_openai_model(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        llm = create_llm(LLMConfig(model="gpt-4o-mini", temperature=0.3))
        assert llm.model_name == "gpt-4o-mini"
        assert llm.temperature == 0.3
