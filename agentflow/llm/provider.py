"""
LLM Provider Port

The model invocation boundary consumed by agents.

A provider takes the conversation so far (system prompt first) plus the
bound tools and returns the model's reply, either in one piece or as a
stream of chunks delivered to a StreamingCallback. Streaming callbacks
run on the invoking task; exactly one of on_complete / on_error fires.

Retry is not part of a provider. Wrap one in RetryingLLMProvider to get
bounded attempts with exponential backoff.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from agentflow.errors import ModelInvocationError
from agentflow.llm.domain import CompletionResponse, Message

if TYPE_CHECKING:
    from agentflow.tool import ToolCall

logger = logging.getLogger(__name__)


class StreamingCallback(ABC):
    """Receives streamed model output."""

    @abstractmethod
    def on_chunk(self, chunk: str) -> None:
        ...

    @abstractmethod
    def on_complete(self, text: str) -> None:
        ...

    @abstractmethod
    def on_error(self, error: Exception) -> None:
        ...


class LLMProvider(ABC):
    """Model invocation boundary."""

    @abstractmethod
    async def completion(
        self,
        messages: list[Message],
        tools: list["ToolCall"] | None = None,
        model: str | None = None,
        temperature: float | None = None,
    ) -> CompletionResponse:
        """
        Invoke the model once.

        Args:
            messages: Conversation, system prompt first
            tools: Tools the model may request
            model: Override of the provider's default model
            temperature: Override of the provider's default temperature

        Returns:
            The model reply

        Raises:
            ModelInvocationError: If the call fails
        """
        ...

    async def stream(
        self,
        messages: list[Message],
        callback: StreamingCallback,
        tools: list["ToolCall"] | None = None,
        model: str | None = None,
        temperature: float | None = None,
    ) -> CompletionResponse:
        """
        Invoke the model, delivering output through a callback.

        Providers without native streaming deliver the whole reply as a
        single chunk.
        """
        try:
            response = await self.completion(messages, tools, model, temperature)
        except Exception as e:
            callback.on_error(e)
            raise
        if response.text:
            callback.on_chunk(response.text)
        callback.on_complete(response.text)
        return response

    def max_tokens(self, model: str | None = None) -> int | None:
        """Context window of the model, if known."""
        return None


class RetryingLLMProvider(LLMProvider):
    """
    Retry wrapper around another provider.

    Retries ModelInvocationError with exponential backoff:
    delay = min(base_delay * 2 ** (attempt - 1), max_delay).
    """

    def __init__(
        self,
        delegate: LLMProvider,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._delegate = delegate
        self._max_attempts = max_attempts
        self._base_delay = base_delay
        self._max_delay = max_delay

    def _delay(self, attempt: int) -> float:
        return min(self._base_delay * (2 ** (attempt - 1)), self._max_delay)

    async def completion(
        self,
        messages: list[Message],
        tools: list["ToolCall"] | None = None,
        model: str | None = None,
        temperature: float | None = None,
    ) -> CompletionResponse:
        attempt = 1
        while True:
            try:
                return await self._delegate.completion(messages, tools, model, temperature)
            except ModelInvocationError as e:
                if attempt >= self._max_attempts:
                    logger.error(f"Model invocation failed after {attempt} attempts: {e}")
                    raise
                delay = self._delay(attempt)
                logger.warning(
                    f"Model invocation failed (attempt {attempt}/{self._max_attempts}), "
                    f"retrying in {delay:.1f}s: {e}"
                )
                await asyncio.sleep(delay)
                attempt += 1

    def max_tokens(self, model: str | None = None) -> int | None:
        return self._delegate.max_tokens(model)
