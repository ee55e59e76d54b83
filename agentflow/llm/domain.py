"""
LLM Domain Models

Provider-neutral records exchanged across the model invocation boundary.
Providers translate these to and from their client library's types.
"""

from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


class RoleType(str, Enum):
    """Conversation roles."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class FunctionCall(BaseModel):
    """A tool call requested by the model."""
    id: str = Field(
        default_factory=lambda: f"call_{uuid4().hex[:24]}",
        description="Call identifier echoed back in the tool message",
    )
    name: str = Field(..., description="Requested tool name")
    arguments: str = Field(
        default="{}",
        description="JSON-encoded arguments",
    )


class Message(BaseModel):
    """A single conversation message."""
    role: RoleType
    content: str = ""
    name: str | None = Field(
        default=None,
        description="Author name (agent or tool)",
    )
    tool_call_id: str | None = Field(
        default=None,
        description="For tool messages, the call being answered",
    )
    tool_calls: list[FunctionCall] = Field(default_factory=list)

    @classmethod
    def system(cls, content: str, name: str | None = None) -> "Message":
        return cls(role=RoleType.SYSTEM, content=content, name=name)

    @classmethod
    def user(cls, content: str, name: str | None = None) -> "Message":
        return cls(role=RoleType.USER, content=content, name=name)

    @classmethod
    def assistant(
        cls,
        content: str,
        name: str | None = None,
        tool_calls: list[FunctionCall] | None = None,
    ) -> "Message":
        return cls(role=RoleType.ASSISTANT, content=content, name=name, tool_calls=tool_calls or [])

    @classmethod
    def tool(cls, content: str, tool_call_id: str, name: str | None = None) -> "Message":
        return cls(role=RoleType.TOOL, content=content, tool_call_id=tool_call_id, name=name)


class Usage(BaseModel):
    """Token accounting for one or more calls."""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def add(self, other: "Usage") -> None:
        self.prompt_tokens += other.prompt_tokens
        self.completion_tokens += other.completion_tokens
        self.total_tokens += other.total_tokens


class CompletionResponse(BaseModel):
    """Result of one model invocation."""
    message: Message
    usage: Usage = Field(default_factory=Usage)
    finish_reason: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def text(self) -> str:
        return self.message.content

    @property
    def tool_calls(self) -> list[FunctionCall]:
        return self.message.tool_calls
