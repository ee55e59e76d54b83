"""
LLM Module

Model invocation boundary, its LangChain-backed implementation,
the retry wrapper and the model-limits registry.
"""

from agentflow.llm.domain import (
    CompletionResponse,
    FunctionCall,
    Message,
    RoleType,
    Usage,
)
from agentflow.llm.factory import LLMConfig, create_llm
from agentflow.llm.image import ImageProvider, OpenAIImageProvider
from agentflow.llm.langchain import LangChainLLMProvider
from agentflow.llm.provider import LLMProvider, RetryingLLMProvider, StreamingCallback
from agentflow.llm.registry import MODEL_LIMITS, ModelLimits, get_model_limits

__all__ = [
    "CompletionResponse",
    "FunctionCall",
    "Message",
    "RoleType",
    "Usage",
    "LLMConfig",
    "create_llm",
    "ImageProvider",
    "OpenAIImageProvider",
    "LangChainLLMProvider",
    "LLMProvider",
    "RetryingLLMProvider",
    "StreamingCallback",
    "MODEL_LIMITS",
    "ModelLimits",
    "get_model_limits",
]
