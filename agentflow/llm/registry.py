"""
Model Limits Registry

Process-wide, read-only table of known model context windows and output
limits. Initialized once at import from a static table.
"""

from types import MappingProxyType
from typing import NamedTuple


class ModelLimits(NamedTuple):
    context_window: int
    max_output_tokens: int


MODEL_LIMITS = MappingProxyType({
    "gpt-4o": ModelLimits(128_000, 16_384),
    "gpt-4o-mini": ModelLimits(128_000, 16_384),
    "gpt-4.1": ModelLimits(1_047_576, 32_768),
    "gpt-4.1-mini": ModelLimits(1_047_576, 32_768),
    "gpt-4-turbo": ModelLimits(128_000, 4_096),
    "gpt-3.5-turbo": ModelLimits(16_385, 4_096),
    "o1": ModelLimits(200_000, 100_000),
    "o3-mini": ModelLimits(200_000, 100_000),
    "claude-3-5-sonnet-20241022": ModelLimits(200_000, 8_192),
    "claude-3-5-haiku-20241022": ModelLimits(200_000, 8_192),
    "claude-sonnet-4-5-20250929": ModelLimits(200_000, 64_000),
    "gemini-1.5-pro": ModelLimits(2_097_152, 8_192),
    "gemini-2.0-flash": ModelLimits(1_048_576, 8_192),
    "deepseek-chat": ModelLimits(64_000, 8_192),
})

_PROVIDER_PREFIXES = ("azure/", "openai/", "gemini/", "ollama/", "anthropic/", "deepseek/")


def get_model_limits(model: str | None) -> ModelLimits | None:
    """
    Look up limits for a model identifier.

    Provider prefixes ("azure/gpt-4o") are stripped, and dated variants
    ("gpt-4o-2024-08-06") fall back to their longest known base name.
    """
    if not model:
        return None
    name = model
    for prefix in _PROVIDER_PREFIXES:
        if name.startswith(prefix):
            name = name[len(prefix):]
            break
    if name in MODEL_LIMITS:
        return MODEL_LIMITS[name]
    candidates = [key for key in MODEL_LIMITS if name.startswith(key)]
    if not candidates:
        return None
    return MODEL_LIMITS[max(candidates, key=len)]
