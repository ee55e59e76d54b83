"""
Environment Configuration

Settings for the orchestration core, read from AGENTFLOW_* environment
variables. Entry-point scripts are expected to call `load_dotenv()`
before `settings_from_env()` so a local .env file is honoured.

Environment variables:
    AGENTFLOW_LLM_MODEL: Default model identifier
    AGENTFLOW_LLM_TEMPERATURE: Sampling temperature
    AGENTFLOW_LLM_TIMEOUT: Request timeout in seconds
    AGENTFLOW_LLM_MAX_RETRIES: Client-level retries
    AGENTFLOW_PERSISTENCE: "temporary", "file", "redis"
    AGENTFLOW_PERSISTENCE_DIR: Directory for the file provider
    AGENTFLOW_REDIS_URL: Redis connection URL
    AGENTFLOW_KEY_PREFIX: Redis key prefix
    AGENTFLOW_TEMPORARY_TTL: Seconds a temporary entry lives
    AGENTFLOW_MAX_ROUND: Default max round for agents
"""

from __future__ import annotations

import os

from pydantic import BaseModel, Field

from agentflow.llm.factory import LLMConfig
from agentflow.persistence.factory import PersistenceSettings, settings_from_env as persistence_settings_from_env


class AgentFlowSettings(BaseModel):
    """Top-level settings bundle."""

    llm: LLMConfig = Field(
        default_factory=LLMConfig,
        description="Default model configuration",
    )
    persistence: PersistenceSettings = Field(
        default_factory=PersistenceSettings,
        description="Persistence provider selection",
    )
    max_round: int = Field(
        default=3,
        ge=1,
        description="Default reflection max round for agents",
    )


def settings_from_env() -> AgentFlowSettings:
    """Create AgentFlowSettings from environment variables."""
    return AgentFlowSettings(
        llm=LLMConfig(
            model=os.getenv("AGENTFLOW_LLM_MODEL", "gpt-4o-mini"),
            temperature=float(os.getenv("AGENTFLOW_LLM_TEMPERATURE", "0.0")),
            timeout=float(os.getenv("AGENTFLOW_LLM_TIMEOUT", "30.0")),
            max_retries=int(os.getenv("AGENTFLOW_LLM_MAX_RETRIES", "2")),
        ),
        persistence=persistence_settings_from_env(),
        max_round=int(os.getenv("AGENTFLOW_MAX_ROUND", "3")),
    )
