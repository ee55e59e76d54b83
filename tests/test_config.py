"""Tests for environment configuration."""

from agentflow.config import settings_from_env
from agentflow.persistence import PersistenceType


class TestSettingsFromEnv:
    def test_defaults(self, monkeypatch):
        for name in ("AGENTFLOW_LLM_MODEL", "AGENTFLOW_PERSISTENCE", "AGENTFLOW_MAX_ROUND"):
            monkeypatch.delenv(name, raising=False)

        settings = settings_from_env()

        assert settings.llm.model == "gpt-4o-mini"
        assert settings.persistence.type == PersistenceType.TEMPORARY
        assert settings.max_round == 3

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("AGENTFLOW_LLM_MODEL", "azure/gpt-4o")
        monkeypatch.setenv("AGENTFLOW_LLM_TEMPERATURE", "0.5")
        monkeypatch.setenv("AGENTFLOW_PERSISTENCE", "redis")
        monkeypatch.setenv("AGENTFLOW_REDIS_URL", "redis://cache:6379/1")
        monkeypatch.setenv("AGENTFLOW_MAX_ROUND", "5")

        settings = settings_from_env()

        assert settings.llm.model == "azure/gpt-4o"
        assert settings.llm.temperature == 0.5
        assert settings.persistence.type == PersistenceType.REDIS
        assert settings.persistence.redis_url == "redis://cache:6379/1"
        assert settings.max_round == 5
