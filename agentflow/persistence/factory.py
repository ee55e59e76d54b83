"""
Persistence Factory

Environment-based configuration and factory for persistence providers.

Usage:
    # From environment
    provider = create_persistence_from_env()

    # From settings
    settings = PersistenceSettings(type=PersistenceType.FILE, directory="/var/lib/agentflow")
    provider = create_persistence_provider(settings)
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from redis.asyncio import Redis

from agentflow.persistence.file import FilePersistenceProvider
from agentflow.persistence.memory import DEFAULT_TTL_SECONDS, TemporaryPersistenceProvider
from agentflow.persistence.ports import PersistenceProvider, PersistenceType
from agentflow.persistence.redis import RedisPersistenceProvider


@dataclass
class PersistenceSettings:
    """
    Configuration for the persistence layer.

    Attributes:
        type: Provider kind
        directory: Directory for the file provider (None = a fresh private temp dir)
        redis_url: Redis connection URL for the redis provider
        key_prefix: Prefix for Redis keys
        temporary_ttl_seconds: Lifetime of temporary entries
        redis_ttl_seconds: Expiry for Redis keys (None = keep forever)
    """
    type: PersistenceType = PersistenceType.TEMPORARY
    directory: str | None = None
    redis_url: str = "redis://localhost:6379"
    key_prefix: str = "agentflow"
    temporary_ttl_seconds: int = DEFAULT_TTL_SECONDS
    redis_ttl_seconds: int | None = None


def settings_from_env() -> PersistenceSettings:
    """
    Create PersistenceSettings from environment variables.

    Environment variables:
        AGENTFLOW_PERSISTENCE: "temporary", "file", "redis"
        AGENTFLOW_PERSISTENCE_DIR: Directory for the file provider
        AGENTFLOW_REDIS_URL: Redis connection URL
        AGENTFLOW_KEY_PREFIX: Redis key prefix
        AGENTFLOW_TEMPORARY_TTL: Temporary entry lifetime in seconds
    """
    return PersistenceSettings(
        type=PersistenceType(os.getenv("AGENTFLOW_PERSISTENCE", "temporary").lower()),
        directory=os.getenv("AGENTFLOW_PERSISTENCE_DIR"),
        redis_url=os.getenv("AGENTFLOW_REDIS_URL", "redis://localhost:6379"),
        key_prefix=os.getenv("AGENTFLOW_KEY_PREFIX", "agentflow"),
        temporary_ttl_seconds=int(os.getenv("AGENTFLOW_TEMPORARY_TTL", str(DEFAULT_TTL_SECONDS))),
    )


def create_persistence_provider(settings: PersistenceSettings | None = None) -> PersistenceProvider:
    """
    Create a persistence provider from settings.

    Args:
        settings: Persistence configuration (defaults to temporary)

    Returns:
        Configured PersistenceProvider
    """
    settings = settings or PersistenceSettings()
    if settings.type == PersistenceType.TEMPORARY:
        return TemporaryPersistenceProvider(ttl_seconds=settings.temporary_ttl_seconds)
    if settings.type == PersistenceType.FILE:
        return FilePersistenceProvider(settings.directory)

    return RedisPersistenceProvider(
        redis=Redis.from_url(settings.redis_url, decode_responses=True),
        key_prefix=settings.key_prefix,
        ttl_seconds=settings.redis_ttl_seconds,
    )


def create_persistence_from_env() -> PersistenceProvider:
    """Create a persistence provider from environment variables."""
    return create_persistence_provider(settings_from_env())
