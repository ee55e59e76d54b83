"""
Persistence Module

Keyed text storage for serialized agents and flows, with in-process,
file and Redis providers selected by PersistenceSettings.
"""

from agentflow.persistence.factory import (
    PersistenceSettings,
    create_persistence_from_env,
    create_persistence_provider,
    settings_from_env,
)
from agentflow.persistence.file import FilePersistenceProvider
from agentflow.persistence.memory import TemporaryPersistenceProvider
from agentflow.persistence.ports import PersistenceProvider, PersistenceType
from agentflow.persistence.redis import RedisPersistenceProvider

__all__ = [
    "PersistenceProvider",
    "PersistenceType",
    "TemporaryPersistenceProvider",
    "FilePersistenceProvider",
    "RedisPersistenceProvider",
    "PersistenceSettings",
    "settings_from_env",
    "create_persistence_provider",
    "create_persistence_from_env",
]
