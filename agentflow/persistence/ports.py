"""
Persistence Port

Keyed text storage for serialized agents and flow graphs.

A provider stores whatever string an element's own serialization
produced, under a caller-chosen id. Providers are interchangeable:
- TEMPORARY: in-process, entries expire after a TTL
- FILE: one file per id in a directory
- REDIS: one key per id

All operations are async and safe for concurrent use. Concurrent saves
to the same id resolve last-write-wins; no ordering is imposed.
"""

from abc import ABC, abstractmethod
from enum import Enum


class PersistenceType(str, Enum):
    """Supported persistence providers."""
    REDIS = "redis"
    FILE = "file"
    TEMPORARY = "temporary"


class PersistenceProvider(ABC):
    """Storage interface for serialized elements."""

    type: PersistenceType

    @abstractmethod
    async def save(self, id: str, text: str) -> None:
        """
        Store text under an id, replacing any previous value.

        Raises:
            PersistenceError: If the write fails
        """
        ...

    @abstractmethod
    async def load(self, id: str) -> str | None:
        """
        Load the text stored under an id.

        Returns:
            The stored text, or None if nothing is stored
        """
        ...

    @abstractmethod
    async def delete(self, id: str) -> None:
        """Remove one id. Missing ids are ignored."""
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Remove everything this provider stored."""
        ...

    async def close(self) -> None:
        """Release connections held by the provider."""
        pass
