"""
Temporary Persistence

In-process provider for development and tests. Entries expire after a
TTL (15 minutes by default) and are lost on restart.
"""

import asyncio
import time

from agentflow.persistence.ports import PersistenceProvider, PersistenceType

DEFAULT_TTL_SECONDS = 900


class TemporaryPersistenceProvider(PersistenceProvider):
    """
    Dict-backed provider with per-entry expiry.

    Expired entries are dropped lazily on access.
    """

    type = PersistenceType.TEMPORARY

    def __init__(self, ttl_seconds: float | None = DEFAULT_TTL_SECONDS):
        """
        Args:
            ttl_seconds: Lifetime of an entry (None = never expires)
        """
        self._entries: dict[str, tuple[str, float | None]] = {}
        self._ttl = ttl_seconds
        self._lock = asyncio.Lock()

    def _expired(self, expires_at: float | None) -> bool:
        return expires_at is not None and time.monotonic() >= expires_at

    async def save(self, id: str, text: str) -> None:
        expires_at = time.monotonic() + self._ttl if self._ttl is not None else None
        async with self._lock:
            self._entries[id] = (text, expires_at)

    async def load(self, id: str) -> str | None:
        async with self._lock:
            entry = self._entries.get(id)
            if entry is None:
                return None
            text, expires_at = entry
            if self._expired(expires_at):
                del self._entries[id]
                return None
            return text

    async def delete(self, id: str) -> None:
        async with self._lock:
            self._entries.pop(id, None)

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()
