"""
Agent Memory

Memories hold what an agent learned in earlier rounds. The execution
loop appends the round output after every round and retrieves relevant
entries when building the next prompt; entries are never edited in place.

- LongTermMemory: ordered free-text entries held by the agent
- NaiveMemory: entries embedded and kept in a VectorStore, retrieved by
  similarity to the query
"""

import logging
from abc import ABC, abstractmethod

from langchain_core.embeddings import Embeddings

from agentflow.memory.vector import Document, InMemoryVectorStore, VectorStore

logger = logging.getLogger(__name__)


class Memory(ABC):
    """Append-only memory of an agent."""

    @abstractmethod
    async def add(self, entries: list[str]) -> None:
        """Append entries."""
        ...

    @abstractmethod
    async def retrieve(self, query: str, top_k: int = 5) -> list[str]:
        """Entries relevant to a query."""
        ...

    @abstractmethod
    def entries(self) -> list[str]:
        """All entries, oldest first."""
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Discard all entries."""
        ...


class LongTermMemory(Memory):
    """Free-text entries kept in order. Retrieval returns the most recent."""

    def __init__(self, entries: list[str] | None = None):
        self._entries: list[str] = list(entries or [])

    async def add(self, entries: list[str]) -> None:
        self._entries.extend(e for e in entries if e)

    async def retrieve(self, query: str, top_k: int = 5) -> list[str]:
        if top_k <= 0:
            return []
        return self._entries[-top_k:]

    def entries(self) -> list[str]:
        return list(self._entries)

    async def clear(self) -> None:
        self._entries = []


class NaiveMemory(Memory):
    """
    Vector-backed memory.

    Entries are embedded with a LangChain Embeddings model. When the
    store is external, entries outlive the agent and concurrent writers
    resolve last-write-wins inside the store.
    """

    def __init__(
        self,
        embeddings: Embeddings,
        vector_store: VectorStore | None = None,
        threshold: float | None = None,
        source: str = "memory",
    ):
        """
        Args:
            embeddings: Embedding model for entries and queries
            vector_store: Backing store (defaults to InMemoryVectorStore)
            threshold: Minimum similarity for retrieved entries
            source: Metadata tag recorded on stored documents
        """
        self._embeddings = embeddings
        self._store = vector_store or InMemoryVectorStore()
        self._threshold = threshold
        self._source = source
        self._entries: list[str] = []

    @property
    def vector_store(self) -> VectorStore:
        return self._store

    async def add(self, entries: list[str]) -> None:
        entries = [e for e in entries if e]
        if not entries:
            return
        vectors = await self._embeddings.aembed_documents(entries)
        documents = [
            Document(text=text, embedding=list(vector), metadata={"source": self._source})
            for text, vector in zip(entries, vectors)
        ]
        await self._store.add(documents)
        self._entries.extend(entries)
        logger.debug(f"Stored {len(documents)} memory documents")

    async def retrieve(self, query: str, top_k: int = 5) -> list[str]:
        if not query:
            return []
        vector = await self._embeddings.aembed_query(query)
        documents = await self._store.retrieve(list(vector), top_k=top_k, threshold=self._threshold)
        return [doc.text for doc in documents]

    def entries(self) -> list[str]:
        return list(self._entries)

    async def clear(self) -> None:
        await self._store.clear()
        self._entries = []
