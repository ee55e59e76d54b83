"""
Vector Store

Document records and the narrow store boundary used by NaiveMemory,
plus an in-process cosine-similarity implementation.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

import numpy as np
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class Document(BaseModel):
    """An embedded text entry."""
    text: str
    embedding: list[float] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class VectorStore(ABC):
    """Storage boundary for embedded documents."""

    @abstractmethod
    async def add(self, documents: list[Document]) -> None:
        ...

    @abstractmethod
    async def retrieve(
        self,
        embedding: list[float],
        top_k: int = 5,
        threshold: float | None = None,
    ) -> list[Document]:
        """
        Find the documents most similar to an embedding.

        Args:
            embedding: Query vector
            top_k: Maximum documents to return
            threshold: Minimum similarity score to include

        Returns:
            Documents, most similar first
        """
        ...

    @abstractmethod
    async def clear(self) -> None:
        ...


class InMemoryVectorStore(VectorStore):
    """
    In-memory vector store ranking by cosine similarity.

    Documents without an embedding are rejected.
    """

    def __init__(self):
        self._documents: list[Document] = []
        self._matrix: np.ndarray | None = None
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._documents)

    async def add(self, documents: list[Document]) -> None:
        if not documents:
            return
        if any(not doc.embedding for doc in documents):
            raise ValueError("Documents must be embedded before they are stored")
        rows = np.array([doc.embedding for doc in documents], dtype=float)
        async with self._lock:
            if self._matrix is not None and rows.shape[1] != self._matrix.shape[1]:
                raise ValueError(
                    f"Embedding dimension {rows.shape[1]} does not match store dimension {self._matrix.shape[1]}"
                )
            self._documents.extend(documents)
            self._matrix = rows if self._matrix is None else np.vstack([self._matrix, rows])

    async def retrieve(
        self,
        embedding: list[float],
        top_k: int = 5,
        threshold: float | None = None,
    ) -> list[Document]:
        async with self._lock:
            if self._matrix is None or top_k <= 0:
                return []
            query = np.asarray(embedding, dtype=float)
            norms = np.linalg.norm(self._matrix, axis=1) * np.linalg.norm(query)
            scores = np.divide(
                self._matrix @ query,
                norms,
                out=np.zeros(len(self._documents)),
                where=norms != 0,
            )
            ranked = np.argsort(-scores, kind="stable")[:top_k]
            results = []
            for index in ranked:
                score = float(scores[index])
                if threshold is not None and score < threshold:
                    continue
                doc = self._documents[index]
                results.append(doc.model_copy(update={"metadata": {**doc.metadata, "score": score}}))
            return results

    async def clear(self) -> None:
        async with self._lock:
            self._documents = []
            self._matrix = None
