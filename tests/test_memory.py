"""Tests for agent memories and the in-memory vector store."""

import pytest
from langchain_core.embeddings import DeterministicFakeEmbedding

from agentflow.memory import Document, InMemoryVectorStore, LongTermMemory, NaiveMemory


class TestLongTermMemory:
    async def test_most_recent_entries(self):
        memory = LongTermMemory()
        await memory.add(["one", "", "two", "three"])

        assert memory.entries() == ["one", "two", "three"]
        assert await memory.retrieve("anything", top_k=2) == ["two", "three"]
        assert await memory.retrieve("anything", top_k=0) == []

    async def test_clear(self):
        memory = LongTermMemory(["x"])
        await memory.clear()
        assert memory.entries() == []


class TestInMemoryVectorStore:
    """Cosine ranking over stored embeddings."""

    async def test_ranking_and_scores(self):
        store = InMemoryVectorStore()
        await store.add([
            Document(text="east", embedding=[1.0, 0.0]),
            Document(text="north", embedding=[0.0, 1.0]),
            Document(text="north-east", embedding=[1.0, 1.0]),
        ])

        results = await store.retrieve([0.0, 2.0], top_k=2)

        assert [doc.text for doc in results] == ["north", "north-east"]
        assert results[0].metadata["score"] == pytest.approx(1.0)

    async def test_threshold(self):
        store = InMemoryVectorStore()
        await store.add([
            Document(text="east", embedding=[1.0, 0.0]),
            Document(text="north", embedding=[0.0, 1.0]),
        ])

        results = await store.retrieve([0.0, 1.0], threshold=0.5)

        assert [doc.text for doc in results] == ["north"]

    async def test_rejects_unembedded_documents(self):
        with pytest.raises(ValueError):
            await InMemoryVectorStore().add([Document(text="raw")])

    async def test_rejects_dimension_mismatch(self):
        store = InMemoryVectorStore()
        await store.add([Document(text="a", embedding=[1.0, 0.0])])
        with pytest.raises(ValueError):
            await store.add([Document(text="b", embedding=[1.0, 0.0, 0.0])])

    async def test_empty_store(self):
        assert await InMemoryVectorStore().retrieve([1.0]) == []


class TestNaiveMemory:
    async def test_exact_entry_ranks_first(self):
        memory = NaiveMemory(DeterministicFakeEmbedding(size=32))
        await memory.add(["the capital of France is Paris", "bananas are yellow", "water boils at 100C"])

        results = await memory.retrieve("bananas are yellow", top_k=1)

        assert results == ["bananas are yellow"]
        assert len(memory.vector_store) == 3

    async def test_metadata_source(self):
        memory = NaiveMemory(DeterministicFakeEmbedding(size=8), source="writer")
        await memory.add(["entry"])

        documents = await memory.vector_store.retrieve(
            await DeterministicFakeEmbedding(size=8).aembed_query("entry"), top_k=1
        )

        assert documents[0].metadata["source"] == "writer"

    async def test_clear(self):
        memory = NaiveMemory(DeterministicFakeEmbedding(size=8))
        await memory.add(["a", "b"])

        await memory.clear()

        assert memory.entries() == []
        assert await memory.retrieve("a") == []
