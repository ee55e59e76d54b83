"""
Memory Module

Agent memories and the vector store boundary behind NaiveMemory.
"""

from agentflow.memory.memory import LongTermMemory, Memory, NaiveMemory
from agentflow.memory.vector import Document, InMemoryVectorStore, VectorStore

__all__ = [
    "Memory",
    "LongTermMemory",
    "NaiveMemory",
    "Document",
    "VectorStore",
    "InMemoryVectorStore",
]
