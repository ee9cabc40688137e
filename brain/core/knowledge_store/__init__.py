"""
Knowledge store implementations for Brain.

Persists documents (with version snapshots), entities, relationships and
transcripts.

Available backends:
- SQLiteKnowledgeStore: Local single-file storage via aiosqlite
"""

from brain.core.knowledge_store.base import KnowledgeStore
from brain.core.knowledge_store.sqlite_store import SQLiteKnowledgeStore

__all__ = [
    "KnowledgeStore",
    "SQLiteKnowledgeStore",
]
