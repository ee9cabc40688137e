"""Shared fixtures.

Fixtures use function scope to avoid event loop issues. Every SQLite store
gets its own database file under pytest's tmp_path.
"""

from collections.abc import AsyncGenerator
from typing import Any

import pytest

from brain.config import Config, DocumentsConfig, StorageConfig
from brain.core.conversation_store.sqlite_store import SQLiteConversationStore
from brain.core.knowledge_store.sqlite_store import SQLiteKnowledgeStore
from brain.core.llm.base import ChatResult, LLMProvider


class ScriptedLLM(LLMProvider):
    """LLM provider that replays queued ChatResults and records every call."""

    def __init__(self, results: list[ChatResult] | None = None):
        self.results = list(results or [])
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    async def chat(self, messages, tools=None, max_tokens=4096, temperature=0.0, **kwargs):
        # Snapshot: the caller keeps appending to the same list
        self.calls.append({"messages": list(messages), "tools": tools})
        if not self.results:
            return ChatResult(content="")
        return self.results.pop(0)

    async def close(self):
        self.closed = True


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "brain.db")


@pytest.fixture
async def knowledge_store(db_path) -> AsyncGenerator[SQLiteKnowledgeStore, None]:
    """Initialized SQLite knowledge store."""
    store = SQLiteKnowledgeStore(db_path=db_path)
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
async def conversation_store(db_path) -> AsyncGenerator[SQLiteConversationStore, None]:
    """Initialized SQLite conversation store."""
    store = SQLiteConversationStore(db_path=db_path)
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def test_config(db_path) -> Config:
    return Config(
        storage=StorageConfig(db_path=db_path),
        documents=DocumentsConfig(root="/docs", default_title="Untitled"),
    )


@pytest.fixture
def scripted_llm() -> ScriptedLLM:
    return ScriptedLLM()
