"""
Conversation log storage for Brain.

Available backends:
- SQLiteConversationStore: Local single-file storage via aiosqlite
"""

from brain.core.conversation_store.base import ConversationStore
from brain.core.conversation_store.sqlite_store import SQLiteConversationStore

__all__ = [
    "ConversationStore",
    "SQLiteConversationStore",
]
