"""
Factories for creating persistence backends.
"""

from brain.config import StorageConfig
from brain.core.conversation_store.base import ConversationStore
from brain.core.conversation_store.sqlite_store import SQLiteConversationStore
from brain.core.knowledge_store.base import KnowledgeStore
from brain.core.knowledge_store.sqlite_store import SQLiteKnowledgeStore
from brain.utils.exceptions import ConfigurationError


class KnowledgeStoreFactory:
    """Factory for creating knowledge store backends from configuration."""

    @staticmethod
    def create(config: StorageConfig) -> KnowledgeStore:
        """
        Create knowledge store from configuration.

        Args:
            config: Storage configuration

        Returns:
            Knowledge store instance

        Raises:
            ConfigurationError: If backend is not supported
        """
        if config.backend == "sqlite":
            return SQLiteKnowledgeStore(db_path=config.db_path, keep_versions=config.keep_versions)
        raise ConfigurationError(
            f"Unsupported storage backend: {config.backend}", {"backend": config.backend}
        )


class ConversationStoreFactory:
    """Factory for creating conversation store backends from configuration."""

    @staticmethod
    def create(config: StorageConfig) -> ConversationStore:
        """
        Create conversation store from configuration.

        Args:
            config: Storage configuration

        Returns:
            Conversation store instance

        Raises:
            ConfigurationError: If backend is not supported
        """
        if config.backend == "sqlite":
            return SQLiteConversationStore(db_path=config.db_path)
        raise ConfigurationError(
            f"Unsupported storage backend: {config.backend}", {"backend": config.backend}
        )
