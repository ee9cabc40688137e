"""
Factory modules for creating Brain components.

Provides modular factories for the LLM provider and the persistence backends.
"""

from brain.core.factory.llm_factory import LLMFactory
from brain.core.factory.store_factory import ConversationStoreFactory, KnowledgeStoreFactory

__all__ = [
    "LLMFactory",
    "KnowledgeStoreFactory",
    "ConversationStoreFactory",
]
