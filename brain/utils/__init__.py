"""Utility modules for Brain."""

from brain.utils.exceptions import (
    BrainError,
    ConfigurationError,
    ConversationStoreError,
    KnowledgeStoreError,
    LLMError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from brain.utils.id_generator import (
    generate_change_id,
    generate_document_id,
    generate_entity_id,
    generate_message_id,
    generate_relationship_id,
    generate_resolution_id,
    generate_session_id,
    generate_transcript_id,
    generate_version_id,
)
from brain.utils.logger import get_logger, setup_logging

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    # ID Generators
    "generate_document_id",
    "generate_version_id",
    "generate_change_id",
    "generate_resolution_id",
    "generate_session_id",
    "generate_message_id",
    "generate_entity_id",
    "generate_relationship_id",
    "generate_transcript_id",
    # Exceptions
    "BrainError",
    "StoreError",
    "KnowledgeStoreError",
    "ConversationStoreError",
    "ValidationError",
    "NotFoundError",
    "ConfigurationError",
    "LLMError",
]
