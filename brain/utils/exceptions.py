"""
Custom exception hierarchy for Brain.

All exceptions inherit from BrainError so callers can catch the whole family.
"""


class BrainError(Exception):
    """
    Base exception for all Brain errors.
    All custom exceptions should inherit from this class.
    """

    def __init__(self, message: str, context: dict | None = None):
        """
        Initialize Brain error.
        Args:
            message: Error message
            context: Optional context dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class StoreError(BrainError):
    """
    Base exception for persistence operations.
    """

    pass


class KnowledgeStoreError(StoreError):
    """
    Knowledge store errors.
    Raised when document, entity, relationship or transcript persistence fails.
    """

    pass


class ConversationStoreError(StoreError):
    """
    Conversation store errors.
    Raised when session, message or change-record persistence fails.
    """

    pass


class ValidationError(BrainError):
    """
    Validation errors.
    Raised when input validation fails or data is invalid.
    """

    pass


class NotFoundError(BrainError):
    """
    Resource not found errors.
    Raised when an update targets an entity or relationship that doesn't exist.
    """

    pass


class ConfigurationError(BrainError):
    """
    Configuration errors.
    Raised when configuration is invalid or missing required values.
    """

    pass


class LLMError(BrainError):
    """
    LLM operation errors.
    Raised when LLM calls fail (API errors, timeouts, runaway tool loops).
    """

    pass
