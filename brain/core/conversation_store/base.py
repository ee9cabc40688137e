"""
Base interface for the conversation log.

Sessions group messages; assistant messages own change records; a change
record is resolved at most once. Nothing in this interface updates or
deletes a message or a change record.
"""

from abc import ABC, abstractmethod

from brain.models.change import ChangeRecord, ChangeResolution, ChangeStatus
from brain.models.message import Message, Session, SessionContextType


class ConversationStore(ABC):
    """Abstract base class for conversation log storage."""

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the store (create tables/schema)."""
        pass

    # ═══════════════════════════════════════════════════════════
    # SESSIONS
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def create_session(self, session: Session) -> None:
        """Insert a session."""
        pass

    @abstractmethod
    async def get_session(self, session_id: str) -> Session | None:
        """Retrieve a session by ID."""
        pass

    @abstractmethod
    async def get_latest_session(
        self, context_type: SessionContextType | None = None
    ) -> Session | None:
        """
        Most recently created session.

        Args:
            context_type: Restrict to sessions of this context type

        Returns:
            Session or None when there are none
        """
        pass

    # ═══════════════════════════════════════════════════════════
    # MESSAGES
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def add_message(self, message: Message) -> None:
        """Append a message (its change records are stored separately)."""
        pass

    @abstractmethod
    async def get_message(self, message_id: str) -> Message | None:
        """Retrieve a message with its change records and their statuses."""
        pass

    @abstractmethod
    async def get_messages(self, session_id: str) -> list[Message]:
        """
        Messages of a session in ascending creation order.

        Each message carries its change records with statuses derived from
        the resolution table.
        """
        pass

    # ═══════════════════════════════════════════════════════════
    # CHANGE RECORDS
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def add_change(self, change: ChangeRecord) -> None:
        """Insert a change record."""
        pass

    @abstractmethod
    async def get_change(self, change_id: str) -> ChangeRecord | None:
        """Retrieve a change record with its derived status."""
        pass

    @abstractmethod
    async def get_changes_for_message(self, message_id: str) -> list[ChangeRecord]:
        """Change records proposed by a message, in creation order."""
        pass

    @abstractmethod
    async def get_pending_changes(self, session_id: str) -> list[ChangeRecord]:
        """Unresolved change records of a session, in creation order."""
        pass

    @abstractmethod
    async def get_resolution(self, change_id: str) -> ChangeResolution | None:
        """Resolution of a change record, if any."""
        pass

    @abstractmethod
    async def add_resolution(self, resolution: ChangeResolution) -> ChangeResolution:
        """
        Record a resolution unless one already exists for the change.

        Returns:
            The stored resolution (the pre-existing one when already resolved)
        """
        pass

    # ═══════════════════════════════════════════════════════════
    # UTILITY METHODS
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def count_changes(self, status: ChangeStatus | None = None) -> int:
        """Count change records, optionally by derived status."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the connection to the store."""
        pass
