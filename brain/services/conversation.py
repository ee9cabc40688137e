"""
Conversation Service - append-only chat log with change records.

Every proposed change the assistant makes is written as a ChangeRecord under
the assistant message that proposed it. Records are never edited; their
status comes from a separate, write-once resolution.
"""

from datetime import datetime

from brain.core.conversation_store.base import ConversationStore
from brain.models.change import ChangeRecord, ChangeResolution, ChangeStatus, ProposedChange
from brain.models.message import Message, MessageRole, Session, SessionContextType
from brain.utils.exceptions import NotFoundError, ValidationError
from brain.utils.id_generator import (
    generate_change_id,
    generate_message_id,
    generate_resolution_id,
    generate_session_id,
)
from brain.utils.logger import get_logger

logger = get_logger(__name__)


class ConversationService:
    """Sessions, messages and change resolutions on top of a conversation store."""

    def __init__(self, store: ConversationStore):
        """
        Initialize the conversation service.

        Args:
            store: Conversation log backend
        """
        self.store = store

    # ═══════════════════════════════════════════════════════════
    # SESSIONS
    # ═══════════════════════════════════════════════════════════

    async def create_session(
        self, context_type: SessionContextType = SessionContextType.GLOBAL
    ) -> Session:
        session = Session(id=generate_session_id(), context_type=context_type)
        await self.store.create_session(session)
        logger.bind(session_id=session.id, operation="create_session").info(
            f"Created {context_type.value} session {session.id}"
        )
        return session

    async def get_session(self, session_id: str) -> Session | None:
        return await self.store.get_session(session_id)

    async def get_or_create_session(
        self, context_type: SessionContextType = SessionContextType.GLOBAL
    ) -> Session:
        """Most recent session of the context type, created when there is none."""
        session = await self.store.get_latest_session(context_type)
        if session is not None:
            return session
        return await self.create_session(context_type)

    # ═══════════════════════════════════════════════════════════
    # MESSAGES
    # ═══════════════════════════════════════════════════════════

    async def send_user_message(self, session_id: str, content: str) -> Message:
        """
        Append a user message.

        Raises:
            ValidationError: If the content is blank
            NotFoundError: If the session does not exist
        """
        if not content or not content.strip():
            raise ValidationError("Message content cannot be empty")
        await self._require_session(session_id)

        message = Message(
            id=generate_message_id(),
            session_id=session_id,
            role=MessageRole.USER,
            content=content,
        )
        await self.store.add_message(message)
        return message

    async def send_assistant_message(
        self, session_id: str, content: str, changes: list[ProposedChange] | None = None
    ) -> Message:
        """
        Append an assistant message and one change record per proposed change.

        Raises:
            NotFoundError: If the session does not exist
        """
        await self._require_session(session_id)

        message = Message(
            id=generate_message_id(),
            session_id=session_id,
            role=MessageRole.ASSISTANT,
            content=content,
        )
        await self.store.add_message(message)

        for change in changes or []:
            record = ChangeRecord(
                id=generate_change_id(),
                message_id=message.id,
                session_id=session_id,
                document_id=change.document_id,
                operation=change.operation,
                target=change.target,
                content=change.content,
                description=change.description,
            )
            await self.store.add_change(record)
            message.changes.append(record)

        logger.bind(message_id=message.id, session_id=session_id).debug(
            f"Assistant message {message.id} recorded with {len(message.changes)} changes"
        )
        return message

    async def get_messages(self, session_id: str) -> list[Message]:
        """Messages in ascending time order, with change statuses."""
        return await self.store.get_messages(session_id)

    # ═══════════════════════════════════════════════════════════
    # CHANGE RESOLUTION
    # ═══════════════════════════════════════════════════════════

    async def resolve_change(self, change_id: str, status: ChangeStatus) -> ChangeResolution:
        """
        Resolve a change record. Idempotent: the first resolution is kept and returned.

        Raises:
            ValidationError: If status is pending
            NotFoundError: If the change record does not exist
        """
        if status == ChangeStatus.PENDING:
            raise ValidationError("Cannot resolve a change to pending", {"change_id": change_id})

        existing = await self.store.get_resolution(change_id)
        if existing is not None:
            return existing

        if await self.store.get_change(change_id) is None:
            raise NotFoundError(f"Change not found: {change_id}", {"change_id": change_id})

        resolution = ChangeResolution(
            id=generate_resolution_id(),
            change_id=change_id,
            status=status,
            resolved_at=datetime.now(),
        )
        return await self.store.add_resolution(resolution)

    async def resolve_all_changes_for_message(
        self, message_id: str, status: ChangeStatus
    ) -> list[ChangeResolution]:
        """Resolve every still-pending change record of a message."""
        resolutions = []
        for change in await self.store.get_changes_for_message(message_id):
            if change.status == ChangeStatus.PENDING:
                resolutions.append(await self.resolve_change(change.id, status))
        return resolutions

    async def get_pending_changes(self, session_id: str) -> list[ChangeRecord]:
        return await self.store.get_pending_changes(session_id)

    async def _require_session(self, session_id: str) -> Session:
        session = await self.store.get_session(session_id)
        if session is None:
            raise NotFoundError(f"Session not found: {session_id}", {"session_id": session_id})
        return session
