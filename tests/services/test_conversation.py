"""
Tests for the conversation service.

Covers:
- Session reuse per context type
- Message validation
- Change records attached to assistant messages
- Idempotent, write-once resolution
"""

import pytest

from brain.models.change import ChangeOperation, ChangeStatus, ProposedChange
from brain.models.message import MessageRole, SessionContextType
from brain.services.conversation import ConversationService
from brain.utils.exceptions import NotFoundError, ValidationError


@pytest.fixture
def conversation(conversation_store) -> ConversationService:
    return ConversationService(conversation_store)


def proposals(count: int) -> list[ProposedChange]:
    return [
        ProposedChange(
            document_id="doc_1",
            operation=ChangeOperation.INSERT,
            target="at the end",
            content=f"<p>{index}</p>",
        )
        for index in range(count)
    ]


@pytest.mark.unit
@pytest.mark.asyncio
class TestSessions:
    """Test session handling."""

    async def test_get_or_create_reuses_latest(self, conversation):
        first = await conversation.get_or_create_session()
        second = await conversation.get_or_create_session()

        assert first.id == second.id

    async def test_context_types_are_separate(self, conversation):
        global_session = await conversation.get_or_create_session(SessionContextType.GLOBAL)
        document_session = await conversation.get_or_create_session(SessionContextType.DOCUMENT)

        assert global_session.id != document_session.id
        assert document_session.context_type == SessionContextType.DOCUMENT


@pytest.mark.unit
@pytest.mark.asyncio
class TestMessages:
    """Test message logging."""

    async def test_blank_user_message_rejected(self, conversation):
        session = await conversation.create_session()

        with pytest.raises(ValidationError):
            await conversation.send_user_message(session.id, "   ")

    async def test_unknown_session_rejected(self, conversation):
        with pytest.raises(NotFoundError):
            await conversation.send_user_message("ses_missing", "hello")

        with pytest.raises(NotFoundError):
            await conversation.send_assistant_message("ses_missing", "hello")

    async def test_messages_in_order_with_changes(self, conversation):
        session = await conversation.create_session()
        await conversation.send_user_message(session.id, "Add two lines")
        reply = await conversation.send_assistant_message(session.id, "Here you go", proposals(2))

        messages = await conversation.get_messages(session.id)

        assert [message.role for message in messages] == [MessageRole.USER, MessageRole.ASSISTANT]
        assert [change.id for change in messages[1].changes] == [
            change.id for change in reply.changes
        ]
        assert messages[1].changes[0].content == "<p>0</p>"
        assert messages[1].has_pending_changes()


@pytest.mark.unit
@pytest.mark.asyncio
class TestResolution:
    """Test change resolution."""

    async def test_resolve_change(self, conversation):
        session = await conversation.create_session()
        reply = await conversation.send_assistant_message(session.id, "x", proposals(1))
        change_id = reply.changes[0].id

        resolution = await conversation.resolve_change(change_id, ChangeStatus.APPLIED)

        assert resolution.change_id == change_id
        assert resolution.status == ChangeStatus.APPLIED
        assert await conversation.get_pending_changes(session.id) == []

    async def test_second_resolution_returns_first(self, conversation):
        session = await conversation.create_session()
        reply = await conversation.send_assistant_message(session.id, "x", proposals(1))
        change_id = reply.changes[0].id

        first = await conversation.resolve_change(change_id, ChangeStatus.APPLIED)
        second = await conversation.resolve_change(change_id, ChangeStatus.DISMISSED)

        assert second.id == first.id
        assert second.status == ChangeStatus.APPLIED

    async def test_resolve_to_pending_rejected(self, conversation):
        with pytest.raises(ValidationError):
            await conversation.resolve_change("chg_any", ChangeStatus.PENDING)

    async def test_resolve_unknown_change(self, conversation):
        with pytest.raises(NotFoundError):
            await conversation.resolve_change("chg_missing", ChangeStatus.APPLIED)

    async def test_resolve_all_for_message(self, conversation):
        session = await conversation.create_session()
        reply = await conversation.send_assistant_message(session.id, "x", proposals(3))
        await conversation.resolve_change(reply.changes[0].id, ChangeStatus.APPLIED)

        resolutions = await conversation.resolve_all_changes_for_message(
            reply.id, ChangeStatus.DISMISSED
        )

        assert [resolution.change_id for resolution in resolutions] == [
            change.id for change in reply.changes[1:]
        ]
        messages = await conversation.get_messages(session.id)
        assert [change.status for change in messages[0].changes] == [
            ChangeStatus.APPLIED,
            ChangeStatus.DISMISSED,
            ChangeStatus.DISMISSED,
        ]
