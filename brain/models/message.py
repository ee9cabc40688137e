"""
Chat session and message models (engagement layer).

Messages are append-only: they are created and read, never edited or deleted.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from brain.models.change import ChangeRecord, ChangeStatus


class SessionContextType(str, Enum):
    """What a chat session is scoped to."""

    DOCUMENT = "document"
    ENTITY = "entity"
    GLOBAL = "global"


class MessageRole(str, Enum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"


class Session(BaseModel):
    """Groups chat messages together."""

    id: str = Field(..., description="Session ID (ses_xxx)")
    context_type: SessionContextType = Field(default=SessionContextType.GLOBAL)
    created_at: datetime = Field(default_factory=datetime.now)


class Message(BaseModel):
    """Chat message with the changes it proposed (assistant messages only)."""

    id: str = Field(..., description="Message ID (msg_xxx)")
    session_id: str = Field(..., description="Owning session ID")
    role: MessageRole = Field(..., description="user or assistant")
    content: str = Field(..., description="Message text (markdown for assistant)")
    created_at: datetime = Field(default_factory=datetime.now)
    changes: list[ChangeRecord] = Field(default_factory=list)

    def has_pending_changes(self) -> bool:
        """
        Check if any attached change is still unresolved.

        Returns:
            True if at least one change record is pending
        """
        return any(change.status == ChangeStatus.PENDING for change in self.changes)
