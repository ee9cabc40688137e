"""
Change-proposal models.

A ProposedChange is what the assistant emits. Once it enters the review queue
it becomes a Change with a lifecycle status; once it is written to the
conversation log it becomes a ChangeRecord whose status is derived from its
(at most one) ChangeResolution.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# documentId sentinel for a document that does not exist yet
NEW_DOCUMENT_ID = "new"


class ChangeOperation(str, Enum):
    """Structured edit kinds the assistant can propose."""

    INSERT = "insert"
    REPLACE = "replace"
    DELETE = "delete"
    CREATE = "create"


class ChangeStatus(str, Enum):
    """Change lifecycle: pending -> applied | dismissed (both terminal)."""

    PENDING = "pending"
    APPLIED = "applied"
    DISMISSED = "dismissed"


class ProposedChange(BaseModel):
    """Single proposed document mutation as produced by the assistant."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    document_id: str = Field(
        ..., alias="documentId", description="Target document ID, or 'new' for create"
    )
    operation: ChangeOperation = Field(..., description="insert, replace, delete or create")
    target: str = Field(
        default="", description="Free-text locator, or the new document title for create"
    )
    content: str = Field(default="", description="New HTML fragment (empty for delete)")
    description: str = Field(default="", description="Human-readable summary")

    @field_validator("content", "target", "description", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    def is_create(self) -> bool:
        """
        Check if applying this change creates a new document.

        Returns:
            True for create operations or the 'new' document sentinel
        """
        return self.operation == ChangeOperation.CREATE or self.document_id == NEW_DOCUMENT_ID


class Change(ProposedChange):
    """A proposed change sitting in the local review queue."""

    id: str = Field(..., description="Queue-local change ID (chg_xxx)")
    status: ChangeStatus = Field(default=ChangeStatus.PENDING, description="Lifecycle status")
    record_id: str | None = Field(
        default=None, description="ID of the persisted ChangeRecord, if any"
    )

    def is_pending(self) -> bool:
        """
        Check if the change still awaits review.

        Returns:
            True if status is PENDING
        """
        return self.status == ChangeStatus.PENDING


class ChangeRecord(ProposedChange):
    """Immutable, persisted record of a proposed change."""

    id: str = Field(..., description="Persisted change ID (chg_xxx)")
    message_id: str = Field(..., description="Assistant message that proposed the change")
    session_id: str = Field(..., description="Chat session the message belongs to")
    status: ChangeStatus = Field(
        default=ChangeStatus.PENDING, description="Derived from the resolution record"
    )
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")


class ChangeResolution(BaseModel):
    """Records when and how a change record was resolved."""

    id: str = Field(..., description="Resolution ID (res_xxx)")
    change_id: str = Field(..., description="Resolved ChangeRecord ID")
    status: ChangeStatus = Field(..., description="applied or dismissed")
    resolved_at: datetime = Field(default_factory=datetime.now, description="Resolution time")

    @field_validator("status")
    @classmethod
    def _must_be_terminal(cls, value: ChangeStatus) -> ChangeStatus:
        if value == ChangeStatus.PENDING:
            raise ValueError("a resolution status must be applied or dismissed")
        return value
