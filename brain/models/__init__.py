"""
Data models for Brain.

Layers:
1. Knowledge layer (Documents, Entities, Relationships)
2. Evidence layer (Transcripts)
3. Engagement layer (Sessions, Messages, Change proposals)

Core models:
- Document, DocumentVersion: frontmatter-aware HTML documents
- ProposedChange, Change, ChangeRecord, ChangeResolution: change-proposal lifecycle
- Session, Message: append-only chat log
- Entity, Relationship, RelationshipView: knowledge graph
- PlainProperty, ScoredProperty: tagged entity property values
- Transcript, TranscriptSegment: meeting evidence
- AssistantResponse, EntityMutation: assistant output
"""

from brain.models.assistant import (
    AssistantResponse,
    CreateEntityMutation,
    CreateRelationshipMutation,
    EntityMutation,
)
from brain.models.change import (
    NEW_DOCUMENT_ID,
    Change,
    ChangeOperation,
    ChangeRecord,
    ChangeResolution,
    ChangeStatus,
    ProposedChange,
)
from brain.models.document import Document, DocumentVersion
from brain.models.entity import (
    VERB_METADATA,
    Entity,
    EntityType,
    PlainProperty,
    PropertyValue,
    Relationship,
    RelationshipDirection,
    RelationshipType,
    RelationshipView,
    ScoredProperty,
    VerbSpec,
    properties_from_raw,
    properties_to_raw,
    property_from_raw,
    property_to_raw,
    relationship_label,
    satisfies_constraint,
)
from brain.models.message import Message, MessageRole, Session, SessionContextType
from brain.models.transcript import Transcript, TranscriptSegment

__all__ = [
    # Document models
    "Document",
    "DocumentVersion",
    # Change models
    "NEW_DOCUMENT_ID",
    "ChangeOperation",
    "ChangeStatus",
    "ProposedChange",
    "Change",
    "ChangeRecord",
    "ChangeResolution",
    # Conversation models
    "Session",
    "SessionContextType",
    "Message",
    "MessageRole",
    # Graph models
    "EntityType",
    "Entity",
    "PlainProperty",
    "ScoredProperty",
    "PropertyValue",
    "property_from_raw",
    "property_to_raw",
    "properties_from_raw",
    "properties_to_raw",
    "RelationshipType",
    "RelationshipDirection",
    "Relationship",
    "RelationshipView",
    "VerbSpec",
    "VERB_METADATA",
    "relationship_label",
    "satisfies_constraint",
    # Evidence models
    "Transcript",
    "TranscriptSegment",
    # Assistant models
    "AssistantResponse",
    "EntityMutation",
    "CreateEntityMutation",
    "CreateRelationshipMutation",
]
