"""
Assistant response models.

The assistant returns everything it wants done as a value: a message, the
document changes to queue for review, and the entity mutations to execute.
Mutation property bags are resolved into PropertyValues here, so a bad
scored wrapper fails validation of its mutation rather than its execution.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from brain.models.change import ProposedChange
from brain.models.entity import (
    EntityType,
    PlainProperty,
    PropertyValue,
    RelationshipType,
    ScoredProperty,
)


def _tag_property(raw: Any) -> Any:
    # Same shape rules as property_from_raw, left for pydantic to validate
    if isinstance(raw, PlainProperty | ScoredProperty):
        return raw
    if isinstance(raw, dict) and "value" in raw:
        return {
            "kind": "scored",
            "value": raw["value"],
            "confidence": raw.get("confidence"),
            "evidence_ids": raw.get("evidence_ids") or [],
        }
    return {"kind": "plain", "value": raw}


def _tag_properties(raw: Any) -> Any:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        return raw
    return {key: _tag_property(value) for key, value in raw.items()}


class CreateEntityMutation(BaseModel):
    """Create a new entity."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    kind: Literal["create_entity"] = "create_entity"
    entity_type: EntityType = Field(..., alias="entityType")
    name: str
    properties: dict[str, PropertyValue] = Field(default_factory=dict)

    @field_validator("properties", mode="before")
    @classmethod
    def tag_properties(cls, value: Any) -> Any:
        return _tag_properties(value)


class CreateRelationshipMutation(BaseModel):
    """Create a relationship between two existing entities."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    kind: Literal["create_relationship"] = "create_relationship"
    relationship_type: RelationshipType = Field(..., alias="relType")
    subject_id: str = Field(..., alias="subjectId")
    object_id: str = Field(..., alias="objectId")
    properties: dict[str, PropertyValue] = Field(default_factory=dict)
    evidence_ids: list[str] = Field(default_factory=list, alias="evidenceIds")

    @field_validator("properties", mode="before")
    @classmethod
    def tag_properties(cls, value: Any) -> Any:
        return _tag_properties(value)


EntityMutation = Annotated[
    CreateEntityMutation | CreateRelationshipMutation, Field(discriminator="kind")
]


class AssistantResponse(BaseModel):
    """Final assistant turn: text plus proposed changes and entity mutations."""

    model_config = {"extra": "ignore"}

    message: str = ""
    changes: list[ProposedChange] = Field(default_factory=list)
    entity_mutations: list[EntityMutation] = Field(default_factory=list)

    def has_changes(self) -> bool:
        """
        Check if the response proposes any document change.

        Returns:
            True if at least one change is present
        """
        return len(self.changes) > 0
