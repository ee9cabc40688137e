"""
Entity ("noun") and Relationship ("verb") models for the knowledge graph.

Entities are sparse, evolving profiles. Property values are either plain or
scored (carrying a confidence and the evidence that supports them); raw JSON
is resolved into the tagged PropertyValue union once, at the storage
boundary, via property_from_raw / property_to_raw.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class EntityType(str, Enum):
    """Kinds of entities in the knowledge graph."""

    PERSON = "person"
    ORGANIZATION = "organization"
    PROJECT = "project"
    EVENT = "event"


class RelationshipType(str, Enum):
    """Directed verbs connecting a subject entity to an object entity."""

    WORKS_AT = "works_at"  # person -> organization
    OWNS = "owns"  # person -> project
    PARTICIPATED_IN = "participated_in"  # person -> event
    MENTIONED_IN = "mentioned_in"  # person/organization/project -> event
    DECIDED = "decided"  # person -> project
    REPORTS_TO = "reports_to"  # person -> person
    CLIENT_OF = "client_of"  # organization -> organization
    INVESTOR_IN = "investor_in"  # person/organization -> organization
    FOUNDED = "founded"  # person -> organization
    MEMBER_OF = "member_of"  # person -> organization/project


class RelationshipDirection(str, Enum):
    """Direction of a relationship relative to the entity it is viewed from."""

    OUTGOING = "outgoing"
    INCOMING = "incoming"


class VerbSpec(BaseModel):
    """Display label, inverse label and advisory typing for a relationship type."""

    label: str
    inverse: str | None = None
    subject_types: tuple[EntityType, ...]
    object_types: tuple[EntityType, ...]


VERB_METADATA: dict[RelationshipType, VerbSpec] = {
    RelationshipType.WORKS_AT: VerbSpec(
        label="works at",
        inverse="employs",
        subject_types=(EntityType.PERSON,),
        object_types=(EntityType.ORGANIZATION,),
    ),
    RelationshipType.OWNS: VerbSpec(
        label="owns",
        inverse="owned_by",
        subject_types=(EntityType.PERSON,),
        object_types=(EntityType.PROJECT,),
    ),
    RelationshipType.PARTICIPATED_IN: VerbSpec(
        label="participated in",
        subject_types=(EntityType.PERSON,),
        object_types=(EntityType.EVENT,),
    ),
    RelationshipType.MENTIONED_IN: VerbSpec(
        label="mentioned in",
        subject_types=(EntityType.PERSON, EntityType.ORGANIZATION, EntityType.PROJECT),
        object_types=(EntityType.EVENT,),
    ),
    RelationshipType.DECIDED: VerbSpec(
        label="decided",
        subject_types=(EntityType.PERSON,),
        object_types=(EntityType.PROJECT,),
    ),
    RelationshipType.REPORTS_TO: VerbSpec(
        label="reports to",
        inverse="manages",
        subject_types=(EntityType.PERSON,),
        object_types=(EntityType.PERSON,),
    ),
    RelationshipType.CLIENT_OF: VerbSpec(
        label="is client of",
        inverse="has_client",
        subject_types=(EntityType.ORGANIZATION,),
        object_types=(EntityType.ORGANIZATION,),
    ),
    RelationshipType.INVESTOR_IN: VerbSpec(
        label="invested in",
        inverse="funded_by",
        subject_types=(EntityType.PERSON, EntityType.ORGANIZATION),
        object_types=(EntityType.ORGANIZATION,),
    ),
    RelationshipType.FOUNDED: VerbSpec(
        label="founded",
        inverse="founded_by",
        subject_types=(EntityType.PERSON,),
        object_types=(EntityType.ORGANIZATION,),
    ),
    RelationshipType.MEMBER_OF: VerbSpec(
        label="member of",
        inverse="has_member",
        subject_types=(EntityType.PERSON,),
        object_types=(EntityType.ORGANIZATION, EntityType.PROJECT),
    ),
}


def relationship_label(relationship_type: RelationshipType, direction: RelationshipDirection) -> str:
    """
    Human-readable label for a relationship seen from one of its endpoints.

    Args:
        relationship_type: Verb of the relationship
        direction: OUTGOING when viewed from the subject, INCOMING from the object

    Returns:
        Verb label for outgoing edges; the inverse label (underscores as spaces)
        for incoming edges, falling back to the verb label when no inverse exists
    """
    spec = VERB_METADATA[relationship_type]
    if direction == RelationshipDirection.INCOMING and spec.inverse:
        return spec.inverse.replace("_", " ")
    return spec.label


def satisfies_constraint(
    relationship_type: RelationshipType, subject_type: EntityType, object_type: EntityType
) -> bool:
    """
    Check an edge against the advisory subject/object typing table.

    Nothing enforces this on write; it exists for display and diagnostics.
    """
    spec = VERB_METADATA[relationship_type]
    return subject_type in spec.subject_types and object_type in spec.object_types


class PlainProperty(BaseModel):
    """Bare property value."""

    kind: Literal["plain"] = "plain"
    value: Any = None


class ScoredProperty(BaseModel):
    """Property value with confidence and supporting evidence."""

    kind: Literal["scored"] = "scored"
    value: Any = None
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    evidence_ids: list[str] = Field(default_factory=list)


PropertyValue = Annotated[PlainProperty | ScoredProperty, Field(discriminator="kind")]


def property_from_raw(raw: Any) -> PlainProperty | ScoredProperty:
    """
    Resolve a raw JSON property value into the tagged union.

    A dict carrying a "value" key is the scored wrapper shape
    `{value, confidence?, evidence_ids?}`; anything else is a plain value.
    """
    if isinstance(raw, PlainProperty | ScoredProperty):
        return raw
    if isinstance(raw, dict) and "value" in raw:
        return ScoredProperty(
            value=raw["value"],
            confidence=raw.get("confidence"),
            evidence_ids=list(raw.get("evidence_ids") or []),
        )
    return PlainProperty(value=raw)


def property_to_raw(prop: PlainProperty | ScoredProperty) -> Any:
    """Convert a tagged property back into its raw JSON shape."""
    if isinstance(prop, PlainProperty):
        return prop.value

    raw: dict[str, Any] = {"value": prop.value}
    if prop.confidence is not None:
        raw["confidence"] = prop.confidence
    if prop.evidence_ids:
        raw["evidence_ids"] = list(prop.evidence_ids)
    return raw


def properties_from_raw(raw: dict[str, Any] | None) -> dict[str, PlainProperty | ScoredProperty]:
    """Resolve a raw property bag."""
    return {key: property_from_raw(value) for key, value in (raw or {}).items()}


def properties_to_raw(properties: dict[str, PlainProperty | ScoredProperty]) -> dict[str, Any]:
    """Convert a resolved property bag back to raw JSON."""
    return {key: property_to_raw(value) for key, value in properties.items()}


class Entity(BaseModel):
    """A typed node in the knowledge graph."""

    id: str = Field(..., description="Entity ID (ent_xxx)")
    type: EntityType = Field(..., description="person, organization, project or event")
    name: str = Field(..., description="Display name")
    properties: dict[str, PropertyValue] = Field(default_factory=dict)
    confidence: float = Field(default=1.0, ge=0.0, le=1.0, description="Overall confidence")

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    def property_values(self) -> dict[str, Any]:
        """
        Flatten properties to their bare values.

        Returns:
            Mapping of property key to value, wrappers removed
        """
        return {key: prop.value for key, prop in self.properties.items()}


class Relationship(BaseModel):
    """A typed, directed edge from a subject entity to an object entity."""

    id: str = Field(..., description="Relationship ID (rel_xxx)")
    type: RelationshipType = Field(..., description="Verb")
    subject_id: str = Field(..., description="Subject entity ID")
    object_id: str = Field(..., description="Object entity ID")
    properties: dict[str, PropertyValue] = Field(default_factory=dict)
    evidence_ids: list[str] = Field(
        default_factory=list, description="Provenance references (documents, transcripts)"
    )
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    def involves(self, entity_id: str) -> bool:
        """
        Check if an entity is either endpoint of this relationship.

        Returns:
            True if entity_id is the subject or the object
        """
        return self.subject_id == entity_id or self.object_id == entity_id


class RelationshipView(BaseModel):
    """A relationship as seen from one of its endpoint entities."""

    relationship: Relationship
    direction: RelationshipDirection
    other_entity_id: str
    label: str
