"""
Entity Graph Store - in-memory entities and relationships with best-effort persistence.

Failure policy:
- delete is idempotent everywhere (missing IDs are no-ops)
- update requires existence and raises NotFoundError, since a property merge
  needs a base record
"""

from datetime import datetime
from typing import Any

from brain.core.knowledge_store.base import KnowledgeStore
from brain.models.assistant import CreateEntityMutation, CreateRelationshipMutation
from brain.models.entity import (
    Entity,
    EntityType,
    Relationship,
    RelationshipDirection,
    RelationshipType,
    RelationshipView,
    properties_from_raw,
    relationship_label,
    satisfies_constraint,
)
from brain.utils.exceptions import NotFoundError
from brain.utils.id_generator import generate_entity_id, generate_relationship_id
from brain.utils.logger import get_logger

logger = get_logger(__name__)


class EntityGraphStore:
    """
    Knowledge graph of typed entities ("nouns") and directed relationships ("verbs").

    Relationship typing constraints are advisory: a mismatch is logged, never
    rejected.
    """

    def __init__(self, store: KnowledgeStore | None = None):
        """
        Initialize the entity graph store.

        Args:
            store: Persistence backend (None for in-memory only)
        """
        self.store = store

        self.entities: dict[str, Entity] = {}
        self.relationships: dict[str, Relationship] = {}
        self.current_entity_id: str | None = None
        self.is_initialized = False

    async def initialize(self) -> None:
        """Load entities and relationships from persistence. Safe to call more than once."""
        if self.is_initialized:
            return

        if self.store is not None:
            try:
                for entity in await self.store.list_entities():
                    self.entities[entity.id] = entity
                for relationship in await self.store.list_relationships():
                    self.relationships[relationship.id] = relationship
            except Exception as e:
                logger.error(f"Failed to load knowledge graph: {e}")

        self.is_initialized = True
        logger.info(
            f"Entity store initialized with {len(self.entities)} entities "
            f"and {len(self.relationships)} relationships"
        )

    # ═══════════════════════════════════════════════════════════
    # ENTITY QUERIES
    # ═══════════════════════════════════════════════════════════

    def get_entity(self, entity_id: str) -> Entity | None:
        return self.entities.get(entity_id)

    def get_all_entities(self) -> list[Entity]:
        """All entities ordered by name."""
        return sorted(self.entities.values(), key=lambda entity: entity.name.lower())

    def get_entities_by_type(self, entity_type: EntityType) -> list[Entity]:
        return [entity for entity in self.get_all_entities() if entity.type == entity_type]

    def get_current_entity(self) -> Entity | None:
        if self.current_entity_id is None:
            return None
        return self.entities.get(self.current_entity_id)

    def set_current_entity(self, entity_id: str | None) -> None:
        self.current_entity_id = entity_id

    def search_entities(self, query: str, limit: int = 20) -> list[Entity]:
        """
        Case-insensitive substring match on entity names.

        Args:
            query: Text to look for
            limit: Maximum results

        Returns:
            Matching entities ordered by name
        """
        needle = query.lower()
        matches = [entity for entity in self.get_all_entities() if needle in entity.name.lower()]
        return matches[:limit]

    # ═══════════════════════════════════════════════════════════
    # ENTITY MUTATIONS
    # ═══════════════════════════════════════════════════════════

    async def create_entity(
        self,
        entity_type: EntityType,
        name: str,
        properties: dict[str, Any] | None = None,
    ) -> Entity:
        """
        Create an entity.

        Args:
            entity_type: person, organization, project or event
            name: Display name
            properties: Raw property bag (bare values or scored wrappers)

        Returns:
            Created entity
        """
        now = datetime.now()
        entity = Entity(
            id=generate_entity_id(),
            type=entity_type,
            name=name,
            properties=properties_from_raw(properties),
            created_at=now,
            updated_at=now,
        )
        self.entities[entity.id] = entity

        logger.bind(entity_id=entity.id, operation="create_entity").info(
            f"Created {entity_type.value} entity {entity.id}"
        )

        if self.store is not None:
            await self._persist("save_entity", entity.id, self.store.save_entity(entity))

        return entity

    async def update_entity(
        self,
        entity_id: str,
        name: str | None = None,
        properties: dict[str, Any] | None = None,
    ) -> Entity:
        """
        Partially update an entity.

        Properties are shallow-merged into the existing bag; the name is
        replaced when given; `updated_at` is always bumped.

        Raises:
            NotFoundError: If the entity does not exist
        """
        entity = self.entities.get(entity_id)
        if entity is None:
            raise NotFoundError(f"Entity not found: {entity_id}", {"entity_id": entity_id})

        merged = {**entity.properties, **properties_from_raw(properties)}
        updates: dict[str, Any] = {"properties": merged, "updated_at": datetime.now()}
        if name is not None:
            updates["name"] = name

        updated = entity.model_copy(update=updates)
        self.entities[entity_id] = updated

        if self.store is not None:
            await self._persist("save_entity", entity_id, self.store.save_entity(updated))

        return updated

    async def delete_entity(self, entity_id: str) -> int:
        """
        Delete an entity and every relationship it participates in.

        Returns:
            Number of relationships removed (0 when the entity is unknown)
        """
        cascaded = [
            relationship_id
            for relationship_id, relationship in self.relationships.items()
            if relationship.involves(entity_id)
        ]
        for relationship_id in cascaded:
            del self.relationships[relationship_id]

        removed = self.entities.pop(entity_id, None)
        if removed is None and not cascaded:
            return 0

        if self.current_entity_id == entity_id:
            self.current_entity_id = None

        logger.bind(entity_id=entity_id, operation="delete_entity").info(
            f"Deleted entity {entity_id} and {len(cascaded)} relationships"
        )

        if self.store is not None:
            await self._persist("delete_entity", entity_id, self.store.delete_entity(entity_id))

        return len(cascaded)

    # ═══════════════════════════════════════════════════════════
    # RELATIONSHIPS
    # ═══════════════════════════════════════════════════════════

    def get_relationship(self, relationship_id: str) -> Relationship | None:
        return self.relationships.get(relationship_id)

    def get_all_relationships(self) -> list[Relationship]:
        return sorted(self.relationships.values(), key=lambda relationship: relationship.created_at)

    def get_relationships_for_entity(self, entity_id: str) -> list[RelationshipView]:
        """
        Relationships the entity takes part in, seen from the entity.

        Returns:
            Outgoing views (entity is subject) followed by incoming views
            (entity is object); a self-loop appears once, as outgoing
        """
        outgoing = []
        incoming = []
        for relationship in self.get_all_relationships():
            if relationship.subject_id == entity_id:
                outgoing.append(
                    self._view(relationship, RelationshipDirection.OUTGOING, relationship.object_id)
                )
            elif relationship.object_id == entity_id:
                incoming.append(
                    self._view(relationship, RelationshipDirection.INCOMING, relationship.subject_id)
                )
        return outgoing + incoming

    async def create_relationship(
        self,
        relationship_type: RelationshipType,
        subject_id: str,
        object_id: str,
        properties: dict[str, Any] | None = None,
        evidence_ids: list[str] | None = None,
    ) -> Relationship:
        """
        Create a directed relationship subject -> object.

        Typing constraints are not enforced; endpoints are not required to exist.
        """
        subject = self.entities.get(subject_id)
        obj = self.entities.get(object_id)
        if subject is not None and obj is not None:
            if not satisfies_constraint(relationship_type, subject.type, obj.type):
                logger.debug(
                    f"Relationship {relationship_type.value} from {subject.type.value} "
                    f"to {obj.type.value} is outside the usual typing"
                )

        now = datetime.now()
        relationship = Relationship(
            id=generate_relationship_id(),
            type=relationship_type,
            subject_id=subject_id,
            object_id=object_id,
            properties=properties_from_raw(properties),
            evidence_ids=list(evidence_ids or []),
            created_at=now,
            updated_at=now,
        )
        self.relationships[relationship.id] = relationship

        logger.bind(relationship_id=relationship.id, operation="create_relationship").info(
            f"Created relationship {relationship.id}: {subject_id} {relationship_type.value} {object_id}"
        )

        if self.store is not None:
            await self._persist(
                "save_relationship", relationship.id, self.store.save_relationship(relationship)
            )

        return relationship

    async def update_relationship_properties(
        self, relationship_id: str, properties: dict[str, Any]
    ) -> Relationship:
        """
        Shallow-merge properties into a relationship.

        Raises:
            NotFoundError: If the relationship does not exist
        """
        relationship = self.relationships.get(relationship_id)
        if relationship is None:
            raise NotFoundError(
                f"Relationship not found: {relationship_id}", {"relationship_id": relationship_id}
            )

        updated = relationship.model_copy(
            update={
                "properties": {**relationship.properties, **properties_from_raw(properties)},
                "updated_at": datetime.now(),
            }
        )
        self.relationships[relationship_id] = updated

        if self.store is not None:
            await self._persist(
                "save_relationship", relationship_id, self.store.save_relationship(updated)
            )

        return updated

    async def delete_relationship(self, relationship_id: str) -> None:
        """Delete a relationship. Missing IDs are ignored."""
        if self.relationships.pop(relationship_id, None) is None:
            return

        if self.store is not None:
            await self._persist(
                "delete_relationship",
                relationship_id,
                self.store.delete_relationship(relationship_id),
            )

    # ═══════════════════════════════════════════════════════════
    # ASSISTANT MUTATIONS
    # ═══════════════════════════════════════════════════════════

    async def apply_mutations(
        self, mutations: list[CreateEntityMutation | CreateRelationshipMutation]
    ) -> list[Entity | Relationship]:
        """
        Execute assistant entity mutations in order.

        Returns:
            Created entities and relationships, in mutation order
        """
        created: list[Entity | Relationship] = []
        for mutation in mutations:
            if isinstance(mutation, CreateEntityMutation):
                created.append(
                    await self.create_entity(mutation.entity_type, mutation.name, mutation.properties)
                )
            else:
                created.append(
                    await self.create_relationship(
                        mutation.relationship_type,
                        mutation.subject_id,
                        mutation.object_id,
                        mutation.properties,
                        mutation.evidence_ids,
                    )
                )
        return created

    # ═══════════════════════════════════════════════════════════
    # HELPER METHODS
    # ═══════════════════════════════════════════════════════════

    def _view(
        self, relationship: Relationship, direction: RelationshipDirection, other_entity_id: str
    ) -> RelationshipView:
        return RelationshipView(
            relationship=relationship,
            direction=direction,
            other_entity_id=other_entity_id,
            label=relationship_label(relationship.type, direction),
        )

    async def _persist(self, operation: str, item_id: str, write) -> None:
        """Await a persistence write; failures are logged and local state is kept."""
        try:
            await write
        except Exception as e:
            logger.error(f"Persistence failed during {operation} for {item_id}: {e}")
