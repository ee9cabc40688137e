"""
Workspace tools exposed to the assistant during a chat turn.

Read tools answer from the live document and entity stores. Mutating tools
do not touch the graph: they queue an EntityMutation on the instance, and the
caller drains the queue into the AssistantResponse once the turn ends.

Every tool returns a JSON string; failures are reported as {"error": ...}
so the model can see and recover from them.
"""

import json
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from brain.models.assistant import CreateEntityMutation, CreateRelationshipMutation
from brain.models.entity import EntityType, RelationshipType, properties_to_raw
from brain.services.document_store import DocumentStore
from brain.services.entity_store import EntityGraphStore
from brain.utils.logger import get_logger

logger = get_logger(__name__)

SNIPPET_RADIUS = 50

ENTITY_TYPES = [entity_type.value for entity_type in EntityType]
RELATIONSHIP_TYPES = [relationship_type.value for relationship_type in RelationshipType]


def _function(name: str, description: str, properties: dict, required: list[str]) -> dict:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {"type": "object", "properties": properties, "required": required},
        },
    }


TOOL_DEFINITIONS: list[dict[str, Any]] = [
    # Document tools
    _function(
        "list_documents",
        "List all documents in the workspace with their IDs, titles, and paths",
        {},
        [],
    ),
    _function(
        "read_document",
        "Read the full content of a document by its ID",
        {"documentId": {"type": "string", "description": "The ID of the document to read"}},
        ["documentId"],
    ),
    _function(
        "search_documents",
        "Search for text across all documents. Returns matching documents with snippets.",
        {"query": {"type": "string", "description": "The search query (case-insensitive)"}},
        ["query"],
    ),
    # Entity tools
    _function(
        "list_entities",
        "List all entities in the knowledge graph, optionally filtered by type",
        {
            "type": {
                "type": "string",
                "enum": ENTITY_TYPES,
                "description": "Optional filter by entity type",
            }
        },
        [],
    ),
    _function(
        "get_entity",
        "Get full details of an entity including properties and relationships",
        {"entityId": {"type": "string", "description": "The ID of the entity to get"}},
        ["entityId"],
    ),
    _function(
        "search_entities",
        "Search for entities by name",
        {
            "query": {
                "type": "string",
                "description": "The search query (case-insensitive name match)",
            }
        },
        ["query"],
    ),
    _function(
        "create_entity",
        "Create a new entity in the knowledge graph",
        {
            "type": {
                "type": "string",
                "enum": ENTITY_TYPES,
                "description": "The type of entity to create",
            },
            "name": {"type": "string", "description": "The name of the entity"},
            "properties": {
                "type": "object",
                "description": "Optional properties for the entity (e.g., role, email, website)",
            },
        },
        ["type", "name"],
    ),
    _function(
        "create_relationship",
        "Create a relationship between two entities",
        {
            "type": {
                "type": "string",
                "enum": RELATIONSHIP_TYPES,
                "description": "The type of relationship",
            },
            "subjectId": {
                "type": "string",
                "description": "The ID of the subject entity (who/what is doing)",
            },
            "objectId": {
                "type": "string",
                "description": "The ID of the object entity (to whom/what it is done)",
            },
            "properties": {
                "type": "object",
                "description": "Optional properties for the relationship (e.g., role, since)",
            },
        },
        ["type", "subjectId", "objectId"],
    ),
]


class WorkspaceTools:
    """
    Tool executor bound to one workspace for one assistant turn.

    Create one per turn: queued mutations belong to the instance.
    """

    def __init__(self, documents: DocumentStore, entities: EntityGraphStore):
        self.documents = documents
        self.entities = entities
        self.mutations: list[CreateEntityMutation | CreateRelationshipMutation] = []

        self._handlers = {
            "list_documents": self.list_documents,
            "read_document": self.read_document,
            "search_documents": self.search_documents,
            "list_entities": self.list_entities,
            "get_entity": self.get_entity,
            "search_entities": self.search_entities,
            "create_entity": self.create_entity,
            "create_relationship": self.create_relationship,
        }

    @property
    def definitions(self) -> list[dict[str, Any]]:
        return TOOL_DEFINITIONS

    def execute(self, name: str, arguments: dict[str, Any] | None = None) -> str:
        """
        Run a tool by name.

        Args:
            name: Tool name
            arguments: Decoded JSON arguments

        Returns:
            JSON string result, or {"error": ...} for unknown tools and bad arguments
        """
        handler = self._handlers.get(name)
        if handler is None:
            return json.dumps({"error": f"Unknown tool: {name}"})

        try:
            return handler(**(arguments or {}))
        except (TypeError, ValueError, PydanticValidationError) as e:
            logger.warning(f"Tool {name} rejected its arguments: {e}")
            return json.dumps({"error": f"Invalid arguments for {name}: {e}"})

    def drain_mutations(self) -> list[CreateEntityMutation | CreateRelationshipMutation]:
        """Return queued mutations and clear the queue."""
        mutations, self.mutations = self.mutations, []
        return mutations

    # ═══════════════════════════════════════════════════════════
    # DOCUMENT TOOLS
    # ═══════════════════════════════════════════════════════════

    def list_documents(self, **_: Any) -> str:
        current_id = self.documents.current_document_id
        return json.dumps(
            [
                {
                    "id": document.id,
                    "title": document.title,
                    "path": document.path,
                    "isActive": document.id == current_id,
                }
                for document in self.documents.get_all_documents()
            ],
            indent=2,
        )

    def read_document(self, documentId: str, **_: Any) -> str:
        document = self.documents.get_document(documentId)
        if document is None:
            return json.dumps({"error": f"Document not found: {documentId}"})
        return json.dumps(
            {
                "id": document.id,
                "title": document.title,
                "path": document.path,
                "content": document.content,
                "frontmatter": document.frontmatter,
                "frontmatterRaw": document.frontmatter_raw,
            },
            indent=2,
        )

    def search_documents(self, query: str, **_: Any) -> str:
        """Match title, body or raw frontmatter; snippets come from the body only."""
        needle = query.lower()
        matches = []
        for document in self.documents.get_all_documents():
            body = document.content
            haystacks = (body.lower(), (document.frontmatter_raw or "").lower(), document.title.lower())
            if not any(needle in haystack for haystack in haystacks):
                continue
            matches.append({"id": document.id, "title": document.title, "snippet": _snippet(body, needle)})

        return json.dumps({"query": query, "matches": matches}, indent=2)

    # ═══════════════════════════════════════════════════════════
    # ENTITY TOOLS
    # ═══════════════════════════════════════════════════════════

    def list_entities(self, type: str | None = None, **_: Any) -> str:
        entities = self.entities.get_all_entities()
        if type:
            entities = [entity for entity in entities if entity.type.value == type]
        return json.dumps(
            [{"id": entity.id, "type": entity.type.value, "name": entity.name} for entity in entities],
            indent=2,
        )

    def get_entity(self, entityId: str, **_: Any) -> str:
        entity = self.entities.get_entity(entityId)
        if entity is None:
            return json.dumps({"error": f"Entity not found: {entityId}"})

        relationships = []
        for view in self.entities.get_relationships_for_entity(entityId):
            other = self.entities.get_entity(view.other_entity_id)
            relationships.append(
                {
                    "id": view.relationship.id,
                    "type": view.relationship.type.value,
                    "direction": view.direction.value,
                    "label": view.label,
                    "otherEntity": (
                        {"id": other.id, "name": other.name, "type": other.type.value}
                        if other is not None
                        else {"id": view.other_entity_id}
                    ),
                    "properties": properties_to_raw(view.relationship.properties),
                }
            )

        payload = entity.model_dump(mode="json")
        payload["properties"] = properties_to_raw(entity.properties)
        payload["relationships"] = relationships
        return json.dumps(payload, indent=2)

    def search_entities(self, query: str, **_: Any) -> str:
        matches = [
            {"id": entity.id, "type": entity.type.value, "name": entity.name}
            for entity in self.entities.search_entities(query)
        ]
        return json.dumps({"query": query, "matches": matches}, indent=2)

    def create_entity(
        self, type: str, name: str, properties: dict[str, Any] | None = None, **_: Any
    ) -> str:
        mutation = CreateEntityMutation(
            entity_type=EntityType(type), name=name, properties=properties or {}
        )
        self.mutations.append(mutation)
        return json.dumps({"success": True, "message": f'Entity "{name}" will be created'})

    def create_relationship(
        self,
        type: str,
        subjectId: str,
        objectId: str,
        properties: dict[str, Any] | None = None,
        **_: Any,
    ) -> str:
        mutation = CreateRelationshipMutation(
            relationship_type=RelationshipType(type),
            subject_id=subjectId,
            object_id=objectId,
            properties=properties or {},
        )
        self.mutations.append(mutation)
        return json.dumps(
            {
                "success": True,
                "message": f"Relationship {type} will be created between {subjectId} and {objectId}",
            }
        )


def _snippet(body: str, needle: str) -> str:
    """Up to SNIPPET_RADIUS characters either side of the first match, with ellipses."""
    index = body.lower().find(needle)
    if index == -1:
        return ""

    start = max(0, index - SNIPPET_RADIUS)
    end = min(len(body), index + len(needle) + SNIPPET_RADIUS)
    snippet = body[start:end]
    if start > 0:
        snippet = "..." + snippet
    if end < len(body):
        snippet = snippet + "..."
    return snippet
