"""
Tests for the assistant's workspace tools.

Covers:
- Document listing, reading and searching with snippets
- Entity listing, details with relationship views, search
- Mutation tools queue instead of writing
- Error payloads for unknown tools and bad arguments
"""

import json

import pytest

from brain.models.assistant import CreateEntityMutation, CreateRelationshipMutation
from brain.models.entity import EntityType, RelationshipType
from brain.services.document_store import DocumentStore
from brain.services.entity_store import EntityGraphStore
from brain.services.workspace_tools import TOOL_DEFINITIONS, WorkspaceTools


@pytest.fixture
async def workspace():
    documents = DocumentStore()
    entities = EntityGraphStore()
    await documents.initialize()
    await entities.initialize()
    return documents, entities


@pytest.fixture
def tools(workspace) -> WorkspaceTools:
    documents, entities = workspace
    return WorkspaceTools(documents, entities)


@pytest.mark.unit
class TestDefinitions:
    """Test tool definitions."""

    def test_all_tools_defined(self):
        names = [definition["function"]["name"] for definition in TOOL_DEFINITIONS]
        assert names == [
            "list_documents",
            "read_document",
            "search_documents",
            "list_entities",
            "get_entity",
            "search_entities",
            "create_entity",
            "create_relationship",
        ]

    def test_entity_type_enum(self):
        create_entity = next(
            d for d in TOOL_DEFINITIONS if d["function"]["name"] == "create_entity"
        )
        parameters = create_entity["function"]["parameters"]

        assert parameters["properties"]["type"]["enum"] == [
            "person",
            "organization",
            "project",
            "event",
        ]
        assert parameters["required"] == ["type", "name"]


@pytest.mark.unit
@pytest.mark.asyncio
class TestDocumentTools:
    """Test document tools."""

    async def test_list_documents_marks_active(self, workspace, tools):
        documents, _ = workspace
        first = await documents.create_document("Alpha")
        await documents.create_document("Beta")
        documents.set_current_document(first)

        listed = json.loads(tools.execute("list_documents", {}))

        assert [(item["title"], item["isActive"]) for item in listed] == [
            ("Alpha", True),
            ("Beta", False),
        ]
        assert listed[0]["path"] == "/docs/alpha.md"

    async def test_read_document(self, workspace, tools):
        documents, _ = workspace
        document_id = await documents.create_document("Plan", "---\nowner: Ada\n---\n<p>x</p>")

        payload = json.loads(tools.execute("read_document", {"documentId": document_id}))

        assert payload["content"] == "<p>x</p>"
        assert payload["frontmatter"] == {"owner": "Ada"}
        assert payload["frontmatterRaw"] == "owner: Ada"

    async def test_read_missing_document(self, tools):
        payload = json.loads(tools.execute("read_document", {"documentId": "doc_missing"}))
        assert "error" in payload

    async def test_search_snippet_with_ellipses(self, workspace, tools):
        documents, _ = workspace
        await documents.create_document("Plan", "x" * 100 + "Needle" + "y" * 100)

        payload = json.loads(tools.execute("search_documents", {"query": "needle"}))

        [match] = payload["matches"]
        assert match["title"] == "Plan"
        assert match["snippet"] == "..." + "x" * 50 + "Needle" + "y" * 50 + "..."

    async def test_search_short_body_has_no_ellipses(self, workspace, tools):
        documents, _ = workspace
        await documents.create_document("Plan", "<p>find me</p>")

        [match] = json.loads(tools.execute("search_documents", {"query": "FIND"}))["matches"]
        assert match["snippet"] == "<p>find me</p>"

    async def test_search_matches_title_and_frontmatter(self, workspace, tools):
        documents, _ = workspace
        await documents.create_document("Hiring plan", "<p>x</p>")
        await documents.create_document("Other", "---\nowner: Hiring team\n---\n<p>y</p>")
        await documents.create_document("Unrelated", "<p>z</p>")

        matches = json.loads(tools.execute("search_documents", {"query": "hiring"}))["matches"]

        assert sorted(match["title"] for match in matches) == ["Hiring plan", "Other"]
        assert all(match["snippet"] == "" for match in matches)


@pytest.mark.unit
@pytest.mark.asyncio
class TestEntityTools:
    """Test entity tools."""

    async def test_list_entities_filtered(self, workspace, tools):
        _, entities = workspace
        await entities.create_entity(EntityType.PERSON, "Ada")
        await entities.create_entity(EntityType.ORGANIZATION, "Acme")

        listed = json.loads(tools.execute("list_entities", {"type": "person"}))
        assert [item["name"] for item in listed] == ["Ada"]

        everything = json.loads(tools.execute("list_entities", {}))
        assert len(everything) == 2

    async def test_get_entity_with_relationships(self, workspace, tools):
        _, entities = workspace
        ada = await entities.create_entity(
            EntityType.PERSON, "Ada", {"role": {"value": "CEO", "confidence": 0.9}}
        )
        acme = await entities.create_entity(EntityType.ORGANIZATION, "Acme")
        await entities.create_relationship(
            RelationshipType.WORKS_AT, ada.id, acme.id, {"since": 2021}
        )

        payload = json.loads(tools.execute("get_entity", {"entityId": acme.id}))

        assert payload["name"] == "Acme"
        [relationship] = payload["relationships"]
        assert relationship["direction"] == "incoming"
        assert relationship["label"] == "employs"
        assert relationship["otherEntity"] == {"id": ada.id, "name": "Ada", "type": "person"}
        assert relationship["properties"] == {"since": 2021}

        ada_payload = json.loads(tools.execute("get_entity", {"entityId": ada.id}))
        assert ada_payload["properties"] == {"role": {"value": "CEO", "confidence": 0.9}}

    async def test_get_missing_entity(self, tools):
        payload = json.loads(tools.execute("get_entity", {"entityId": "ent_missing"}))
        assert "error" in payload

    async def test_search_entities(self, workspace, tools):
        _, entities = workspace
        await entities.create_entity(EntityType.PERSON, "Ada")
        await entities.create_entity(EntityType.PERSON, "Bob")

        payload = json.loads(tools.execute("search_entities", {"query": "ad"}))
        assert [match["name"] for match in payload["matches"]] == ["Ada"]

    async def test_create_entity_queues_mutation(self, workspace, tools):
        _, entities = workspace

        payload = json.loads(
            tools.execute(
                "create_entity",
                {"type": "project", "name": "Atlas", "properties": {"stage": "beta"}},
            )
        )

        assert payload["success"] is True
        assert entities.entities == {}
        [mutation] = tools.drain_mutations()
        assert isinstance(mutation, CreateEntityMutation)
        assert mutation.entity_type == EntityType.PROJECT
        assert mutation.properties["stage"].value == "beta"
        assert tools.drain_mutations() == []

    async def test_create_relationship_queues_mutation(self, tools):
        tools.execute(
            "create_relationship",
            {"type": "owns", "subjectId": "ent_a", "objectId": "ent_b"},
        )

        [mutation] = tools.mutations
        assert isinstance(mutation, CreateRelationshipMutation)
        assert mutation.relationship_type == RelationshipType.OWNS


@pytest.mark.unit
@pytest.mark.asyncio
class TestToolErrors:
    """Test error payloads."""

    async def test_unknown_tool(self, tools):
        payload = json.loads(tools.execute("drop_database", {}))
        assert payload == {"error": "Unknown tool: drop_database"}

    async def test_invalid_enum_value(self, tools):
        payload = json.loads(tools.execute("create_entity", {"type": "planet", "name": "Mars"}))
        assert payload["error"].startswith("Invalid arguments for create_entity")
        assert tools.mutations == []

    async def test_missing_required_argument(self, tools):
        payload = json.loads(tools.execute("read_document", {}))
        assert "error" in payload

    async def test_none_arguments(self, tools):
        assert json.loads(tools.execute("list_documents", None)) == []
