"""
Tests for SQLite knowledge store.

Covers:
- Document CRUD, unique paths and version snapshots
- Entity persistence with tagged properties, search, cascading delete
- Relationships and transcripts
"""

from datetime import datetime, timedelta

import pytest

from brain.core.knowledge_store.sqlite_store import SQLiteKnowledgeStore
from brain.models.document import Document
from brain.models.entity import (
    Entity,
    EntityType,
    Relationship,
    RelationshipType,
    ScoredProperty,
    properties_from_raw,
)
from brain.models.transcript import Transcript, TranscriptSegment
from brain.utils.exceptions import KnowledgeStoreError


def make_document(document_id: str = "doc_1", path: str = "/docs/plan.md", title: str = "Plan"):
    return Document(id=document_id, path=path, title=title)


def make_entity(entity_id: str, name: str, entity_type: EntityType = EntityType.PERSON, **raw):
    return Entity(id=entity_id, type=entity_type, name=name, properties=properties_from_raw(raw))


def make_relationship(relationship_id: str, subject_id: str, object_id: str):
    return Relationship(
        id=relationship_id,
        type=RelationshipType.WORKS_AT,
        subject_id=subject_id,
        object_id=object_id,
    )


@pytest.mark.unit
@pytest.mark.asyncio
class TestDocuments:
    """Test document persistence."""

    async def test_create_and_get(self, knowledge_store):
        await knowledge_store.create_document(make_document(), "---\na: b\n---\n<p>x</p>")

        stored = await knowledge_store.get_document("doc_1")

        assert stored.title == "Plan"
        assert stored.path == "/docs/plan.md"
        assert stored.content == "---\na: b\n---\n<p>x</p>"

    async def test_get_missing(self, knowledge_store):
        assert await knowledge_store.get_document("doc_missing") is None

    async def test_duplicate_path_rejected(self, knowledge_store):
        await knowledge_store.create_document(make_document("doc_1"), "")

        with pytest.raises(KnowledgeStoreError):
            await knowledge_store.create_document(make_document("doc_2"), "")

    async def test_list_documents(self, knowledge_store):
        await knowledge_store.create_document(make_document("doc_1", "/docs/b.md", "B"), "")
        await knowledge_store.create_document(make_document("doc_2", "/docs/a.md", "A"), "")

        documents = await knowledge_store.list_documents()
        assert [document.title for document in documents] == ["A", "B"]

    async def test_update_content_snapshots_previous(self, knowledge_store):
        await knowledge_store.create_document(make_document(), "v1")
        await knowledge_store.update_document_content("doc_1", "v2")

        assert (await knowledge_store.get_document("doc_1")).content == "v2"
        versions = await knowledge_store.get_document_versions("doc_1")
        assert [version.content for version in versions] == ["v1"]

    async def test_versions_pruned_to_one_by_default(self, knowledge_store):
        await knowledge_store.create_document(make_document(), "v1")
        for content in ("v2", "v3", "v4"):
            await knowledge_store.update_document_content("doc_1", content)

        versions = await knowledge_store.get_document_versions("doc_1")
        assert [version.content for version in versions] == ["v3"]

    async def test_keep_more_versions(self, db_path):
        store = SQLiteKnowledgeStore(db_path=db_path, keep_versions=2)
        await store.initialize()
        try:
            await store.create_document(make_document(), "v1")
            for content in ("v2", "v3"):
                await store.update_document_content("doc_1", content)

            versions = await store.get_document_versions("doc_1")
            assert [version.content for version in versions] == ["v2", "v1"]
        finally:
            await store.close()

    async def test_update_missing_document_is_noop(self, knowledge_store):
        await knowledge_store.update_document_content("doc_missing", "x")
        assert await knowledge_store.get_document_versions("doc_missing") == []

    async def test_update_metadata(self, knowledge_store):
        await knowledge_store.create_document(make_document(), "")
        await knowledge_store.update_document_metadata("doc_1", title="Renamed")

        stored = await knowledge_store.get_document("doc_1")
        assert stored.title == "Renamed"
        assert stored.path == "/docs/plan.md"

    async def test_delete_removes_versions(self, knowledge_store):
        await knowledge_store.create_document(make_document(), "v1")
        await knowledge_store.update_document_content("doc_1", "v2")
        await knowledge_store.delete_document("doc_1")

        assert await knowledge_store.get_document("doc_1") is None
        assert await knowledge_store.get_document_versions("doc_1") == []

    async def test_in_memory_database(self):
        store = SQLiteKnowledgeStore(db_path=":memory:")
        await store.initialize()
        try:
            await store.create_document(make_document(), "x")
            assert (await store.count_rows())["documents"] == 1
        finally:
            await store.close()


@pytest.mark.unit
@pytest.mark.asyncio
class TestEntities:
    """Test entity and relationship persistence."""

    async def test_save_and_get_with_properties(self, knowledge_store):
        entity = make_entity(
            "ent_1", "Ada", role="CEO", email={"value": "ada@example.com", "confidence": 0.9}
        )
        await knowledge_store.save_entity(entity)

        stored = await knowledge_store.get_entity("ent_1")

        assert stored.name == "Ada"
        assert stored.properties["role"].value == "CEO"
        assert isinstance(stored.properties["email"], ScoredProperty)
        assert stored.properties["email"].confidence == 0.9

    async def test_save_replaces(self, knowledge_store):
        await knowledge_store.save_entity(make_entity("ent_1", "Ada"))
        await knowledge_store.save_entity(make_entity("ent_1", "Ada Lovelace"))

        assert (await knowledge_store.get_entity("ent_1")).name == "Ada Lovelace"
        assert len(await knowledge_store.list_entities()) == 1

    async def test_search_is_case_insensitive_and_limited(self, knowledge_store):
        for index, name in enumerate(["Ada", "Adam", "Bob", "Madalyn"]):
            await knowledge_store.save_entity(make_entity(f"ent_{index}", name))

        matches = await knowledge_store.search_entities("ADA")
        assert [entity.name for entity in matches] == ["Ada", "Adam", "Madalyn"]

        limited = await knowledge_store.search_entities("ada", limit=2)
        assert [entity.name for entity in limited] == ["Ada", "Adam"]

    async def test_delete_entity_cascades_relationships(self, knowledge_store):
        await knowledge_store.save_entity(make_entity("ent_1", "Ada"))
        await knowledge_store.save_entity(
            make_entity("ent_2", "Acme", EntityType.ORGANIZATION)
        )
        await knowledge_store.save_entity(make_entity("ent_3", "Bob"))
        await knowledge_store.save_relationship(make_relationship("rel_1", "ent_1", "ent_2"))
        await knowledge_store.save_relationship(make_relationship("rel_2", "ent_3", "ent_2"))

        await knowledge_store.delete_entity("ent_2")

        assert await knowledge_store.get_entity("ent_2") is None
        assert await knowledge_store.list_relationships() == []

    async def test_relationships_for_entity(self, knowledge_store):
        await knowledge_store.save_relationship(make_relationship("rel_1", "ent_1", "ent_2"))
        await knowledge_store.save_relationship(make_relationship("rel_2", "ent_3", "ent_1"))
        await knowledge_store.save_relationship(make_relationship("rel_3", "ent_3", "ent_2"))

        relationships = await knowledge_store.get_relationships_for_entity("ent_1")
        assert {relationship.id for relationship in relationships} == {"rel_1", "rel_2"}

    async def test_relationship_round_trip(self, knowledge_store):
        relationship = make_relationship("rel_1", "ent_1", "ent_2").model_copy(
            update={
                "properties": properties_from_raw({"since": 2021}),
                "evidence_ids": ["trn_1"],
            }
        )
        await knowledge_store.save_relationship(relationship)

        stored = (await knowledge_store.list_relationships())[0]
        assert stored.type == RelationshipType.WORKS_AT
        assert stored.properties["since"].value == 2021
        assert stored.evidence_ids == ["trn_1"]

        await knowledge_store.delete_relationship("rel_1")
        assert await knowledge_store.list_relationships() == []


@pytest.mark.unit
@pytest.mark.asyncio
class TestTranscripts:
    """Test transcript persistence."""

    async def test_create_and_get(self, knowledge_store):
        transcript = Transcript(
            id="trn_1",
            title="Standup",
            content="Ada: hi",
            segments=[TranscriptSegment(start=0, end=2.5, speaker="Ada", text="hi")],
            meeting_platform="zoom",
            participants=["Ada"],
            duration_seconds=60,
        )
        await knowledge_store.create_transcript(transcript)

        stored = await knowledge_store.get_transcript("trn_1")

        assert stored.title == "Standup"
        assert stored.segments[0].end == 2.5
        assert stored.participants == ["Ada"]
        assert stored.duration_seconds == 60

    async def test_list_newest_first(self, knowledge_store):
        now = datetime.now()
        for index, offset in enumerate([2, 0, 1]):
            await knowledge_store.create_transcript(
                Transcript(id=f"trn_{index}", title=f"T{index}", recorded_at=now - timedelta(days=offset))
            )

        transcripts = await knowledge_store.list_transcripts()
        assert [transcript.id for transcript in transcripts] == ["trn_1", "trn_2", "trn_0"]

    async def test_delete(self, knowledge_store):
        await knowledge_store.create_transcript(Transcript(id="trn_1", title="T"))
        await knowledge_store.delete_transcript("trn_1")
        assert await knowledge_store.get_transcript("trn_1") is None

    async def test_count_rows(self, knowledge_store):
        await knowledge_store.create_transcript(Transcript(id="trn_1", title="T"))

        counts = await knowledge_store.count_rows()

        assert counts["transcripts"] == 1
        assert counts["documents"] == 0
        assert set(counts) == {
            "documents",
            "document_versions",
            "entities",
            "relationships",
            "transcripts",
        }
