"""
Tests for the REST API.

Covers:
- Health and the uninitialized-engine guard
- Document endpoints
- Recording a raw assistant response and reviewing its changes
- Entity error mapping
- Transcript entity extraction and chat without a configured LLM
"""

import json

import pytest
from httpx import ASGITransport, AsyncClient

import app as app_module
from brain.services.knowledge_engine import KnowledgeEngine


@pytest.fixture
async def engine(knowledge_store, conversation_store, test_config):
    engine = KnowledgeEngine(knowledge_store, conversation_store, test_config)
    await engine.initialize()
    app_module.engine = engine
    yield engine
    app_module.engine = None


@pytest.fixture
async def client():
    # ASGITransport skips the lifespan, so the engine comes from the fixture above
    transport = ASGITransport(app=app_module.app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.mark.integration
@pytest.mark.asyncio
class TestHealth:
    """Test health and guard behavior."""

    async def test_not_initialized(self, client):
        app_module.engine = None

        response = await client.get("/documents")

        assert response.status_code == 503

    async def test_health(self, engine, client):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["engine_initialized"] is True
        assert body["llm"] == "disabled"


@pytest.mark.integration
@pytest.mark.asyncio
class TestDocumentEndpoints:
    """Test document endpoints."""

    async def test_create_and_get(self, engine, client):
        created = await client.post("/documents", json={"title": "Roadmap", "content": "<p>x</p>"})

        assert created.status_code == 201
        document_id = created.json()["id"]

        fetched = await client.get(f"/documents/{document_id}")
        assert fetched.status_code == 200
        assert fetched.json()["title"] == "Roadmap"
        assert fetched.json()["content"] == "<p>x</p>"

    async def test_missing_document(self, engine, client):
        response = await client.get("/documents/doc_missing")
        assert response.status_code == 404

    async def test_update_content(self, engine, client):
        document_id = await engine.documents.create_document("Roadmap", "<p>x</p>")

        response = await client.put(f"/documents/{document_id}", json={"content": "<p>y</p>"})

        assert response.status_code == 200
        assert response.json()["content"] == "<p>y</p>"


@pytest.mark.integration
@pytest.mark.asyncio
class TestReviewFlow:
    """Test the response-to-review round trip."""

    async def test_ingest_and_apply(self, engine, client):
        document_id = await engine.documents.create_document("Plan", "<p>x</p>")
        session = (await client.post("/sessions", json={})).json()
        raw = json.dumps(
            {
                "message": "Added a line",
                "changes": [
                    {
                        "documentId": document_id,
                        "operation": "insert",
                        "target": "at the end",
                        "content": "<p>y</p>",
                    }
                ],
            }
        )

        ingested = await client.post(f"/sessions/{session['id']}/responses", json={"raw": raw})

        assert ingested.status_code == 200
        [change] = ingested.json()["queued_changes"]

        pending = await client.get(f"/documents/{document_id}/changes")
        assert [item["id"] for item in pending.json()] == [change["id"]]

        applied = await client.post(f"/changes/{change['id']}/apply")
        assert applied.status_code == 200
        assert applied.json()["status"] == "applied"
        assert engine.documents.get_document(document_id).content == "<p>x</p>\n<p>y</p>"

        messages = (await client.get(f"/sessions/{session['id']}/messages")).json()
        assert messages[0]["changes"][0]["status"] == "applied"

    async def test_unknown_change(self, engine, client):
        response = await client.post("/changes/chg_missing/apply")
        assert response.status_code == 404


@pytest.mark.integration
@pytest.mark.asyncio
class TestEntityEndpoints:
    """Test entity endpoints."""

    async def test_create_and_search(self, engine, client):
        created = await client.post("/entities", json={"type": "person", "name": "Ada Lovelace"})
        assert created.status_code == 201

        found = await client.get("/entities/search", params={"q": "ada"})
        assert [entity["name"] for entity in found.json()] == ["Ada Lovelace"]

    async def test_update_missing_entity(self, engine, client):
        response = await client.patch("/entities/ent_missing", json={"name": "Nobody"})
        assert response.status_code == 404

    async def test_extract_without_llm(self, engine, client):
        transcript_id = await engine.transcripts.create_transcript("Sync", "Ada joined Acme.")

        response = await client.post(f"/transcripts/{transcript_id}/extract")

        assert response.status_code == 200
        assert response.json() == {"proposals": [], "created": []}

    async def test_extract_unknown_transcript(self, engine, client):
        response = await client.post("/transcripts/trn_missing/extract")
        assert response.status_code == 404


@pytest.mark.integration
@pytest.mark.asyncio
class TestChatEndpoints:
    """Test chat and statistics endpoints."""

    async def test_chat_without_llm(self, engine, client):
        session = (await client.post("/sessions", json={})).json()

        response = await client.post(f"/sessions/{session['id']}/chat", json={"message": "hi"})

        assert response.status_code == 503

    async def test_stats(self, engine, client):
        await engine.documents.create_document("Plan")

        response = await client.get("/stats")

        assert response.status_code == 200
        assert response.json()["documents"] == 1
