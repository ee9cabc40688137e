"""
Brain FastAPI Application

A REST API server for the Brain knowledge core.
Provides endpoints for documents and their change review queue, the entity
graph, transcripts and assistant chat sessions.
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from brain.config import Config
from brain.core.factory import ConversationStoreFactory, KnowledgeStoreFactory, LLMFactory
from brain.models.change import ChangeStatus
from brain.models.entity import EntityType, RelationshipType
from brain.models.message import SessionContextType
from brain.models.transcript import TranscriptSegment
from brain.services.assistant import parse_assistant_response
from brain.services.knowledge_engine import KnowledgeEngine
from brain.utils.exceptions import BrainError, ConfigurationError, NotFoundError, ValidationError
from brain.utils.logger import get_logger, setup_logging

# Global engine instance
engine: KnowledgeEngine | None = None
logger = get_logger(__name__)


# Pydantic models for API
class CreateDocumentRequest(BaseModel):
    """Request model for creating a document."""

    title: str = Field(..., description="Document title (disambiguated if taken)")
    content: str = Field(default="", description="Initial content, may start with frontmatter")


class UpdateDocumentRequest(BaseModel):
    """Request model for editing a document."""

    content: str | None = None
    title: str | None = None
    path: str | None = None


class CreateEntityRequest(BaseModel):
    """Request model for creating an entity."""

    type: EntityType
    name: str
    properties: dict[str, Any] | None = None


class UpdateEntityRequest(BaseModel):
    """Request model for partially updating an entity."""

    name: str | None = None
    properties: dict[str, Any] | None = None


class CreateRelationshipRequest(BaseModel):
    """Request model for creating a relationship."""

    type: RelationshipType
    subject_id: str
    object_id: str
    properties: dict[str, Any] | None = None
    evidence_ids: list[str] | None = None


class UpdateRelationshipRequest(BaseModel):
    """Request model for merging relationship properties."""

    properties: dict[str, Any] = Field(default_factory=dict)


class CreateTranscriptRequest(BaseModel):
    """Request model for ingesting a transcript."""

    title: str
    content: str = ""
    segments: list[TranscriptSegment] = Field(default_factory=list)
    meeting_platform: str | None = None
    participants: list[str] | None = None
    duration_seconds: int | None = None


class CreateSessionRequest(BaseModel):
    """Request model for opening a chat session."""

    context_type: SessionContextType = SessionContextType.GLOBAL
    reuse_latest: bool = Field(default=True, description="Return the latest session if any")


class ChatRequest(BaseModel):
    """Request model for a chat turn."""

    message: str = Field(..., min_length=1)


class IngestRequest(BaseModel):
    """Request model for recording a raw assistant response."""

    raw: str = Field(..., description="Assistant output, ideally {message, changes?} JSON")


class ResolveRequest(BaseModel):
    """Request model for resolving change records."""

    status: ChangeStatus


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    engine_initialized: bool
    storage: str
    llm: str


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    global engine

    config = Config.from_env()

    setup_logging(config.logging)

    logger.info("Starting Brain server")
    logger.info(
        f"Configuration: LLM={config.llm.provider}/{config.llm.model}, "
        f"Storage={config.storage.backend}:{config.storage.db_path}"
    )

    try:
        llm = LLMFactory.create(config.llm)
    except ConfigurationError as e:
        logger.warning(f"Chat disabled: {e.message}")
        llm = None

    engine = KnowledgeEngine(
        knowledge_store=KnowledgeStoreFactory.create(config.storage),
        conversation_store=ConversationStoreFactory.create(config.storage),
        config=config,
        llm=llm,
    )

    await engine.initialize()
    logger.info("Brain engine initialized")

    yield

    logger.info("Shutting down Brain server")
    await engine.close()
    engine = None
    logger.info("Cleanup complete")


# Create FastAPI app
app = FastAPI(
    title="Brain API",
    description="Knowledge management core with AI-proposed, human-reviewed changes",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _engine() -> KnowledgeEngine:
    if not engine:
        raise HTTPException(status_code=503, detail="Engine not initialized")
    return engine


def _http_error(action: str, e: Exception) -> HTTPException:
    """Map a failure to an HTTP error: 404 not found, 422 invalid, 503 unconfigured, 500 otherwise."""
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=e.message)
    if isinstance(e, ValidationError):
        return HTTPException(status_code=422, detail=e.message)
    if isinstance(e, ConfigurationError):
        return HTTPException(status_code=503, detail=e.message)
    logger.error(f"Error {action}: {e}")
    detail = e.message if isinstance(e, BrainError) else str(e)
    return HTTPException(status_code=500, detail=detail)


# Health check endpoint
@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    storage = "none"
    llm = "disabled"
    if engine:
        storage = f"{engine.config.storage.backend} ({engine.config.storage.db_path})"
        if engine.llm is not None:
            llm = f"{engine.config.llm.model} ({engine.config.llm.provider})"

    return HealthResponse(
        status="healthy" if engine else "initializing",
        engine_initialized=engine is not None,
        storage=storage,
        llm=llm,
    )


# ═══════════════════════════════════════════════════════════
# DOCUMENTS
# ═══════════════════════════════════════════════════════════


@app.get("/documents")
async def list_documents():
    """List documents ordered by title."""
    brain = _engine()
    return [document.model_dump(mode="json") for document in brain.documents.get_all_documents()]


@app.post("/documents", status_code=201)
async def create_document(request: CreateDocumentRequest):
    """
    Create a document.

    The title gets a numeric suffix when already taken ("Untitled 2"); the
    path is derived from the final title.
    """
    brain = _engine()
    try:
        document_id = await brain.documents.create_document(request.title, request.content)
        return brain.documents.get_document(document_id).model_dump(mode="json")
    except Exception as e:
        raise _http_error("creating document", e) from e


@app.post("/documents/new", status_code=201)
async def new_document():
    """Create a blank "Untitled" document."""
    brain = _engine()
    try:
        document_id = await brain.documents.new_document()
        return brain.documents.get_document(document_id).model_dump(mode="json")
    except Exception as e:
        raise _http_error("creating blank document", e) from e


@app.get("/documents/{document_id}")
async def get_document(document_id: str):
    """Retrieve a document with its parsed frontmatter."""
    document = _engine().documents.get_document(document_id)
    if document is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return document.model_dump(mode="json")


@app.put("/documents/{document_id}")
async def update_document(document_id: str, request: UpdateDocumentRequest):
    """
    Edit a document directly, bypassing the review queue.

    Content without a frontmatter block keeps the existing block.
    """
    brain = _engine()
    if brain.documents.get_document(document_id) is None:
        raise HTTPException(status_code=404, detail="Document not found")

    try:
        if request.content is not None:
            await brain.documents.update_document(document_id, request.content)
        if request.title is not None or request.path is not None:
            await brain.documents.update_document_metadata(
                document_id, title=request.title, path=request.path
            )
        return brain.documents.get_document(document_id).model_dump(mode="json")
    except Exception as e:
        raise _http_error("updating document", e) from e


@app.delete("/documents/{document_id}")
async def delete_document(document_id: str):
    """Delete a document. Deleting a missing document succeeds."""
    brain = _engine()
    try:
        await brain.documents.delete_document(document_id)
        return {"id": document_id, "deleted": True}
    except Exception as e:
        raise _http_error("deleting document", e) from e


@app.get("/documents/{document_id}/versions")
async def get_document_versions(document_id: str):
    """Previous-version snapshots, newest first."""
    versions = await _engine().documents.get_document_versions(document_id)
    return [version.model_dump(mode="json") for version in versions]


@app.get("/documents/{document_id}/changes")
async def get_document_changes(document_id: str):
    """Pending changes targeting a document."""
    changes = _engine().documents.get_changes_for_document(document_id)
    return [change.model_dump(mode="json") for change in changes]


# ═══════════════════════════════════════════════════════════
# CHANGE REVIEW QUEUE
# ═══════════════════════════════════════════════════════════


@app.get("/changes")
async def list_changes(pending_only: bool = Query(default=False)):
    """The current review queue."""
    changes = _engine().documents.pending_changes
    if pending_only:
        changes = [change for change in changes if change.is_pending()]
    return [change.model_dump(mode="json") for change in changes]


@app.post("/changes/apply-all")
async def apply_all_changes():
    """Apply every pending change, in queue order."""
    brain = _engine()
    try:
        await brain.documents.apply_all_changes()
        return [change.model_dump(mode="json") for change in brain.documents.pending_changes]
    except Exception as e:
        raise _http_error("applying all changes", e) from e


@app.post("/changes/dismiss-all")
async def dismiss_all_changes():
    """Dismiss every pending change."""
    brain = _engine()
    try:
        await brain.documents.dismiss_all_changes()
        return [change.model_dump(mode="json") for change in brain.documents.pending_changes]
    except Exception as e:
        raise _http_error("dismissing all changes", e) from e


@app.post("/changes/{change_id}/apply")
async def apply_change(change_id: str):
    """Apply one change. Already-resolved changes are left as they are."""
    brain = _engine()
    if brain.documents.get_change(change_id) is None:
        raise HTTPException(status_code=404, detail="Change not found")
    try:
        await brain.documents.apply_change(change_id)
        return brain.documents.get_change(change_id).model_dump(mode="json")
    except Exception as e:
        raise _http_error("applying change", e) from e


@app.post("/changes/{change_id}/dismiss")
async def dismiss_change(change_id: str):
    """Dismiss one change. Already-resolved changes are left as they are."""
    brain = _engine()
    if brain.documents.get_change(change_id) is None:
        raise HTTPException(status_code=404, detail="Change not found")
    try:
        await brain.documents.dismiss_change(change_id)
        return brain.documents.get_change(change_id).model_dump(mode="json")
    except Exception as e:
        raise _http_error("dismissing change", e) from e


# ═══════════════════════════════════════════════════════════
# ENTITIES & RELATIONSHIPS
# ═══════════════════════════════════════════════════════════


@app.get("/entities")
async def list_entities(type: EntityType | None = Query(default=None)):
    """List entities ordered by name, optionally filtered by type."""
    brain = _engine()
    entities = (
        brain.entities.get_entities_by_type(type) if type else brain.entities.get_all_entities()
    )
    return [entity.model_dump(mode="json") for entity in entities]


@app.get("/entities/search")
async def search_entities(q: str = Query(..., min_length=1), limit: int = Query(default=20, ge=1)):
    """Case-insensitive name search."""
    entities = _engine().entities.search_entities(q, limit=limit)
    return [entity.model_dump(mode="json") for entity in entities]


@app.post("/entities", status_code=201)
async def create_entity(request: CreateEntityRequest):
    """Create an entity."""
    brain = _engine()
    try:
        entity = await brain.entities.create_entity(request.type, request.name, request.properties)
        return entity.model_dump(mode="json")
    except Exception as e:
        raise _http_error("creating entity", e) from e


@app.get("/entities/{entity_id}")
async def get_entity(entity_id: str):
    """Retrieve an entity."""
    entity = _engine().entities.get_entity(entity_id)
    if entity is None:
        raise HTTPException(status_code=404, detail="Entity not found")
    return entity.model_dump(mode="json")


@app.patch("/entities/{entity_id}")
async def update_entity(entity_id: str, request: UpdateEntityRequest):
    """Rename and/or shallow-merge properties. Missing entities are a 404."""
    brain = _engine()
    try:
        entity = await brain.entities.update_entity(
            entity_id, name=request.name, properties=request.properties
        )
        return entity.model_dump(mode="json")
    except Exception as e:
        raise _http_error("updating entity", e) from e


@app.delete("/entities/{entity_id}")
async def delete_entity(entity_id: str):
    """Delete an entity and its relationships. Deleting a missing entity succeeds."""
    brain = _engine()
    try:
        removed = await brain.entities.delete_entity(entity_id)
        return {"id": entity_id, "deleted": True, "relationships_removed": removed}
    except Exception as e:
        raise _http_error("deleting entity", e) from e


@app.get("/entities/{entity_id}/relationships")
async def get_entity_relationships(entity_id: str):
    """Relationships of an entity, labelled outgoing or incoming."""
    views = _engine().entities.get_relationships_for_entity(entity_id)
    return [view.model_dump(mode="json") for view in views]


@app.get("/relationships")
async def list_relationships():
    """List all relationships."""
    relationships = _engine().entities.get_all_relationships()
    return [relationship.model_dump(mode="json") for relationship in relationships]


@app.post("/relationships", status_code=201)
async def create_relationship(request: CreateRelationshipRequest):
    """Create a directed relationship."""
    brain = _engine()
    try:
        relationship = await brain.entities.create_relationship(
            request.type,
            request.subject_id,
            request.object_id,
            properties=request.properties,
            evidence_ids=request.evidence_ids,
        )
        return relationship.model_dump(mode="json")
    except Exception as e:
        raise _http_error("creating relationship", e) from e


@app.patch("/relationships/{relationship_id}")
async def update_relationship(relationship_id: str, request: UpdateRelationshipRequest):
    """Shallow-merge relationship properties. Missing relationships are a 404."""
    brain = _engine()
    try:
        relationship = await brain.entities.update_relationship_properties(
            relationship_id, request.properties
        )
        return relationship.model_dump(mode="json")
    except Exception as e:
        raise _http_error("updating relationship", e) from e


@app.delete("/relationships/{relationship_id}")
async def delete_relationship(relationship_id: str):
    """Delete a relationship. Deleting a missing relationship succeeds."""
    brain = _engine()
    try:
        await brain.entities.delete_relationship(relationship_id)
        return {"id": relationship_id, "deleted": True}
    except Exception as e:
        raise _http_error("deleting relationship", e) from e


# ═══════════════════════════════════════════════════════════
# TRANSCRIPTS
# ═══════════════════════════════════════════════════════════


@app.get("/transcripts")
async def list_transcripts():
    """List transcripts, most recently recorded first."""
    transcripts = _engine().transcripts.get_all_transcripts()
    return [transcript.model_dump(mode="json") for transcript in transcripts]


@app.post("/transcripts", status_code=201)
async def create_transcript(request: CreateTranscriptRequest):
    """Store a transcript."""
    brain = _engine()
    try:
        transcript_id = await brain.transcripts.create_transcript(
            title=request.title,
            content=request.content,
            segments=request.segments,
            meeting_platform=request.meeting_platform,
            participants=request.participants,
            duration_seconds=request.duration_seconds,
        )
        return brain.transcripts.get_transcript(transcript_id).model_dump(mode="json")
    except Exception as e:
        raise _http_error("creating transcript", e) from e


@app.get("/transcripts/{transcript_id}")
async def get_transcript(transcript_id: str):
    """Retrieve a transcript."""
    transcript = _engine().transcripts.get_transcript(transcript_id)
    if transcript is None:
        raise HTTPException(status_code=404, detail="Transcript not found")
    return transcript.model_dump(mode="json")


@app.delete("/transcripts/{transcript_id}")
async def delete_transcript(transcript_id: str):
    """Delete a transcript."""
    brain = _engine()
    try:
        await brain.transcripts.delete_transcript(transcript_id)
        return {"id": transcript_id, "deleted": True}
    except Exception as e:
        raise _http_error("deleting transcript", e) from e


@app.post("/transcripts/{transcript_id}/extract")
async def extract_transcript_entities(transcript_id: str, apply: bool = Query(default=False)):
    """
    Propose entities mentioned in a transcript.

    With `apply=true` the proposals are created in the graph right away.
    Without an LLM provider the proposal list is empty.
    """
    brain = _engine()
    try:
        proposals = await brain.extract_entities(transcript_id)
        created = await brain.entities.apply_mutations(proposals) if apply else []
        return {
            "proposals": [proposal.model_dump(mode="json") for proposal in proposals],
            "created": [entity.model_dump(mode="json") for entity in created],
        }
    except Exception as e:
        raise _http_error("extracting transcript entities", e) from e


# ═══════════════════════════════════════════════════════════
# CHAT SESSIONS
# ═══════════════════════════════════════════════════════════


@app.post("/sessions", status_code=201)
async def create_session(request: CreateSessionRequest):
    """Open a chat session (or reuse the latest one of the context type)."""
    brain = _engine()
    try:
        if request.reuse_latest:
            session = await brain.conversation.get_or_create_session(request.context_type)
        else:
            session = await brain.conversation.create_session(request.context_type)
        return session.model_dump(mode="json")
    except Exception as e:
        raise _http_error("creating session", e) from e


@app.get("/sessions/{session_id}/messages")
async def get_messages(session_id: str):
    """Messages of a session, oldest first, with change statuses."""
    brain = _engine()
    try:
        messages = await brain.conversation.get_messages(session_id)
        return [message.model_dump(mode="json") for message in messages]
    except Exception as e:
        raise _http_error("loading messages", e) from e


@app.get("/sessions/{session_id}/pending-changes")
async def get_pending_change_records(session_id: str):
    """Unresolved change records of a session."""
    brain = _engine()
    try:
        records = await brain.conversation.get_pending_changes(session_id)
        return [record.model_dump(mode="json") for record in records]
    except Exception as e:
        raise _http_error("loading pending change records", e) from e


@app.post("/sessions/{session_id}/chat")
async def chat(session_id: str, request: ChatRequest):
    """
    Run a chat turn.

    The assistant may read the workspace through tools; proposed changes
    replace the review queue and entity mutations are executed.
    """
    brain = _engine()
    try:
        result = await brain.chat(session_id, request.message)
        return result.model_dump(mode="json")
    except Exception as e:
        raise _http_error("running chat turn", e) from e


@app.post("/sessions/{session_id}/responses")
async def ingest_response(session_id: str, request: IngestRequest):
    """Record an assistant response produced elsewhere, parsing it leniently."""
    brain = _engine()
    try:
        result = await brain.ingest_response(session_id, parse_assistant_response(request.raw))
        return result.model_dump(mode="json")
    except Exception as e:
        raise _http_error("ingesting assistant response", e) from e


@app.post("/messages/{message_id}/resolve")
async def resolve_message_changes(message_id: str, request: ResolveRequest):
    """Resolve every pending change record of a message."""
    brain = _engine()
    try:
        resolutions = await brain.conversation.resolve_all_changes_for_message(
            message_id, request.status
        )
        return [resolution.model_dump(mode="json") for resolution in resolutions]
    except Exception as e:
        raise _http_error("resolving message changes", e) from e


# Statistics endpoint
@app.get("/stats")
async def get_stats():
    """Counts of documents, entities, relationships, transcripts and change records."""
    brain = _engine()
    try:
        return await brain.get_statistics()
    except Exception as e:
        raise _http_error("getting stats", e) from e


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Brain API",
        "version": "0.1.0",
        "description": "Knowledge management core with AI-proposed, human-reviewed changes",
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
