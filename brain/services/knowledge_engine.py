"""
Knowledge Engine - wires stores, conversation log and assistant together.

Brings together:
- Document Store (review queue), Entity Graph Store, Transcript Store
- Conversation log (messages, change records, resolutions)
- Assistant (LLM + workspace tools) and transcript entity extraction
"""

from typing import Any

from pydantic import BaseModel, Field

from brain.config import Config
from brain.core.conversation_store.base import ConversationStore
from brain.core.knowledge_store.base import KnowledgeStore
from brain.core.llm.base import LLMProvider
from brain.models.assistant import AssistantResponse, CreateEntityMutation
from brain.models.change import Change, ChangeStatus
from brain.models.entity import Entity, Relationship
from brain.models.message import Message
from brain.services.assistant import AssistantService
from brain.services.conversation import ConversationService
from brain.services.document_store import DocumentStore
from brain.services.entity_extraction import EntityExtractor
from brain.services.entity_store import EntityGraphStore
from brain.services.transcript_store import TranscriptStore
from brain.services.workspace_tools import WorkspaceTools
from brain.utils.exceptions import ConfigurationError, NotFoundError
from brain.utils.logger import get_logger

logger = get_logger(__name__)


class IngestResult(BaseModel):
    """Outcome of recording an assistant response."""

    message: Message
    queued_changes: list[Change] = Field(default_factory=list)
    created: list[Entity | Relationship] = Field(default_factory=list)


class KnowledgeEngine:
    """
    Facade over the knowledge core.

    Features:
    - Load the workspace from persistence
    - Record assistant responses and queue their changes for review
    - Execute assistant entity mutations
    - Resolutions of queued changes flow back to the conversation log
    - Propose entities found in meeting transcripts
    """

    def __init__(
        self,
        knowledge_store: KnowledgeStore,
        conversation_store: ConversationStore,
        config: Config,
        llm: LLMProvider | None = None,
    ):
        """
        Initialize Knowledge Engine.

        Args:
            knowledge_store: Documents, entities, relationships, transcripts
            conversation_store: Sessions, messages, change records
            config: Configuration object
            llm: Chat provider (None disables chat)
        """
        self.config = config
        self.knowledge_store = knowledge_store
        self.conversation_store = conversation_store
        self.llm = llm

        self.conversation = ConversationService(conversation_store)
        self.documents = DocumentStore(
            store=knowledge_store,
            config=config.documents,
            resolution_sink=self.conversation.resolve_change,
        )
        self.entities = EntityGraphStore(store=knowledge_store)
        self.transcripts = TranscriptStore(store=knowledge_store)
        self.assistant = (
            AssistantService(llm, config=config.assistant, llm_config=config.llm)
            if llm is not None
            else None
        )
        self.extractor = EntityExtractor(llm, llm_config=config.llm) if llm is not None else None

    async def initialize(self) -> None:
        """Initialize persistence and load every store."""
        logger.info("Initializing Knowledge Engine")

        await self.knowledge_store.initialize()
        await self.conversation_store.initialize()

        await self.documents.initialize()
        await self.entities.initialize()
        await self.transcripts.initialize()

        logger.info("Knowledge Engine ready")

    async def ingest_response(self, session_id: str, response: AssistantResponse) -> IngestResult:
        """
        Record an assistant response and act on it.

        The message and one change record per change are written to the log;
        the changes replace the local review queue, linked to their records;
        entity mutations are executed immediately (they are not reviewed).

        Args:
            session_id: Session the response belongs to
            response: Parsed assistant response

        Returns:
            IngestResult with the stored message, the new queue and created graph items
        """
        message = await self.conversation.send_assistant_message(
            session_id, response.message, response.changes
        )

        queued: list[Change] = []
        if response.changes:
            queued = self.documents.set_pending_changes(
                response.changes, record_ids=[record.id for record in message.changes]
            )

        created = await self.entities.apply_mutations(response.entity_mutations)

        logger.bind(
            message_id=message.id, changes=len(queued), entity_mutations=len(created)
        ).info(f"Ingested assistant message {message.id}")
        return IngestResult(message=message, queued_changes=queued, created=created)

    async def chat(self, session_id: str, user_message: str) -> IngestResult:
        """
        Run a full chat turn: log the user message, ask the assistant, ingest the answer.

        Raises:
            ConfigurationError: If no LLM provider is configured
            LLMError: If the assistant turn fails
        """
        if self.assistant is None:
            raise ConfigurationError("No LLM provider configured for chat")

        history = await self.conversation.get_messages(session_id)
        await self.conversation.send_user_message(session_id, user_message)

        tools = WorkspaceTools(self.documents, self.entities)
        response = await self.assistant.respond(user_message, history=history, tools=tools)

        return await self.ingest_response(session_id, response)

    async def extract_entities(self, transcript_id: str) -> list[CreateEntityMutation]:
        """
        Propose entities mentioned in a transcript.

        Proposals are returned for review, not executed; pass the chosen ones
        to `entities.apply_mutations`.

        Returns:
            CreateEntityMutation proposals (empty when no LLM is configured)

        Raises:
            NotFoundError: If the transcript does not exist
        """
        transcript = self.transcripts.get_transcript(transcript_id)
        if transcript is None:
            raise NotFoundError(
                f"Transcript not found: {transcript_id}", {"transcript_id": transcript_id}
            )
        if self.extractor is None:
            logger.warning("No LLM provider configured, skipping entity extraction")
            return []
        return await self.extractor.extract(transcript)

    async def get_statistics(self) -> dict[str, Any]:
        """Counts across the in-memory stores and persisted change records."""
        pending = [change for change in self.documents.pending_changes if change.is_pending()]
        stats: dict[str, Any] = {
            "documents": len(self.documents.documents),
            "entities": len(self.entities.entities),
            "relationships": len(self.entities.relationships),
            "transcripts": len(self.transcripts.transcripts),
            "pending_changes": len(pending),
        }

        try:
            stats["change_records"] = {
                status.value: await self.conversation_store.count_changes(status)
                for status in ChangeStatus
            }
        except Exception as e:
            logger.error(f"Failed to count change records: {e}")
            stats["change_records"] = {}

        return stats

    async def close(self) -> None:
        """Close all connections."""
        logger.info("Shutting down Knowledge Engine")

        if self.llm is not None:
            await self.llm.close()
        await self.knowledge_store.close()
        await self.conversation_store.close()

        logger.info("Knowledge Engine shut down")
