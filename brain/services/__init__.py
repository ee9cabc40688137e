"""
Services for Brain.

- DocumentStore: documents and the change review queue
- EntityGraphStore: entities and relationships
- TranscriptStore: meeting transcripts
- ConversationService: append-only chat log with change records
- AssistantService / WorkspaceTools: LLM turn with a workspace tool loop
- EntityExtractor: entity proposals from meeting transcripts
- KnowledgeEngine: facade wiring everything together
"""

from brain.services.assistant import AssistantService, parse_assistant_response
from brain.services.conversation import ConversationService
from brain.services.document_store import DocumentStore
from brain.services.entity_extraction import EntityExtractor
from brain.services.entity_store import EntityGraphStore
from brain.services.knowledge_engine import IngestResult, KnowledgeEngine
from brain.services.transcript_store import TranscriptStore
from brain.services.workspace_tools import TOOL_DEFINITIONS, WorkspaceTools

__all__ = [
    "AssistantService",
    "parse_assistant_response",
    "ConversationService",
    "DocumentStore",
    "EntityExtractor",
    "EntityGraphStore",
    "IngestResult",
    "KnowledgeEngine",
    "TranscriptStore",
    "TOOL_DEFINITIONS",
    "WorkspaceTools",
]
