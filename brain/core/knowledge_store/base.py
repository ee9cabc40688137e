"""
Base interface for knowledge-layer persistence.

Stores documents (with a previous-version snapshot), entities, relationships
and transcripts. The in-memory stores in brain.services are authoritative at
runtime; implementations of this interface are the durable copy.
"""

from abc import ABC, abstractmethod

from brain.models.document import Document, DocumentVersion
from brain.models.entity import Entity, Relationship
from brain.models.transcript import Transcript


class KnowledgeStore(ABC):
    """Abstract base class for knowledge-layer storage implementations."""

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the store (create tables/schema)."""
        pass

    # ═══════════════════════════════════════════════════════════
    # DOCUMENT OPERATIONS
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def list_documents(self) -> list[Document]:
        """
        Load all documents ordered by title.

        Content is returned exactly as stored (frontmatter included); the
        caller splits the frontmatter out.
        """
        pass

    @abstractmethod
    async def get_document(self, document_id: str) -> Document | None:
        """
        Retrieve a document by ID.

        Args:
            document_id: Document identifier

        Returns:
            Document with stored (serialized) content, or None if not found
        """
        pass

    @abstractmethod
    async def create_document(self, document: Document, content: str) -> None:
        """
        Insert a new document row.

        Args:
            document: Document metadata (id, path, title, timestamps)
            content: Serialized content to store (frontmatter included)
        """
        pass

    @abstractmethod
    async def update_document_content(self, document_id: str, content: str) -> None:
        """
        Replace a document's stored content, snapshotting the previous content.

        Args:
            document_id: Document identifier
            content: New serialized content
        """
        pass

    @abstractmethod
    async def update_document_metadata(
        self, document_id: str, title: str | None = None, path: str | None = None
    ) -> None:
        """
        Update a document's title and/or path.

        Args:
            document_id: Document identifier
            title: New title, or None to keep
            path: New path, or None to keep
        """
        pass

    @abstractmethod
    async def delete_document(self, document_id: str) -> None:
        """
        Delete a document and its version snapshots.

        Args:
            document_id: Document identifier
        """
        pass

    @abstractmethod
    async def get_document_versions(self, document_id: str) -> list[DocumentVersion]:
        """
        Previous-version snapshots for a document, newest first.

        Args:
            document_id: Document identifier
        """
        pass

    # ═══════════════════════════════════════════════════════════
    # ENTITY OPERATIONS
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def list_entities(self) -> list[Entity]:
        """Load all entities ordered by name."""
        pass

    @abstractmethod
    async def get_entity(self, entity_id: str) -> Entity | None:
        """
        Retrieve an entity by ID.

        Args:
            entity_id: Entity identifier

        Returns:
            Entity or None if not found
        """
        pass

    @abstractmethod
    async def save_entity(self, entity: Entity) -> None:
        """
        Insert or replace an entity.

        Args:
            entity: Entity to store
        """
        pass

    @abstractmethod
    async def delete_entity(self, entity_id: str) -> None:
        """
        Delete an entity and every relationship it participates in.

        Args:
            entity_id: Entity identifier
        """
        pass

    @abstractmethod
    async def search_entities(self, query: str, limit: int = 20) -> list[Entity]:
        """
        Case-insensitive substring search on entity names.

        Args:
            query: Text to look for
            limit: Maximum results

        Returns:
            Matching entities ordered by name
        """
        pass

    # ═══════════════════════════════════════════════════════════
    # RELATIONSHIP OPERATIONS
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def list_relationships(self) -> list[Relationship]:
        """Load all relationships."""
        pass

    @abstractmethod
    async def get_relationships_for_entity(self, entity_id: str) -> list[Relationship]:
        """
        Relationships where the entity is subject or object.

        Args:
            entity_id: Entity identifier
        """
        pass

    @abstractmethod
    async def save_relationship(self, relationship: Relationship) -> None:
        """
        Insert or replace a relationship.

        Args:
            relationship: Relationship to store
        """
        pass

    @abstractmethod
    async def delete_relationship(self, relationship_id: str) -> None:
        """
        Delete a relationship.

        Args:
            relationship_id: Relationship identifier
        """
        pass

    # ═══════════════════════════════════════════════════════════
    # TRANSCRIPT OPERATIONS
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def list_transcripts(self) -> list[Transcript]:
        """Load all transcripts, most recently recorded first."""
        pass

    @abstractmethod
    async def get_transcript(self, transcript_id: str) -> Transcript | None:
        """
        Retrieve a transcript by ID.

        Args:
            transcript_id: Transcript identifier
        """
        pass

    @abstractmethod
    async def create_transcript(self, transcript: Transcript) -> None:
        """
        Insert a transcript.

        Args:
            transcript: Transcript to store
        """
        pass

    @abstractmethod
    async def delete_transcript(self, transcript_id: str) -> None:
        """
        Delete a transcript.

        Args:
            transcript_id: Transcript identifier
        """
        pass

    # ═══════════════════════════════════════════════════════════
    # UTILITY METHODS
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def count_rows(self) -> dict[str, int]:
        """
        Row counts per table.

        Returns:
            Mapping of table name to row count
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the connection to the store."""
        pass
