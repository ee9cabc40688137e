"""
SQLite knowledge store implementation.

Documents are stored with their frontmatter serialized into `content`; every
content update snapshots the previous content into `document_versions`.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite

from brain.core.knowledge_store.base import KnowledgeStore
from brain.models.document import Document, DocumentVersion
from brain.models.entity import (
    Entity,
    EntityType,
    Relationship,
    RelationshipType,
    properties_from_raw,
    properties_to_raw,
)
from brain.models.transcript import Transcript, TranscriptSegment
from brain.utils.exceptions import KnowledgeStoreError
from brain.utils.id_generator import generate_version_id
from brain.utils.logger import get_logger

logger = get_logger(__name__)

TABLES = ("documents", "document_versions", "entities", "relationships", "transcripts")


class SQLiteKnowledgeStore(KnowledgeStore):
    """
    SQLite-based store for the knowledge and evidence layers.

    Features:
    - JSON columns for properties, segments and participants
    - Previous-version snapshots pruned to `keep_versions` per document
    - Every sqlite failure surfaces as KnowledgeStoreError
    """

    def __init__(self, db_path: str = "data/brain.db", keep_versions: int = 1):
        """
        Initialize SQLite knowledge store.

        Args:
            db_path: Path to SQLite database file (":memory:" for a private in-memory db)
            keep_versions: Number of version snapshots retained per document
        """
        self.db_path = db_path
        self.keep_versions = max(keep_versions, 1)
        self.connection: aiosqlite.Connection | None = None

        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    async def connect(self) -> None:
        """Establish connection to SQLite."""
        if self.connection is None:
            try:
                self.connection = await aiosqlite.connect(self.db_path)
                await self.connection.execute("PRAGMA journal_mode = WAL")
                await self.connection.commit()
            except aiosqlite.Error as e:
                raise KnowledgeStoreError(
                    f"Failed to open knowledge store: {e}", {"db_path": self.db_path}
                ) from e

    async def initialize(self) -> None:
        """Initialize database schema."""
        await self.connect()

        await self._execute_script(
            """
            CREATE TABLE IF NOT EXISTS documents (
                id TEXT PRIMARY KEY,
                path TEXT NOT NULL UNIQUE,
                title TEXT NOT NULL,
                content TEXT NOT NULL DEFAULT '',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS document_versions (
                id TEXT PRIMARY KEY,
                document_id TEXT NOT NULL,
                content TEXT NOT NULL,
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS entities (
                id TEXT PRIMARY KEY,
                type TEXT NOT NULL,
                name TEXT NOT NULL,
                properties TEXT DEFAULT '{}',
                confidence REAL DEFAULT 1.0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS relationships (
                id TEXT PRIMARY KEY,
                type TEXT NOT NULL,
                subject_id TEXT NOT NULL,
                object_id TEXT NOT NULL,
                properties TEXT DEFAULT '{}',
                confidence REAL DEFAULT 1.0,
                evidence_ids TEXT DEFAULT '[]',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS transcripts (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                content TEXT NOT NULL DEFAULT '',
                segments TEXT DEFAULT '[]',
                meeting_platform TEXT,
                participants TEXT DEFAULT '[]',
                duration_seconds INTEGER,
                recorded_at TEXT NOT NULL,
                created_at TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_versions_document ON document_versions(document_id);
            CREATE INDEX IF NOT EXISTS idx_entities_type ON entities(type);
            CREATE INDEX IF NOT EXISTS idx_entities_name ON entities(name);
            CREATE INDEX IF NOT EXISTS idx_relationships_subject ON relationships(subject_id);
            CREATE INDEX IF NOT EXISTS idx_relationships_object ON relationships(object_id);
            """
        )

        logger.info(f"Knowledge store initialized at {self.db_path}")

    # ═══════════════════════════════════════════════════════════
    # DOCUMENT OPERATIONS
    # ═══════════════════════════════════════════════════════════

    async def list_documents(self) -> list[Document]:
        rows = await self._fetchall("SELECT * FROM documents ORDER BY title")
        return [self._row_to_document(row) for row in rows]

    async def get_document(self, document_id: str) -> Document | None:
        row = await self._fetchone("SELECT * FROM documents WHERE id = ?", (document_id,))
        return self._row_to_document(row) if row else None

    async def create_document(self, document: Document, content: str) -> None:
        await self._execute(
            """
            INSERT INTO documents (id, path, title, content, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                document.id,
                document.path,
                document.title,
                content,
                document.created_at.isoformat(),
                document.updated_at.isoformat(),
            ),
        )

    async def update_document_content(self, document_id: str, content: str) -> None:
        """Snapshot the stored content, write the new content, then prune old snapshots."""
        row = await self._fetchone("SELECT content FROM documents WHERE id = ?", (document_id,))
        if row is None:
            logger.debug(f"No stored document {document_id}; content update skipped")
            return

        now = datetime.now().isoformat()
        await self._execute(
            "INSERT INTO document_versions (id, document_id, content, created_at) VALUES (?, ?, ?, ?)",
            (generate_version_id(), document_id, row[0], now),
        )
        await self._execute(
            "UPDATE documents SET content = ?, updated_at = ? WHERE id = ?",
            (content, now, document_id),
        )
        await self._execute(
            """
            DELETE FROM document_versions
            WHERE document_id = ? AND id NOT IN (
                SELECT id FROM document_versions WHERE document_id = ?
                ORDER BY created_at DESC, rowid DESC LIMIT ?
            )
            """,
            (document_id, document_id, self.keep_versions),
        )

    async def update_document_metadata(
        self, document_id: str, title: str | None = None, path: str | None = None
    ) -> None:
        assignments = []
        params: list[Any] = []

        if title is not None:
            assignments.append("title = ?")
            params.append(title)

        if path is not None:
            assignments.append("path = ?")
            params.append(path)

        if not assignments:
            return

        assignments.append("updated_at = ?")
        params.append(datetime.now().isoformat())
        params.append(document_id)

        await self._execute(
            f"UPDATE documents SET {', '.join(assignments)} WHERE id = ?", tuple(params)
        )

    async def delete_document(self, document_id: str) -> None:
        await self._execute("DELETE FROM document_versions WHERE document_id = ?", (document_id,))
        await self._execute("DELETE FROM documents WHERE id = ?", (document_id,))

    async def get_document_versions(self, document_id: str) -> list[DocumentVersion]:
        rows = await self._fetchall(
            """
            SELECT id, document_id, content, created_at FROM document_versions
            WHERE document_id = ? ORDER BY created_at DESC, rowid DESC
            """,
            (document_id,),
        )
        return [
            DocumentVersion(
                id=row[0],
                document_id=row[1],
                content=row[2],
                created_at=datetime.fromisoformat(row[3]),
            )
            for row in rows
        ]

    # ═══════════════════════════════════════════════════════════
    # ENTITY OPERATIONS
    # ═══════════════════════════════════════════════════════════

    async def list_entities(self) -> list[Entity]:
        rows = await self._fetchall("SELECT * FROM entities ORDER BY name")
        return [self._row_to_entity(row) for row in rows]

    async def get_entity(self, entity_id: str) -> Entity | None:
        row = await self._fetchone("SELECT * FROM entities WHERE id = ?", (entity_id,))
        return self._row_to_entity(row) if row else None

    async def save_entity(self, entity: Entity) -> None:
        await self._execute(
            """
            INSERT OR REPLACE INTO entities (
                id, type, name, properties, confidence, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entity.id,
                entity.type.value,
                entity.name,
                json.dumps(properties_to_raw(entity.properties)),
                entity.confidence,
                entity.created_at.isoformat(),
                entity.updated_at.isoformat(),
            ),
        )

    async def delete_entity(self, entity_id: str) -> None:
        # Relationships first so no edge is left dangling
        await self._execute(
            "DELETE FROM relationships WHERE subject_id = ? OR object_id = ?",
            (entity_id, entity_id),
        )
        await self._execute("DELETE FROM entities WHERE id = ?", (entity_id,))

    async def search_entities(self, query: str, limit: int = 20) -> list[Entity]:
        rows = await self._fetchall(
            "SELECT * FROM entities WHERE name LIKE ? ORDER BY name LIMIT ?",
            (f"%{query}%", limit),
        )
        return [self._row_to_entity(row) for row in rows]

    # ═══════════════════════════════════════════════════════════
    # RELATIONSHIP OPERATIONS
    # ═══════════════════════════════════════════════════════════

    async def list_relationships(self) -> list[Relationship]:
        rows = await self._fetchall("SELECT * FROM relationships ORDER BY created_at")
        return [self._row_to_relationship(row) for row in rows]

    async def get_relationships_for_entity(self, entity_id: str) -> list[Relationship]:
        rows = await self._fetchall(
            "SELECT * FROM relationships WHERE subject_id = ? OR object_id = ? ORDER BY created_at",
            (entity_id, entity_id),
        )
        return [self._row_to_relationship(row) for row in rows]

    async def save_relationship(self, relationship: Relationship) -> None:
        await self._execute(
            """
            INSERT OR REPLACE INTO relationships (
                id, type, subject_id, object_id, properties, confidence,
                evidence_ids, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                relationship.id,
                relationship.type.value,
                relationship.subject_id,
                relationship.object_id,
                json.dumps(properties_to_raw(relationship.properties)),
                relationship.confidence,
                json.dumps(relationship.evidence_ids),
                relationship.created_at.isoformat(),
                relationship.updated_at.isoformat(),
            ),
        )

    async def delete_relationship(self, relationship_id: str) -> None:
        await self._execute("DELETE FROM relationships WHERE id = ?", (relationship_id,))

    # ═══════════════════════════════════════════════════════════
    # TRANSCRIPT OPERATIONS
    # ═══════════════════════════════════════════════════════════

    async def list_transcripts(self) -> list[Transcript]:
        rows = await self._fetchall("SELECT * FROM transcripts ORDER BY recorded_at DESC")
        return [self._row_to_transcript(row) for row in rows]

    async def get_transcript(self, transcript_id: str) -> Transcript | None:
        row = await self._fetchone("SELECT * FROM transcripts WHERE id = ?", (transcript_id,))
        return self._row_to_transcript(row) if row else None

    async def create_transcript(self, transcript: Transcript) -> None:
        await self._execute(
            """
            INSERT INTO transcripts (
                id, title, content, segments, meeting_platform, participants,
                duration_seconds, recorded_at, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                transcript.id,
                transcript.title,
                transcript.content,
                json.dumps([segment.model_dump() for segment in transcript.segments]),
                transcript.meeting_platform,
                json.dumps(transcript.participants),
                transcript.duration_seconds,
                transcript.recorded_at.isoformat(),
                transcript.created_at.isoformat(),
            ),
        )

    async def delete_transcript(self, transcript_id: str) -> None:
        await self._execute("DELETE FROM transcripts WHERE id = ?", (transcript_id,))

    # ═══════════════════════════════════════════════════════════
    # UTILITY METHODS
    # ═══════════════════════════════════════════════════════════

    async def count_rows(self) -> dict[str, int]:
        counts = {}
        for table in TABLES:
            row = await self._fetchone(f"SELECT COUNT(*) FROM {table}")
            counts[table] = row[0] if row else 0
        return counts

    async def close(self) -> None:
        """Close the connection."""
        if self.connection is not None:
            await self.connection.close()
            self.connection = None

    # ═══════════════════════════════════════════════════════════
    # HELPER METHODS
    # ═══════════════════════════════════════════════════════════

    async def _execute(self, query: str, params: tuple = ()) -> None:
        await self.connect()
        try:
            await self.connection.execute(query, params)
            await self.connection.commit()
        except aiosqlite.Error as e:
            raise KnowledgeStoreError(f"Knowledge store write failed: {e}", {"query": query}) from e

    async def _execute_script(self, script: str) -> None:
        await self.connect()
        try:
            await self.connection.executescript(script)
            await self.connection.commit()
        except aiosqlite.Error as e:
            raise KnowledgeStoreError(f"Knowledge store schema setup failed: {e}") from e

    async def _fetchone(self, query: str, params: tuple = ()) -> tuple | None:
        await self.connect()
        try:
            cursor = await self.connection.execute(query, params)
            return await cursor.fetchone()
        except aiosqlite.Error as e:
            raise KnowledgeStoreError(f"Knowledge store read failed: {e}", {"query": query}) from e

    async def _fetchall(self, query: str, params: tuple = ()) -> list[tuple]:
        await self.connect()
        try:
            cursor = await self.connection.execute(query, params)
            return list(await cursor.fetchall())
        except aiosqlite.Error as e:
            raise KnowledgeStoreError(f"Knowledge store read failed: {e}", {"query": query}) from e

    def _row_to_document(self, row: tuple) -> Document:
        """Convert database row to Document; content is left serialized."""
        return Document(
            id=row[0],
            path=row[1],
            title=row[2],
            content=row[3] or "",
            created_at=datetime.fromisoformat(row[4]),
            updated_at=datetime.fromisoformat(row[5]),
        )

    def _row_to_entity(self, row: tuple) -> Entity:
        """Convert database row to Entity object."""
        return Entity(
            id=row[0],
            type=EntityType(row[1]),
            name=row[2],
            properties=properties_from_raw(json.loads(row[3]) if row[3] else {}),
            confidence=row[4] if row[4] is not None else 1.0,
            created_at=datetime.fromisoformat(row[5]),
            updated_at=datetime.fromisoformat(row[6]),
        )

    def _row_to_relationship(self, row: tuple) -> Relationship:
        """Convert database row to Relationship object."""
        return Relationship(
            id=row[0],
            type=RelationshipType(row[1]),
            subject_id=row[2],
            object_id=row[3],
            properties=properties_from_raw(json.loads(row[4]) if row[4] else {}),
            confidence=row[5] if row[5] is not None else 1.0,
            evidence_ids=json.loads(row[6]) if row[6] else [],
            created_at=datetime.fromisoformat(row[7]),
            updated_at=datetime.fromisoformat(row[8]),
        )

    def _row_to_transcript(self, row: tuple) -> Transcript:
        """Convert database row to Transcript object."""
        segments = json.loads(row[3]) if row[3] else []
        return Transcript(
            id=row[0],
            title=row[1],
            content=row[2] or "",
            segments=[TranscriptSegment(**segment) for segment in segments],
            meeting_platform=row[4],
            participants=json.loads(row[5]) if row[5] else [],
            duration_seconds=row[6],
            recorded_at=datetime.fromisoformat(row[7]),
            created_at=datetime.fromisoformat(row[8]),
        )
