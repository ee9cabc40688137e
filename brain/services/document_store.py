"""
Document Store - authoritative in-memory documents plus the change review queue.

Local state always wins: every mutation updates memory first, then persists
best-effort. A persistence failure is logged and the local mutation stands.

Change lifecycle:
    pending --apply-->   applied   (terminal)
    pending --dismiss--> dismissed (terminal)

Resolving a change that is unknown or already terminal is a no-op.
"""

from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

from brain.config import DocumentsConfig
from brain.core.content.frontmatter import parse_frontmatter, serialize_document_content
from brain.core.content.patch import apply_change_to_content, derive_document_path, unique_title
from brain.core.knowledge_store.base import KnowledgeStore
from brain.models.change import Change, ChangeOperation, ChangeStatus, ProposedChange
from brain.models.document import Document, DocumentVersion
from brain.utils.id_generator import generate_change_id, generate_document_id
from brain.utils.logger import get_logger

logger = get_logger(__name__)

# Called with (record_id, status) when a change linked to a persisted record is resolved
ResolutionSink = Callable[[str, ChangeStatus], Awaitable[Any]]


class DocumentStore:
    """
    In-memory document workspace with a pending-change queue.

    The optional knowledge store is the durable copy; without one the
    workspace is purely in-memory.
    """

    def __init__(
        self,
        store: KnowledgeStore | None = None,
        config: DocumentsConfig | None = None,
        resolution_sink: ResolutionSink | None = None,
    ):
        """
        Initialize the document store.

        Args:
            store: Persistence backend (None for in-memory only)
            config: Document defaults (root path, default title)
            resolution_sink: Receives resolutions of changes that carry a record_id
        """
        self.store = store
        self.config = config or DocumentsConfig()
        self.resolution_sink = resolution_sink

        self.documents: dict[str, Document] = {}
        self.current_document_id: str | None = None
        self.last_created_document_id: str | None = None
        self.pending_changes: list[Change] = []
        self.is_initialized = False

    async def initialize(self) -> None:
        """Load documents from persistence. Safe to call more than once."""
        if self.is_initialized:
            return

        if self.store is not None:
            try:
                stored = await self.store.list_documents()
            except Exception as e:
                logger.error(f"Failed to load documents: {e}")
                stored = []

            for document in stored:
                parsed = parse_frontmatter(document.content)
                self.documents[document.id] = document.model_copy(
                    update={
                        "content": parsed.body,
                        "frontmatter": parsed.frontmatter,
                        "frontmatter_raw": parsed.frontmatter_raw,
                    }
                )

        if self.documents and self.current_document_id is None:
            self.current_document_id = next(iter(self.documents))

        self.is_initialized = True
        logger.info(f"Document store initialized with {len(self.documents)} documents")

    # ═══════════════════════════════════════════════════════════
    # QUERIES
    # ═══════════════════════════════════════════════════════════

    def get_document(self, document_id: str) -> Document | None:
        return self.documents.get(document_id)

    def get_all_documents(self) -> list[Document]:
        """All documents ordered by title."""
        return sorted(self.documents.values(), key=lambda document: document.title.lower())

    def get_current_document(self) -> Document | None:
        if self.current_document_id is None:
            return None
        return self.documents.get(self.current_document_id)

    def set_current_document(self, document_id: str | None) -> None:
        self.current_document_id = document_id

    def clear_last_created_document_id(self) -> None:
        self.last_created_document_id = None

    def get_change(self, change_id: str) -> Change | None:
        for change in self.pending_changes:
            if change.id == change_id:
                return change
        return None

    def get_changes_for_document(self, document_id: str) -> list[Change]:
        """Pending changes that target a document."""
        return [
            change
            for change in self.pending_changes
            if change.document_id == document_id and change.is_pending()
        ]

    def has_pending_changes(self) -> bool:
        return any(change.is_pending() for change in self.pending_changes)

    async def get_document_versions(self, document_id: str) -> list[DocumentVersion]:
        """Previous-version snapshots for a document, newest first."""
        if self.store is None:
            return []
        try:
            return await self.store.get_document_versions(document_id)
        except Exception as e:
            logger.error(f"Failed to load versions for {document_id}: {e}")
            return []

    # ═══════════════════════════════════════════════════════════
    # DOCUMENT MUTATIONS
    # ═══════════════════════════════════════════════════════════

    async def create_document(self, title: str, content: str = "") -> str:
        """
        Create a document and make it current.

        The title is disambiguated against existing titles ("Untitled" ->
        "Untitled 2") and the path is derived from the final title.

        Args:
            title: Requested title
            content: Initial content, optionally starting with a frontmatter block

        Returns:
            New document ID
        """
        existing_titles = {document.title for document in self.documents.values()}
        existing_paths = {document.path for document in self.documents.values()}

        final_title = unique_title(title or self.config.default_title, existing_titles)
        path = derive_document_path(final_title, self.config.root, existing_paths)
        parsed = parse_frontmatter(content)

        now = datetime.now()
        document = Document(
            id=generate_document_id(),
            path=path,
            title=final_title,
            content=parsed.body,
            frontmatter=parsed.frontmatter,
            frontmatter_raw=parsed.frontmatter_raw,
            created_at=now,
            updated_at=now,
        )

        self.documents[document.id] = document
        self.current_document_id = document.id
        self.last_created_document_id = document.id

        logger.info(f"Created document {document.id} at {path}")

        if self.store is not None:
            await self._persist(
                "create_document",
                document.id,
                self.store.create_document(
                    document, serialize_document_content(document.frontmatter_raw, document.content)
                ),
            )

        return document.id

    async def new_document(self) -> str:
        """Create a blank "Untitled" document whose body is its title heading."""
        existing_titles = {document.title for document in self.documents.values()}
        title = unique_title(self.config.default_title, existing_titles)
        return await self.create_document(title, f"<h1>{title}</h1>\n<p></p>")

    async def update_document(self, document_id: str, content: str) -> None:
        """
        Direct edit path, bypassing the change queue.

        A frontmatter block in `content` replaces the stored one; content
        without a block keeps the previous block.
        """
        document = self.documents.get(document_id)
        if document is None:
            logger.debug(f"Update skipped, document {document_id} not found")
            return

        parsed = parse_frontmatter(content)
        if parsed.frontmatter_raw is not None:
            frontmatter, frontmatter_raw = parsed.frontmatter, parsed.frontmatter_raw
        else:
            frontmatter, frontmatter_raw = document.frontmatter, document.frontmatter_raw

        await self._write_content(document, parsed.body, frontmatter, frontmatter_raw)

    async def update_document_metadata(
        self, document_id: str, title: str | None = None, path: str | None = None
    ) -> None:
        """Rename and/or move a document. Missing documents are ignored."""
        document = self.documents.get(document_id)
        if document is None:
            logger.debug(f"Metadata update skipped, document {document_id} not found")
            return

        updates: dict[str, Any] = {"updated_at": datetime.now()}
        if title is not None:
            updates["title"] = title
        if path is not None:
            updates["path"] = path
        self.documents[document_id] = document.model_copy(update=updates)

        if self.store is not None:
            await self._persist(
                "update_document_metadata",
                document_id,
                self.store.update_document_metadata(document_id, title=title, path=path),
            )

    async def delete_document(self, document_id: str) -> None:
        """Delete a document. Deleting a missing document is a silent no-op."""
        if self.documents.pop(document_id, None) is None:
            return

        if self.current_document_id == document_id:
            self.current_document_id = next(iter(self.documents), None)
        if self.last_created_document_id == document_id:
            self.last_created_document_id = None

        logger.info(f"Deleted document {document_id}")

        if self.store is not None:
            await self._persist(
                "delete_document", document_id, self.store.delete_document(document_id)
            )

    # ═══════════════════════════════════════════════════════════
    # CHANGE QUEUE
    # ═══════════════════════════════════════════════════════════

    def set_pending_changes(
        self, changes: list[ProposedChange], record_ids: list[str | None] | None = None
    ) -> list[Change]:
        """
        Replace the whole review queue with a new batch.

        Each change gets a fresh ID and pending status. Entries of the previous
        batch leave the local queue; their persisted records are untouched.

        Args:
            changes: Proposed changes in proposal order
            record_ids: Persisted ChangeRecord IDs, index-aligned with `changes`

        Returns:
            The new queue
        """
        record_ids = record_ids or []
        self.pending_changes = [
            Change(
                id=generate_change_id(),
                document_id=change.document_id,
                operation=change.operation,
                target=change.target,
                content=change.content,
                description=change.description,
                status=ChangeStatus.PENDING,
                record_id=record_ids[index] if index < len(record_ids) else None,
            )
            for index, change in enumerate(changes)
        ]

        logger.debug(f"Queued {len(self.pending_changes)} pending changes")
        return self.pending_changes

    async def apply_change(self, change_id: str) -> None:
        """
        Apply a pending change.

        - create (or document ID "new"): create a document titled by the target
        - delete: remove the target document, silently if already gone
        - anything else: patch the target document's body, skipped if it is gone

        The change is marked applied in every case.
        """
        change = self.get_change(change_id)
        if change is None or not change.is_pending():
            return

        if change.is_create():
            await self.create_document(change.target, change.content)
        elif change.operation == ChangeOperation.DELETE:
            await self.delete_document(change.document_id)
        else:
            document = self.documents.get(change.document_id)
            if document is not None:
                new_body = apply_change_to_content(document.content, change)
                await self._write_content(
                    document, new_body, document.frontmatter, document.frontmatter_raw
                )
            else:
                logger.debug(f"Change {change.id} targets missing document {change.document_id}")

        await self._resolve(change, ChangeStatus.APPLIED)

    async def dismiss_change(self, change_id: str) -> None:
        """Dismiss a pending change without touching any document."""
        change = self.get_change(change_id)
        if change is None or not change.is_pending():
            return
        await self._resolve(change, ChangeStatus.DISMISSED)

    async def apply_all_changes(self) -> None:
        """Apply every pending change sequentially, in queue order."""
        for change in [change for change in self.pending_changes if change.is_pending()]:
            await self.apply_change(change.id)

    async def dismiss_all_changes(self) -> None:
        for change in [change for change in self.pending_changes if change.is_pending()]:
            await self.dismiss_change(change.id)

    # ═══════════════════════════════════════════════════════════
    # HELPER METHODS
    # ═══════════════════════════════════════════════════════════

    async def _write_content(
        self,
        document: Document,
        body: str,
        frontmatter: dict[str, str],
        frontmatter_raw: str | None,
    ) -> None:
        updated = document.model_copy(
            update={
                "content": body,
                "frontmatter": frontmatter,
                "frontmatter_raw": frontmatter_raw,
                "updated_at": datetime.now(),
            }
        )
        self.documents[document.id] = updated

        if self.store is not None:
            await self._persist(
                "update_document_content",
                document.id,
                self.store.update_document_content(
                    document.id, serialize_document_content(frontmatter_raw, body)
                ),
            )

    async def _resolve(self, change: Change, status: ChangeStatus) -> None:
        # The queue may have been replaced while the change was being applied
        for index, queued in enumerate(self.pending_changes):
            if queued.id == change.id:
                self.pending_changes[index] = queued.model_copy(update={"status": status})
                logger.debug(f"Change {change.id} {status.value}")
                break
        else:
            logger.debug(f"Change {change.id} {status.value} after leaving the queue")

        if change.record_id and self.resolution_sink is not None:
            await self._persist(
                "resolve_change", change.record_id, self.resolution_sink(change.record_id, status)
            )

    async def _persist(self, operation: str, item_id: str, write: Awaitable[Any]) -> None:
        """Await a persistence write; failures are logged and local state is kept."""
        try:
            await write
        except Exception as e:
            logger.error(f"Persistence failed during {operation} for {item_id}: {e}")
