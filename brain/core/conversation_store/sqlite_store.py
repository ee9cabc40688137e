"""
SQLite conversation store implementation.

Change status is never stored on the change row; it is joined in from
`change_resolutions`, whose UNIQUE(change_id) makes resolution idempotent.
"""

from datetime import datetime
from pathlib import Path

import aiosqlite

from brain.core.conversation_store.base import ConversationStore
from brain.models.change import ChangeOperation, ChangeRecord, ChangeResolution, ChangeStatus
from brain.models.message import Message, MessageRole, Session, SessionContextType
from brain.utils.exceptions import ConversationStoreError
from brain.utils.logger import get_logger

logger = get_logger(__name__)

CHANGE_COLUMNS = """
    c.id, c.message_id, c.session_id, c.document_id, c.operation, c.target,
    c.content, c.description, c.created_at, r.status
"""


class SQLiteConversationStore(ConversationStore):
    """SQLite-based store for sessions, messages, change records and resolutions."""

    def __init__(self, db_path: str = "data/brain.db"):
        """
        Initialize SQLite conversation store.

        Args:
            db_path: Path to SQLite database file (":memory:" for a private in-memory db)
        """
        self.db_path = db_path
        self.connection: aiosqlite.Connection | None = None

        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    async def connect(self) -> None:
        """Establish connection to SQLite."""
        if self.connection is None:
            try:
                self.connection = await aiosqlite.connect(self.db_path)
                await self.connection.execute("PRAGMA foreign_keys = ON")
                await self.connection.execute("PRAGMA journal_mode = WAL")
                await self.connection.commit()
            except aiosqlite.Error as e:
                raise ConversationStoreError(
                    f"Failed to open conversation store: {e}", {"db_path": self.db_path}
                ) from e

    async def initialize(self) -> None:
        """Initialize database schema."""
        await self.connect()

        try:
            await self.connection.executescript(
                """
                CREATE TABLE IF NOT EXISTS sessions (
                    id TEXT PRIMARY KEY,
                    context_type TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS messages (
                    id TEXT PRIMARY KEY,
                    session_id TEXT NOT NULL,
                    role TEXT NOT NULL,
                    content TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY (session_id) REFERENCES sessions(id)
                );

                CREATE TABLE IF NOT EXISTS changes (
                    id TEXT PRIMARY KEY,
                    message_id TEXT NOT NULL,
                    session_id TEXT NOT NULL,
                    document_id TEXT NOT NULL,
                    operation TEXT NOT NULL,
                    target TEXT DEFAULT '',
                    content TEXT DEFAULT '',
                    description TEXT DEFAULT '',
                    created_at TEXT NOT NULL,
                    FOREIGN KEY (message_id) REFERENCES messages(id)
                );

                CREATE TABLE IF NOT EXISTS change_resolutions (
                    id TEXT PRIMARY KEY,
                    change_id TEXT NOT NULL UNIQUE,
                    status TEXT NOT NULL,
                    resolved_at TEXT NOT NULL,
                    FOREIGN KEY (change_id) REFERENCES changes(id)
                );

                CREATE INDEX IF NOT EXISTS idx_sessions_created ON sessions(created_at);
                CREATE INDEX IF NOT EXISTS idx_messages_session ON messages(session_id, created_at);
                CREATE INDEX IF NOT EXISTS idx_changes_message ON changes(message_id);
                CREATE INDEX IF NOT EXISTS idx_changes_session ON changes(session_id);
                """
            )
            await self.connection.commit()
        except aiosqlite.Error as e:
            raise ConversationStoreError(f"Conversation store schema setup failed: {e}") from e

        logger.info(f"Conversation store initialized at {self.db_path}")

    # ═══════════════════════════════════════════════════════════
    # SESSIONS
    # ═══════════════════════════════════════════════════════════

    async def create_session(self, session: Session) -> None:
        await self._execute(
            "INSERT INTO sessions (id, context_type, created_at) VALUES (?, ?, ?)",
            (session.id, session.context_type.value, session.created_at.isoformat()),
        )

    async def get_session(self, session_id: str) -> Session | None:
        row = await self._fetchone("SELECT * FROM sessions WHERE id = ?", (session_id,))
        return self._row_to_session(row) if row else None

    async def get_latest_session(
        self, context_type: SessionContextType | None = None
    ) -> Session | None:
        query = "SELECT * FROM sessions"
        params: tuple = ()

        if context_type is not None:
            query += " WHERE context_type = ?"
            params = (context_type.value,)

        query += " ORDER BY created_at DESC, rowid DESC LIMIT 1"

        row = await self._fetchone(query, params)
        return self._row_to_session(row) if row else None

    # ═══════════════════════════════════════════════════════════
    # MESSAGES
    # ═══════════════════════════════════════════════════════════

    async def add_message(self, message: Message) -> None:
        await self._execute(
            """
            INSERT INTO messages (id, session_id, role, content, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                message.id,
                message.session_id,
                message.role.value,
                message.content,
                message.created_at.isoformat(),
            ),
        )

    async def get_message(self, message_id: str) -> Message | None:
        row = await self._fetchone("SELECT * FROM messages WHERE id = ?", (message_id,))
        if row is None:
            return None
        return self._row_to_message(row, await self.get_changes_for_message(message_id))

    async def get_messages(self, session_id: str) -> list[Message]:
        rows = await self._fetchall(
            "SELECT * FROM messages WHERE session_id = ? ORDER BY created_at, rowid",
            (session_id,),
        )
        change_rows = await self._fetchall(
            f"""
            SELECT {CHANGE_COLUMNS} FROM changes c
            LEFT JOIN change_resolutions r ON r.change_id = c.id
            WHERE c.session_id = ? ORDER BY c.created_at, c.rowid
            """,
            (session_id,),
        )

        changes_by_message: dict[str, list[ChangeRecord]] = {}
        for change_row in change_rows:
            change = self._row_to_change(change_row)
            changes_by_message.setdefault(change.message_id, []).append(change)

        return [self._row_to_message(row, changes_by_message.get(row[0], [])) for row in rows]

    # ═══════════════════════════════════════════════════════════
    # CHANGE RECORDS
    # ═══════════════════════════════════════════════════════════

    async def add_change(self, change: ChangeRecord) -> None:
        await self._execute(
            """
            INSERT INTO changes (
                id, message_id, session_id, document_id, operation, target,
                content, description, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                change.id,
                change.message_id,
                change.session_id,
                change.document_id,
                change.operation.value,
                change.target,
                change.content,
                change.description,
                change.created_at.isoformat(),
            ),
        )

    async def get_change(self, change_id: str) -> ChangeRecord | None:
        row = await self._fetchone(
            f"""
            SELECT {CHANGE_COLUMNS} FROM changes c
            LEFT JOIN change_resolutions r ON r.change_id = c.id
            WHERE c.id = ?
            """,
            (change_id,),
        )
        return self._row_to_change(row) if row else None

    async def get_changes_for_message(self, message_id: str) -> list[ChangeRecord]:
        rows = await self._fetchall(
            f"""
            SELECT {CHANGE_COLUMNS} FROM changes c
            LEFT JOIN change_resolutions r ON r.change_id = c.id
            WHERE c.message_id = ? ORDER BY c.created_at, c.rowid
            """,
            (message_id,),
        )
        return [self._row_to_change(row) for row in rows]

    async def get_pending_changes(self, session_id: str) -> list[ChangeRecord]:
        rows = await self._fetchall(
            f"""
            SELECT {CHANGE_COLUMNS} FROM changes c
            LEFT JOIN change_resolutions r ON r.change_id = c.id
            WHERE c.session_id = ? AND r.id IS NULL
            ORDER BY c.created_at, c.rowid
            """,
            (session_id,),
        )
        return [self._row_to_change(row) for row in rows]

    async def get_resolution(self, change_id: str) -> ChangeResolution | None:
        row = await self._fetchone(
            "SELECT id, change_id, status, resolved_at FROM change_resolutions WHERE change_id = ?",
            (change_id,),
        )
        if row is None:
            return None
        return ChangeResolution(
            id=row[0],
            change_id=row[1],
            status=ChangeStatus(row[2]),
            resolved_at=datetime.fromisoformat(row[3]),
        )

    async def add_resolution(self, resolution: ChangeResolution) -> ChangeResolution:
        await self._execute(
            """
            INSERT OR IGNORE INTO change_resolutions (id, change_id, status, resolved_at)
            VALUES (?, ?, ?, ?)
            """,
            (
                resolution.id,
                resolution.change_id,
                resolution.status.value,
                resolution.resolved_at.isoformat(),
            ),
        )
        # The first resolution wins; return whatever is stored
        stored = await self.get_resolution(resolution.change_id)
        return stored or resolution

    # ═══════════════════════════════════════════════════════════
    # UTILITY METHODS
    # ═══════════════════════════════════════════════════════════

    async def count_changes(self, status: ChangeStatus | None = None) -> int:
        query = "SELECT COUNT(*) FROM changes c LEFT JOIN change_resolutions r ON r.change_id = c.id"
        params: tuple = ()

        if status == ChangeStatus.PENDING:
            query += " WHERE r.id IS NULL"
        elif status is not None:
            query += " WHERE r.status = ?"
            params = (status.value,)

        row = await self._fetchone(query, params)
        return row[0] if row else 0

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
            raise ConversationStoreError(
                f"Conversation store write failed: {e}", {"query": query}
            ) from e

    async def _fetchone(self, query: str, params: tuple = ()) -> tuple | None:
        await self.connect()
        try:
            cursor = await self.connection.execute(query, params)
            return await cursor.fetchone()
        except aiosqlite.Error as e:
            raise ConversationStoreError(
                f"Conversation store read failed: {e}", {"query": query}
            ) from e

    async def _fetchall(self, query: str, params: tuple = ()) -> list[tuple]:
        await self.connect()
        try:
            cursor = await self.connection.execute(query, params)
            return list(await cursor.fetchall())
        except aiosqlite.Error as e:
            raise ConversationStoreError(
                f"Conversation store read failed: {e}", {"query": query}
            ) from e

    def _row_to_session(self, row: tuple) -> Session:
        return Session(
            id=row[0],
            context_type=SessionContextType(row[1]),
            created_at=datetime.fromisoformat(row[2]),
        )

    def _row_to_message(self, row: tuple, changes: list[ChangeRecord]) -> Message:
        return Message(
            id=row[0],
            session_id=row[1],
            role=MessageRole(row[2]),
            content=row[3],
            created_at=datetime.fromisoformat(row[4]),
            changes=changes,
        )

    def _row_to_change(self, row: tuple) -> ChangeRecord:
        """Convert a changes row (with joined resolution status) to ChangeRecord."""
        return ChangeRecord(
            id=row[0],
            message_id=row[1],
            session_id=row[2],
            document_id=row[3],
            operation=ChangeOperation(row[4]),
            target=row[5] or "",
            content=row[6] or "",
            description=row[7] or "",
            created_at=datetime.fromisoformat(row[8]),
            status=ChangeStatus(row[9]) if row[9] else ChangeStatus.PENDING,
        )
