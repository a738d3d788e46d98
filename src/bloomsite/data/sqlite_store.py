import asyncio
import logging
import uuid
from datetime import UTC, datetime

import aiosqlite

from ..agent.content import Role
from ..errors import PersistenceError

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS conversations (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    title TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_conversations_user_updated
    ON conversations (user_id, updated_at);

CREATE TABLE IF NOT EXISTS messages (
    id TEXT PRIMARY KEY,
    conversation_id TEXT NOT NULL REFERENCES conversations(id) ON DELETE CASCADE,
    role TEXT NOT NULL CHECK (role IN ('USER', 'ASSISTANT')),
    content TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_messages_conversation_created
    ON messages (conversation_id, created_at);
"""

CONVERSATION_COLUMNS = "id, user_id, title, created_at, updated_at"
MESSAGE_COLUMNS = "id, conversation_id, role, content, created_at"


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _uuid() -> str:
    return str(uuid.uuid4())


class SQLiteStore:
    def __init__(self, path: str) -> None:
        self._path = path
        self._db: aiosqlite.Connection | None = None
        # One shared connection: writes that span statements must not interleave
        self._write_lock = asyncio.Lock()

    @property
    def db(self) -> aiosqlite.Connection:
        """Return the database connection, raising if not initialized."""
        if self._db is None:
            raise RuntimeError("SQLiteStore not initialized, call initialize() first")
        return self._db

    async def initialize(self) -> None:
        self._db = await aiosqlite.connect(self._path)
        self._db.row_factory = aiosqlite.Row
        await self._db.execute("PRAGMA foreign_keys = ON")
        await self._db.executescript(SCHEMA_SQL)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    async def _write(self, statements: list[tuple[str, tuple]], action: str) -> None:
        """Run statements in one transaction; roll back and raise PersistenceError on failure."""
        async with self._write_lock:
            try:
                for sql, params in statements:
                    await self.db.execute(sql, params)
                await self.db.commit()
            except aiosqlite.Error as e:
                await self.db.rollback()
                logger.exception("Failed to %s", action)
                raise PersistenceError(f"Failed to {action}", details=str(e)) from e

    # --- Conversations ---

    async def create_conversation(self, user_id: str, title: str | None = None) -> dict:
        cid = _uuid()
        now = _now()
        await self._write(
            [
                (
                    "INSERT INTO conversations (id, user_id, title, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
                    (cid, user_id, title, now, now),
                )
            ],
            "create conversation",
        )
        return {"id": cid, "user_id": user_id, "title": title, "created_at": now, "updated_at": now}

    async def list_conversations(self, user_id: str) -> list[dict]:
        cursor = await self.db.execute(
            f"SELECT {CONVERSATION_COLUMNS} FROM conversations WHERE user_id = ? ORDER BY updated_at DESC",
            (user_id,),
        )
        rows = await cursor.fetchall()
        return [dict(r) for r in rows]

    async def get_conversation(self, conversation_id: str) -> dict | None:
        cursor = await self.db.execute(
            f"SELECT {CONVERSATION_COLUMNS} FROM conversations WHERE id = ?",
            (conversation_id,),
        )
        row = await cursor.fetchone()
        return dict(row) if row else None

    async def update_conversation_title(self, conversation_id: str, title: str) -> None:
        await self._write(
            [
                (
                    "UPDATE conversations SET title = ?, updated_at = ? WHERE id = ?",
                    (title, _now(), conversation_id),
                )
            ],
            "update conversation title",
        )

    async def delete_conversation(self, conversation_id: str) -> None:
        await self._write(
            [("DELETE FROM conversations WHERE id = ?", (conversation_id,))],
            "delete conversation",
        )

    # --- Messages ---

    async def add_message(self, conversation_id: str, role: Role | str, content: str) -> dict:
        """Append a message and bump the conversation's updated_at atomically."""
        role = Role.parse(role)
        mid = _uuid()
        now = _now()
        await self._write(
            [
                (
                    f"INSERT INTO messages ({MESSAGE_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
                    (mid, conversation_id, role.value, content, now),
                ),
                (
                    "UPDATE conversations SET updated_at = ? WHERE id = ?",
                    (now, conversation_id),
                ),
            ],
            "create message",
        )
        return {
            "id": mid,
            "conversation_id": conversation_id,
            "role": role.value,
            "content": content,
            "created_at": now,
        }

    async def get_messages(self, conversation_id: str) -> list[dict]:
        cursor = await self.db.execute(
            f"SELECT {MESSAGE_COLUMNS} FROM messages WHERE conversation_id = ? ORDER BY created_at, rowid",
            (conversation_id,),
        )
        rows = await cursor.fetchall()
        return [dict(r) for r in rows]
