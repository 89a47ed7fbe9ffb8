"""SQLite history store for saved conversations."""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Protocol

import aiosqlite

from ..config import resolve_db_path, retention_days
from ..errors import Unauthenticated
from ..logging_config import get_logger
from ..models import AuthUser, Message, SavedConversation

logger = get_logger(__name__)

Clock = Callable[[], datetime]


class CurrentUserSource(Protocol):
    """Anything that knows who is signed in (the auth provider)."""

    @property
    def current_user(self) -> AuthUser | None:
        ...


class IHistoryStore(Protocol):
    """Durable transcripts of the signed-in user's conversations."""

    async def init(self) -> None:
        """Open the database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    async def save(self, conversation: SavedConversation) -> str:
        """Save a transcript; returns its id."""
        ...

    async def list(self) -> list[SavedConversation]:
        """Transcripts of the current user, newest first, after a retention sweep."""
        ...

    async def get(self, conversation_id: str) -> SavedConversation | None:
        """One transcript of the current user by id."""
        ...

    async def delete(self, conversation_id: str) -> None:
        """Delete one transcript."""
        ...

    async def delete_old(self) -> int:
        """Delete transcripts past retention; returns how many."""
        ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class HistoryStore:
    """SQLite history store, one partition per signed-in user."""

    def __init__(
        self,
        auth: CurrentUserSource,
        db_path: str | Path | None = None,
        retention: int | None = None,
        clock: Clock = _utc_now,
    ):
        self._auth = auth
        self._db_path = resolve_db_path(db_path)
        self._retention = timedelta(
            days=retention if retention is not None else retention_days()
        )
        self._clock = clock
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Open the database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _owner_id(self) -> str | None:
        user = self._auth.current_user
        return user.uid if user else None

    def _connection(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("History store not initialized")
        return self._conn

    async def save(self, conversation: SavedConversation) -> str:
        """Save a transcript; returns its id."""
        conn = self._connection()
        owner_id = self._owner_id()
        if owner_id is None:
            raise Unauthenticated()

        created_at = self._clock()
        await conn.execute(
            """
            INSERT OR REPLACE INTO saved_conversations
            (owner_id, id, title, saved_at, user_key, conversation_id, messages, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                owner_id,
                conversation.id,
                conversation.title,
                conversation.saved_at,
                conversation.user_key,
                conversation.conversation_id,
                json.dumps([m.to_dict() for m in conversation.messages]),
                created_at.isoformat(timespec="microseconds"),
            ),
        )
        await conn.commit()

        conversation.created_at = created_at
        logger.info("Conversation %s saved (%d messages)", conversation.id, len(conversation.messages))
        return conversation.id

    async def list(self) -> list[SavedConversation]:
        """Transcripts of the current user, newest first, after a retention sweep."""
        conn = self._connection()
        owner_id = self._owner_id()
        if owner_id is None:
            return []

        await self.delete_old()

        cursor = await conn.execute(
            """
            SELECT id, title, saved_at, user_key, conversation_id, messages, created_at
            FROM saved_conversations
            WHERE owner_id = ?
            ORDER BY created_at DESC
            """,
            (owner_id,),
        )
        rows = await cursor.fetchall()

        conversations = []
        for row in rows:
            try:
                messages = [Message.from_dict(m) for m in json.loads(row[5])]
            except (ValueError, KeyError, TypeError) as e:
                logger.error("Skipping unreadable conversation %s: %s", row[0], e)
                continue

            conversations.append(
                SavedConversation(
                    id=row[0],
                    title=row[1],
                    saved_at=row[2],
                    user_key=row[3],
                    conversation_id=row[4],
                    messages=messages,
                    created_at=datetime.fromisoformat(row[6]),
                )
            )

        return conversations

    async def get(self, conversation_id: str) -> SavedConversation | None:
        """One transcript of the current user by id."""
        for conversation in await self.list():
            if conversation.id == conversation_id:
                return conversation
        return None

    async def delete(self, conversation_id: str) -> None:
        """Delete one transcript."""
        conn = self._connection()
        owner_id = self._owner_id()
        if owner_id is None:
            raise Unauthenticated()

        await conn.execute(
            "DELETE FROM saved_conversations WHERE owner_id = ? AND id = ?",
            (owner_id, conversation_id),
        )
        await conn.commit()

    async def delete_old(self) -> int:
        """Delete transcripts past retention; returns how many."""
        conn = self._connection()
        owner_id = self._owner_id()
        if owner_id is None:
            return 0

        cutoff = (self._clock() - self._retention).isoformat(timespec="microseconds")
        cursor = await conn.execute(
            "DELETE FROM saved_conversations WHERE owner_id = ? AND created_at < ?",
            (owner_id, cutoff),
        )
        await conn.commit()

        deleted = cursor.rowcount
        if deleted:
            logger.info("Retention sweep removed %d conversations", deleted)
        return deleted
