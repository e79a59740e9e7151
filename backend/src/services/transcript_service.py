"""Transcript Service - Lore sessions and their append-only message log."""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from datetime import datetime
from typing import List, Literal, Optional, Sequence

from ..models.lore import DEFAULT_SESSION_TITLE, LoreSession, ToolCallRecord, TranscriptMessage
from .database import DatabaseService, utcnow_iso

logger = logging.getLogger(__name__)


class TranscriptService:
    """Service for Lore session and message persistence."""

    def __init__(self, db_service: DatabaseService | None = None):
        self._db = db_service or DatabaseService()

    @staticmethod
    def _row_to_session(row: sqlite3.Row) -> LoreSession:
        return LoreSession(
            id=row["id"],
            title=row["title"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    @staticmethod
    def _row_to_message(row: sqlite3.Row) -> TranscriptMessage:
        tool_calls = None
        if row["tool_calls"]:
            tool_calls = [ToolCallRecord(**record) for record in json.loads(row["tool_calls"])]
        return TranscriptMessage(
            id=row["id"],
            session_id=row["session_id"],
            role=row["role"],
            content=row["content"],
            thinking_content=row["thinking_content"],
            tool_calls=tool_calls,
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def create_session(self, title: Optional[str] = None) -> LoreSession:
        session_id = str(uuid.uuid4())
        now = utcnow_iso()
        conn = self._db.connect()
        try:
            with conn:
                conn.execute(
                    "INSERT INTO lore_sessions (id, title, created_at, updated_at) VALUES (?, ?, ?, ?)",
                    (session_id, (title or "").strip() or DEFAULT_SESSION_TITLE, now, now),
                )
            logger.info(f"Created Lore session {session_id}")
            return self._fetch_session(conn, session_id)
        finally:
            conn.close()

    def _fetch_session(self, conn: sqlite3.Connection, session_id: str) -> Optional[LoreSession]:
        row = conn.execute(
            "SELECT id, title, created_at, updated_at FROM lore_sessions WHERE id = ?",
            (session_id,),
        ).fetchone()
        return self._row_to_session(row) if row else None

    def list_sessions(self) -> List[LoreSession]:
        """Sessions, most recently active first."""
        conn = self._db.connect()
        try:
            rows = conn.execute(
                "SELECT id, title, created_at, updated_at FROM lore_sessions ORDER BY updated_at DESC"
            ).fetchall()
            return [self._row_to_session(row) for row in rows]
        finally:
            conn.close()

    def get_session(self, session_id: str) -> Optional[LoreSession]:
        conn = self._db.connect()
        try:
            return self._fetch_session(conn, session_id)
        finally:
            conn.close()

    def rename_session(self, session_id: str, title: str) -> Optional[LoreSession]:
        """Rename a session. A blank title resets it to the default."""
        cleaned = (title or "").strip() or DEFAULT_SESSION_TITLE
        conn = self._db.connect()
        try:
            with conn:
                cursor = conn.execute(
                    "UPDATE lore_sessions SET title = ?, updated_at = ? WHERE id = ?",
                    (cleaned, utcnow_iso(), session_id),
                )
            if cursor.rowcount == 0:
                return None
            return self._fetch_session(conn, session_id)
        finally:
            conn.close()

    def delete_session(self, session_id: str) -> bool:
        """Delete a session together with all of its messages."""
        conn = self._db.connect()
        try:
            with conn:
                conn.execute("DELETE FROM lore_messages WHERE session_id = ?", (session_id,))
                cursor = conn.execute("DELETE FROM lore_sessions WHERE id = ?", (session_id,))
            deleted = cursor.rowcount > 0
            if deleted:
                logger.info(f"Deleted Lore session {session_id}")
            return deleted
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def list_messages(self, session_id: str) -> List[TranscriptMessage]:
        """Messages in insertion order."""
        conn = self._db.connect()
        try:
            rows = conn.execute(
                """
                SELECT id, session_id, role, content, thinking_content, tool_calls, created_at
                FROM lore_messages
                WHERE session_id = ?
                ORDER BY seq ASC
                """,
                (session_id,),
            ).fetchall()
            return [self._row_to_message(row) for row in rows]
        finally:
            conn.close()

    def add_message(
        self,
        session_id: str,
        role: Literal["user", "assistant"],
        content: str,
        thinking_content: Optional[str] = None,
        tool_calls: Optional[Sequence[ToolCallRecord]] = None,
    ) -> TranscriptMessage:
        """Append a message and bump the session's ``updated_at``."""
        message_id = str(uuid.uuid4())
        now = utcnow_iso()
        serialized_calls = (
            json.dumps([record.model_dump(mode="json") for record in tool_calls], default=str)
            if tool_calls
            else None
        )

        conn = self._db.connect()
        try:
            with conn:
                conn.execute(
                    """
                    INSERT INTO lore_messages
                        (id, session_id, role, content, thinking_content, tool_calls, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (message_id, session_id, role, content, thinking_content, serialized_calls, now),
                )
                conn.execute(
                    "UPDATE lore_sessions SET updated_at = ? WHERE id = ?",
                    (now, session_id),
                )
            row = conn.execute(
                """
                SELECT id, session_id, role, content, thinking_content, tool_calls, created_at
                FROM lore_messages WHERE id = ?
                """,
                (message_id,),
            ).fetchone()
            return self._row_to_message(row)
        finally:
            conn.close()


# Singleton instance for dependency injection
_transcript_service: TranscriptService | None = None


def get_transcript_service() -> TranscriptService:
    """Get or create the transcript service singleton."""
    global _transcript_service
    if _transcript_service is None:
        _transcript_service = TranscriptService()
    return _transcript_service


__all__ = ["TranscriptService", "get_transcript_service"]
