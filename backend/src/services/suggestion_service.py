"""Suggestion Service - pending edits to user-managed notes."""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from ..models.suggested_edit import EditType, SuggestedEdit
from .database import DatabaseService, utcnow_iso
from .note_service import NoteService

logger = logging.getLogger(__name__)

_EDIT_COLUMNS = (
    "id, note_id, session_id, edit_type, block_id, before, after, status, created_at, resolved_at"
)


class SuggestionNotFoundError(LookupError):
    """Raised when a suggested edit does not exist."""

    def __init__(self, edit_id: str):
        super().__init__(f"Suggested edit not found: {edit_id}")
        self.edit_id = edit_id


class SuggestionConflictError(Exception):
    """Raised when resolving an edit that is no longer pending."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


def _load_json(value: Optional[str]) -> Optional[Dict[str, Any]]:
    return json.loads(value) if value else None


class SuggestionService:
    """Create, list and resolve suggested edits."""

    def __init__(
        self,
        db_service: DatabaseService | None = None,
        note_service: NoteService | None = None,
    ):
        self._db = db_service or DatabaseService()
        self._notes = note_service or NoteService(self._db)

    @staticmethod
    def _row_to_edit(row: sqlite3.Row) -> SuggestedEdit:
        return SuggestedEdit(
            id=row["id"],
            note_id=row["note_id"],
            session_id=row["session_id"],
            edit_type=row["edit_type"],
            block_id=row["block_id"],
            before=_load_json(row["before"]),
            after=_load_json(row["after"]),
            status=row["status"],
            created_at=datetime.fromisoformat(row["created_at"]),
            resolved_at=datetime.fromisoformat(row["resolved_at"]) if row["resolved_at"] else None,
        )

    def create_suggestion(
        self,
        note_id: str,
        edit_type: EditType,
        before: Optional[Dict[str, Any]],
        after: Optional[Dict[str, Any]],
        session_id: Optional[str] = None,
        block_id: Optional[str] = None,
    ) -> SuggestedEdit:
        edit_id = str(uuid.uuid4())
        conn = self._db.connect()
        try:
            with conn:
                conn.execute(
                    f"""
                    INSERT INTO suggested_edits ({_EDIT_COLUMNS})
                    VALUES (?, ?, ?, ?, ?, ?, ?, 'pending', ?, NULL)
                    """,
                    (
                        edit_id,
                        note_id,
                        session_id,
                        edit_type,
                        block_id,
                        json.dumps(before) if before is not None else None,
                        json.dumps(after) if after is not None else None,
                        utcnow_iso(),
                    ),
                )
            logger.info(
                f"Suggested {edit_type} for note {note_id}",
                extra={"edit_id": edit_id, "session_id": session_id},
            )
        finally:
            conn.close()
        return self.get_suggestion(edit_id)

    def get_suggestion(self, edit_id: str) -> SuggestedEdit:
        conn = self._db.connect()
        try:
            row = conn.execute(
                f"SELECT {_EDIT_COLUMNS} FROM suggested_edits WHERE id = ?", (edit_id,)
            ).fetchone()
        finally:
            conn.close()
        if row is None:
            raise SuggestionNotFoundError(edit_id)
        return self._row_to_edit(row)

    def list_pending(self, note_id: str) -> List[SuggestedEdit]:
        """Pending edits for a note, oldest first."""
        conn = self._db.connect()
        try:
            rows = conn.execute(
                f"""
                SELECT {_EDIT_COLUMNS} FROM suggested_edits
                WHERE note_id = ? AND status = 'pending'
                ORDER BY created_at ASC
                """,
                (note_id,),
            ).fetchall()
            return [self._row_to_edit(row) for row in rows]
        finally:
            conn.close()

    def _resolve(
        self,
        edit_id: str,
        status: str,
        on_resolve: Optional[Callable[[sqlite3.Connection, SuggestedEdit], None]] = None,
    ) -> SuggestedEdit:
        """Move a pending edit to a terminal status, or raise.

        ``on_resolve`` runs inside the same transaction as the status change;
        if it raises, the edit stays pending.
        """
        conn = self._db.connect()
        try:
            with conn:
                row = conn.execute(
                    f"SELECT {_EDIT_COLUMNS} FROM suggested_edits WHERE id = ?", (edit_id,)
                ).fetchone()
                if row is None:
                    raise SuggestionNotFoundError(edit_id)
                edit = self._row_to_edit(row)

                cursor = conn.execute(
                    """
                    UPDATE suggested_edits SET status = ?, resolved_at = ?
                    WHERE id = ? AND status = 'pending'
                    """,
                    (status, utcnow_iso(), edit_id),
                )
                if cursor.rowcount == 0:
                    current = conn.execute(
                        "SELECT status FROM suggested_edits WHERE id = ?", (edit_id,)
                    ).fetchone()["status"]
                    raise SuggestionConflictError(
                        f"Suggested edit {edit_id} is already {current}",
                        {"edit_id": edit_id, "status": current},
                    )
                if on_resolve is not None:
                    on_resolve(conn, edit)
        finally:
            conn.close()

        return self.get_suggestion(edit_id)

    def _apply_after(self, conn: sqlite3.Connection, edit: SuggestedEdit) -> None:
        after = edit.after or {}
        title = after.get("title")
        content = after.get("content")
        if title is None and content is None:
            return
        if not self._notes.apply_patch(conn, edit.note_id, content=content, title=title):
            raise SuggestionConflictError(
                f"Note {edit.note_id} no longer exists",
                {"edit_id": edit.id, "note_id": edit.note_id},
            )

    def accept(self, edit_id: str) -> SuggestedEdit:
        """Accept a pending edit and apply its ``after`` snapshot to the note.

        The status change and the note write commit together.
        """
        edit = self._resolve(edit_id, "accepted", on_resolve=self._apply_after)
        logger.info(f"Applied suggested edit {edit_id} to note {edit.note_id}")
        return edit

    def reject(self, edit_id: str) -> SuggestedEdit:
        return self._resolve(edit_id, "rejected")


# Singleton instance for dependency injection
_suggestion_service: SuggestionService | None = None


def get_suggestion_service() -> SuggestionService:
    """Get or create the suggestion service singleton."""
    global _suggestion_service
    if _suggestion_service is None:
        _suggestion_service = SuggestionService()
    return _suggestion_service


__all__ = [
    "SuggestionService",
    "SuggestionConflictError",
    "SuggestionNotFoundError",
    "get_suggestion_service",
]
