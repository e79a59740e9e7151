"""Note Service - CRUD for notes plus the per-block search index."""

from __future__ import annotations

import json
import logging
import re
import sqlite3
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..models.note import BlockSearchHit, ManagedBy, Note, NoteSummary
from .blocks import flatten_blocks, make_block, new_block_id
from .database import DatabaseService, utcnow_iso

logger = logging.getLogger(__name__)

# \w is Unicode-aware, matching the unicode61 tokenizer of the FTS tables
TOKEN_PATTERN = re.compile(r"\w+\*?")

_NOTE_COLUMNS = (
    "id, title, content, managed_by, source_url, folder_id, "
    "created_at, updated_at, last_tagged_at"
)


def _prepare_match_query(query: str) -> str:
    """
    Sanitize user-supplied query text for FTS5 MATCH usage.

    Keeps word tokens in any script (with an optional trailing '*' for prefix
    search) and quotes each one to neutralize MATCH operators.
    """
    terms: List[str] = []
    for match in TOKEN_PATTERN.finditer(query or ""):
        token = match.group()
        has_prefix_star = token.endswith("*")
        core = token[:-1] if has_prefix_star else token
        if not core:
            continue
        terms.append(f'"{core}"{"*" if has_prefix_star else ""}')

    if not terms:
        raise ValueError("Search query must contain at least one word")

    return " ".join(terms)


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class NoteService:
    """Service for note storage, ownership and block search."""

    def __init__(self, db_service: DatabaseService | None = None):
        self._db = db_service or DatabaseService()

    @staticmethod
    def _row_to_note(row: sqlite3.Row) -> Note:
        try:
            content = json.loads(row["content"] or "[]")
        except json.JSONDecodeError:
            logger.warning(f"Note {row['id']} has unreadable content; treating as empty")
            content = []
        return Note(
            id=row["id"],
            title=row["title"],
            content=content,
            managed_by=row["managed_by"],
            source_url=row["source_url"],
            folder_id=row["folder_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            last_tagged_at=_parse_ts(row["last_tagged_at"]),
        )

    @staticmethod
    def _sync_blocks(conn: sqlite3.Connection, note_id: str, content: List[Dict[str, Any]]) -> int:
        """Replace the denormalized block rows for a note. Returns rows written."""
        conn.execute("DELETE FROM note_blocks WHERE note_id = ?", (note_id,))
        conn.execute("DELETE FROM note_blocks_fts WHERE note_id = ?", (note_id,))

        rows = flatten_blocks(content)
        for row in rows:
            conn.execute(
                """
                INSERT OR REPLACE INTO note_blocks (note_id, block_id, type, parent_id, position, text)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (note_id, row["block_id"], row["type"], row["parent_id"], row["position"], row["text"]),
            )
            if row["text"].strip():
                conn.execute(
                    "INSERT INTO note_blocks_fts (note_id, block_id, text) VALUES (?, ?, ?)",
                    (note_id, row["block_id"], row["text"]),
                )
        return len(rows)

    @staticmethod
    def _sync_title(conn: sqlite3.Connection, note_id: str, title: str) -> None:
        conn.execute("DELETE FROM note_titles_fts WHERE note_id = ?", (note_id,))
        conn.execute(
            "INSERT INTO note_titles_fts (note_id, title) VALUES (?, ?)",
            (note_id, title),
        )

    def _fetch(self, conn: sqlite3.Connection, note_id: str) -> Optional[Note]:
        row = conn.execute(
            f"SELECT {_NOTE_COLUMNS} FROM notes WHERE id = ?", (note_id,)
        ).fetchone()
        return self._row_to_note(row) if row else None

    def list_notes(self, folder_id: Optional[str] = None) -> List[NoteSummary]:
        """List notes, most recently updated first."""
        conn = self._db.connect()
        try:
            query = "SELECT id, title, managed_by, folder_id, created_at, updated_at FROM notes"
            params: List[Any] = []
            if folder_id:
                query += " WHERE folder_id = ?"
                params.append(folder_id)
            query += " ORDER BY updated_at DESC"

            return [
                NoteSummary(
                    id=row["id"],
                    title=row["title"],
                    managed_by=row["managed_by"],
                    folder_id=row["folder_id"],
                    created_at=datetime.fromisoformat(row["created_at"]),
                    updated_at=datetime.fromisoformat(row["updated_at"]),
                )
                for row in conn.execute(query, params).fetchall()
            ]
        finally:
            conn.close()

    def get_note(self, note_id: str) -> Optional[Note]:
        conn = self._db.connect()
        try:
            return self._fetch(conn, note_id)
        finally:
            conn.close()

    def create_note(
        self,
        title: str,
        content: Optional[List[Dict[str, Any]]] = None,
        managed_by: ManagedBy = "ai",
        folder_id: Optional[str] = None,
        source_url: Optional[str] = None,
    ) -> Note:
        """Create a note. Empty content gets a single blank paragraph."""
        note_id = str(uuid.uuid4())
        now = utcnow_iso()
        blocks = content or [make_block(new_block_id("p"), "paragraph", "")]

        conn = self._db.connect()
        try:
            with conn:
                conn.execute(
                    f"""
                    INSERT INTO notes ({_NOTE_COLUMNS})
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, NULL)
                    """,
                    (note_id, title, json.dumps(blocks), managed_by, source_url, folder_id, now, now),
                )
                self._sync_blocks(conn, note_id, blocks)
                self._sync_title(conn, note_id, title)
            logger.info(f"Created note {note_id}", extra={"note_id": note_id, "managed_by": managed_by})
            return self._fetch(conn, note_id)
        finally:
            conn.close()

    def update_note(
        self,
        note_id: str,
        content: Optional[List[Dict[str, Any]]] = None,
        title: Optional[str] = None,
    ) -> Optional[Note]:
        """Patch a note's content and/or title. Returns None if the note is gone.

        This is a whole-document write: concurrent writers are last-writer-wins.
        """
        conn = self._db.connect()
        try:
            with conn:
                if not self.apply_patch(conn, note_id, content=content, title=title):
                    return None
            return self._fetch(conn, note_id)
        finally:
            conn.close()

    def apply_patch(
        self,
        conn: sqlite3.Connection,
        note_id: str,
        content: Optional[List[Dict[str, Any]]] = None,
        title: Optional[str] = None,
    ) -> bool:
        """Write a content/title patch on the caller's connection.

        Does not commit, so callers can fold it into a larger transaction.
        Returns False if the note does not exist.
        """
        exists = conn.execute("SELECT 1 FROM notes WHERE id = ?", (note_id,)).fetchone()
        if not exists:
            return False

        assignments = ["updated_at = ?"]
        params: List[Any] = [utcnow_iso()]
        if content is not None:
            assignments.append("content = ?")
            params.append(json.dumps(content))
        if title is not None:
            assignments.append("title = ?")
            params.append(title)
        params.append(note_id)

        conn.execute(f"UPDATE notes SET {', '.join(assignments)} WHERE id = ?", params)
        if content is not None:
            self._sync_blocks(conn, note_id, content)
        if title is not None:
            self._sync_title(conn, note_id, title)
        return True

    def set_managed_by(self, note_id: str, managed_by: ManagedBy) -> Optional[Note]:
        conn = self._db.connect()
        try:
            with conn:
                cursor = conn.execute(
                    "UPDATE notes SET managed_by = ?, updated_at = ? WHERE id = ?",
                    (managed_by, utcnow_iso(), note_id),
                )
            if cursor.rowcount == 0:
                return None
            logger.info(f"Note {note_id} is now managed by {managed_by}")
            return self._fetch(conn, note_id)
        finally:
            conn.close()

    def delete_note(self, note_id: str) -> bool:
        """Delete a note with its block index rows and suggested edits."""
        conn = self._db.connect()
        try:
            with conn:
                conn.execute("DELETE FROM note_blocks WHERE note_id = ?", (note_id,))
                conn.execute("DELETE FROM note_blocks_fts WHERE note_id = ?", (note_id,))
                conn.execute("DELETE FROM note_titles_fts WHERE note_id = ?", (note_id,))
                conn.execute("DELETE FROM suggested_edits WHERE note_id = ?", (note_id,))
                cursor = conn.execute("DELETE FROM notes WHERE id = ?", (note_id,))

            deleted = cursor.rowcount > 0
            if deleted:
                logger.info(f"Deleted note {note_id}")
            return deleted
        finally:
            conn.close()

    def search_blocks(
        self,
        query: str,
        limit: int = 15,
        title_limit: int = 5,
    ) -> List[BlockSearchHit]:
        """Full-text search over block text, topped up with note-title matches.

        Title hits are only added for notes not already covered by a block hit.
        """
        match_query = _prepare_match_query(query)
        conn = self._db.connect()
        try:
            block_rows = conn.execute(
                """
                SELECT f.note_id, f.block_id, f.text, n.title, b.type
                FROM note_blocks_fts f
                JOIN notes n ON n.id = f.note_id
                LEFT JOIN note_blocks b ON b.note_id = f.note_id AND b.block_id = f.block_id
                WHERE note_blocks_fts MATCH ?
                ORDER BY bm25(note_blocks_fts)
                LIMIT ?
                """,
                (match_query, limit),
            ).fetchall()

            hits = [
                BlockSearchHit(
                    note_id=row["note_id"],
                    note_title=row["title"] or "Untitled",
                    block_id=row["block_id"],
                    text=row["text"],
                    type=row["type"] or "paragraph",
                    matched_on="content",
                )
                for row in block_rows
            ]
            covered = {hit.note_id for hit in hits}

            title_rows = conn.execute(
                """
                SELECT note_id, title FROM note_titles_fts
                WHERE note_titles_fts MATCH ?
                ORDER BY bm25(note_titles_fts)
                LIMIT ?
                """,
                (match_query, title_limit),
            ).fetchall()

            hits.extend(
                BlockSearchHit(
                    note_id=row["note_id"],
                    note_title=row["title"],
                    block_id=None,
                    text=row["title"],
                    type="title",
                    matched_on="title",
                )
                for row in title_rows
                if row["note_id"] not in covered
            )
            return hits
        finally:
            conn.close()


# Singleton instance for dependency injection
_note_service: NoteService | None = None


def get_note_service() -> NoteService:
    """Get or create the note service singleton."""
    global _note_service
    if _note_service is None:
        _note_service = NoteService()
    return _note_service


__all__ = ["NoteService", "get_note_service"]
