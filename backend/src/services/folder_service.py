"""Folder Service - hierarchical folders and note filing."""

from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import datetime
from typing import List, Optional

from ..models.folder import Folder, FolderDeleteResult
from .database import DatabaseService, utcnow_iso

logger = logging.getLogger(__name__)


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValueError("Folder name cannot be empty")
    return cleaned


class FolderService:
    """Service for folder CRUD operations."""

    def __init__(self, db_service: DatabaseService | None = None):
        self._db = db_service or DatabaseService()

    @staticmethod
    def _row_to_folder(row: sqlite3.Row) -> Folder:
        return Folder(
            id=row["id"],
            name=row["name"],
            parent_id=row["parent_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _fetch(self, conn: sqlite3.Connection, folder_id: str) -> Optional[Folder]:
        row = conn.execute(
            "SELECT id, name, parent_id, created_at, updated_at FROM folders WHERE id = ?",
            (folder_id,),
        ).fetchone()
        return self._row_to_folder(row) if row else None

    def list_folders(self) -> List[Folder]:
        conn = self._db.connect()
        try:
            rows = conn.execute(
                "SELECT id, name, parent_id, created_at, updated_at FROM folders ORDER BY name COLLATE NOCASE"
            ).fetchall()
            return [self._row_to_folder(row) for row in rows]
        finally:
            conn.close()

    def get_folder(self, folder_id: str) -> Optional[Folder]:
        conn = self._db.connect()
        try:
            return self._fetch(conn, folder_id)
        finally:
            conn.close()

    def create_folder(self, name: str, parent_id: Optional[str] = None) -> Folder:
        """Create a folder. Raises ValueError for a blank name or unknown parent."""
        cleaned = _clean_name(name)
        folder_id = str(uuid.uuid4())
        now = utcnow_iso()

        conn = self._db.connect()
        try:
            with conn:
                if parent_id and self._fetch(conn, parent_id) is None:
                    raise ValueError(f"Parent folder not found: {parent_id}")
                conn.execute(
                    """
                    INSERT INTO folders (id, name, parent_id, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (folder_id, cleaned, parent_id or None, now, now),
                )
            logger.info(f"Created folder {folder_id}", extra={"folder_id": folder_id, "parent_id": parent_id})
            return self._fetch(conn, folder_id)
        finally:
            conn.close()

    def rename_folder(self, folder_id: str, name: str) -> Optional[Folder]:
        cleaned = _clean_name(name)
        conn = self._db.connect()
        try:
            with conn:
                cursor = conn.execute(
                    "UPDATE folders SET name = ?, updated_at = ? WHERE id = ?",
                    (cleaned, utcnow_iso(), folder_id),
                )
            if cursor.rowcount == 0:
                return None
            return self._fetch(conn, folder_id)
        finally:
            conn.close()

    def delete_folder(self, folder_id: str) -> Optional[FolderDeleteResult]:
        """Delete a folder.

        Notes in the folder are unfiled and child folders move up to the
        deleted folder's parent. Returns None if the folder does not exist.
        """
        conn = self._db.connect()
        try:
            with conn:
                folder = self._fetch(conn, folder_id)
                if folder is None:
                    return None

                unfiled = conn.execute(
                    "UPDATE notes SET folder_id = NULL WHERE folder_id = ?",
                    (folder_id,),
                ).rowcount
                reparented = conn.execute(
                    "UPDATE folders SET parent_id = ?, updated_at = ? WHERE parent_id = ?",
                    (folder.parent_id, utcnow_iso(), folder_id),
                ).rowcount
                conn.execute("DELETE FROM folders WHERE id = ?", (folder_id,))

            logger.info(
                f"Deleted folder {folder_id}",
                extra={"notes_unfiled": unfiled, "folders_reparented": reparented},
            )
            return FolderDeleteResult(
                folder_id=folder_id,
                notes_unfiled=unfiled,
                folders_reparented=reparented,
            )
        finally:
            conn.close()

    def move_note(self, note_id: str, folder_id: Optional[str]) -> bool:
        """File a note under ``folder_id`` or unfile it when ``None``.

        Returns False if the note does not exist; raises ValueError for an
        unknown folder.
        """
        conn = self._db.connect()
        try:
            with conn:
                if folder_id and self._fetch(conn, folder_id) is None:
                    raise ValueError(f"Folder not found: {folder_id}")
                cursor = conn.execute(
                    "UPDATE notes SET folder_id = ? WHERE id = ?",
                    (folder_id or None, note_id),
                )
            return cursor.rowcount > 0
        finally:
            conn.close()


# Singleton instance for dependency injection
_folder_service: FolderService | None = None


def get_folder_service() -> FolderService:
    """Get or create the folder service singleton."""
    global _folder_service
    if _folder_service is None:
        _folder_service = FolderService()
    return _folder_service


__all__ = ["FolderService", "get_folder_service"]
