"""SQLite database helpers for the notes, folders and Lore schema."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
import sqlite3
from typing import Iterable

from .config import get_config

DDL_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS folders (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        parent_id TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_folders_parent ON folders(parent_id)",
    "CREATE INDEX IF NOT EXISTS idx_folders_created ON folders(created_at)",
    """
    CREATE TABLE IF NOT EXISTS notes (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        content TEXT NOT NULL DEFAULT '[]',
        managed_by TEXT CHECK (managed_by IN ('ai', 'user')),
        source_url TEXT,
        folder_id TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        last_tagged_at TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_notes_updated ON notes(updated_at DESC)",
    "CREATE INDEX IF NOT EXISTS idx_notes_folder ON notes(folder_id)",
    """
    CREATE TABLE IF NOT EXISTS note_blocks (
        note_id TEXT NOT NULL,
        block_id TEXT NOT NULL,
        type TEXT NOT NULL,
        parent_id TEXT,
        position REAL NOT NULL,
        text TEXT NOT NULL,
        PRIMARY KEY (note_id, block_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_blocks_note_order ON note_blocks(note_id, position)",
    """
    CREATE VIRTUAL TABLE IF NOT EXISTS note_blocks_fts USING fts5(
        note_id UNINDEXED,
        block_id UNINDEXED,
        text,
        tokenize='porter unicode61',
        prefix='2 3'
    )
    """,
    """
    CREATE VIRTUAL TABLE IF NOT EXISTS note_titles_fts USING fts5(
        note_id UNINDEXED,
        title,
        tokenize='porter unicode61',
        prefix='2 3'
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS suggested_edits (
        id TEXT PRIMARY KEY,
        note_id TEXT NOT NULL,
        session_id TEXT,
        edit_type TEXT NOT NULL,
        block_id TEXT,
        before TEXT,
        after TEXT,
        status TEXT NOT NULL DEFAULT 'pending',
        created_at TEXT NOT NULL,
        resolved_at TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_edits_note ON suggested_edits(note_id, status)",
    """
    CREATE TABLE IF NOT EXISTS lore_sessions (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_sessions_updated ON lore_sessions(updated_at DESC)",
    """
    CREATE TABLE IF NOT EXISTS lore_messages (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        id TEXT NOT NULL UNIQUE,
        session_id TEXT NOT NULL,
        role TEXT NOT NULL CHECK (role IN ('user', 'assistant')),
        content TEXT NOT NULL,
        thinking_content TEXT,
        tool_calls TEXT,
        created_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_messages_session ON lore_messages(session_id, seq)",
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def utcnow_iso() -> str:
    return utcnow().isoformat()


class DatabaseService:
    """Manage SQLite connections and schema initialization."""

    def __init__(self, db_path: str | Path | None = None):
        self.db_path = Path(db_path) if db_path else get_config().database_path

    def _ensure_directory(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def connect(self) -> sqlite3.Connection:
        """Return a sqlite3 connection with the proper data directory created."""
        self._ensure_directory()
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self, statements: Iterable[str] | None = None) -> Path:
        """Create all schema artifacts."""
        conn = self.connect()
        try:
            with conn:
                for statement in statements or DDL_STATEMENTS:
                    conn.execute(statement)
        finally:
            conn.close()
        return self.db_path


def init_database(db_path: str | Path | None = None) -> Path:
    """Convenience wrapper used at application startup."""
    return DatabaseService(db_path).initialize()


__all__ = ["DatabaseService", "init_database", "utcnow", "utcnow_iso"]
