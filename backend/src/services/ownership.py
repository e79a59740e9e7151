"""Ownership gate for Lore's writes to existing notes.

AI-managed notes are edited in place. User-managed notes are never
touched directly; the change is stored as a pending suggested edit that
the user accepts or rejects.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ..models.note import Note
from .blocks import markdown_to_blocks
from .note_service import NoteService
from .suggestion_service import SuggestionService

logger = logging.getLogger(__name__)

NOTE_NOT_FOUND = {"error": "Note not found"}

PENDING_CONTENT_MESSAGE = (
    "This note is managed by the user. Your changes were saved as a suggested "
    "edit and will be applied once the user approves them."
)
PENDING_TITLE_MESSAGE = (
    "This note is managed by the user. The new title was saved as a suggested "
    "edit and will be applied once the user approves it."
)


class OwnershipGate:
    """Route note writes either to the store or to the suggestion queue."""

    def __init__(self, notes: NoteService, suggestions: SuggestionService):
        self._notes = notes
        self._suggestions = suggestions

    @staticmethod
    def _is_user_managed(note: Note) -> bool:
        return note.managed_by == "user"

    def update_content(
        self,
        note_id: str,
        markdown: str,
        title: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        note = self._notes.get_note(note_id)
        if note is None:
            return dict(NOTE_NOT_FOUND)

        blocks = markdown_to_blocks(markdown)

        if self._is_user_managed(note):
            after: Dict[str, Any] = {"content": blocks, "title": title or note.title}
            edit = self._suggestions.create_suggestion(
                note_id,
                "update_block",
                before={"content": note.content, "title": note.title},
                after=after,
                session_id=session_id,
            )
            return {"pendingApproval": True, "editId": edit.id, "message": PENDING_CONTENT_MESSAGE}

        self._notes.update_note(note_id, content=blocks, title=title or None)
        logger.info(f"Lore updated note {note_id}", extra={"blocks": len(blocks), "session_id": session_id})
        return {"success": True, "blocksUpdated": len(blocks)}

    def update_title(
        self,
        note_id: str,
        title: str,
        session_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        note = self._notes.get_note(note_id)
        if note is None:
            return dict(NOTE_NOT_FOUND)

        if self._is_user_managed(note):
            edit = self._suggestions.create_suggestion(
                note_id,
                "update_title",
                before={"title": note.title},
                after={"title": title},
                session_id=session_id,
            )
            return {"pendingApproval": True, "editId": edit.id, "message": PENDING_TITLE_MESSAGE}

        self._notes.update_note(note_id, title=title)
        return {"success": True, "title": title}


__all__ = ["OwnershipGate"]
