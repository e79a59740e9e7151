"""Pydantic models for suggested edits awaiting user approval."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

EditType = Literal["create_note", "add_block", "update_block", "delete_block", "update_title"]
EditStatus = Literal["pending", "accepted", "rejected"]


class SuggestedEdit(BaseModel):
    """A proposed change to a user-managed note.

    ``before`` and ``after`` are snapshots of the affected fields
    (``title`` and/or ``content``). Once accepted or rejected an edit
    never returns to ``pending``.
    """

    id: str
    note_id: str
    session_id: Optional[str] = None
    edit_type: EditType
    block_id: Optional[str] = None
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None
    status: EditStatus = "pending"
    created_at: datetime
    resolved_at: Optional[datetime] = Field(None, description="When the edit left pending")


__all__ = ["EditType", "EditStatus", "SuggestedEdit"]
