"""Note-related Pydantic models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ManagedBy = Literal["ai", "user"]

DEFAULT_MANAGED_BY: ManagedBy = "ai"


class Note(BaseModel):
    """Complete note with its block content."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "7f0c3a4e-3c1e-4f0e-9a43-1f6f1f3c2b10",
                "title": "Reading list",
                "content": [
                    {
                        "id": "b1",
                        "type": "heading",
                        "props": {"level": 2},
                        "content": [{"type": "text", "text": "Books", "styles": {}}],
                        "children": [],
                    }
                ],
                "managed_by": "user",
                "folder_id": None,
                "created_at": "2025-01-10T09:00:00Z",
                "updated_at": "2025-01-15T14:30:00Z",
            }
        }
    )

    id: str
    title: str
    content: List[Dict[str, Any]] = Field(default_factory=list, description="Block tree")
    managed_by: ManagedBy = Field(
        DEFAULT_MANAGED_BY,
        description="Who owns direct edits; notes with no recorded owner are AI-managed",
    )
    source_url: Optional[str] = None
    folder_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    last_tagged_at: Optional[datetime] = None

    @field_validator("managed_by", mode="before")
    @classmethod
    def _default_owner(cls, value: Optional[str]) -> str:
        return value or DEFAULT_MANAGED_BY

    @field_validator("content", mode="before")
    @classmethod
    def _tolerate_missing_content(cls, value: Any) -> List[Any]:
        if not isinstance(value, list):
            return []
        return [block for block in value if isinstance(block, dict)]


class NoteSummary(BaseModel):
    """Lightweight representation used for listings."""

    id: str
    title: str
    managed_by: ManagedBy = DEFAULT_MANAGED_BY
    folder_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("managed_by", mode="before")
    @classmethod
    def _default_owner(cls, value: Optional[str]) -> str:
        return value or DEFAULT_MANAGED_BY


class NoteCreate(BaseModel):
    """Request payload to create a note."""

    title: str = Field("Untitled", min_length=1, max_length=512)
    content: Optional[List[Dict[str, Any]]] = None
    markdown: Optional[str] = Field(
        None, description="Seed content as markdown (ignored when content is given)"
    )
    managed_by: ManagedBy = DEFAULT_MANAGED_BY
    folder_id: Optional[str] = None
    source_url: Optional[str] = None


class NoteUpdate(BaseModel):
    """Request payload for a user edit to a note."""

    title: Optional[str] = Field(None, min_length=1, max_length=512)
    content: Optional[List[Dict[str, Any]]] = None


class OwnershipUpdate(BaseModel):
    """Request payload to hand a note to the user or back to Lore."""

    managed_by: ManagedBy


class BlockSearchHit(BaseModel):
    """A search hit on a block's text or a note's title."""

    note_id: str
    note_title: str
    block_id: Optional[str] = None
    text: str
    type: str
    matched_on: Literal["content", "title"]


__all__ = [
    "ManagedBy",
    "DEFAULT_MANAGED_BY",
    "Note",
    "NoteSummary",
    "NoteCreate",
    "NoteUpdate",
    "OwnershipUpdate",
    "BlockSearchHit",
]
