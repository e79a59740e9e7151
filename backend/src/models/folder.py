"""Folder Pydantic models (hierarchical)."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class Folder(BaseModel):
    id: str
    name: str
    parent_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class FolderCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=256)
    parent_id: Optional[str] = None


class FolderRename(BaseModel):
    name: str = Field(..., min_length=1, max_length=256)


class NoteMove(BaseModel):
    """Move a note into a folder, or unfile it with ``folder_id=None``."""

    folder_id: Optional[str] = None


class FolderDeleteResult(BaseModel):
    """Side effects of deleting a folder."""

    folder_id: str
    notes_unfiled: int
    folders_reparented: int


__all__ = ["Folder", "FolderCreate", "FolderRename", "NoteMove", "FolderDeleteResult"]
