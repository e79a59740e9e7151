"""Input models for the tools Lore can call.

Each tool is one variant keyed by its name. Field aliases are the
camelCase argument names the model sees in the generated JSON schema.
"""

from __future__ import annotations

from typing import Dict, Optional, Type

from pydantic import BaseModel, ConfigDict, Field


class ToolInput(BaseModel):
    """Base class for tool arguments."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ListNotesInput(ToolInput):
    pass


class ReadNoteInput(ToolInput):
    note_id: str = Field(..., alias="noteId", description="The note's ID")


class SearchNotesInput(ToolInput):
    query: str = Field(..., min_length=1, description="Text to search for")
    limit: int = Field(15, ge=1, le=50, description="Maximum block matches to return")


class CreateNoteInput(ToolInput):
    title: str = Field(..., min_length=1)
    content: Optional[str] = Field(None, description="Initial markdown content (optional)")
    folder_id: Optional[str] = Field(
        None, alias="folderId", description="Folder to place the note in (optional)"
    )


class UpdateNoteInput(ToolInput):
    note_id: str = Field(..., alias="noteId")
    markdown: str = Field(..., description="The complete new note content in markdown")
    title: Optional[str] = Field(
        None, description="New title (optional; omit to keep the existing one)"
    )


class UpdateTitleInput(ToolInput):
    note_id: str = Field(..., alias="noteId")
    title: str = Field(..., min_length=1)


class ListFoldersInput(ToolInput):
    pass


class CreateFolderInput(ToolInput):
    name: str = Field(..., min_length=1)
    parent_id: Optional[str] = Field(
        None, alias="parentId", description="Parent folder ID (optional; omit for top level)"
    )


class RenameFolderInput(ToolInput):
    folder_id: str = Field(..., alias="folderId")
    name: str = Field(..., min_length=1)


class DeleteFolderInput(ToolInput):
    folder_id: str = Field(..., alias="folderId")


class MoveNoteToFolderInput(ToolInput):
    note_id: str = Field(..., alias="noteId")
    folder_id: Optional[str] = Field(
        None, alias="folderId", description="Target folder ID; omit or null to unfile the note"
    )


TOOL_INPUTS: Dict[str, Type[ToolInput]] = {
    "list_notes": ListNotesInput,
    "read_note": ReadNoteInput,
    "search_notes": SearchNotesInput,
    "create_note": CreateNoteInput,
    "update_note": UpdateNoteInput,
    "update_title": UpdateTitleInput,
    "list_folders": ListFoldersInput,
    "create_folder": CreateFolderInput,
    "rename_folder": RenameFolderInput,
    "delete_folder": DeleteFolderInput,
    "move_note_to_folder": MoveNoteToFolderInput,
}

TOOL_DESCRIPTIONS: Dict[str, str] = {
    "list_notes": "List all notes with their IDs, titles, owner (ai or user), folder and last updated time.",
    "read_note": "Read the full markdown content of a specific note.",
    "search_notes": "Search for blocks matching a text query across all notes. Note titles are matched too.",
    "create_note": "Create a new note with a title and optional initial markdown content, optionally inside a folder.",
    "update_note": (
        "Replace the full content of a note. Use this to add, edit, or reorganize content. "
        "Provide the complete new markdown; it will be converted to blocks. "
        "Notes managed by the user are not changed directly: a suggested edit is created "
        "and the user must approve it."
    ),
    "update_title": (
        "Rename a note. On user-managed notes this creates a suggested edit awaiting approval."
    ),
    "list_folders": "List all folders with their IDs, names and parent folder IDs.",
    "create_folder": "Create a folder, optionally nested under a parent folder.",
    "rename_folder": "Rename a folder.",
    "delete_folder": (
        "Delete a folder. Its notes are kept and become unfiled; "
        "its sub-folders move up to the deleted folder's parent."
    ),
    "move_note_to_folder": "Move a note into a folder, or out of any folder when folderId is omitted.",
}


__all__ = [
    "ToolInput",
    "ListNotesInput",
    "ReadNoteInput",
    "SearchNotesInput",
    "CreateNoteInput",
    "UpdateNoteInput",
    "UpdateTitleInput",
    "ListFoldersInput",
    "CreateFolderInput",
    "RenameFolderInput",
    "DeleteFolderInput",
    "MoveNoteToFolderInput",
    "TOOL_INPUTS",
    "TOOL_DESCRIPTIONS",
]
