"""HTTP API routes for note operations."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...models.note import Note, NoteCreate, NoteSummary, NoteUpdate, OwnershipUpdate
from ...models.folder import NoteMove
from ...models.suggested_edit import SuggestedEdit
from ...services.blocks import markdown_to_blocks
from ...services.folder_service import FolderService, get_folder_service
from ...services.note_service import NoteService, get_note_service
from ...services.suggestion_service import SuggestionService, get_suggestion_service

router = APIRouter(prefix="/api/notes", tags=["notes"])


def _not_found(note_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Note {note_id} not found",
    )


@router.get("", response_model=List[NoteSummary])
async def list_notes(
    folder_id: Optional[str] = Query(None, description="Only notes filed in this folder"),
    service: NoteService = Depends(get_note_service),
):
    """List notes, most recently updated first."""
    return service.list_notes(folder_id=folder_id)


@router.post("", response_model=Note, status_code=status.HTTP_201_CREATED)
async def create_note(
    create: NoteCreate,
    service: NoteService = Depends(get_note_service),
    folders: FolderService = Depends(get_folder_service),
):
    """
    Create a note.

    Content may be given as blocks or, when ``content`` is omitted, as
    markdown which is converted to blocks.
    """
    if create.folder_id and folders.get_folder(create.folder_id) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Folder {create.folder_id} not found",
        )

    content = create.content if create.content is not None else markdown_to_blocks(create.markdown)
    return service.create_note(
        title=create.title,
        content=content,
        managed_by=create.managed_by,
        folder_id=create.folder_id,
        source_url=create.source_url,
    )


@router.get("/{note_id}", response_model=Note)
async def get_note(note_id: str, service: NoteService = Depends(get_note_service)):
    note = service.get_note(note_id)
    if note is None:
        raise _not_found(note_id)
    return note


@router.patch("/{note_id}", response_model=Note)
async def update_note(
    note_id: str,
    update: NoteUpdate,
    service: NoteService = Depends(get_note_service),
):
    """Apply a user's own edit. User edits are never gated."""
    note = service.update_note(note_id, content=update.content, title=update.title)
    if note is None:
        raise _not_found(note_id)
    return note


@router.delete("/{note_id}")
async def delete_note(note_id: str, service: NoteService = Depends(get_note_service)):
    """Delete a note together with its pending suggested edits."""
    if not service.delete_note(note_id):
        raise _not_found(note_id)
    return {"status": "ok", "message": "Note deleted"}


@router.put("/{note_id}/ownership", response_model=Note)
async def set_ownership(
    note_id: str,
    update: OwnershipUpdate,
    service: NoteService = Depends(get_note_service),
):
    """
    Hand a note to the user or back to Lore.

    While a note is user-managed, Lore's edits become suggested edits.
    """
    note = service.set_managed_by(note_id, update.managed_by)
    if note is None:
        raise _not_found(note_id)
    return note


@router.put("/{note_id}/folder", response_model=Note)
async def move_note(
    note_id: str,
    move: NoteMove,
    service: NoteService = Depends(get_note_service),
    folders: FolderService = Depends(get_folder_service),
):
    """File a note under a folder, or unfile it with ``folder_id: null``."""
    try:
        moved = folders.move_note(note_id, move.folder_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not moved:
        raise _not_found(note_id)
    return service.get_note(note_id)


@router.get("/{note_id}/suggested-edits", response_model=List[SuggestedEdit])
async def list_suggested_edits(
    note_id: str,
    service: NoteService = Depends(get_note_service),
    suggestions: SuggestionService = Depends(get_suggestion_service),
):
    """Pending suggested edits for a note, oldest first."""
    if service.get_note(note_id) is None:
        raise _not_found(note_id)
    return suggestions.list_pending(note_id)
