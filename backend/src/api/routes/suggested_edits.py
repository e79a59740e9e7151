"""HTTP API routes for resolving suggested edits."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ...models.suggested_edit import SuggestedEdit
from ...services.suggestion_service import SuggestionService, get_suggestion_service

router = APIRouter(prefix="/api/suggested-edits", tags=["suggested-edits"])


@router.post("/{edit_id}/accept", response_model=SuggestedEdit)
async def accept_edit(
    edit_id: str,
    service: SuggestionService = Depends(get_suggestion_service),
):
    """
    Accept a pending edit and apply it to its note.

    Returns 404 for an unknown edit and 409 if it was already resolved.
    """
    return service.accept(edit_id)


@router.post("/{edit_id}/reject", response_model=SuggestedEdit)
async def reject_edit(
    edit_id: str,
    service: SuggestionService = Depends(get_suggestion_service),
):
    """Reject a pending edit. The note is left untouched."""
    return service.reject(edit_id)
