"""HTTP API routes for Lore sessions and messages."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from ...models.lore import (
    LoreSession,
    SendMessageRequest,
    SendMessageResponse,
    SessionRename,
    TranscriptMessage,
)
from ...services.lore_agent import LoreAgent, get_lore_agent
from ...services.transcript_service import TranscriptService, get_transcript_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/lore", tags=["lore"])


def _not_found(session_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Session {session_id} not found",
    )


@router.get("/sessions", response_model=List[LoreSession])
async def list_sessions(service: TranscriptService = Depends(get_transcript_service)):
    """List sessions, most recently active first."""
    return service.list_sessions()


@router.post("/sessions", response_model=LoreSession, status_code=status.HTTP_201_CREATED)
async def create_session(service: TranscriptService = Depends(get_transcript_service)):
    return service.create_session()


@router.get("/sessions/{session_id}", response_model=LoreSession)
async def get_session(
    session_id: str,
    service: TranscriptService = Depends(get_transcript_service),
):
    session = service.get_session(session_id)
    if session is None:
        raise _not_found(session_id)
    return session


@router.patch("/sessions/{session_id}", response_model=LoreSession)
async def rename_session(
    session_id: str,
    rename: SessionRename,
    service: TranscriptService = Depends(get_transcript_service),
):
    """Rename a session. A blank title resets it to "New conversation"."""
    session = service.rename_session(session_id, rename.title)
    if session is None:
        raise _not_found(session_id)
    return session


@router.delete("/sessions/{session_id}")
async def delete_session(
    session_id: str,
    service: TranscriptService = Depends(get_transcript_service),
):
    """Delete a session and its whole transcript."""
    if not service.delete_session(session_id):
        raise _not_found(session_id)
    return {"status": "ok", "message": "Session deleted"}


@router.get("/sessions/{session_id}/messages", response_model=List[TranscriptMessage])
async def list_messages(
    session_id: str,
    service: TranscriptService = Depends(get_transcript_service),
):
    """Transcript in insertion order, including thinking and tool-call records."""
    if service.get_session(session_id) is None:
        raise _not_found(session_id)
    return service.list_messages(session_id)


@router.post(
    "/sessions/{session_id}/messages",
    response_model=SendMessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def send_message(
    session_id: str,
    request: SendMessageRequest,
    background_tasks: BackgroundTasks,
    service: TranscriptService = Depends(get_transcript_service),
    agent: LoreAgent = Depends(get_lore_agent),
):
    """
    Send a message to Lore.

    Returns immediately; the turn runs in the background and its reply is
    appended to the transcript. Poll ``GET .../messages`` to observe it.
    """
    if service.get_session(session_id) is None:
        raise _not_found(session_id)

    background_tasks.add_task(agent.run_turn, session_id, request.content)
    logger.info(f"Scheduled Lore turn for session {session_id}")
    return SendMessageResponse(session_id=session_id)
