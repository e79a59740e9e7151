"""Pydantic models for Lore conversations and their transcripts."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field

DEFAULT_SESSION_TITLE = "New conversation"


class ToolCallRecord(BaseModel):
    """One tool invocation made during a Lore turn, kept for replay."""

    tool_name: str
    input: Any = None
    output: Any = None
    duration_ms: int = Field(0, ge=0, description="Wall-clock time; 0 for server-side tools")


class TranscriptMessage(BaseModel):
    """A single persisted message in a Lore session."""

    id: str
    session_id: str
    role: Literal["user", "assistant"]
    content: str
    thinking_content: Optional[str] = None
    tool_calls: Optional[List[ToolCallRecord]] = None
    created_at: datetime


class LoreSession(BaseModel):
    id: str
    title: str = DEFAULT_SESSION_TITLE
    created_at: datetime
    updated_at: datetime


class SessionRename(BaseModel):
    title: str = Field(..., max_length=256)


class SendMessageRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=20000)


class SendMessageResponse(BaseModel):
    session_id: str
    status: Literal["scheduled"] = "scheduled"


__all__ = [
    "DEFAULT_SESSION_TITLE",
    "ToolCallRecord",
    "TranscriptMessage",
    "LoreSession",
    "SessionRename",
    "SendMessageRequest",
    "SendMessageResponse",
]
