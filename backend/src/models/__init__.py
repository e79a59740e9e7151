"""Pydantic models for data validation and serialization."""

from .folder import Folder, FolderCreate, FolderDeleteResult, FolderRename, NoteMove
from .llm import ModelResponse
from .lore import (
    LoreSession,
    SendMessageRequest,
    SendMessageResponse,
    SessionRename,
    ToolCallRecord,
    TranscriptMessage,
)
from .note import BlockSearchHit, Note, NoteCreate, NoteSummary, NoteUpdate, OwnershipUpdate
from .suggested_edit import SuggestedEdit

__all__ = [
    "Note",
    "NoteCreate",
    "NoteUpdate",
    "NoteSummary",
    "OwnershipUpdate",
    "BlockSearchHit",
    "Folder",
    "FolderCreate",
    "FolderRename",
    "FolderDeleteResult",
    "NoteMove",
    "SuggestedEdit",
    "LoreSession",
    "TranscriptMessage",
    "ToolCallRecord",
    "SessionRename",
    "SendMessageRequest",
    "SendMessageResponse",
    "ModelResponse",
]
