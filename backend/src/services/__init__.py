"""Service layer for business logic and external integrations."""

from .blocks import blocks_to_markdown, markdown_to_blocks
from .config import AppConfig, get_config, reload_config
from .database import DatabaseService, init_database
from .folder_service import FolderService, get_folder_service
from .lore_agent import LoopState, LoreAgent, TurnResult, get_lore_agent
from .model_provider import AnthropicProvider, ModelProvider, ModelProviderError, get_model_provider
from .note_service import NoteService, get_note_service
from .ownership import OwnershipGate
from .prompt_loader import PromptLoader, PromptLoaderError
from .suggestion_service import (
    SuggestionConflictError,
    SuggestionNotFoundError,
    SuggestionService,
    get_suggestion_service,
)
from .tool_executor import ToolExecutor, get_tool_executor
from .transcript_service import TranscriptService, get_transcript_service

__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "DatabaseService",
    "init_database",
    "blocks_to_markdown",
    "markdown_to_blocks",
    "NoteService",
    "get_note_service",
    "FolderService",
    "get_folder_service",
    "SuggestionService",
    "SuggestionConflictError",
    "SuggestionNotFoundError",
    "get_suggestion_service",
    "OwnershipGate",
    "ToolExecutor",
    "get_tool_executor",
    "ModelProvider",
    "AnthropicProvider",
    "ModelProviderError",
    "get_model_provider",
    "PromptLoader",
    "PromptLoaderError",
    "LoopState",
    "LoreAgent",
    "TurnResult",
    "get_lore_agent",
    "TranscriptService",
    "get_transcript_service",
]
