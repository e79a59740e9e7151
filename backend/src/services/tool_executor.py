"""Tool Executor - Dispatches Lore's tool calls to the note and folder stores.

Every tool's arguments are described by a pydantic model in
``models/tools.py``. The same model validates the arguments at dispatch
time and generates the JSON schema the LLM sees, so the two never drift.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..models.tools import (
    TOOL_DESCRIPTIONS,
    TOOL_INPUTS,
    CreateFolderInput,
    CreateNoteInput,
    DeleteFolderInput,
    MoveNoteToFolderInput,
    ReadNoteInput,
    RenameFolderInput,
    SearchNotesInput,
    ToolInput,
    UpdateNoteInput,
    UpdateTitleInput,
)
from .blocks import blocks_to_markdown, markdown_to_blocks
from .database import DatabaseService
from .folder_service import FolderService
from .note_service import NoteService
from .ownership import OwnershipGate
from .suggestion_service import SuggestionService

logger = logging.getLogger(__name__)

WEB_SEARCH_TOOL = "web_search"
WEB_SEARCH_TOOL_TYPE = "web_search_20250305"


class ToolExecutor:
    """
    Executes tool calls by routing to the appropriate backend services.

    ``web_search`` is a provider-side tool: it is declared to the model
    but never dispatched here.
    """

    def __init__(
        self,
        note_service: Optional[NoteService] = None,
        folder_service: Optional[FolderService] = None,
        suggestion_service: Optional[SuggestionService] = None,
        db_service: Optional[DatabaseService] = None,
    ) -> None:
        self._db = db_service or DatabaseService()
        self.notes = note_service or NoteService(self._db)
        self.folders = folder_service or FolderService(self._db)
        self.suggestions = suggestion_service or SuggestionService(self._db, self.notes)
        self.gate = OwnershipGate(self.notes, self.suggestions)

        # Tool registry mapping tool names to handler methods
        self._tools: Dict[str, Any] = {
            # Note tools
            "list_notes": self._list_notes,
            "read_note": self._read_note,
            "search_notes": self._search_notes,
            "create_note": self._create_note,
            "update_note": self._update_note,
            "update_title": self._update_title,
            # Folder tools
            "list_folders": self._list_folders,
            "create_folder": self._create_folder,
            "rename_folder": self._rename_folder,
            "delete_folder": self._delete_folder,
            "move_note_to_folder": self._move_note_to_folder,
        }

    @property
    def tool_names(self) -> List[str]:
        return list(self._tools)

    async def execute(
        self,
        name: str,
        arguments: Optional[Dict[str, Any]],
        session_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Execute a tool call and return its result.

        Never raises: unknown tools, invalid arguments and handler failures
        all come back as ``{"error": ...}`` so the model can react to them.

        Args:
            name: Tool name to execute
            arguments: Raw tool arguments from the model
            session_id: Lore session the call belongs to, recorded on suggested edits

        Returns:
            Result dictionary
        """
        if name not in self._tools:
            logger.warning(f"Unknown tool requested: {name}")
            return {"error": f"Unknown tool: {name}"}

        handler = self._tools[name]
        arguments = arguments if isinstance(arguments, dict) else {}

        try:
            logger.info(
                f"Executing tool: {name}",
                extra={"session_id": session_id, "tool": name, "args_keys": list(arguments.keys())},
            )
            params = TOOL_INPUTS[name].model_validate(arguments)
            return await handler(params, session_id)
        except ValidationError as e:
            logger.warning(f"Tool {name} validation error: {e}")
            return {"error": f"Invalid arguments: {str(e)}"}
        except Exception as e:
            logger.exception(f"Tool {name} execution failed: {e}")
            return {"error": f"Tool execution failed: {str(e)}"}

    def get_tool_schemas(
        self,
        enable_web_search: bool = False,
        web_search_max_uses: int = 5,
    ) -> List[Dict[str, Any]]:
        """
        Tool definitions in Anthropic Messages API format.

        Args:
            enable_web_search: Also declare the provider's server-side web search
            web_search_max_uses: Cap on searches per request

        Returns:
            List of ``{name, description, input_schema}`` definitions
        """
        schemas: List[Dict[str, Any]] = []
        for name in self._tools:
            input_schema = TOOL_INPUTS[name].model_json_schema(by_alias=True)
            input_schema.pop("title", None)
            schemas.append(
                {
                    "name": name,
                    "description": TOOL_DESCRIPTIONS[name],
                    "input_schema": input_schema,
                }
            )

        if enable_web_search:
            schemas.append(
                {
                    "type": WEB_SEARCH_TOOL_TYPE,
                    "name": WEB_SEARCH_TOOL,
                    "max_uses": web_search_max_uses,
                }
            )

        logger.debug(f"Loaded {len(schemas)} tools")
        return schemas

    # =========================================================================
    # Note Tool Implementations
    # =========================================================================

    async def _list_notes(self, params: ToolInput, session_id: Optional[str]) -> Dict[str, Any]:
        notes = self.notes.list_notes()
        return {
            "notes": [
                {
                    "id": note.id,
                    "title": note.title,
                    "managedBy": note.managed_by,
                    "folderId": note.folder_id,
                    "updatedAt": note.updated_at.isoformat(),
                }
                for note in notes
            ],
            "count": len(notes),
        }

    async def _read_note(self, params: ReadNoteInput, session_id: Optional[str]) -> Dict[str, Any]:
        note = self.notes.get_note(params.note_id)
        if note is None:
            return {"error": "Note not found"}
        return {
            "id": note.id,
            "title": note.title,
            "managedBy": note.managed_by,
            "folderId": note.folder_id,
            "content": blocks_to_markdown(note.content),
        }

    async def _search_notes(self, params: SearchNotesInput, session_id: Optional[str]) -> Dict[str, Any]:
        hits = self.notes.search_blocks(params.query, limit=params.limit)
        return {
            "query": params.query,
            "results": [
                {
                    "noteId": hit.note_id,
                    "noteTitle": hit.note_title,
                    "blockId": hit.block_id,
                    "text": hit.text,
                    "type": hit.type,
                    "matchedOn": hit.matched_on,
                }
                for hit in hits
            ],
            "count": len(hits),
        }

    async def _create_note(self, params: CreateNoteInput, session_id: Optional[str]) -> Dict[str, Any]:
        if params.folder_id and self.folders.get_folder(params.folder_id) is None:
            raise ValueError(f"Folder not found: {params.folder_id}")

        # Notes Lore creates are always AI-managed, so this never goes through the gate
        note = self.notes.create_note(
            title=params.title,
            content=markdown_to_blocks(params.content),
            managed_by="ai",
            folder_id=params.folder_id,
        )
        return {"success": True, "noteId": note.id, "title": note.title}

    async def _update_note(self, params: UpdateNoteInput, session_id: Optional[str]) -> Dict[str, Any]:
        return self.gate.update_content(
            params.note_id,
            params.markdown,
            title=params.title,
            session_id=session_id,
        )

    async def _update_title(self, params: UpdateTitleInput, session_id: Optional[str]) -> Dict[str, Any]:
        return self.gate.update_title(params.note_id, params.title, session_id=session_id)

    # =========================================================================
    # Folder Tool Implementations
    # =========================================================================

    async def _list_folders(self, params: ToolInput, session_id: Optional[str]) -> Dict[str, Any]:
        folders = self.folders.list_folders()
        return {
            "folders": [
                {"id": folder.id, "name": folder.name, "parentId": folder.parent_id}
                for folder in folders
            ],
            "count": len(folders),
        }

    async def _create_folder(self, params: CreateFolderInput, session_id: Optional[str]) -> Dict[str, Any]:
        folder = self.folders.create_folder(params.name, parent_id=params.parent_id)
        return {"success": True, "folderId": folder.id, "name": folder.name}

    async def _rename_folder(self, params: RenameFolderInput, session_id: Optional[str]) -> Dict[str, Any]:
        folder = self.folders.rename_folder(params.folder_id, params.name)
        if folder is None:
            return {"error": "Folder not found"}
        return {"success": True, "folderId": folder.id, "name": folder.name}

    async def _delete_folder(self, params: DeleteFolderInput, session_id: Optional[str]) -> Dict[str, Any]:
        result = self.folders.delete_folder(params.folder_id)
        if result is None:
            return {"error": "Folder not found"}
        return {
            "success": True,
            "notesUnfiled": result.notes_unfiled,
            "foldersReparented": result.folders_reparented,
        }

    async def _move_note_to_folder(
        self, params: MoveNoteToFolderInput, session_id: Optional[str]
    ) -> Dict[str, Any]:
        if not self.folders.move_note(params.note_id, params.folder_id):
            return {"error": "Note not found"}
        return {"success": True, "noteId": params.note_id, "folderId": params.folder_id}


# Singleton instance for dependency injection
_tool_executor: Optional[ToolExecutor] = None


def get_tool_executor() -> ToolExecutor:
    """Get or create the tool executor singleton."""
    global _tool_executor
    if _tool_executor is None:
        _tool_executor = ToolExecutor()
    return _tool_executor


__all__ = ["ToolExecutor", "get_tool_executor", "WEB_SEARCH_TOOL"]
