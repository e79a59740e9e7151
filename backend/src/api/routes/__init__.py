"""HTTP API route handlers."""

from . import folders, lore, notes, suggested_edits

__all__ = ["notes", "folders", "lore", "suggested_edits"]
