"""Pydantic models for LLM provider responses."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

StopReason = str  # end_turn | tool_use | pause_turn | max_tokens | ...


class ModelResponse(BaseModel):
    """A single Messages API response.

    ``content`` keeps the raw content blocks so that the assistant turn can
    be replayed to the provider verbatim (``pause_turn`` and ``tool_use``).
    """

    stop_reason: Optional[StopReason] = None
    content: List[Dict[str, Any]] = Field(default_factory=list)
    model: Optional[str] = None
    usage: Dict[str, int] = Field(default_factory=dict)

    def blocks_of(self, block_type: str) -> List[Dict[str, Any]]:
        return [b for b in self.content if b.get("type") == block_type]

    @property
    def text(self) -> str:
        """All text blocks concatenated in order."""
        return "".join(b.get("text", "") for b in self.blocks_of("text"))

    @property
    def thinking(self) -> Optional[str]:
        parts = [b.get("thinking", "") for b in self.blocks_of("thinking")]
        joined = "\n\n".join(p for p in parts if p)
        return joined or None

    @property
    def tool_uses(self) -> List[Dict[str, Any]]:
        return self.blocks_of("tool_use")


__all__ = ["StopReason", "ModelResponse"]
