"""Block tree <-> Markdown conversion.

Notes store their content as a tree of editor blocks. Lore reads and
writes notes as flat Markdown, so both directions live here. The
conversion is deliberately lossy: ``markdown_to_blocks`` produces one
flat block per non-blank line (no nesting, no fenced code blocks) and
``blocks_to_markdown`` drops colours, alignment and links.
"""

from __future__ import annotations

import re
import uuid
from typing import Any, Dict, List, Optional

Block = Dict[str, Any]

ORDERED_ITEM_PATTERN = re.compile(r"^\d+\. ")

DEFAULT_PROPS: Dict[str, Any] = {
    "textColor": "default",
    "backgroundColor": "default",
    "textAlignment": "left",
}


def new_block_id(prefix: str = "lore") -> str:
    return f"{prefix}-{uuid.uuid4().hex}"


def make_block(
    block_id: str,
    block_type: str,
    text: str,
    props: Optional[Dict[str, Any]] = None,
) -> Block:
    """Build a single block with one unstyled text run."""
    return {
        "id": block_id,
        "type": block_type,
        "props": {**DEFAULT_PROPS, **(props or {})},
        "content": [{"type": "text", "text": text, "styles": {}}] if text else [],
        "children": [],
    }


def _list_field(block: Any, key: str) -> List[Any]:
    if not isinstance(block, dict):
        return []
    value = block.get(key)
    return value if isinstance(value, list) else []


def _props(block: Block) -> Dict[str, Any]:
    props = block.get("props")
    return props if isinstance(props, dict) else {}


def _text_runs(block: Any) -> List[Dict[str, Any]]:
    return [
        run
        for run in _list_field(block, "content")
        if isinstance(run, dict) and run.get("type") == "text"
    ]


def block_text(block: Any) -> str:
    """Plain text of a block's inline content (children excluded)."""
    return "".join(str(run.get("text") or "") for run in _text_runs(block))


def _styled_text(block: Any) -> str:
    parts = []
    for run in _text_runs(block):
        text = str(run.get("text") or "")
        styles = run.get("styles") if isinstance(run.get("styles"), dict) else {}
        if styles.get("bold"):
            text = f"**{text}**"
        if styles.get("italic"):
            text = f"*{text}*"
        if styles.get("code"):
            text = f"`{text}`"
        parts.append(text)
    return "".join(parts)


def _render_block(block: Block, text: str) -> str:
    block_type = block.get("type")
    if block_type == "heading":
        try:
            level = int(_props(block).get("level") or 1)
        except (TypeError, ValueError):
            level = 1
        return f"{'#' * max(1, min(level, 6))} {text}"
    if block_type == "bulletListItem":
        return f"- {text}"
    if block_type == "numberedListItem":
        return f"1. {text}"
    if block_type == "checkListItem":
        mark = "x" if _props(block).get("checked") else " "
        return f"- [{mark}] {text}"
    if block_type == "codeBlock":
        return f"```\n{text}\n```"
    if block_type == "quote":
        return f"> {text}"
    return text


def blocks_to_markdown(blocks: Any) -> str:
    """Render a block tree as Markdown.

    Blocks without text produce no line; their children are still
    rendered. Numbered items always render as ``1.``.
    """
    if not isinstance(blocks, list):
        return ""

    chunks: List[str] = []
    for block in blocks:
        if not isinstance(block, dict):
            continue
        text = _styled_text(block)
        if text:
            chunks.append(_render_block(block, text))
        children = _list_field(block, "children")
        if children:
            nested = blocks_to_markdown(children)
            if nested:
                chunks.append(nested)
    return "\n\n".join(chunks)


def _line_to_block(line: str, block_id: str) -> Block:
    if line.startswith("### "):
        return make_block(block_id, "heading", line[4:], {"level": 3})
    if line.startswith("## "):
        return make_block(block_id, "heading", line[3:], {"level": 2})
    if line.startswith("# "):
        return make_block(block_id, "heading", line[2:], {"level": 1})
    if line.startswith("- ") or line.startswith("* "):
        return make_block(block_id, "bulletListItem", line[2:])
    if ORDERED_ITEM_PATTERN.match(line):
        return make_block(block_id, "numberedListItem", ORDERED_ITEM_PATTERN.sub("", line, count=1))
    if line.startswith("> "):
        return make_block(block_id, "quote", line[2:])
    return make_block(block_id, "paragraph", line)


def markdown_to_blocks(markdown: Optional[str]) -> List[Block]:
    """Convert Markdown into flat blocks, one per non-blank line."""
    if not markdown:
        return []
    return [
        _line_to_block(line, new_block_id())
        for line in markdown.split("\n")
        if line.strip()
    ]


def flatten_blocks(blocks: Any) -> List[Dict[str, Any]]:
    """Flatten a block tree into search rows in depth-first document order."""
    rows: List[Dict[str, Any]] = []

    def visit(items: Any, parent_id: Optional[str]) -> None:
        if not isinstance(items, list):
            return
        for block in items:
            if not isinstance(block, dict) or not block.get("id"):
                continue
            block_id = str(block["id"])
            rows.append(
                {
                    "block_id": block_id,
                    "type": str(block.get("type") or "paragraph"),
                    "parent_id": parent_id,
                    "position": len(rows),
                    "text": block_text(block),
                }
            )
            visit(block.get("children"), block_id)

    visit(blocks, None)
    return rows


__all__ = [
    "Block",
    "make_block",
    "new_block_id",
    "block_text",
    "blocks_to_markdown",
    "markdown_to_blocks",
    "flatten_blocks",
]
