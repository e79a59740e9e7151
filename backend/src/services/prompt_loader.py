"""Jinja2 prompt templates for Lore.

Templates live under ``backend/prompts/`` and are re-read whenever they
change on disk, so prompts can be tuned without a restart. Each shipped
template also has an inline copy used when that directory is absent
(e.g. a wheel installed without package data).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import jinja2

logger = logging.getLogger(__name__)

# backend/src/services/prompt_loader.py -> backend/prompts/
DEFAULT_PROMPTS_DIR = Path(__file__).resolve().parent.parent.parent / "prompts"

INLINE_PROMPTS: Dict[str, str] = {
    "lore/system.md": """You are Lore, a knowledge agent inside Grove, a personal note-taking platform.
You have full access to the user's notes and folders and can create, read, search, and edit them.
{% if web_search %}You can also search the web to bring in new information.
{% endif %}
Personality: you are a capable chief-of-staff. Concise, thoughtful, proactive.
When editing notes, always describe what you did and why.
When referencing a note, mention its title.
When you create or edit a note, briefly summarize the change in your response.
""",
    "lore/title.md": (
        'Generate a short 4-6 word title for a conversation that starts with: "{{ message }}". '
        "Reply with ONLY the title, no quotes."
    ),
}


class PromptLoaderError(Exception):
    """Raised when a prompt is unknown or fails to render."""


class PromptLoader:
    """Render named prompt templates with a context dict.

    Example:
        >>> loader = PromptLoader()
        >>> system_prompt = loader.load("lore/system.md", {"web_search": True})
    """

    def __init__(self, prompts_dir: Optional[Path] = None) -> None:
        self.prompts_dir = prompts_dir or DEFAULT_PROMPTS_DIR
        self.env: Optional[jinja2.Environment] = None
        # Inline templates share the same syntax and undefined handling
        self._inline_env = jinja2.Environment(
            loader=jinja2.DictLoader(INLINE_PROMPTS),
            autoescape=False,
            keep_trailing_newline=True,
        )

        if self.prompts_dir.is_dir():
            self.env = jinja2.Environment(
                loader=jinja2.FileSystemLoader(str(self.prompts_dir)),
                autoescape=False,  # markdown, not HTML
                auto_reload=True,
                keep_trailing_newline=True,
            )
        else:
            logger.warning(
                "Prompts directory not found, using inline prompts",
                extra={"prompts_dir": str(self.prompts_dir)},
            )

    def _get_template(self, path: str) -> jinja2.Template:
        if self.env is not None:
            try:
                return self.env.get_template(path)
            except jinja2.TemplateNotFound:
                logger.debug(f"Prompt {path} not on disk, trying inline copy")

        try:
            return self._inline_env.get_template(path)
        except jinja2.TemplateNotFound:
            raise PromptLoaderError(
                f"Prompt not found: {path}. Available inline prompts: {sorted(INLINE_PROMPTS)}"
            ) from None

    def load(self, path: str, context: Optional[Dict[str, Any]] = None) -> str:
        """Render the template at ``path`` (relative to the prompts directory).

        Raises:
            PromptLoaderError: Unknown template, or a syntax/render error.
        """
        try:
            template = self._get_template(path)
            return template.render(**(context or {}))
        except jinja2.TemplateError as e:
            logger.error(f"Failed to render prompt {path}: {e}")
            raise PromptLoaderError(f"Failed to render template {path}: {e}") from e


__all__ = ["PromptLoader", "PromptLoaderError", "DEFAULT_PROMPTS_DIR", "INLINE_PROMPTS"]
