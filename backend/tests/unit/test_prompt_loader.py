"""Unit tests for PromptLoader service."""

from pathlib import Path

import pytest

from backend.src.services.prompt_loader import (
    DEFAULT_PROMPTS_DIR,
    INLINE_PROMPTS,
    PromptLoader,
    PromptLoaderError,
)


@pytest.fixture
def prompts_dir(tmp_path: Path) -> Path:
    """Create a temporary prompts directory with a lore template."""
    prompts = tmp_path / "prompts"
    lore_dir = prompts / "lore"
    lore_dir.mkdir(parents=True)

    (lore_dir / "system.md").write_text(
        "# Lore\n{% if web_search %}web on{% else %}web off{% endif %}\n"
    )
    return prompts


@pytest.fixture
def loader(prompts_dir: Path) -> PromptLoader:
    return PromptLoader(prompts_dir=prompts_dir)


class TestPromptLoaderInit:
    """Tests for PromptLoader initialization."""

    def test_init_with_existing_directory(self, prompts_dir: Path) -> None:
        loader = PromptLoader(prompts_dir=prompts_dir)

        assert loader.prompts_dir == prompts_dir
        assert loader.env is not None

    def test_init_with_nonexistent_directory(self, tmp_path: Path) -> None:
        """Loader falls back to inline prompts when directory doesn't exist."""
        loader = PromptLoader(prompts_dir=tmp_path / "nonexistent")

        assert loader.env is None

    def test_default_prompts_dir_is_backend_prompts(self) -> None:
        assert DEFAULT_PROMPTS_DIR.name == "prompts"
        assert DEFAULT_PROMPTS_DIR.parent.name == "backend"

    def test_shipped_templates_exist(self) -> None:
        """Every inline fallback has a file counterpart in backend/prompts/."""
        for path in INLINE_PROMPTS:
            assert (DEFAULT_PROMPTS_DIR / path).is_file()


class TestPromptLoaderLoad:
    """Tests for PromptLoader.load() method."""

    def test_load_renders_conditional(self, loader: PromptLoader) -> None:
        assert "web on" in loader.load("lore/system.md", {"web_search": True})
        assert "web off" in loader.load("lore/system.md", {"web_search": False})

    def test_missing_file_uses_inline_fallback(self, loader: PromptLoader) -> None:
        """lore/title.md is not in the fixture directory but has an inline copy."""
        result = loader.load("lore/title.md", {"message": "Plan my week"})

        assert '"Plan my week"' in result

    def test_template_changes_are_picked_up(self, prompts_dir: Path, loader: PromptLoader) -> None:
        (prompts_dir / "lore" / "system.md").write_text("Version: {{ version }}")

        assert loader.load("lore/system.md", {"version": 2}) == "Version: 2"

    def test_render_error_raises(self, prompts_dir: Path, loader: PromptLoader) -> None:
        (prompts_dir / "lore" / "system.md").write_text("{% if %}")

        with pytest.raises(PromptLoaderError, match="Failed to render template"):
            loader.load("lore/system.md", {})


class TestPromptLoaderInlineFallback:
    """Tests for inline prompt fallback behavior."""

    def test_inline_system_prompt(self, tmp_path: Path) -> None:
        loader = PromptLoader(prompts_dir=tmp_path / "nonexistent")

        with_search = loader.load("lore/system.md", {"web_search": True})
        without_search = loader.load("lore/system.md", {"web_search": False})

        assert "You are Lore" in with_search
        assert "search the web" in with_search
        assert "search the web" not in without_search

    def test_inline_title_prompt(self, tmp_path: Path) -> None:
        loader = PromptLoader(prompts_dir=tmp_path / "nonexistent")

        result = loader.load("lore/title.md", {"message": "hello there"})

        assert result.startswith("Generate a short 4-6 word title")
        assert '"hello there"' in result

    def test_unknown_path_raises(self, tmp_path: Path) -> None:
        loader = PromptLoader(prompts_dir=tmp_path / "nonexistent")

        with pytest.raises(PromptLoaderError) as exc_info:
            loader.load("unknown/prompt.md", {})

        assert "Prompt not found" in str(exc_info.value)
        assert "unknown/prompt.md" in str(exc_info.value)
