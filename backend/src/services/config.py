"""Application configuration helpers."""

from __future__ import annotations

from functools import lru_cache
import os
import re
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_DATABASE_PATH = PROJECT_ROOT / "data" / "grove.db"

# Only a trailing /v1 or /v1/messages path, never "v1" inside the host
_API_PATH_SUFFIX = re.compile(r"/v1(?:/messages)?/?$")


def strip_api_suffix(url: str) -> str:
    """Reduce a pasted endpoint URL to the API base URL."""
    return _API_PATH_SUFFIX.sub("", url.strip()).rstrip("/")


class AppConfig(BaseModel):
    """Runtime configuration loaded from environment variables."""

    model_config = ConfigDict(frozen=True)

    anthropic_api_key: Optional[str] = Field(
        default=None,
        description="Anthropic API key used by Lore (required to run turns)",
    )
    anthropic_base_url: str = Field(
        default="https://api.anthropic.com",
        description="Base URL of the Anthropic Messages API",
    )
    lore_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Model driving the Lore agent loop",
    )
    title_model: str = Field(
        default="claude-haiku-4-5-20251001",
        description="Model used for one-shot conversation titling",
    )
    max_tokens: int = Field(default=4096, ge=256, description="Max output tokens per model call")
    max_rounds: int = Field(
        default=25, ge=1, le=200, description="Model calls allowed per Lore turn"
    )
    thinking_budget: Optional[int] = Field(
        default=None,
        ge=1024,
        description="Extended thinking budget in tokens (disabled when unset)",
    )
    enable_web_search: bool = Field(
        default=True, description="Expose the provider's server-side web search tool"
    )
    web_search_max_uses: int = Field(default=5, ge=1, le=20)
    database_path: Path = Field(..., description="SQLite database file")
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"]
    )

    @field_validator("database_path", mode="before")
    @classmethod
    def _normalize_database_path(cls, value: str | Path | None) -> Path:
        if value is None or value == "":
            raise ValueError("DATABASE_PATH is required")
        path = value if isinstance(value, Path) else Path(value)
        return path.expanduser().resolve()

    @field_validator("anthropic_api_key", mode="before")
    @classmethod
    def _strip_api_key(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None

    @field_validator("anthropic_base_url")
    @classmethod
    def _strip_version_suffix(cls, value: str) -> str:
        # Users sometimes paste the full endpoint (…/v1/messages)
        return strip_api_suffix(value)

    @field_validator("thinking_budget")
    @classmethod
    def _budget_below_max_tokens(cls, value: Optional[int], info) -> Optional[int]:
        max_tokens = info.data.get("max_tokens")
        if value is not None and max_tokens is not None and value >= max_tokens:
            raise ValueError("LORE_THINKING_BUDGET must be lower than LORE_MAX_TOKENS")
        return value


def _read_env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(key, default)


def _read_flag(key: str, default: str = "true") -> bool:
    return (_read_env(key, default) or "").lower() not in {"0", "false", "no"}


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load and cache application configuration."""
    thinking_budget = _read_env("LORE_THINKING_BUDGET")
    cors_origins = _read_env("CORS_ORIGINS")

    values = dict(
        anthropic_api_key=_read_env("ANTHROPIC_API_KEY"),
        anthropic_base_url=_read_env("ANTHROPIC_BASE_URL", "https://api.anthropic.com"),
        lore_model=_read_env("LORE_MODEL", "claude-sonnet-4-20250514"),
        title_model=_read_env("LORE_TITLE_MODEL", "claude-haiku-4-5-20251001"),
        max_tokens=int(_read_env("LORE_MAX_TOKENS", "4096")),
        max_rounds=int(_read_env("LORE_MAX_ROUNDS", "25")),
        thinking_budget=int(thinking_budget) if thinking_budget else None,
        enable_web_search=_read_flag("LORE_ENABLE_WEB_SEARCH"),
        web_search_max_uses=int(_read_env("LORE_WEB_SEARCH_MAX_USES", "5")),
        database_path=_read_env("DATABASE_PATH", str(DEFAULT_DATABASE_PATH)),
    )
    if cors_origins:
        values["cors_origins"] = [o.strip() for o in cors_origins.split(",") if o.strip()]

    config = AppConfig(**values)
    config.database_path.parent.mkdir(parents=True, exist_ok=True)
    return config


def reload_config() -> AppConfig:
    """Clear cached config (useful for tests) and reload."""
    get_config.cache_clear()
    return get_config()


__all__ = ["AppConfig", "strip_api_suffix", "get_config", "reload_config", "PROJECT_ROOT", "DEFAULT_DATABASE_PATH"]
