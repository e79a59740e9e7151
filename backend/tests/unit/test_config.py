from pathlib import Path

import pytest

from backend.src.services import config as config_module

ENV_KEYS = (
    "ANTHROPIC_API_KEY",
    "ANTHROPIC_BASE_URL",
    "LORE_MODEL",
    "LORE_TITLE_MODEL",
    "LORE_MAX_TOKENS",
    "LORE_MAX_ROUNDS",
    "LORE_THINKING_BUDGET",
    "LORE_ENABLE_WEB_SEARCH",
    "LORE_WEB_SEARCH_MAX_USES",
    "CORS_ORIGINS",
)


@pytest.fixture(autouse=True)
def restore_config_cache(monkeypatch, tmp_path: Path):
    """
    Ensure configuration cache is cleared between tests.
    """
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "data" / "grove.db"))
    config_module.reload_config()
    yield
    config_module.get_config.cache_clear()


def test_defaults(tmp_path: Path) -> None:
    cfg = config_module.reload_config()

    assert cfg.anthropic_api_key is None
    assert cfg.anthropic_base_url == "https://api.anthropic.com"
    assert cfg.max_rounds == 25
    assert cfg.max_tokens == 4096
    assert cfg.thinking_budget is None
    assert cfg.enable_web_search is True
    assert cfg.database_path == (tmp_path / "data" / "grove.db").resolve()
    assert cfg.database_path.parent.is_dir()


def test_blank_api_key_is_none(monkeypatch) -> None:
    monkeypatch.setenv("ANTHROPIC_API_KEY", "   ")

    assert config_module.reload_config().anthropic_api_key is None


def test_base_url_version_suffix_stripped(monkeypatch) -> None:
    monkeypatch.setenv("ANTHROPIC_BASE_URL", "https://proxy.example.com/v1/messages")

    assert config_module.reload_config().anthropic_base_url == "https://proxy.example.com"


@pytest.mark.parametrize(
    "url",
    ["https://v1.llm-proxy.example.com", "https://gateway.example.com/v1beta/anthropic"],
)
def test_v1_inside_url_is_kept(monkeypatch, url: str) -> None:
    monkeypatch.setenv("ANTHROPIC_BASE_URL", url)

    assert config_module.reload_config().anthropic_base_url == url


def test_web_search_flag(monkeypatch) -> None:
    monkeypatch.setenv("LORE_ENABLE_WEB_SEARCH", "false")

    assert config_module.reload_config().enable_web_search is False


def test_cors_origins_parsed(monkeypatch) -> None:
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example,")

    assert config_module.reload_config().cors_origins == ["https://a.example", "https://b.example"]


def test_thinking_budget_must_be_below_max_tokens(monkeypatch) -> None:
    monkeypatch.setenv("LORE_MAX_TOKENS", "2048")
    monkeypatch.setenv("LORE_THINKING_BUDGET", "4096")

    with pytest.raises(ValueError):
        config_module.reload_config()


def test_max_rounds_must_be_positive(monkeypatch) -> None:
    monkeypatch.setenv("LORE_MAX_ROUNDS", "0")

    with pytest.raises(ValueError):
        config_module.reload_config()


def test_config_is_frozen() -> None:
    cfg = config_module.reload_config()

    with pytest.raises(ValueError):
        cfg.max_rounds = 3
