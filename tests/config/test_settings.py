from __future__ import annotations

from pathlib import Path

import pytest

from inbox_intel.config.settings import PROJECT_ROOT, ConfigError, load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "OPENAI_API_KEY",
        "INBOX_INTEL_SECRETS_DIR",
        "INBOX_INTEL_STATE_DIR",
        "INBOX_INTEL_TODO_STORE",
        "INBOX_INTEL_MAX_MESSAGES",
        "INBOX_INTEL_OPENAI_MODEL",
        "INBOX_INTEL_LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)


def test_relative_dirs_resolve_against_project_root(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INBOX_INTEL_SECRETS_DIR", "my-secrets")
    monkeypatch.setenv("INBOX_INTEL_STATE_DIR", "my-state")

    settings = load_settings()

    assert settings.secrets_dir == PROJECT_ROOT / "my-secrets"
    assert settings.todo_file_path == PROJECT_ROOT / "my-state" / "todos.json"


def test_openai_key_falls_back_to_secrets_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "openai_token.txt").write_text("sk-from-file\n", encoding="utf-8")
    monkeypatch.setenv("INBOX_INTEL_SECRETS_DIR", str(tmp_path))

    settings = load_settings()

    assert settings.openai_api_key == "sk-from-file"


def test_environment_key_wins_over_secrets_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "openai_token.txt").write_text("sk-from-file", encoding="utf-8")
    monkeypatch.setenv("INBOX_INTEL_SECRETS_DIR", str(tmp_path))
    monkeypatch.setenv("OPENAI_API_KEY", "sk-from-env")

    assert load_settings().openai_api_key == "sk-from-env"


def test_missing_key_raises_on_use(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INBOX_INTEL_SECRETS_DIR", str(tmp_path))

    settings = load_settings()

    assert settings.openai_api_key is None
    with pytest.raises(ConfigError):
        settings.require_openai_api_key()


def test_invalid_values_raise_config_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INBOX_INTEL_TODO_STORE", "postgres")
    with pytest.raises(ConfigError):
        load_settings()

    monkeypatch.setenv("INBOX_INTEL_TODO_STORE", "file")
    monkeypatch.setenv("INBOX_INTEL_MAX_MESSAGES", "lots")
    with pytest.raises(ConfigError):
        load_settings()


def test_log_level_is_normalized_and_validated(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INBOX_INTEL_TODO_STORE", "file")
    monkeypatch.setenv("INBOX_INTEL_LOG_LEVEL", " debug ")
    assert load_settings().log_level == "DEBUG"

    monkeypatch.setenv("INBOX_INTEL_LOG_LEVEL", "VERBOSE")
    with pytest.raises(ConfigError, match="INBOX_INTEL_LOG_LEVEL"):
        load_settings()
