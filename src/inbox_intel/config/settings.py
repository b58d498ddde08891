from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env once, globally
load_dotenv()

# Project root (independent of current working directory).
PROJECT_ROOT = Path(__file__).resolve().parents[3]

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class ConfigError(RuntimeError):
    """Raised when required configuration is missing."""


def resolve_dir(env_key: str, default: str) -> Path:
    """
    Resolve a directory path from ENV.
    Relative paths are resolved against PROJECT_ROOT.
    """
    value = os.getenv(env_key, default)
    path = Path(value)

    if not path.is_absolute():
        path = PROJECT_ROOT / path

    return path


@dataclass(frozen=True)
class Settings:
    secrets_dir: Path
    state_dir: Path
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4.1-mini"
    google_client_id: Optional[str] = None
    session_secret: Optional[str] = None
    todo_store: str = "firestore"
    todo_collection: str = "todos"
    max_messages: int = 100
    log_level: str = "INFO"

    @property
    def client_secrets_path(self) -> Path:
        # OAuth "Web application" client downloaded from Google Cloud Console.
        return self.secrets_dir / "client_secret.json"

    @property
    def todo_file_path(self) -> Path:
        return self.state_dir / "todos.json"

    def require_openai_api_key(self) -> str:
        if not self.openai_api_key:
            raise ConfigError("OpenAI API key is not configured.")
        return self.openai_api_key


def _load_openai_api_key(secrets_dir: Path) -> Optional[str]:
    token = os.getenv("OPENAI_API_KEY", "").strip()
    if token:
        return token

    # Fall back to a key dropped into the secrets directory.
    txt_path = secrets_dir / "openai_token.txt"
    if txt_path.exists():
        try:
            token = txt_path.read_text(encoding="utf-8").strip()
        except UnicodeDecodeError:
            return None
        return token or None

    return None


def _int_env(key: str, default: int) -> int:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer, got {raw!r}.") from exc


def load_settings() -> Settings:
    """Build Settings from environment variables (and .env)."""
    secrets_dir = resolve_dir("INBOX_INTEL_SECRETS_DIR", "secrets")
    state_dir = resolve_dir("INBOX_INTEL_STATE_DIR", ".state")

    todo_store = os.getenv("INBOX_INTEL_TODO_STORE", "firestore").strip().lower()
    if todo_store not in {"firestore", "file"}:
        raise ConfigError(
            f"INBOX_INTEL_TODO_STORE must be 'firestore' or 'file', got {todo_store!r}."
        )

    log_level = os.getenv("INBOX_INTEL_LOG_LEVEL", "INFO").strip().upper() or "INFO"
    if log_level not in LOG_LEVELS:
        raise ConfigError(
            f"INBOX_INTEL_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}."
        )

    return Settings(
        secrets_dir=secrets_dir,
        state_dir=state_dir,
        openai_api_key=_load_openai_api_key(secrets_dir),
        openai_model=os.getenv("INBOX_INTEL_OPENAI_MODEL", "gpt-4.1-mini").strip(),
        google_client_id=os.getenv("GOOGLE_OAUTH_CLIENT_ID", "").strip() or None,
        session_secret=os.getenv("INBOX_INTEL_SESSION_SECRET", "").strip() or None,
        todo_store=todo_store,
        todo_collection=os.getenv("INBOX_INTEL_TODO_COLLECTION", "todos").strip() or "todos",
        max_messages=_int_env("INBOX_INTEL_MAX_MESSAGES", 100),
        log_level=log_level,
    )
