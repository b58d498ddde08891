from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request, status

from inbox_intel.config.settings import ConfigError, Settings, load_settings
from inbox_intel.gmail.client import GmailClient
from inbox_intel.llm.analyzer import EmailAnalyzer
from inbox_intel.storage.todos import TodoStore, open_todo_store

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user"


@dataclass(frozen=True)
class SessionIdentity:
    email: str
    access_token: str
    expires_at: Optional[float] = None


@lru_cache
def get_settings() -> Settings:
    return load_settings()


def get_identity(request: Request) -> SessionIdentity:
    """Return the signed-in user or fail with 401."""
    user = request.session.get(SESSION_USER_KEY) or {}
    email = user.get("email")
    access_token = user.get("access_token")
    if not email or not access_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    expires_at = user.get("expires_at")
    if expires_at is not None and float(expires_at) <= time.time():
        # The Gmail token is dead; make the user sign in again.
        request.session.pop(SESSION_USER_KEY, None)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session expired")

    return SessionIdentity(email=email, access_token=access_token, expires_at=expires_at)


@lru_cache
def _store_for(settings: Settings) -> TodoStore:
    return open_todo_store(settings)


def get_todo_store(settings: Settings = Depends(get_settings)) -> TodoStore:
    try:
        return _store_for(settings)
    except Exception as exc:
        logger.exception("Could not open the to-do store")
        raise HTTPException(status_code=500, detail="To-do store is unavailable.") from exc


def get_analyzer(settings: Settings = Depends(get_settings)) -> EmailAnalyzer:
    try:
        return EmailAnalyzer.from_settings(settings)
    except ConfigError as exc:
        raise HTTPException(status_code=500, detail="Model API key is not configured.") from exc


def get_gmail_factory() -> Callable[[str], GmailClient]:
    return GmailClient.from_access_token
