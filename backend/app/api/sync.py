from __future__ import annotations

import logging
from typing import Any, Callable

from fastapi import APIRouter, Depends, HTTPException
from starlette.concurrency import run_in_threadpool

from backend.app.dependencies import (
    SessionIdentity,
    get_analyzer,
    get_gmail_factory,
    get_identity,
    get_settings,
    get_todo_store,
)
from inbox_intel.config.settings import Settings
from inbox_intel.gmail.client import GmailClient
from inbox_intel.llm.analyzer import EmailAnalyzer
from inbox_intel.pipeline.orchestrator import sync_inbox
from inbox_intel.storage.todos import TodoStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/sync")
async def sync_endpoint(
    identity: SessionIdentity = Depends(get_identity),
    analyzer: EmailAnalyzer = Depends(get_analyzer),
    store: TodoStore = Depends(get_todo_store),
    gmail_factory: Callable[[str], GmailClient] = Depends(get_gmail_factory),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    try:
        # Loaded once; every message in this run is checked against the same list.
        open_task_texts = await run_in_threadpool(store.open_task_texts, identity.email)
    except Exception as exc:
        logger.exception("Failed to load open tasks for %s", identity.email)
        raise HTTPException(status_code=500, detail="Failed to fetch to-do items.") from exc

    gmail = gmail_factory(identity.access_token)
    try:
        results = await sync_inbox(
            gmail,
            analyzer,
            open_task_texts,
            max_results=settings.max_messages,
        )
    except Exception as exc:
        logger.exception("Inbox sync failed for %s", identity.email)
        raise HTTPException(status_code=500, detail="Failed to fetch messages from Gmail.") from exc

    return {"results": [r.to_dict() for r in results]}
