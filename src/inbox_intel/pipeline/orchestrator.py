from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import List, Optional, Sequence

from starlette.concurrency import run_in_threadpool

from inbox_intel.gmail.client import GmailClient, build_inbox_message
from inbox_intel.gmail.query import build_sync_query
from inbox_intel.llm.analyzer import EmailAnalyzer
from inbox_intel.models import AnalysisResult

logger = logging.getLogger(__name__)


async def _process_message(
    gmail: GmailClient,
    analyzer: EmailAnalyzer,
    message_id: str,
    open_task_texts: Sequence[str],
) -> Optional[AnalysisResult]:
    # A failing message is dropped; the rest of the batch still returns.
    try:
        raw = await run_in_threadpool(gmail.get_message, message_id, "full")
        message = build_inbox_message(message_id, raw)
        if not message.body:
            logger.info("Skipping message %s: no text body", message_id)
            return None
        return await run_in_threadpool(analyzer.analyze, message, open_task_texts)
    except Exception as exc:
        logger.warning("Dropping message %s: %s: %s", message_id, type(exc).__name__, exc)
        return None


async def sync_inbox(
    gmail: GmailClient,
    analyzer: EmailAnalyzer,
    open_task_texts: Sequence[str],
    *,
    now: Optional[datetime] = None,
    max_results: int = 100,
) -> List[AnalysisResult]:
    """
    Analyze the primary-category mail of yesterday and today.

    Listing failures propagate to the caller. Every message is fetched and
    analyzed concurrently; results come back in no particular order.
    """
    query = build_sync_query(now)
    message_ids = await run_in_threadpool(gmail.list_messages, query, max_results)
    logger.info("Sync query %r matched %d messages", query, len(message_ids))
    if not message_ids:
        return []

    outcomes = await asyncio.gather(
        *(_process_message(gmail, analyzer, mid, open_task_texts) for mid in message_ids)
    )
    results = [r for r in outcomes if r is not None]
    logger.info("Analyzed %d/%d messages", len(results), len(message_ids))
    return results
