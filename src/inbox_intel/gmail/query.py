from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional, Tuple


def sync_window(now: Optional[datetime] = None) -> Tuple[int, int]:
    """
    Epoch-second bounds of the sync window: yesterday 00:00:00 through
    today 23:59:59, on the server's local clock.
    """
    now = now or datetime.now()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    start = today - timedelta(days=1)
    end = today.replace(hour=23, minute=59, second=59)
    # Gmail "after:"/"before:" expect seconds since epoch, not milliseconds.
    return int(start.timestamp()), int(end.timestamp())


def build_sync_query(now: Optional[datetime] = None) -> str:
    start, end = sync_window(now)
    return f"category:primary after:{start} before:{end}"
