"""Persistent worker state: last successful run per worker, across restarts.

Lets a freshly deployed instance skip a refresh another instance (or the
manual trigger) just performed. Stored in the `worker_state` collection.
"""

from datetime import datetime, timedelta
from typing import Any, Optional

import app.database as _db
from app.utils import ensure_utc, utcnow


async def get_synced_at(worker_id: str) -> datetime | None:
    doc = await _db.db.worker_state.find_one({"_id": worker_id})
    return doc["synced_at"] if doc else None


async def set_synced(worker_id: str, summary: Optional[dict[str, Any]] = None) -> None:
    """Mark a worker as just synced, keeping a short result summary."""
    await _db.db.worker_state.update_one(
        {"_id": worker_id},
        {"$set": {"synced_at": utcnow(), "summary": summary or {}}},
        upsert=True,
    )


async def recently_synced(worker_id: str, max_age: timedelta) -> bool:
    last = await get_synced_at(worker_id)
    if not last:
        return False
    return (utcnow() - ensure_utc(last)) < max_age
