"""
backend/app/services/match_pool_service.py

Purpose:
    Match pool refresh: pull today's and tomorrow's fixtures from API-Football,
    upsert them by (date, fixture_id), rewrite the pool metadata singleton and
    prune fixtures that kicked off more than MATCH_POOL_RETENTION_HOURS ago.

Dependencies:
    - app.providers.api_football
    - pymongo (bulk ReplaceOne)
    - app.database
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Optional
from zoneinfo import ZoneInfo

from pymongo import ReplaceOne

import app.database as _db
from app.config import settings
from app.errors import ConfigurationError
from app.providers.api_football import api_football_provider
from app.utils import to_epoch_ms, utcnow

logger = logging.getLogger("matchcredit.match_pool")

API_KEY_CONFIG_ID = "API_FOOTBALL_KEY"
POOL_METADATA_ID = "poolMetadata"


async def get_api_key() -> str:
    """API-Football key from remote_config. Raises ConfigurationError if unset."""
    doc = await _db.db.remote_config.find_one({"_id": API_KEY_CONFIG_ID})
    api_key = str((doc or {}).get("value") or "").strip()
    if not api_key:
        raise ConfigurationError(f"{API_KEY_CONFIG_ID} not found in remote config")
    return api_key


def pool_dates(now: datetime) -> tuple[str, str]:
    """Today and tomorrow (YYYY-MM-DD) in the pool timezone.

    MATCH_POOL_TIMEZONE empty means the server's local time.
    """
    if settings.MATCH_POOL_TIMEZONE:
        local = now.astimezone(ZoneInfo(settings.MATCH_POOL_TIMEZONE))
    else:
        local = now.astimezone()
    today = local.date()
    return today.isoformat(), (today + timedelta(days=1)).isoformat()


def pool_key(fixture: dict[str, Any]) -> str:
    return f"{fixture['date']}/{fixture['fixture_id']}"


async def _store_fixtures(fixtures: list[dict[str, Any]]) -> None:
    """Overwrite each fixture at its (date, fixture_id) key."""
    if not fixtures:
        return
    ops = [
        ReplaceOne({"_id": pool_key(f)}, {"_id": pool_key(f), **f}, upsert=True)
        for f in fixtures
    ]
    await _db.db.match_pool.bulk_write(ops, ordered=False)


async def refresh_pool() -> dict:
    """Refresh the pool for today and tomorrow.

    Returns {total_matches, leagues, timestamp}. A failed fetch for one day
    counts as zero matches for that day; the metadata is still rewritten.
    """
    api_key = await get_api_key()

    now = utcnow()
    today, tomorrow = pool_dates(now)
    total_matches = 0
    league_ids: set[int] = set()

    for index, date in enumerate((today, tomorrow)):
        if index:
            # Provider rate-limit spacing between the two calls
            await asyncio.sleep(settings.MATCH_POOL_FETCH_DELAY_SECONDS)
        fixtures = await api_football_provider.fetch_fixtures_for_date(api_key, date)
        await _store_fixtures(fixtures)
        league_ids.update(f["league_id"] for f in fixtures)
        total_matches += len(fixtures)
        logger.info("Match pool %s: %d fixtures stored", date, len(fixtures))

    next_update = to_epoch_ms(now) + settings.MATCH_POOL_REFRESH_HOURS * 60 * 60 * 1000
    leagues = sorted(league_ids)
    await _db.db.pool_metadata.replace_one(
        {"_id": POOL_METADATA_ID},
        {
            "last_update": utcnow(),
            "total_matches": total_matches,
            "leagues": leagues,
            "league_count": len(leagues),
            "next_update": next_update,
        },
        upsert=True,
    )

    await prune_expired()

    logger.info("Match pool refreshed: %d fixtures across %d leagues", total_matches, len(leagues))
    return {
        "total_matches": total_matches,
        "leagues": len(leagues),
        "timestamp": now.isoformat(),
    }


async def prune_expired(now: Optional[datetime] = None) -> int:
    """Delete every fixture whose kickoff is before now - retention window.

    Reads the whole pool and removes the expired keys in one delete_many.
    Returns the number of fixtures deleted.
    """
    cutoff = to_epoch_ms(now or utcnow()) - settings.MATCH_POOL_RETENTION_HOURS * 60 * 60 * 1000

    expired: list[str] = []
    async for doc in _db.db.match_pool.find({}, {"_id": 1, "timestamp": 1}):
        timestamp = doc.get("timestamp")
        if isinstance(timestamp, (int, float)) and timestamp < cutoff:
            expired.append(doc["_id"])

    if not expired:
        return 0

    result = await _db.db.match_pool.delete_many({"_id": {"$in": expired}})
    logger.info("Pruned %d expired fixtures from the match pool", result.deleted_count)
    return result.deleted_count
