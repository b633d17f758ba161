"""Scheduled match pool refresh (APScheduler job, opt-in via MATCH_POOL_AUTO_REFRESH)."""

import logging
from datetime import timedelta

from app.config import settings
from app.errors import ConfigurationError
from app.services.match_pool_service import refresh_pool
from app.workers._state import recently_synced, set_synced

logger = logging.getLogger("matchcredit.match_pool_refresh")

STATE_KEY = "match_pool_refresh"


async def run_match_pool_refresh() -> None:
    """Refresh the pool unless a run finished within the last interval.

    Smart sleep window is 90% of MATCH_POOL_REFRESH_HOURS so scheduler jitter
    never skips a whole cycle.
    """
    window = timedelta(hours=settings.MATCH_POOL_REFRESH_HOURS) * 0.9
    if await recently_synced(STATE_KEY, window):
        logger.debug("Smart sleep: match pool refreshed recently")
        return

    try:
        result = await refresh_pool()
    except ConfigurationError as exc:
        logger.error("Match pool refresh skipped: %s", exc.message)
        return

    await set_synced(STATE_KEY, result)
