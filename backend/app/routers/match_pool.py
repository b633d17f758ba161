"""
backend/app/routers/match_pool.py

Purpose:
    Manual (unauthenticated) trigger for the match pool refresh, used by the
    external scheduler and for ad-hoc runs.

Dependencies:
    - app.services.match_pool_service
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.models.match_pool import PoolRefreshResponse
from app.services import match_pool_service
from app.workers._state import set_synced
from app.workers.match_pool_refresh import STATE_KEY

logger = logging.getLogger("matchcredit.match_pool")

router = APIRouter(prefix="/api/match-pool", tags=["match-pool"])


@router.api_route("/refresh", methods=["GET", "POST"], response_model=PoolRefreshResponse)
async def refresh_match_pool_manual():
    logger.info("Manual match pool refresh requested")
    try:
        result = await match_pool_service.refresh_pool()
        await set_synced(STATE_KEY, result)
    except Exception as exc:
        logger.exception("Match pool refresh failed")
        return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})

    return {
        "success": True,
        "message": "Match pool updated",
        "totalMatches": result["total_matches"],
        "leagues": result["leagues"],
        "timestamp": result["timestamp"],
    }
