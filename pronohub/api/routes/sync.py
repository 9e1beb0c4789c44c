"""Sync trigger endpoints.

Manual triggers for the same passes the scheduler runs. Every response is
the pass summary; partial failures are reported in the body with 200.
Only a missing provider configuration is an HTTP error.
"""

import logging

from fastapi import APIRouter, HTTPException, Query, status

from pronohub.api.models import ScoreSyncRequest
from pronohub.consumers.primary_sync import NOT_CONFIGURED
from pronohub.consumers.runs import (
    run_daily_sync,
    run_fallback,
    run_realtime_sync,
    run_score_sync,
)
from pronohub.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


def _raise_if_not_configured(result) -> None:
    if not result.success and result.error == NOT_CONFIGURED:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=NOT_CONFIGURED,
        )


@router.post("/sync/full")
async def trigger_full_sync() -> dict:
    """Run the daily sync now (completion and fallback included)."""
    logger.info("[API] Manual daily sync triggered")
    result = await run_daily_sync(get_db)
    _raise_if_not_configured(result)
    return result.to_dict()


@router.post("/sync/realtime")
async def trigger_realtime_sync() -> dict:
    """Run one realtime pass over the open match windows."""
    result = await run_realtime_sync(get_db)
    _raise_if_not_configured(result)
    return result.to_dict()


@router.post("/sync/fallback")
async def trigger_fallback(
    force: bool = Query(False, description="Bypass the cooldown"),
) -> dict:
    """Run the secondary-provider reconciliation."""
    logger.info("[API] Manual fallback triggered (force=%s)", force)
    result = await run_fallback(get_db, force=force)
    return {**result.to_dict(), "forced": force}


@router.post("/sync/scores")
async def trigger_score_sync(request: ScoreSyncRequest | None = None) -> dict:
    """Refresh scores of started matches, optionally for one competition/matchday."""
    request = request or ScoreSyncRequest()
    result = await run_score_sync(
        get_db,
        competition_id=request.competition_id,
        matchday=request.matchday,
    )
    _raise_if_not_configured(result)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.error)
    return result.to_dict()
