"""Stats API endpoints.

- API call volume per provider and call type
- Recent provider calls
- Recent sync runs
- Primary provider quota
"""

from datetime import timedelta

from fastapi import APIRouter, Query

from pronohub.database import get_db
from pronohub.database.api_calls import get_api_call_stats, get_recent_calls
from pronohub.database.sync_runs import get_recent_runs
from pronohub.utilities.tz import now_utc

router = APIRouter()


@router.get("/api-calls")
def get_api_calls(
    hours: int = Query(24, ge=1, le=24 * 30, description="Look-back window in hours"),
):
    """Aggregate provider calls over the look-back window."""
    with get_db() as conn:
        return get_api_call_stats(conn, now_utc() - timedelta(hours=hours))


@router.get("/api-calls/recent")
def get_recent_api_calls(
    limit: int = Query(50, ge=1, le=500, description="Max calls to return"),
):
    with get_db() as conn:
        calls = get_recent_calls(conn, limit=limit)
    return [
        {
            "id": c.id,
            "api_name": c.api_name,
            "call_type": c.call_type,
            "endpoint": c.endpoint,
            "competition_id": c.competition_id,
            "success": c.success,
            "status_code": c.status_code,
            "response_time_ms": c.response_time_ms,
            "created_at": c.created_at.isoformat() if c.created_at else None,
        }
        for c in calls
    ]


@router.get("/runs")
def get_runs(
    limit: int = Query(50, ge=1, le=500, description="Max runs to return"),
    run_type: str | None = Query(None, description="Filter by run type"),
):
    """Get recent sync runs, newest first."""
    with get_db() as conn:
        runs = get_recent_runs(conn, limit=limit, run_type=run_type)
    return {"runs": [run.to_dict() for run in runs], "count": len(runs)}


@router.get("/rate-limit")
async def get_rate_limit():
    """Current football-data quota, read from the account endpoint headers."""
    from pronohub.database.api_calls import make_api_call_recorder
    from pronohub.providers import create_football_data_client

    async with create_football_data_client(make_api_call_recorder(get_db)) as client:
        if not client.is_configured:
            return {"configured": False}
        account = await client.get_account()
    return {"configured": True, "account": account}
