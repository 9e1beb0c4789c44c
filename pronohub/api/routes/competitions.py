"""Competition endpoints."""

from fastapi import APIRouter, HTTPException, status

from pronohub.consumers.primary_sync import NOT_CONFIGURED
from pronohub.consumers.runs import run_import
from pronohub.database import get_db
from pronohub.database.competitions import list_competitions

router = APIRouter()


@router.get("/competitions")
def get_competitions(active_only: bool = False) -> list[dict]:
    """List imported competitions."""
    with get_db() as conn:
        return [c.to_dict() for c in list_competitions(conn, active_only=active_only)]


@router.post("/competitions/{competition_id}/import")
async def import_competition(competition_id: int) -> dict:
    """Import a competition and its fixtures from the primary provider."""
    result = await run_import(get_db, competition_id)
    if not result.success and result.error == NOT_CONFIGURED:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=NOT_CONFIGURED,
        )
    return result.to_dict()
