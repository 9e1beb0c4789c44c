"""Tournament duration endpoints."""

from fastapi import APIRouter, HTTPException, status

from pronohub.api.models import DurationRecalculateRequest, DurationRecalculateResponse
from pronohub.consumers.duration import DurationEstimator
from pronohub.database import get_db
from pronohub.database.tournaments import get_duration_events, get_tournament

router = APIRouter()


@router.post(
    "/tournaments/{tournament_id}/recalculate-duration",
    response_model=DurationRecalculateResponse,
)
def recalculate_duration(
    tournament_id: int,
    request: DurationRecalculateRequest | None = None,
) -> DurationRecalculateResponse:
    """Recompute a tournament's ending date, optionally for a new ending matchday."""
    request = request or DurationRecalculateRequest()

    with get_db() as conn:
        if get_tournament(conn, tournament_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Tournament {tournament_id} not found",
            )

    try:
        estimate = DurationEstimator(get_db).recalculate(
            tournament_id,
            reason=request.reason,
            new_ending_matchday=request.ending_matchday,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from None

    return DurationRecalculateResponse(
        tournament_id=tournament_id,
        ending_matchday=estimate.ending_matchday,
        ending_date=estimate.ending_date,
        estimation_used=estimate.estimation_used,
        estimation_details=estimate.estimation_details,
    )


@router.get("/tournaments/{tournament_id}/duration-events")
def list_duration_events(tournament_id: int) -> list[dict]:
    """Audit trail of ending-date changes, oldest first."""
    with get_db() as conn:
        if get_tournament(conn, tournament_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Tournament {tournament_id} not found",
            )
        return [event.to_dict() for event in get_duration_events(conn, tournament_id)]
