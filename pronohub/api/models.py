"""Pydantic models for API requests and responses."""

from datetime import datetime

from pydantic import BaseModel, Field

# =============================================================================
# Sync triggers
# =============================================================================


class ScoreSyncRequest(BaseModel):
    """Request body for a score-only sync."""

    competition_id: int | None = None
    matchday: int | None = Field(None, ge=1)


# =============================================================================
# Tournaments
# =============================================================================


class DurationRecalculateRequest(BaseModel):
    """Request body for recalculating a tournament's ending date."""

    ending_matchday: int | None = Field(None, ge=1)
    reason: str = "manual recalculation"


class DurationRecalculateResponse(BaseModel):
    """Response body for a duration recalculation."""

    tournament_id: int
    ending_matchday: int
    ending_date: datetime | None
    estimation_used: bool
    estimation_details: str | None


# =============================================================================
# Health
# =============================================================================


class HealthResponse(BaseModel):
    status: str
    version: str
    scheduler: dict
