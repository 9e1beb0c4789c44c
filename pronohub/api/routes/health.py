"""Health check endpoint."""

from fastapi import APIRouter

from pronohub.api.models import HealthResponse
from pronohub.config import VERSION
from pronohub.consumers.scheduler import get_scheduler_status

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Health check endpoint with scheduler status."""
    return HealthResponse(
        status="healthy",
        version=VERSION,
        scheduler=get_scheduler_status(),
    )
