"""Health check endpoints."""

from fastapi import APIRouter

from research_notes.core.config import settings
from research_notes.schemas import HealthResponse

router = APIRouter()


@router.get("/health", tags=["system"], response_model=HealthResponse)
def healthcheck() -> HealthResponse:
    """Simple readiness probe."""

    return HealthResponse(status="ok", storage=settings.storage_backend)
