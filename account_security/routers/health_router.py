"""
Health check router.

Provides the liveness endpoint used by load balancers and orchestrators.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, status
from pydantic import BaseModel

from .. import __version__
from ..config import settings

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    timestamp: str
    service: str = "account-security-service"
    version: str = __version__
    store: str


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
)
async def health_check():
    """Always returns 200 OK if the service is running."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        store="memory" if settings.USE_IN_MEMORY_STORE else "supabase",
    )
