"""Health check: unauthenticated liveness endpoints."""

from fastapi import APIRouter

from opencdn import __version__
from opencdn.schemas.system import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Service name and version; never looks at the x-api-key header."""
    return HealthResponse(version=__version__)


@router.get("/ping")
async def ping():
    """Bare liveness check for proxies in front of the CDN."""
    return {"status": "ok", "service": "opencdn"}
