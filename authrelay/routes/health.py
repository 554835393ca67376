"""
Health check endpoints.
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Request

router = APIRouter(tags=["Health"])


@router.get("/")
async def root(request: Request):
    """Service banner."""
    settings = request.app.state.settings
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@router.get("/health")
async def health(request: Request):
    """Liveness check with deployment environment and server time."""
    return {
        "status": "healthy",
        "environment": request.app.state.settings.ENVIRONMENT,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
