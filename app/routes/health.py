"""
Health check endpoints.
Used for monitoring, deployment readiness checks, and basic connectivity tests.
"""

from fastapi import APIRouter, HTTPException
from datetime import datetime, timezone

from app.core.errors import UpstreamFailure
from app.core.settings import settings
from app.repositories import get_repositories


router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """
    Basic health check endpoint.
    Returns 200 if service is running.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.get("/db")
def database_health():
    """
    Database connectivity check.
    Runs a lightweight read against the configured store.
    """
    try:
        pages = get_repositories().pages.list_active_pages()
    except UpstreamFailure as e:
        raise HTTPException(
            status_code=503,
            detail=f"Database connection failed: {e.message}"
        )

    return {
        "status": "healthy",
        "database": "memory" if settings.USE_MOCK_DB else "firestore",
        "connected": True,
        "active_pages": len(pages),
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
