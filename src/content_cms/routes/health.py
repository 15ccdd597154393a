"""Liveness and readiness endpoints."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from content_cms import __version__
from content_cms.database import db_manager

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health():
    """Reports database connectivity. Answers 503 while MongoDB is unreachable."""
    database_ok = await db_manager.health_check()
    body = {
        "status": "healthy" if database_ok else "unhealthy",
        "database": "connected" if database_ok else "unavailable",
        "version": __version__,
    }
    return JSONResponse(status_code=200 if database_ok else 503, content=body)
