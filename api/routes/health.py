"""
Health check endpoints.

Provides endpoints for monitoring and load balancer health checks.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_user_repository
from core.logging import get_logger
from core.storage import BaseUserRepository


logger = get_logger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check() -> dict:
    """
    Basic health check.
    
    Returns 200 if the process is up, without touching the database.
    """
    return {
        "status": "healthy",
        "service": "user-api",
    }


@router.get("/ready")
async def readiness_check(
    repository: BaseUserRepository = Depends(get_user_repository),
) -> JSONResponse:
    """
    Readiness check.
    
    Returns 200 if the database answers, 503 otherwise.
    """
    if await repository.ping():
        return JSONResponse(
            status_code=200,
            content={"status": "ready", "checks": {"database": "ok"}},
        )

    logger.warning("Readiness check failed", check="database")
    return JSONResponse(
        status_code=503,
        content={"status": "not_ready", "checks": {"database": "unavailable"}},
    )
