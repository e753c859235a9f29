"""Health & Readiness Probes — liveness and readiness for the print service.

Invariants:
    - GET /health/ returns 200 whenever the process can serve requests
    - GET /health/ready returns 503 while the order database is unreachable;
      orders cannot be created or tracked without it
    - Probes never touch the blob store (a slow Cloudinary call must not
      take the instance out of rotation)
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from campus_print.api.dependencies import AppServices, get_services

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])

SERVICE_NAME = "campus-print-api"
SERVICE_VERSION = "1.0.0"


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Liveness probe."""
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
    }


@router.get("/ready")
async def readiness_check(services: AppServices = Depends(get_services)):
    """Readiness probe: database reachable, blob backend reported."""
    backend = services.settings.blob_backend.value
    if not await services.db.health_check():
        logger.warning("Readiness check failed: database unavailable")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
                "blob_backend": backend,
            },
        )
    return {
        "status": "ready",
        "checks": {"database": "healthy"},
        "blob_backend": backend,
    }
