"""
Health check endpoints for the authorization service.

These routes are public (see ``security.public_paths``) so probes do not
need credentials.
"""

import os
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from authz import __version__
from authz.api.deps import get_container
from authz.container import ServiceContainer


class HealthStatus(BaseModel):
    """Health status response model."""
    status: str
    timestamp: datetime
    version: str
    uptime_seconds: float
    environment: str
    dependencies: Optional[Dict[str, Dict[str, Any]]] = None


# Track service start time for uptime calculation
_start_time = time.time()

router = APIRouter(prefix="/health", tags=["Health"])


@router.get(
    "",
    response_model=HealthStatus,
    summary="Health check",
    description="Returns service status and database connectivity",
)
def health_check(container: ServiceContainer = Depends(get_container)) -> HealthStatus:
    dependencies = {"database": _check_database(container)}

    return HealthStatus(
        status="healthy" if dependencies["database"]["status"] == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        uptime_seconds=time.time() - _start_time,
        environment=os.getenv("ENVIRONMENT", "development"),
        dependencies=dependencies,
    )


@router.get("/ready", summary="Readiness check")
def readiness_check(container: ServiceContainer = Depends(get_container)) -> Dict[str, str]:
    """
    Raises:
        HTTPException: 503 if the database is unreachable.
    """
    if _check_database(container)["status"] != "healthy":
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not ready - database unavailable",
        )
    return {"status": "ready"}


@router.get("/live", summary="Liveness check")
def liveness_check() -> Dict[str, str]:
    return {"status": "alive"}


def _check_database(container: ServiceContainer) -> Dict[str, Any]:
    try:
        return {
            "status": "healthy",
            "response_time_ms": container.database.ping(),
            "message": "Database connection successful",
        }
    except SQLAlchemyError as e:
        return {
            "status": "unhealthy",
            "error": str(e),
            "message": "Database connection failed",
        }
