"""Health & Readiness Probes — process liveness and dependency readiness.

Invariants:
    - GET /health/ returns 200 while the process is up (liveness)
    - GET /health/ready is 503 when the database is unreachable or the upstream
      clients were never initialized; every check is reported either way
    - Missing GeoNames credentials or a disabled scheduler are reported, never failing
    - Probes are open: no bearer token required

Design Decisions:
    - Module singletons (db_manager, upstream) are read at call time; they are set
      during lifespan, after this module is imported
"""

import logging
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from travel_advisor.infrastructure import database, upstream

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check(request: Request):
    """Liveness: the process answers."""
    return {
        "status": "healthy",
        "service": "travel-advisor-api",
        "version": request.app.version,
    }


async def _database_check() -> str:
    manager = database.db_manager
    if manager is None:
        return "uninitialized"
    return "healthy" if await manager.health_check() else "unreachable"


def _upstream_checks() -> dict[str, str]:
    clients = upstream.upstream
    if clients is None:
        return {"upstream": "uninitialized"}
    return {
        "upstream": "initialized",
        "city_discovery": "configured" if clients.cities.is_configured else "capitals_only",
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness: database reachable and upstream clients built."""
    scheduler = getattr(request.app.state, "scheduler", None)
    checks = {
        "database": await _database_check(),
        **_upstream_checks(),
        "scheduler": "running" if scheduler and scheduler.running else "disabled",
    }
    if checks["database"] != "healthy" or checks["upstream"] != "initialized":
        logger.warning("Readiness check failed", extra={"path": "/api/v1/health/ready"})
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "checks": checks},
        )
    return {"status": "ready", "checks": checks}
