"""Health & Readiness Checks — liveness and readiness endpoints.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if the database is unreachable (readiness)
    - The content store is reported when configured but never fails readiness
"""

import logging
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from dataroom.infrastructure import content_store_client, database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    return {"status": "healthy", "service": "dataroom-api"}


@router.get("/ready")
async def readiness_check():
    """Readiness check — database connectivity plus content store status."""
    db_manager = database.db_manager
    db_ok = await db_manager.health_check() if db_manager else False
    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    checks = {"database": "healthy"}
    store = content_store_client.content_store
    if store is None:
        checks["content_store"] = "disabled"
    else:
        checks["content_store"] = "healthy" if await store.is_healthy() else "degraded"
    return {"status": "ready", "checks": checks}
