"""Health Probe — liveness plus database readiness in one public endpoint.

Invariants:
    - GET /api/health is public (route guard PASS for every caller)
    - Returns 503 when the database is unreachable or not initialized
"""

import logging
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

import app.infrastructure.database as db_module

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
async def health_check():
    manager = db_module.db_manager
    db_ok = await manager.health_check() if manager else False
    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
            },
        )
    return {
        "status": "healthy",
        "service": "ladtc-backend",
        "checks": {"database": "healthy"},
    }
