"""Health Probes — liveness and readiness.

Invariants:
    - GET /health/ answers 200 while the process is up; it touches nothing
    - GET /health/ready answers 503 unless the database round-trips and the
      payment gateway has been constructed

Design Decisions:
    - Readiness reads the lifespan resources from app.state directly, not through
      request dependencies, so a missing resource is reported instead of raised
"""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

router = APIRouter(prefix="/api/v1/health", tags=["health"])

SERVICE = {"service": "book-porter-api", "version": "1.0.0"}


@router.get("/")
async def liveness():
    return {"status": "healthy", **SERVICE}


@router.get("/ready")
async def readiness(request: Request):
    state = request.app.state
    db_manager = getattr(state, "db_manager", None)
    checks = {
        "database": "healthy" if db_manager and await db_manager.health_check() else "unavailable",
        "payment_gateway": (
            "configured" if getattr(state, "payment_gateway", None) else "unavailable"
        ),
    }
    if "unavailable" in checks.values():
        reason = "database_unavailable" if checks["database"] != "healthy" else "gateway_unavailable"
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": reason, "checks": checks},
        )
    return {"status": "ready", "checks": checks, **SERVICE}
