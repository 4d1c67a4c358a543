# app/routes/health.py
"""
Health check endpoints: liveness and readiness with database pool status.
"""

import time

from fastapi import APIRouter

from app.config import settings
from app.db.pool import db_health_check

router = APIRouter()


@router.get("/healthz")
async def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "trainer-schedule"}


@router.get("/readyz")
async def readyz():
    """Readiness check covering the database pool and schedule configuration."""
    checks = {}
    overall_ok = True

    # 1) Database pool
    t0 = time.time()
    try:
        db_health = await db_health_check()
        is_healthy = db_health.get("healthy", False)
        checks["postgres"] = {
            "ok": is_healthy,
            "latency_ms": round((time.time() - t0) * 1000, 1),
        }

        if "pool_stats" in db_health:
            pool_stats = db_health["pool_stats"]
            checks["postgres"].update(
                {
                    "pool_size": pool_stats.get("pool_size", 0),
                    "pool_available": pool_stats.get("pool_available", 0),
                    "pool_utilization_percent": pool_stats.get("pool_utilization_percent", 0),
                }
            )
        if "warnings" in db_health:
            checks["postgres"]["warnings"] = db_health["warnings"]
        if not is_healthy:
            checks["postgres"]["error"] = db_health.get("error", "Database unhealthy")

        overall_ok = overall_ok and is_healthy
    except Exception as e:
        checks["postgres"] = {"ok": False, "error": f"{type(e).__name__}: {e}"}
        overall_ok = False

    # 2) Schedule configuration (working hours and timezone must load)
    try:
        policy = settings.working_hours()
        tz = settings.schedule_tz()
        checks["schedule_config"] = {
            "ok": True,
            "working_hours": f"{policy.start_hour}:00-{policy.end_hour}:00",
            "timezone": str(tz),
        }
    except Exception as e:
        checks["schedule_config"] = {"ok": False, "error": f"{type(e).__name__}: {e}"}
        overall_ok = False

    return {"overall_ok": overall_ok, "checks": checks}
