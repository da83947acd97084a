"""
Health Check Endpoints

- /health/live  - process is up
- /health/ready - database reachable and tables created, upload dir writable
"""

from fastapi import APIRouter, HTTPException, status
from datetime import datetime
from typing import Any, Dict
import time

from sqlalchemy import text

from app.core.config import settings
from app.core.database import get_session_local
from app.core.logging_config import logger


router = APIRouter(prefix="/health", tags=["Health Checks"])

PLACEHOLDER_SECRETS = {"CHANGE_ME", "your-secret-key", "changeme"}


async def check_database() -> Dict[str, Any]:
    """Database connectivity and whether the schema has been created"""
    start = time.time()
    try:
        session_factory = get_session_local()
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
            try:
                await session.execute(text("SELECT COUNT(*) FROM users"))
                tables_ok = True
            except Exception:
                tables_ok = False

        return {
            "status": "healthy",
            "latency_ms": round((time.time() - start) * 1000, 2),
            "tables_ready": tables_ok,
        }
    except Exception as e:
        logger.error(f"[HealthCheck] Database check failed: {e}")
        return {
            "status": "unhealthy",
            "latency_ms": round((time.time() - start) * 1000, 2),
            "tables_ready": False,
            "error": str(e),
        }


def check_storage() -> Dict[str, Any]:
    """Upload directory exists (or can be created) and is writable"""
    upload_dir = settings.UPLOAD_DIR
    try:
        upload_dir.mkdir(parents=True, exist_ok=True)
        probe = upload_dir / ".health"
        probe.write_text("ok")
        probe.unlink()
        return {"status": "healthy", "path": str(upload_dir)}
    except OSError as e:
        return {"status": "unhealthy", "path": str(upload_dir), "error": str(e)}


def check_critical_env_vars() -> Dict[str, Any]:
    missing = []
    if not settings.DATABASE_URL:
        missing.append("DATABASE_URL")
    if not settings.JWT_SECRET_KEY or settings.JWT_SECRET_KEY in PLACEHOLDER_SECRETS:
        missing.append("JWT_SECRET_KEY")
    if missing:
        return {"status": "unhealthy", "missing_critical": missing}
    return {"status": "healthy", "missing_critical": []}


@router.get("/live")
async def liveness_check():
    return {
        "status": "alive",
        "timestamp": datetime.utcnow().isoformat(),
        "app": settings.APP_NAME,
    }


@router.get("/ready")
async def readiness_check():
    """503 unless the database is reachable and the tables exist"""
    db_check = await check_database()
    checks = {
        "database": db_check,
        "storage": check_storage(),
        "environment": check_critical_env_vars(),
    }
    is_ready = db_check.get("status") == "healthy" and db_check.get("tables_ready", False)

    response = {
        "status": "ready" if is_ready else "not_ready",
        "timestamp": datetime.utcnow().isoformat(),
        "checks": checks,
    }
    if not is_ready:
        logger.warning(f"[HealthCheck] Readiness check failed: {response}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=response)
    return response
