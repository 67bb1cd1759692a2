from fastapi import APIRouter
from sqlalchemy import text

from app.database import engine
from app.utils.cache import redis_client

router = APIRouter(prefix="/health", tags=["Health"])


@router.get(
    "/",
    summary="Health check",
    description="Basic health check endpoint."
)
def health_check():
    """Simple health check."""
    return {"status": "healthy"}


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check whether the database is reachable. Redis is reported but optional."
)
def readiness_check():
    """
    Readiness check for dependencies.

    The service is ready when the database answers. Redis only backs the
    product cache, so its state is reported without affecting readiness.
    """
    checks = {
        "database": False,
        "redis": False
    }

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            checks["database"] = True
    except Exception as e:
        checks["database_error"] = str(e)

    try:
        redis_client.ping()
        checks["redis"] = True
    except Exception as e:
        checks["redis_error"] = str(e)

    return {
        "status": "ready" if checks["database"] else "not_ready",
        "checks": checks
    }
