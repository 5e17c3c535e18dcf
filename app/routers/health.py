"""
Health Check Router - FoodEval Scoring Engine
app/routers/health.py

Reports the configured storage and lock backends with real connection checks
where the backend is remote.
"""
from datetime import datetime, timezone
from typing import Dict

import redis
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from snowflake.connector.errors import Error as SnowflakeError

from app.config import settings

router = APIRouter(tags=["Health"])



#  Schemas


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str
    dependencies: Dict[str, str]



#  Dependency Health Checks


def _short(e: Exception) -> str:
    return str(e)[:100] + "..." if len(str(e)) > 100 else str(e)


def check_storage() -> str:
    """Check the evaluation store backend."""
    if settings.STORAGE_BACKEND == "memory":
        return "healthy (in-memory)"

    from app.services.snowflake import get_snowflake_connection
    try:
        conn = get_snowflake_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT CURRENT_USER()")
            result = cursor.fetchone()
            cursor.close()
        finally:
            conn.close()
        return f"healthy (User: {result[0]})"
    except SnowflakeError as e:
        return f"unhealthy: {_short(e)}"


def check_locks() -> str:
    """Check the lock backend."""
    if settings.LOCK_BACKEND == "local":
        return "healthy (in-process)"

    try:
        client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
        )
        client.ping()
        client.close()
        return f"healthy (URL: {settings.REDIS_URL})"
    except redis.RedisError as e:
        return f"unhealthy: {_short(e)}"



#  Main Health Check Route


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={
        200: {"description": "All dependencies healthy"},
        503: {"description": "One or more dependencies unhealthy"},
    },
    summary="Health check",
    description="Check health of the storage and lock backends.",
)
def health_check():
    dependencies = {
        "storage": check_storage(),
        "locks": check_locks(),
    }

    all_healthy = all(v.startswith("healthy") for v in dependencies.values())

    response = HealthResponse(
        status="healthy" if all_healthy else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=settings.APP_VERSION,
        dependencies=dependencies,
    )

    if all_healthy:
        return response
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=response.model_dump(mode="json"),
    )
