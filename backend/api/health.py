"""Health endpoint."""

from fastapi import APIRouter, Depends

from backend.config import STORAGE_BACKEND
from backend.db.pool import check_pool_health
from backend.dependencies import get_stream_registry
from backend.http_pool import check_http_client_health
from backend.redis_client import check_redis_health
from backend.streaming.registry import ResumableStreamRegistry

router = APIRouter(tags=["health"])


@router.get("/api/health")
async def health(registry: ResumableStreamRegistry = Depends(get_stream_registry)):
    """
    Service health including storage, Redis and the shared HTTP client.

    Status is "healthy" unless the configured storage backend is unavailable.
    Redis being unavailable only disables resumable streams.
    """
    database = (
        await check_pool_health()
        if STORAGE_BACKEND == "postgres"
        else {"status": "memory"}
    )
    redis = await check_redis_health()

    status = "healthy"
    if database["status"] not in ("healthy", "memory"):
        status = "degraded"

    return {
        "status": status,
        "service": "Swarm Chat API",
        "database": database,
        "redis": redis,
        "http_client": await check_http_client_health(),
        "resumable_streams": redis["status"] == "healthy",
        "active_streams": await registry.active_count(),
    }
