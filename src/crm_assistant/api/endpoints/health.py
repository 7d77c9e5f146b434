"""Health check endpoints."""

from fastapi import APIRouter

from crm_assistant.clients import check_redis_health
from crm_assistant.core.config import get_settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    """Basic health check endpoint."""
    return {"status": "healthy", "service": get_settings().service_name}


@router.get("/ready")
async def ready() -> dict:
    """
    Readiness check.

    A down cache only makes every lookup a miss, so the service reports
    itself ready either way and exposes the cache state under `checks`.
    """
    return {
        "status": "ready",
        "checks": {"cache": "ok" if await check_redis_health() else "unavailable"},
    }
