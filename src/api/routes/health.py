"""
Health check endpoints.
"""

import time

from fastapi import APIRouter

from src.application.dto.responses import HealthResponse, ProviderHealthResponse
from src.config import get_settings
from src.core.exceptions import StorageError

router = APIRouter(prefix="/api/health", tags=["health"])

# Track startup time
_start_time = time.time()


async def _check_database() -> ProviderHealthResponse:
    from src.infrastructure.storage.sqlite import get_pool

    try:
        pool = await get_pool()
        latency_ms = await pool.ping()
    except StorageError as e:
        return ProviderHealthResponse(name="sqlite", available=False, error=e.message)
    return ProviderHealthResponse(name="sqlite", available=True, latency_ms=latency_ms)


async def _check_remote() -> ProviderHealthResponse:
    from src.infrastructure.remote import get_remote_store

    store = get_remote_store()
    start = time.time()
    available = await store.ping()
    return ProviderHealthResponse(
        name="postgrest",
        available=available,
        latency_ms=(time.time() - start) * 1000 if available else None,
        error=None if available else "remote store unreachable",
    )


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check.

    Returns service status and uptime.
    """
    return HealthResponse(
        status="healthy",
        version=get_settings().app_version,
        uptime_seconds=time.time() - _start_time,
    )


@router.get("/db", response_model=HealthResponse)
async def db_health() -> HealthResponse:
    """
    Database health check.

    Tests SQLite connectivity and response time.
    """
    db_status = await _check_database()
    return HealthResponse(
        status="healthy" if db_status.available else "unhealthy",
        version=get_settings().app_version,
        uptime_seconds=time.time() - _start_time,
        database=db_status,
    )


@router.get("/full", response_model=HealthResponse)
async def full_health_check() -> HealthResponse:
    """
    Full health check: local database and remote store.

    An unreachable remote only degrades the service; local writes keep
    working and queue up.
    """
    db_status = await _check_database()
    remote_status = await _check_remote()

    if not db_status.available:
        status_str = "unhealthy"
    elif not remote_status.available:
        status_str = "degraded"
    else:
        status_str = "healthy"

    return HealthResponse(
        status=status_str,
        version=get_settings().app_version,
        uptime_seconds=time.time() - _start_time,
        database=db_status,
        remote=remote_status,
    )
