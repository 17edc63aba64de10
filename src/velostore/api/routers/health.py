"""Health check endpoints for VeloStore.

Provides Kubernetes-compatible liveness and readiness probes:
- /health/live  - Liveness probe (always returns OK if process is running)
- /health/ready - Readiness probe (checks database and Redis connectivity)
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from velostore.cache.redis import RedisCache, get_redis
from velostore.persistence.db import health_check as db_health_check

router = APIRouter(tags=["health"])

CHECK_TIMEOUT = 5.0


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    """Health status of a single component."""

    name: str
    status: HealthStatus
    latency_ms: float
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "latency_ms": round(self.latency_ms, 2),
        }
        if self.message:
            result["message"] = self.message
        return result


# Cache health results briefly to prevent health check storms
_health_cache: tuple[float, dict[str, Any]] | None = None
HEALTH_CACHE_TTL = 5  # seconds


async def _check(name: str, probe: Callable[[], Awaitable[bool]]) -> ComponentHealth:
    start = time.monotonic()
    try:
        healthy = await asyncio.wait_for(probe(), timeout=CHECK_TIMEOUT)
        message = None if healthy else f"{name} check failed"
    except asyncio.TimeoutError:
        healthy, message = False, f"{name} check timed out"
    except Exception as e:
        healthy, message = False, str(e)
    return ComponentHealth(
        name=name,
        status=HealthStatus.HEALTHY if healthy else HealthStatus.UNHEALTHY,
        latency_ms=(time.monotonic() - start) * 1000,
        message=message,
    )


async def check_database() -> ComponentHealth:
    return await _check("database", db_health_check)


async def check_redis() -> ComponentHealth:
    async def probe() -> bool:
        return await RedisCache(await get_redis()).health_check()

    return await _check("redis", probe)


@router.get("/health/live")
async def live() -> dict[str, str]:
    """Liveness probe.

    Returns OK if the process is running. Used by Kubernetes
    to determine if the container should be restarted.
    """
    return {"status": "ok"}


@router.get("/health/ready")
async def ready() -> JSONResponse:
    """Readiness probe.

    Checks database and Redis connectivity. Returns 200 if both are
    healthy, 503 otherwise.
    """
    global _health_cache

    now = time.monotonic()
    if _health_cache is not None:
        cached_time, cached_result = _health_cache
        if now - cached_time < HEALTH_CACHE_TTL:
            return JSONResponse(
                content=cached_result,
                status_code=200 if cached_result["status"] == "healthy" else 503,
            )

    components = await asyncio.gather(check_database(), check_redis())

    healthy = all(c.status == HealthStatus.HEALTHY for c in components)
    overall_status = HealthStatus.HEALTHY if healthy else HealthStatus.UNHEALTHY
    result = {
        "status": overall_status.value,
        "components": [c.to_dict() for c in components],
    }

    _health_cache = (now, result)
    return JSONResponse(content=result, status_code=200 if healthy else 503)
