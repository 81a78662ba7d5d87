from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from typing import Any

from redis.asyncio import Redis
from sqlalchemy import text

from loan_manager import __version__
from loan_manager.core.settings import settings
from loan_manager.db.session import engine

APP_VERSION = __version__


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _check_db() -> dict[str, Any]:
    started = time.perf_counter()
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:  # reported in the payload, never raised
        return {"status": "error", "error": str(exc)}
    return {"status": "ok", "latency_ms": round((time.perf_counter() - started) * 1000, 1)}


async def _check_redis() -> dict[str, Any]:
    started = time.perf_counter()
    client = Redis.from_url(settings.redis_url)
    try:
        await client.ping()
    except Exception as exc:
        return {"status": "error", "error": str(exc)}
    finally:
        await client.aclose()
    return {"status": "ok", "latency_ms": round((time.perf_counter() - started) * 1000, 1)}


async def live_payload() -> dict[str, str]:
    return {"status": "ok", "timestamp": _now()}


async def ready_payload() -> dict[str, Any]:
    """Probe the database and Redis; the service is ready only if both answer."""
    database, redis = await asyncio.gather(_check_db(), _check_redis())
    checks = {"database": database, "redis": redis}
    ready = all(check["status"] == "ok" for check in checks.values())
    return {
        "status": "ok" if ready else "degraded",
        "ready": ready,
        "environment": settings.environment,
        "version": APP_VERSION,
        "timestamp": _now(),
        "checks": checks,
    }
