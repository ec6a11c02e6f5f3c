from __future__ import annotations

import asyncio
from typing import Any

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy import text

from app.core.config import get_settings
from app.db.session import SessionLocal
from app.workers.celery_app import celery_app

router = APIRouter(tags=["health"])
logger = structlog.get_logger(__name__)


def _check_result(error: str | None = None, **extra: Any) -> dict[str, Any]:
    if error is not None:
        return {"status": "failed", "error": error}
    return {"status": "ok", **extra}


async def _check_database() -> dict[str, Any]:
    try:
        async with SessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception:
        logger.warning("health_database_check_failed", exc_info=True)
        return _check_result("database_unavailable")
    return _check_result()


async def _check_redis() -> dict[str, Any]:
    redis_client = Redis.from_url(get_settings().redis_url)
    try:
        if await redis_client.ping() is not True:
            return _check_result("redis_unexpected_ping")
    except Exception:
        logger.warning("health_redis_check_failed", exc_info=True)
        return _check_result("redis_unavailable")
    finally:
        await redis_client.aclose()
    return _check_result()


def _check_celery_worker_sync() -> dict[str, Any]:
    try:
        inspector = celery_app.control.inspect(timeout=1.0)
        replies = (inspector.ping() if inspector is not None else None) or {}
    except Exception:
        logger.warning("health_celery_check_failed", exc_info=True)
        return _check_result("celery_unavailable")
    if not replies:
        return _check_result("celery_no_workers")
    return _check_result(workers=len(replies))


async def _check_celery_worker() -> dict[str, Any]:
    return await asyncio.to_thread(_check_celery_worker_sync)


def _status_response(
    *,
    checks: dict[str, dict[str, Any]],
    ok_status: str,
    failed_status: str,
) -> JSONResponse:
    is_ok = all(check.get("status") == "ok" for check in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if is_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": ok_status if is_ok else failed_status, "checks": checks},
    )


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "live"}


@router.get("/health")
async def health() -> JSONResponse:
    database, redis, celery = await asyncio.gather(
        _check_database(),
        _check_redis(),
        _check_celery_worker(),
    )
    return _status_response(
        checks={"database": database, "redis": redis, "celery": celery},
        ok_status="ok",
        failed_status="degraded",
    )


@router.get("/ready")
async def ready() -> JSONResponse:
    # Reconciliation workers are optional for serving listing and payment traffic.
    database, redis = await asyncio.gather(_check_database(), _check_redis())
    return _status_response(
        checks={"database": database, "redis": redis},
        ok_status="ready",
        failed_status="not_ready",
    )
