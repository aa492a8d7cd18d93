import time
from typing import Any, Callable, Dict

import structlog
from django.core.cache import cache
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone

from modules.core.models import EventStatus, OutboxEvent

logger = structlog.get_logger()


def _check_database() -> None:
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()


def _check_cache() -> None:
    cache.set("_health_check", "ok", 10)
    if cache.get("_health_check") != "ok":
        raise ConnectionError("Cache read failed")


def _run_check(name: str, check: Callable[[], None]) -> Dict[str, Any]:
    start = time.monotonic()
    try:
        check()
    except Exception:  # noqa: BLE001 - any failure means the dependency is down
        logger.error("health_check.dependency_down", dependency=name)
        return {"status": "down"}
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - start) * 1000, 2),
    }


def _outbox_backlog() -> Dict[str, int]:
    """Pending / failed outbox rows; informational, never fails the check."""
    return {
        "pending": OutboxEvent.objects.filter(status=EventStatus.PENDING).count(),
        "failed": OutboxEvent.objects.filter(status=EventStatus.FAILED).count(),
    }


def health_check(request: HttpRequest) -> JsonResponse:
    services = {
        "database": _run_check("database", _check_database),
        "cache": _run_check("cache", _check_cache),
    }
    overall_healthy = all(s["status"] == "up" for s in services.values())

    body: Dict[str, Any] = {
        "status": "healthy" if overall_healthy else "unhealthy",
        "timestamp": timezone.now().isoformat(),
        "services": services,
    }
    if services["database"]["status"] == "up":
        body["outbox"] = _outbox_backlog()

    logger.info("health_check.completed", status=body["status"])
    return JsonResponse(body, status=200 if overall_healthy else 503)
