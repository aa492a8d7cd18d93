import time
import uuid
from contextvars import ContextVar
from typing import Callable

import structlog
from django.http import HttpRequest, HttpResponse

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

logger = structlog.get_logger()

CORRELATION_HEADER = "X-Request-ID"


class CorrelationIdMiddleware:
    """Binds a correlation id to every log line of a request.

    The id comes from ``X-Request-ID`` or is a fresh UUID4.  It is kept in a
    ContextVar and in the structlog context (so service and repository logs
    carry it), and echoed back in the response header.  Webhook and task
    logs can be matched to the request that triggered them through it.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        cid = request.META.get("HTTP_X_REQUEST_ID") or str(uuid.uuid4())
        correlation_id_var.set(cid)
        request.correlation_id = cid

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=cid)

        start = time.monotonic()
        logger.info(
            "request.started",
            method=request.method,
            path=request.get_full_path(),
        )

        response = self.get_response(request)

        logger.info(
            "request.finished",
            method=request.method,
            path=request.get_full_path(),
            status_code=response.status_code,
            duration_ms=round((time.monotonic() - start) * 1000, 2),
        )

        response[CORRELATION_HEADER] = cid
        return response
