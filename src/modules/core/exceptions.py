"""Domain error taxonomy and the DRF exception handler.

Every error the engine reports to a caller derives from ``DomainError``.
Each subclass carries a stable machine-readable ``code``, the HTTP status
the API layer answers with, and optional structured fields (``extra``) that
let callers act on the failure without parsing the message, e.g. the
``available_quantity`` of ``InsufficientStock``.

Module-specific errors live in each module's ``exceptions.py`` and extend
the classes below.

All API errors, domain or DRF, share one envelope::

    {"type": "client_error", "errors": [{"code": "...", "detail": "...", "attr": null}]}
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError
from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = structlog.get_logger(__name__)


class DomainError(Exception):
    """Base class for structured, caller-actionable failures."""

    code = "error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "The request could not be completed."

    def __init__(self, message: str = "", **extra: Any) -> None:
        super().__init__(message or self.default_message)
        self.extra: Dict[str, Any] = extra

    def as_error(self) -> Dict[str, Any]:
        return {"code": self.code, "detail": str(self), "attr": None, **self.extra}


class NotFound(DomainError):
    """A product, variant, cart line or order does not exist."""

    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found."


class Unauthenticated(DomainError):
    """An operation that needs a user identity was called without one."""

    code = "not_authenticated"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication credentials were not provided."


class UpstreamError(DomainError):
    """A payment gateway or shipping provider call failed.

    ``step`` names the external call, ``payload`` holds the provider's raw
    error body (parsed JSON when possible, text otherwise).
    """

    code = "upstream_error"
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Upstream provider call failed."

    def __init__(
        self,
        message: str = "",
        *,
        step: str,
        payload: Any = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(
            message or f"{step} failed.",
            step=step,
            payload=payload,
            status_code=status_code,
        )
        self.step = step
        self.payload = payload
        self.upstream_status = status_code


class UpstreamTimeout(DomainError):
    """An external call did not answer within the caller-supplied timeout."""

    code = "timeout"
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    default_message = "Upstream provider timed out."

    def __init__(self, message: str = "", *, step: str) -> None:
        super().__init__(message or f"{step} timed out.", step=step)
        self.step = step


# ---------------------------------------------------------------------------
# DRF integration
# ---------------------------------------------------------------------------


def exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    """Render domain, pydantic and DRF errors in the standard envelope."""
    if isinstance(exc, DomainError):
        logger.info(
            "api.domain_error",
            code=exc.code,
            detail=str(exc),
            view=_view_name(context),
        )
        return Response(
            {"type": _error_type(exc.status_code), "errors": [exc.as_error()]},
            status=exc.status_code,
        )

    if isinstance(exc, PydanticValidationError):
        errors = [
            {
                "code": "invalid",
                "detail": err["msg"],
                "attr": ".".join(str(part) for part in err["loc"]) or None,
            }
            for err in exc.errors()
        ]
        return Response(
            {"type": "validation_error", "errors": errors},
            status=status.HTTP_400_BAD_REQUEST,
        )

    response = drf_exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, drf_exceptions.ValidationError):
        response.data = {
            "type": "validation_error",
            "errors": list(_flatten(exc.detail)),
        }
    elif isinstance(exc, drf_exceptions.APIException):
        response.data = {
            "type": _error_type(response.status_code),
            "errors": list(_flatten(exc.detail)),
        }
    return response


def _flatten(detail: Any, attr: Optional[str] = None) -> Iterator[Dict[str, Any]]:
    if isinstance(detail, dict):
        for key, value in detail.items():
            child = key if attr is None else f"{attr}.{key}"
            if key == "non_field_errors":
                child = attr
            yield from _flatten(value, child)
    elif isinstance(detail, list):
        for item in detail:
            yield from _flatten(item, attr)
    else:
        yield {
            "code": getattr(detail, "code", None) or "invalid",
            "detail": str(detail),
            "attr": attr,
        }


def _error_type(status_code: int) -> str:
    return "server_error" if status_code >= 500 else "client_error"


def _view_name(context: Dict[str, Any]) -> str:
    view = context.get("view")
    return type(view).__name__ if view is not None else ""


__all__: List[str] = [
    "DomainError",
    "NotFound",
    "Unauthenticated",
    "UpstreamError",
    "UpstreamTimeout",
    "exception_handler",
]
