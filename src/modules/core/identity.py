"""Caller identity helpers shared by the API layer and services."""

from __future__ import annotations

from typing import Any, Optional

from modules.core.exceptions import Unauthenticated


def require_user_id(user_id: Optional[Any]) -> str:
    """Return the identity as a non-empty string or raise ``Unauthenticated``."""
    if user_id is None:
        raise Unauthenticated()
    value = str(user_id).strip()
    if not value:
        raise Unauthenticated()
    return value


def user_id_from_request(request: Any) -> str:
    """Opaque identity of the authenticated DRF request user."""
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        raise Unauthenticated()
    return require_user_id(user.pk)
