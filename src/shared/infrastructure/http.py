"""Synchronous JSON client base for outbound provider calls (httpx).

Concrete clients (payment gateway, shipping provider) subclass
``JsonApiClient`` and call ``_request`` with the name of the step they are
performing.  Transport failures are translated into the engine's error
taxonomy so the service layer never sees an ``httpx`` exception:

- timeout            -> ``UpstreamTimeout(step)``
- non-2xx response   -> ``UpstreamError(step, status_code, payload)``
- connection failure -> ``UpstreamError(step)``
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
import structlog

from modules.core.exceptions import UpstreamError, UpstreamTimeout

logger = structlog.get_logger(__name__)


class JsonApiClient:
    """Thin wrapper around ``httpx.Client`` bound to one provider base URL.

    ``transport`` is accepted so tests can plug in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.Client(
            base_url=self.base_url,
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
                **(headers or {}),
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> JsonApiClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Request plumbing
    # ------------------------------------------------------------------

    def _request(
        self,
        step: str,
        method: str,
        path: str,
        *,
        json: Any = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        ``timeout`` overrides the client default for this call only.
        """
        log = logger.bind(step=step, method=method, path=path)
        effective_timeout = self.timeout if timeout is None else timeout

        try:
            response = self._client.request(
                method,
                path,
                json=json,
                timeout=httpx.Timeout(effective_timeout),
            )
        except httpx.TimeoutException as exc:
            log.warning("upstream.timeout", timeout=effective_timeout)
            raise UpstreamTimeout(step=step) from exc
        except httpx.RequestError as exc:
            log.warning("upstream.request_failed", error=str(exc))
            raise UpstreamError(
                f"{step} failed: {exc}",
                step=step,
                payload={"error": str(exc)},
            ) from exc

        payload = _decode(response)
        if not response.is_success:
            log.warning(
                "upstream.error_response",
                status_code=response.status_code,
            )
            raise UpstreamError(
                f"{step} failed with HTTP {response.status_code}.",
                step=step,
                payload=payload,
                status_code=response.status_code,
            )

        log.debug("upstream.response", status_code=response.status_code)
        return payload


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
