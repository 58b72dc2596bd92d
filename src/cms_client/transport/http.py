"""HTTP transport shared by every client operation.

:class:`RequestTransport` turns ``(method, path, params, body)`` into one
HTTP call against ``{api_url}/projects/{project_id}/{path}``, attaches the
bearer key, decodes the JSON response, and translates failures into the
exception hierarchy in :mod:`cms_client.core.exceptions`:

==========================  ==========================
Outcome                     Raised
==========================  ==========================
2xx                         (decoded body returned)
400, 422                    ``ValidationError``
401, 403                    ``AuthError``
404                         ``NotFoundError``
429                         ``RateLimitError``
other non-2xx below 500     ``RequestError``
5xx                         ``ServerError``
no response                 ``NetworkError``
==========================  ==========================

No retries are performed here.  Retry policy belongs to the caller.
"""

from __future__ import annotations

import json as jsonlib
import uuid
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from cms_client.config.connection import ClientConfig
from cms_client.core.exceptions import (
    AuthError,
    CMSError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    RequestError,
    ServerError,
    ValidationError,
)
from cms_client.core.logging_config import request_id_var

logger = structlog.get_logger(__name__)

USER_AGENT: str = "cms-client-python/0.1.0"
"""User-Agent sent on every request."""

DEFAULT_RETRY_AFTER_SECONDS: float = 60.0
"""Fallback for 429 responses without a usable ``Retry-After`` header."""

_VALIDATION_STATUSES: frozenset[int] = frozenset({400, 422})
_AUTH_STATUSES: frozenset[int] = frozenset({401, 403})


def quote_segment(value: str) -> str:
    """Percent-encode one path segment (slashes included)."""
    return quote(str(value), safe="")


class RequestTransport:
    """Executes project-scoped requests against the CMS API.

    Holds no mutable state: the config is immutable and the optional
    injected client is only borrowed, so one transport may serve any number
    of concurrent calls.

    Args:
        config: Connection parameters.
        http_client: Optional :class:`httpx.AsyncClient` to reuse
            connections across calls (and to inject mock transports in
            tests).  The caller owns it; the transport never closes it.
            When omitted, each request uses a short-lived client.  Either
            way every request is sent with ``config.timeout_seconds``.
    """

    def __init__(
        self,
        config: ClientConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._http_client = http_client

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def project_root(self) -> str:
        """Absolute URL every request path is resolved under."""
        return f"{self._config.api_url}/projects/{quote_segment(self._config.project_id)}"

    def build_url(self, path: str) -> str:
        """Return the absolute URL for a project-relative *path*.

        An empty path addresses the project resource itself.
        """
        path = path.strip("/")
        if not path:
            return self.project_root
        return f"{self.project_root}/{path}"

    def _headers(self, request_id: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._config.api_key}",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
            "X-Request-ID": request_id,
        }

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        Args:
            method: HTTP method (``"GET"``, ``"PUT"``, ...).
            path: Path relative to the project root.  Callers quote
                user-supplied segments with :func:`quote_segment`.
            params: Query parameters.
            json: JSON-serialisable request body.

        Returns:
            The decoded JSON body, or ``None`` for an empty or non-JSON
            body on a 2xx response.

        Raises:
            ValidationError: On HTTP 400/422.
            AuthError: On HTTP 401/403.
            NotFoundError: On HTTP 404.
            RateLimitError: On HTTP 429.
            RequestError: On any other non-2xx status below 500.
            ServerError: On HTTP 5xx.
            NetworkError: When no response was received.
        """
        method = method.upper()
        url = self.build_url(path)
        request_id = str(uuid.uuid4())
        token = request_id_var.set(request_id)
        log = logger.bind(method=method, path=path)
        try:
            log.debug("cms.request.start", params=params)
            try:
                response = await self._send(
                    method, url, params=params, json=json, headers=self._headers(request_id)
                )
            except httpx.RequestError as exc:
                log.warning("cms.request.network_error", error=str(exc))
                raise NetworkError(
                    f"{method} {url}: {type(exc).__name__}: {exc}",
                    method=method,
                    url=url,
                ) from exc

            if response.is_success:
                log.debug("cms.request.done", status_code=response.status_code)
                return _decode_body(response)

            error = _error_for_response(response, method, url)
            log.warning(
                "cms.request.failed",
                status_code=response.status_code,
                error_type=type(error).__name__,
                detail=str(error),
            )
            raise error
        finally:
            request_id_var.reset(token)

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None,
        json: Any,
        headers: dict[str, str],
    ) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.request(
                method,
                url,
                params=params,
                json=json,
                headers=headers,
                timeout=httpx.Timeout(self._config.timeout_seconds),
            )
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self._config.timeout_seconds),
            follow_redirects=True,
        ) as client:
            return await client.request(
                method, url, params=params, json=json, headers=headers
            )


# ---------------------------------------------------------------------------
# Response helpers
# ---------------------------------------------------------------------------


def _decode_body(response: httpx.Response) -> Any:
    """Decode a 2xx body; empty or non-JSON bodies decode to ``None``."""
    body = _json_or_none(response)
    if body is None and response.content:
        logger.debug(
            "cms.request.non_json_body",
            status_code=response.status_code,
            content_type=response.headers.get("Content-Type"),
        )
    return body


def _json_or_none(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def _extract_message(response: httpx.Response, body: Any) -> str:
    """Pull the backend's error message out of an error response."""
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, dict) and isinstance(value.get("message"), str):
                return value["message"]
            if isinstance(value, str) and value:
                return value
            if value:
                return jsonlib.dumps(value, default=str)
    text = response.text.strip() if response.content else ""
    return text or response.reason_phrase or f"HTTP {response.status_code}"


def _extract_field(body: Any) -> str | None:
    if not isinstance(body, dict):
        return None
    for container in (body, body.get("error")):
        if isinstance(container, dict) and isinstance(container.get("field"), str):
            return container["field"]
    return None


def _retry_after(response: httpx.Response) -> float:
    raw = response.headers.get("Retry-After")
    if raw is None:
        return DEFAULT_RETRY_AFTER_SECONDS
    try:
        return max(0.0, float(raw))
    except ValueError:
        return DEFAULT_RETRY_AFTER_SECONDS


def _error_for_response(response: httpx.Response, method: str, url: str) -> CMSError:
    """Translate a non-2xx response into the matching exception."""
    status = response.status_code
    body = _json_or_none(response)
    message = _extract_message(response, body)
    if status >= 500:
        return ServerError(message, status_code=status, method=method, url=url)
    if status in _VALIDATION_STATUSES:
        return ValidationError(
            message, field=_extract_field(body), status_code=status, method=method, url=url
        )
    if status in _AUTH_STATUSES:
        return AuthError(message, status_code=status, method=method, url=url)
    if status == 404:
        return NotFoundError(message, status_code=status, method=method, url=url)
    if status == 429:
        return RateLimitError(
            message, retry_after=_retry_after(response), method=method, url=url
        )
    return RequestError(message, status_code=status, method=method, url=url)
