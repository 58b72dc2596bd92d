"""Exception hierarchy for the CMS client.

All custom exceptions subclass ``CMSError``, so callers can catch every
failure the library raises with a single ``except`` clause.

Hierarchy::

    CMSError
    ├── ConfigError
    ├── RequestError            (status_code, message, method, url)
    │   ├── ValidationError     (field)
    │   ├── AuthError
    │   ├── NotFoundError
    │   └── RateLimitError      (retry_after: float)
    ├── ServerError             (status_code, message, method, url)
    └── NetworkError            (method, url)

``ServerError``, ``NetworkError`` and ``RateLimitError`` are the kinds a
caller may reasonably retry.  The library itself never retries.
"""

from __future__ import annotations


class CMSError(Exception):
    """Base class for all CMS client exceptions."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigError(CMSError):
    """Raised when the client configuration is missing or malformed.

    Detected when ``CMSClient`` is constructed, never mid-call.

    Args:
        message: Human-readable description of the problem.
        setting: Name of the offending configuration field, if known.
    """

    def __init__(self, message: str, setting: str | None = None) -> None:
        super().__init__(message)
        self.setting = setting


# ---------------------------------------------------------------------------
# HTTP exceptions
# ---------------------------------------------------------------------------


class RequestError(CMSError):
    """Raised when the backend rejects a request with a 4xx status.

    Args:
        message: Backend message, or a description of the failure.
        status_code: HTTP status code returned by the backend.
        method: HTTP method of the failed request.
        url: Full URL of the failed request.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        method: str | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.method = method
        self.url = url

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"HTTP {self.status_code}: {self.message}"


class ValidationError(RequestError):
    """Raised when a schema or content payload fails shape rules.

    Raised locally (``status_code`` is ``None``) when a schema fails the
    pre-flight checks of the migrator, and remotely when the backend answers
    400 or 422.

    Args:
        message: Description of the violation.
        field: Name of the offending field, when known.
        status_code: HTTP status code for backend-reported violations.
        method: HTTP method of the rejected request.
        url: URL of the rejected request.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        status_code: int | None = None,
        method: str | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, method=method, url=url)
        self.field = field


class AuthError(RequestError):
    """Raised on HTTP 401 or 403.

    The API key is missing, invalid, expired, or lacks access to the
    configured project.
    """


class NotFoundError(RequestError):
    """Raised on HTTP 404 (unknown project, collection, or item)."""


class RateLimitError(RequestError):
    """Raised on HTTP 429.

    Args:
        message: Backend message.
        retry_after: Seconds to wait before retrying. Defaults to 60.
        status_code: Always 429 when raised by the transport.
        method: HTTP method of the throttled request.
        url: URL of the throttled request.
    """

    def __init__(
        self,
        message: str,
        retry_after: float = 60.0,
        status_code: int | None = 429,
        method: str | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, method=method, url=url)
        self.retry_after = retry_after


class ServerError(CMSError):
    """Raised when the backend answers with a 5xx status.

    Safe for the caller to retry.

    Args:
        message: Backend message, or a description of the failure.
        status_code: HTTP status code returned by the backend.
        method: HTTP method of the failed request.
        url: Full URL of the failed request.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        method: str | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.method = method
        self.url = url

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"HTTP {self.status_code}: {self.message}"


class NetworkError(CMSError):
    """Raised when no response reached the client (connect error, timeout).

    Args:
        message: Description of the transport failure.
        method: HTTP method of the failed request.
        url: Full URL of the failed request.
    """

    def __init__(
        self,
        message: str,
        method: str | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message)
        self.method = method
        self.url = url
