"""Logging setup for applications that use the CMS client.

Importing ``cms_client`` never touches logging configuration.  Library
modules emit records through ``logging.getLogger(__name__)`` or
``structlog.get_logger(__name__)``; an application that wants them rendered
calls :func:`configure_logging` once::

    from cms_client import configure_logging

    configure_logging()                    # level from CMS_LOG_LEVEL
    configure_logging("DEBUG")             # console output
    configure_logging(processors=[add_service_name])

Every record emitted while a request is in flight carries ``request_id``,
the same value the transport sends as ``X-Request-ID``.  The project API key
never reaches a renderer: keys that name it and ``Bearer`` header values are
masked before output.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable, Mapping
from contextvars import ContextVar
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from cms_client.config.settings import get_settings

REDACTED = "[REDACTED]"

request_id_var: ContextVar[str | None] = ContextVar("cms_request_id", default=None)
"""``X-Request-ID`` of the outgoing call currently in flight, if any."""

# Event keys whose values are always masked, compared case-insensitively.
_SENSITIVE_KEYS: frozenset[str] = frozenset({
    "api_key",
    "authorization",
    "x-api-key",
    "cms_api_key",
})

_BEARER_PREFIX = "bearer "


def _is_sensitive_key(key: Any) -> bool:
    return str(key).lower() in _SENSITIVE_KEYS


def _mask(value: Any) -> Any:
    """Mask *value* if it is a bearer credential; recurse into headers-like dicts."""
    if isinstance(value, str) and value.lower().startswith(_BEARER_PREFIX):
        return REDACTED
    if isinstance(value, Mapping):
        return {
            k: REDACTED if _is_sensitive_key(k) else _mask(v)
            for k, v in value.items()
        }
    return value


def redact_credentials(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Mask the API key wherever it shows up in an event.

    A value is masked when its key is one of ``api_key``, ``authorization``,
    ``x-api-key`` or ``cms_api_key``, or when it is a ``"Bearer ..."`` string.
    Nested mappings such as ``headers={...}`` are scanned the same way.
    """
    for key, value in list(event_dict.items()):
        event_dict[key] = REDACTED if _is_sensitive_key(key) else _mask(value)
    return event_dict


def add_request_id(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Attach the in-flight request id unless the event already names one."""
    request_id = request_id_var.get()
    if request_id is not None:
        event_dict.setdefault("request_id", request_id)
    return event_dict


def _pre_chain(extra: Iterable[Processor]) -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        add_request_id,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        *extra,
        # after application processors
        redact_credentials,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def configure_logging(
    log_level: str | None = None,
    *,
    json_output: bool | None = None,
    processors: Iterable[Processor] = (),
) -> None:
    """Route stdlib and structlog records to stdout through one formatter.

    Calling it again replaces the previous handler.

    Args:
        log_level: Root level name, case-insensitive.  Defaults to
            ``Settings.log_level`` (``CMS_LOG_LEVEL``).
        json_output: Render newline-delimited JSON.  Defaults to ``True``
            unless the level is ``DEBUG``, which renders for the console.
        processors: Extra structlog processors run on every record before
            credential masking and rendering.
    """
    if log_level is None:
        log_level = get_settings().log_level
    level_name = log_level.upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO
    if json_output is None:
        json_output = level_name != "DEBUG"

    pre_chain = _pre_chain(processors)
    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
