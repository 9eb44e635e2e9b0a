"""Structured logging for resilient-http, built on structlog.

The library never configures logging on import. Applications call
configure_logging() once at startup (or not at all, and keep their own
setup); every module logs through structlog.get_logger(__name__) either way.

Two pieces are specific to request execution:

    call_context(method, endpoint)
        Binds the call's method and endpoint through structlog.contextvars
        for as long as the call runs. merge_contextvars then stamps them on
        every event the call emits (middleware, transport, retry decisions),
        including events from tasks the engine spawns for the race.

    redact_credentials
        Masks credential-bearing fields (Authorization, cookies, tokens)
        before rendering, also inside header mappings logged as one field.
"""

import logging
import sys
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, Optional

import structlog
from structlog.types import EventDict, WrappedLogger

from resilient_http.config import get_settings

REDACTED = "***"

SENSITIVE_KEYS = frozenset(
    {
        "authorization",
        "proxy_authorization",
        "cookie",
        "set_cookie",
        "token",
        "access_token",
        "api_key",
        "x_api_key",
    }
)


def _is_sensitive(key: Any) -> bool:
    return isinstance(key, str) and key.lower().replace("-", "_") in SENSITIVE_KEYS


def _redact(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: REDACTED if _is_sensitive(k) else _redact(v) for k, v in value.items()}
    return value


def add_app_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add library context to all log events."""
    event_dict["app"] = "resilient-http"
    return event_dict


def redact_credentials(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Mask credential fields, top-level or nested in a logged mapping."""
    for key, value in event_dict.items():
        if _is_sensitive(key):
            event_dict[key] = REDACTED
        elif isinstance(value, Mapping):
            event_dict[key] = _redact(value)
    return event_dict


@contextmanager
def call_context(method: str, endpoint: str, **fields: Any) -> Iterator[None]:
    """
    Bind per-call fields to every event logged inside the block.

    Args:
        method: HTTP method of the call
        endpoint: Endpoint as given by the caller (before base URL joining)
        **fields: Extra fields to bind alongside

    Earlier values for the same keys are restored on exit, so nested calls
    (a callback issuing its own request) log with their own context.
    """
    with structlog.contextvars.bound_contextvars(method=method, endpoint=endpoint, **fields):
        yield


def configure_logging(
    log_level: Optional[str] = None, environment: Optional[str] = None
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: Logging level name; Settings.LOG_LEVEL when omitted.
            Unknown names fall back to INFO.
        environment: "production" renders JSON lines, anything else a
            coloured console; Settings.ENVIRONMENT when omitted.
    """
    if log_level is None or environment is None:
        settings = get_settings()
        log_level = log_level or settings.LOG_LEVEL
        environment = environment or settings.ENVIRONMENT

    level = getattr(logging, log_level.upper(), logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO
    is_production = environment.lower() == "production"

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_context,
        redact_credentials,
    ]

    if is_production:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # httpx and httpcore log through the stdlib; give them the same renderer
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared_processors)
    )
    handler.setLevel(level)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for noisy in ("httpx", "httpcore", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    structlog.get_logger(__name__).info(
        "Logging configured",
        log_level=logging.getLevelName(level),
        environment=environment,
        renderer="json" if is_production else "console",
    )
