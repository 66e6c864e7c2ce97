"""Structured logging with per-query context using structlog and contextvars."""

import logging
from collections.abc import Mapping
from contextvars import ContextVar
from pathlib import Path
from typing import Any

import structlog

REDACTED = "***redacted***"

# Keys whose values must never reach a log record
SENSITIVE_KEYS = frozenset(
    {
        "api_key",
        "x-api-key",
        "authorization",
        "token",
        "bot_token",
        "app_token",
        "signing_secret",
        "client_secret",
        "password",
    }
)

# Dependencies that log every request at INFO/DEBUG
NOISY_LOGGERS = ("httpx", "httpcore", "slack_bolt", "slack_sdk", "asyncio")

# Context variables for current query
current_query_id: ContextVar[str | None] = ContextVar("current_query_id", default=None)
current_event_type: ContextVar[str | None] = ContextVar("current_event_type", default=None)

_configured = False


def _redact(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: REDACTED if str(k).lower() in SENSITIVE_KEYS else _redact(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_redact(v) for v in value]
    return value


def redact_secrets(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog processor masking credential values anywhere in the event."""
    return _redact(event_dict)


def setup_structured_logging(level: str = "INFO", log_file: str | Path | None = None, force: bool = False) -> None:
    """Configure structlog with JSON output and per-query context.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path that receives a copy of every record
        force: Reconfigure even if logging was already set up
    """
    global _configured
    if _configured and not force:
        return

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,  # Inject query context
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            redact_secrets,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        handlers=handlers,
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True


def bind_query_context(query_id: str, event_type: str) -> None:
    """Bind query context for all subsequent logs in this async context.

    Args:
        query_id: Unique identifier for one question/answer round trip
        event_type: Slack interaction that triggered it (dm, ask_command, app_mention, cli)
    """
    current_query_id.set(query_id)
    current_event_type.set(event_type)
    structlog.contextvars.bind_contextvars(query_id=query_id, event_type=event_type)


def clear_query_context() -> None:
    """Clear query context after the reply is sent."""
    current_query_id.set(None)
    current_event_type.set(None)
    structlog.contextvars.clear_contextvars()


def get_logger(name: str = "ooda_ai_bot") -> structlog.stdlib.BoundLogger:
    """Get a structlog logger carrying the current query context."""
    return structlog.get_logger(name)


def get_current_query_id() -> str | None:
    """Get the current query ID from context."""
    return current_query_id.get()
