"""Observability module: structured logging with per-query context and secret redaction."""

from .logging import bind_query_context, clear_query_context, get_logger, redact_secrets, setup_structured_logging

__all__ = [
    "bind_query_context",
    "clear_query_context",
    "get_logger",
    "redact_secrets",
    "setup_structured_logging",
]
