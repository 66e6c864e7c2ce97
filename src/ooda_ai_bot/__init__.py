"""Slack bot answering questions from a Vectara corpus."""

from .config import AppSettings, QueryConfig, load_settings
from .exceptions import ConfigurationError, EmptyInput, InvalidResponse, OodaBotError, RemoteError
from .formatting import cleanup_markdown, format_reply, format_sources
from .models import QueryResult, Source
from .vectara import VectaraClient

__all__ = [
    "AppSettings",
    "QueryConfig",
    "load_settings",
    "VectaraClient",
    "QueryResult",
    "Source",
    "cleanup_markdown",
    "format_sources",
    "format_reply",
    "OodaBotError",
    "ConfigurationError",
    "RemoteError",
    "InvalidResponse",
    "EmptyInput",
]
