"""Custom exceptions for the OODA AI Slack bot."""

from typing import Any


class OodaBotError(Exception):
    """Base exception for OODA AI bot errors."""

    pass


class ConfigurationError(OodaBotError):
    """Raised when required settings are missing at startup."""

    pass


class RemoteError(OodaBotError):
    """Raised when the Vectara API call fails at the transport level or returns a non-success status."""

    def __init__(self, message: str, status_code: int | None = None, detail: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class InvalidResponse(OodaBotError):
    """Raised when Vectara answers successfully but the payload is unusable."""

    def __init__(self, message: str, errors: Any = None):
        super().__init__(message)
        self.errors = errors


class EmptyInput(OodaBotError):
    """Raised when a chat event carries no question text."""

    pass
