from __future__ import annotations

from typing import Any, Optional


class NewsFeedError(Exception):
    """Base exception for feed acquisition errors."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class ConfigError(NewsFeedError):
    """Configuration is missing required values or has invalid ones."""


class TransportError(NewsFeedError):
    """A transport could not deliver a usable payload for a feed URL.

    Covers network errors, timeouts, non-success HTTP statuses and payloads
    that do not have the expected shape.
    """

    def __init__(self, message: str, *, url: str, status: Optional[int] = None) -> None:
        super().__init__(message, context={"url": url, "status": status})
        self.url = url
        self.status = status


class ParseError(NewsFeedError):
    """Malformed XML or an unparsable date. Treated as missing data."""
