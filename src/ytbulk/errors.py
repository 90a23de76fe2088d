"""Error taxonomy & redaction.

Exceptions raised by the bulk engine and helpers that turn any exception
into a short, token-free record suitable for a batch result or a log line.

Public API:
- ValidationError, BackendError (base of ``YouTrackAPIError``)
- classify_error(exc) -> ErrorInfo
- redact(text) -> str
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import requests

_SENSITIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"perm:[A-Za-z0-9+/=._-]{8,}"),  # YouTrack permanent tokens
    re.compile(r"(Bearer\s+)[A-Za-z0-9+/=._:-]{8,}", re.IGNORECASE),
]

_REDACTION_PLACEHOLDER = "<redacted>"

HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404
HTTP_TOO_MANY_REQUESTS = 429


class YTBulkError(RuntimeError):
    """Base class for errors raised by ytbulk."""


class ValidationError(YTBulkError):
    """Required input was missing or empty; raised before any backend call."""


class BackendError(YTBulkError):
    """A patch, command or fetch call against the tracker failed."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        response_text: str | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.response_text = response_text


@dataclass
class ErrorInfo:
    category: str
    message: str
    original_type: str
    transient: bool = False
    details: dict[str, Any] | None = None


def redact(text: str) -> str:
    """Replace tracker tokens and bearer credentials with a placeholder."""
    if not text:
        return text
    redacted = _SENSITIVE_PATTERNS[0].sub(_REDACTION_PLACEHOLDER, text)
    return _SENSITIVE_PATTERNS[1].sub(rf"\g<1>{_REDACTION_PLACEHOLDER}", redacted)


def classify_error(exc: BaseException) -> ErrorInfo:
    """Best-effort classification of an exception raised while processing an item."""
    msg = redact(str(exc))
    name = exc.__class__.__name__

    if isinstance(exc, ValidationError):
        return ErrorInfo("validation", msg, name)
    if isinstance(exc, BackendError):
        status = exc.status
        details = {"status": status} if status is not None else None
        if status in (HTTP_UNAUTHORIZED, HTTP_FORBIDDEN):
            return ErrorInfo("backend.auth", msg, name, details=details)
        if status == HTTP_NOT_FOUND:
            return ErrorInfo("backend.not_found", msg, name, details=details)
        if status == HTTP_TOO_MANY_REQUESTS:
            return ErrorInfo("backend.rate_limit", msg, name, transient=True, details=details)
        return ErrorInfo("backend", msg, name, details=details)
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return ErrorInfo("network", msg, name, transient=True)
    low = msg.lower()
    if any(k in low for k in ("timeout", "timed out", "connection reset")):
        return ErrorInfo("network", msg, name, transient=True)
    return ErrorInfo("generic", msg, name)


__all__ = [
    "YTBulkError",
    "ValidationError",
    "BackendError",
    "ErrorInfo",
    "classify_error",
    "redact",
]
