"""Centralized retry / backoff helpers for YouTrack HTTP calls.

``run_with_retries`` wraps a thunk performing one HTTP request. Connection
errors, timeouts and :class:`TransientHTTPError` (rate limiting or a gateway
hiccup) are retried with exponential backoff and jitter; anything else
propagates immediately.

Environment overrides:
  YTBULK_RETRY_ATTEMPTS (default 3)
  YTBULK_RETRY_BASE (seconds base, default 0.5)
  YTBULK_RETRY_MAX_SLEEP (cap for a single sleep, unset by default)
"""

from __future__ import annotations

import os
import random
import re
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

import requests

from .logging import get_logger

T = TypeVar("T")

TRANSIENT_STATUSES = frozenset({429, 502, 503, 504})

_RE_RETRY_AFTER = re.compile(r"retry[-\s]after:?\s*(\d+)", re.IGNORECASE)
_JITTER = random.SystemRandom()


class TransientHTTPError(RuntimeError):
    """Raised by a request thunk when the response status is worth retrying."""

    def __init__(self, status: int, retry_after: str | None = None):
        super().__init__(f"transient HTTP status {status}")
        self.status = status
        self.retry_after = retry_after


def _extract_explicit_backoff(text: str | None) -> float | None:
    """Return a positive backoff in seconds from a Retry-After value or hint."""
    if not text:
        return None
    text = text.strip()
    if text.isdigit():
        val = float(text)
        return val if val > 0 else None
    m = _RE_RETRY_AFTER.search(text)
    if m:
        val = float(m.group(1))
        return val if val > 0 else None
    return None


def _env_int(name: str, default: str) -> int:
    return int(os.environ.get(name, default))


def _env_float(name: str, default: str) -> float:
    return float(os.environ.get(name, default))


@dataclass
class RetryConfig:
    attempts: int = field(default_factory=lambda: _env_int("YTBULK_RETRY_ATTEMPTS", "3"))
    base_sleep: float = field(default_factory=lambda: _env_float("YTBULK_RETRY_BASE", "0.5"))


def is_transient(exc: BaseException) -> bool:
    if isinstance(exc, TransientHTTPError):
        return exc.status in TRANSIENT_STATUSES
    return isinstance(exc, (requests.ConnectionError, requests.Timeout))


def _compute_sleep(attempt: int, cfg: RetryConfig, hint: str | None) -> float:
    explicit = _extract_explicit_backoff(hint)
    backoff = cfg.base_sleep * (2 ** (attempt - 1)) + _JITTER.uniform(0, 0.25)
    sleep_for: float = explicit if explicit is not None else backoff
    max_cap_env = os.environ.get("YTBULK_RETRY_MAX_SLEEP")
    if max_cap_env:
        try:
            cap = float(max_cap_env)
        except ValueError:
            return sleep_for
        if cap >= 0:
            sleep_for = min(sleep_for, cap)
    return sleep_for


def run_with_retries(fn: Callable[[], T], *, cfg: RetryConfig | None = None) -> T:
    cfg = cfg or RetryConfig()
    attempts = max(1, cfg.attempts)
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except (TransientHTTPError, requests.ConnectionError, requests.Timeout) as exc:
            if attempt >= attempts or not is_transient(exc):
                raise
            hint = exc.retry_after if isinstance(exc, TransientHTTPError) else None
            sleep_for = _compute_sleep(attempt, cfg, hint)
            get_logger().warning(
                f"[retry] transient error, attempt {attempt}/{attempts}, sleeping {sleep_for:.2f}s",
                error=str(exc),
            )
            time.sleep(sleep_for)
    raise RuntimeError("retry logic exited unexpectedly")  # pragma: no cover


__all__ = ["RetryConfig", "TransientHTTPError", "run_with_retries", "is_transient"]
