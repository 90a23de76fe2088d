from __future__ import annotations

import pytest
import requests

from ytbulk import retry

FIRST_SUCCESS_ATTEMPT = 2


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch):
    monkeypatch.setattr(retry.time, "sleep", lambda _s: None)


def test_is_transient_classification():
    assert retry.is_transient(retry.TransientHTTPError(429))
    assert retry.is_transient(retry.TransientHTTPError(503))
    assert retry.is_transient(requests.Timeout("slow"))
    assert not retry.is_transient(retry.TransientHTTPError(418))
    assert not retry.is_transient(ValueError("boom"))


def test_run_with_retries_transient_then_success():
    attempts: list[int] = []

    def fn():
        attempts.append(1)
        if len(attempts) < FIRST_SUCCESS_ATTEMPT:
            raise requests.ConnectionError("connection reset")
        return "ok"

    assert retry.run_with_retries(fn, cfg=retry.RetryConfig(attempts=3, base_sleep=0.01)) == "ok"
    assert len(attempts) == FIRST_SUCCESS_ATTEMPT


def test_run_with_retries_non_transient_propagates_immediately():
    attempts: list[int] = []

    def fn():
        attempts.append(1)
        raise ValueError("bad payload")

    with pytest.raises(ValueError):
        retry.run_with_retries(fn, cfg=retry.RetryConfig(attempts=4, base_sleep=0.01))
    assert len(attempts) == 1


def test_run_with_retries_transient_exhausts():
    attempts: list[int] = []

    def fn():
        attempts.append(1)
        raise retry.TransientHTTPError(502)

    cfg = retry.RetryConfig(attempts=3, base_sleep=0.0)
    with pytest.raises(retry.TransientHTTPError):
        retry.run_with_retries(fn, cfg=cfg)
    assert len(attempts) == cfg.attempts


def test_retry_after_hint_and_cap(monkeypatch):
    cfg = retry.RetryConfig(attempts=3, base_sleep=0.5)
    assert retry._compute_sleep(1, cfg, "7") == 7.0
    monkeypatch.setenv("YTBULK_RETRY_MAX_SLEEP", "2")
    assert retry._compute_sleep(1, cfg, "Retry-After: 30") == 2.0


def test_retry_config_reads_environment(monkeypatch):
    monkeypatch.setenv("YTBULK_RETRY_ATTEMPTS", "5")
    monkeypatch.setenv("YTBULK_RETRY_BASE", "0.1")
    cfg = retry.RetryConfig()
    assert cfg.attempts == 5
    assert cfg.base_sleep == 0.1
