import json

import pytest

from ytbulk.logging import StructuredLogger, configure_logging, get_logger


def test_structured_logger_json_format(capsys):
    logger = StructuredLogger(name="test-json", json_logging=True, level="INFO")
    logger.log_issue_action("update", "PROJ-1", verified=True)

    captured = capsys.readouterr()
    lines = [line for line in captured.err.strip().split("\n") if line]

    assert len(lines) == 1
    data = json.loads(lines[0])
    assert data["level"] == "INFO"
    assert data["operation"] == "issue_update"
    assert data["issue_id"] == "PROJ-1"
    assert data["verified"] is True
    assert "timestamp" in data


def test_failed_issue_action_logs_warning(capsys):
    logger = StructuredLogger(name="test-text", json_logging=False, level="INFO")
    logger.log_issue_action("link", "PROJ-2", ok=False)
    err = capsys.readouterr().err
    assert "WARNING" in err
    assert "issue link PROJ-2 [FAILED]" in err


def test_timed_operation_logs_start_and_duration(capsys):
    logger = StructuredLogger(name="test-timed", json_logging=True, level="INFO")
    with logger.timed_operation("bulk_update", total=2):
        pass
    records = [json.loads(line) for line in capsys.readouterr().err.splitlines() if line]
    assert records[0]["operation"] == "bulk_update_start"
    assert records[1]["operation"] == "bulk_update"
    assert records[1]["total"] == 2
    assert "duration_ms" in records[1]


def test_timed_operation_reraises(capsys):
    logger = StructuredLogger(name="test-timed-err", json_logging=True, level="INFO")
    with pytest.raises(RuntimeError), logger.timed_operation("critical_path"):
        raise RuntimeError("boom")
    records = [json.loads(line) for line in capsys.readouterr().err.splitlines() if line]
    assert records[-1]["level"] == "ERROR"
    assert records[-1]["error"] == "boom"


def test_configure_logging_replaces_global():
    configured = configure_logging(json_logging=False, level="WARNING")
    assert get_logger() is configured
