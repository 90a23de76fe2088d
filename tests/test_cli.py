from __future__ import annotations

import json
from typing import Any

import pytest
from conftest import RecordingBackend, custom_field

from ytbulk import cli


@pytest.fixture
def fake_backend(monkeypatch) -> RecordingBackend:
    backend = RecordingBackend()
    monkeypatch.setattr(cli, "_client", lambda cfg: backend)
    monkeypatch.setenv("YOUTRACK_URL", "https://acme.youtrack.cloud")
    monkeypatch.setenv("YOUTRACK_TOKEN", "perm:abcdefgh")
    return backend


def _run(argv: list[str], capsys) -> tuple[int, Any]:
    code = cli.main(argv)
    out = capsys.readouterr().out
    return code, json.loads(out) if out.strip() else None


def test_bulk_update_cli(fake_backend, capsys, tmp_path):
    fake_backend.issues["PROJ-1"] = {"customFields": [custom_field("Priority", name="High")]}
    code, data = _run(
        ["--config", str(tmp_path / "none.yaml"), "bulk-update", "--ids", "PROJ-1", "--update", '{"priority": "High"}'],
        capsys,
    )
    assert code == 0
    assert data["summary"] == {"total": 1, "successful": 1, "failed": 0}
    assert data["updated"][0]["appliedFields"] == {"Priority": "High"}


def test_bulk_update_cli_without_ids_reports_error(fake_backend, capsys, tmp_path):
    code, data = _run(
        ["--config", str(tmp_path / "none.yaml"), "bulk-update", "--update", "{}"], capsys
    )
    assert code == 1
    assert data == {"error": "No issue IDs provided for bulk update"}
    assert fake_backend.calls == []


def test_bulk_link_cli_from_flags_and_file(fake_backend, capsys, tmp_path):
    links_file = tmp_path / "links.json"
    links_file.write_text(json.dumps([{"sourceIssueId": "PROJ-3", "targetIssueId": "PROJ-4"}]))
    code, data = _run(
        [
            "--config",
            str(tmp_path / "none.yaml"),
            "bulk-link",
            "--link",
            "PROJ-1:PROJ-2:depends on",
            "--links-file",
            str(links_file),
            "--no-verify",
        ],
        capsys,
    )
    assert code == 0
    assert [item["command"] for item in data["linked"]] == ["depends on", "relates to"]
    assert [c[1] for c in fake_backend.calls] == ["depends on PROJ-2", "relates to PROJ-4"]


def test_rank_cli(capsys, tmp_path):
    issues_file = tmp_path / "issues.json"
    issues_file.write_text(
        json.dumps(
            [
                {"id": "A", "priority": "Minor", "created": "2020-01-01T00:00:00Z"},
                {"id": "B", "priority": "Critical", "created": "2020-01-01T00:00:00Z"},
            ]
        )
    )
    code, data = _run(["rank", "--issues-file", str(issues_file), "--top", "1"], capsys)
    assert code == 0
    assert [i["id"] for i in data] == ["B"]
    assert data[0]["score"] == 136.5


def test_missing_config_exits_with_config_code(monkeypatch, capsys, tmp_path):
    monkeypatch.delenv("YOUTRACK_URL", raising=False)
    monkeypatch.delenv("YOUTRACK_TOKEN", raising=False)
    monkeypatch.chdir(tmp_path)
    code = cli.main(["--config", "absent.yaml", "critical-path", "--project", "0-1"])
    assert code == cli.EXIT_CONFIG
    assert "Missing required configuration" in capsys.readouterr().err


def test_bad_link_spec_is_usage_error(fake_backend, capsys, tmp_path):
    code = cli.main(["--config", str(tmp_path / "none.yaml"), "bulk-link", "--link", "PROJ-1"])
    assert code == cli.EXIT_CONFIG
    assert "SRC:TARGET" in capsys.readouterr().err


def test_rank_cli_tolerates_blank_timestamps(capsys, tmp_path):
    issues_file = tmp_path / "issues.json"
    issues_file.write_text(
        json.dumps(
            [
                {"id": "A", "priority": "High", "createdAt": ""},
                {"id": "B", "priority": "Critical", "created": "not a date"},
            ]
        )
    )
    code, data = _run(["rank", "--issues-file", str(issues_file)], capsys)
    assert code == 0
    assert [(i["id"], i["score"]) for i in data] == [("B", 100.0), ("A", 75.0)]


def test_rank_cli_rejects_negative_top(capsys, tmp_path):
    issues_file = tmp_path / "issues.json"
    issues_file.write_text("[]")
    with pytest.raises(SystemExit) as info:
        cli.main(["rank", "--issues-file", str(issues_file), "--top", "-1"])
    assert info.value.code == 2
    assert "must be 0 or greater" in capsys.readouterr().err
