"""Pytest configuration for ytbulk tests.

Ensures the in-repo `src` directory is on `sys.path` so the package can be
imported without an editable install, and provides an in-memory tracker
backend that records every call the bulk engine makes.
"""

from __future__ import annotations

import sys
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from ytbulk.logging import configure_logging  # noqa: E402
from ytbulk.youtrack_rest import YouTrackAPIError  # noqa: E402


class RecordingBackend:
    """Fake tracker: canned issue documents, injectable failures, full call log."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any, Any]] = []
        self.issues: dict[str, dict[str, Any]] = {}
        self.fail_patch: set[str] = set()
        self.fail_command: set[str] = set()
        self.fail_fetch: set[str] = set()

    def patch_issue(self, issue_id: str, fields: Mapping[str, Any]) -> Any:
        self.calls.append(("patch", issue_id, dict(fields)))
        if issue_id in self.fail_patch:
            raise YouTrackAPIError(f"YouTrack API POST /api/issues/{issue_id} failed with 500", status=500)
        return {}

    def run_command(self, query: str, issues: Sequence[Mapping[str, str]]) -> Any:
        self.calls.append(("command", query, [dict(i) for i in issues]))
        ref = issues[0]
        target = ref.get("idReadable") or ref.get("id")
        if target in self.fail_command:
            raise YouTrackAPIError("YouTrack API POST /api/commands failed with 400", status=400)
        return None

    def fetch_issue(self, issue_id: str, fields: str) -> dict[str, Any]:
        self.calls.append(("fetch", issue_id, fields))
        if issue_id in self.fail_fetch or issue_id not in self.issues:
            raise YouTrackAPIError(f"YouTrack API GET /api/issues/{issue_id} failed with 404", status=404)
        return self.issues[issue_id]

    def kinds(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture(autouse=True)
def _fresh_logger() -> None:
    # Bind the shared logger to the stream captured for the current test
    configure_logging(level="DEBUG")


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend()


def custom_field(field_name: str, /, **value: Any) -> dict[str, Any]:
    return {"name": field_name, "value": value or None}
