from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol


class IssueBackend(Protocol):  # narrow contract the bulk engine needs from the tracker
    def patch_issue(self, issue_id: str, fields: Mapping[str, Any]) -> Any: ...

    def run_command(self, query: str, issues: Sequence[Mapping[str, str]]) -> Any: ...

    def fetch_issue(self, issue_id: str, fields: str) -> dict[str, Any]: ...


__all__ = ["IssueBackend"]
