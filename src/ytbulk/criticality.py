"""Priority + age criticality scoring and the critical-path report built on it.

Score = priority weight + min(age_days, 365) / 10, where the priority weight
comes from the first matching substring of the lower-cased label:

    critical -> 100, high -> 75, major -> 50, medium|normal -> 25, else 0

Evaluation order matters: a label such as ``"High-Critical"`` scores as
critical because that check runs first.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any, Protocol

from .logging import get_logger
from .youtrack_rest import CRITICAL_PATH_SELECTOR, PROJECT_SELECTOR

PRIORITY_WEIGHTS: tuple[tuple[tuple[str, ...], int], ...] = (
    (("critical",), 100),
    (("high",), 75),
    (("major",), 50),
    (("medium", "normal"), 25),
)
DEFAULT_PRIORITY = "normal"
AGE_CAP_DAYS = 365
AGE_DIVISOR = 10
SECONDS_PER_DAY = 86400
DEFAULT_CRITICAL_PATH_LIMIT = 20
CRITICAL_PATH_SEARCH_TOP = 100


class _ProjectSearchBackend(Protocol):
    def get_project(self, project_id: str, fields: str = ...) -> dict[str, Any]: ...

    def search_issues(self, query: str, fields: str, top: int = ...) -> list[dict[str, Any]]: ...


def priority_weight(label: str | None) -> int:
    lowered = (label or DEFAULT_PRIORITY).lower()
    for needles, weight in PRIORITY_WEIGHTS:
        if any(needle in lowered for needle in needles):
            return weight
    return 0


def _to_datetime(created_at: Any) -> datetime | None:
    """Parse a creation timestamp; blank or unparseable values yield None."""
    if isinstance(created_at, datetime):
        return created_at if created_at.tzinfo else created_at.replace(tzinfo=timezone.utc)
    try:
        if isinstance(created_at, (int, float)) and not isinstance(created_at, bool):
            # YouTrack timestamps are epoch milliseconds
            return datetime.fromtimestamp(created_at / 1000, tz=timezone.utc)
        if isinstance(created_at, str) and created_at.strip():
            text = created_at.strip()
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            parsed = datetime.fromisoformat(text)
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None
    return None


def age_days(created_at: Any, now: datetime | None = None) -> int:
    """Whole days since creation; a missing or unreadable timestamp counts as 0."""
    created = _to_datetime(created_at)
    if created is None:
        return 0
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    elapsed = (now - created).total_seconds()
    return max(0, int(elapsed // SECONDS_PER_DAY))


def score(priority_label: str | None, created_at: Any, now: datetime | None = None) -> float:
    age = min(age_days(created_at, now), AGE_CAP_DAYS)
    return priority_weight(priority_label) + age / AGE_DIVISOR


def priority_label(issue: Mapping[str, Any]) -> str | None:
    """Priority name of a raw issue: top-level ``priority`` first, then the Priority custom field."""
    priority = issue.get("priority")
    if isinstance(priority, Mapping):
        priority = priority.get("name")
    if isinstance(priority, str) and priority.strip():
        return priority
    for entry in issue.get("customFields") or []:
        if isinstance(entry, Mapping) and entry.get("name") == "Priority":
            value = entry.get("value")
            if isinstance(value, Mapping) and isinstance(value.get("name"), str):
                return value["name"]
    return None


def _created(issue: Mapping[str, Any]) -> Any:
    return issue.get("createdAt") or issue.get("created")


def rank_by_criticality(
    issues: Iterable[Mapping[str, Any]], now: datetime | None = None
) -> list[dict[str, Any]]:
    """Return copies of ``issues`` with a ``score`` key, highest first; ties keep input order."""
    now = now or datetime.now(timezone.utc)
    scored = [
        {**issue, "score": score(priority_label(issue), _created(issue), now)} for issue in issues
    ]
    return sorted(scored, key=lambda item: item["score"], reverse=True)


def critical_path(
    backend: _ProjectSearchBackend,
    project_id: str,
    limit: int = DEFAULT_CRITICAL_PATH_LIMIT,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Rank a project's unresolved issues by criticality and keep the top ``limit``."""
    logger = get_logger()
    now = now or datetime.now(timezone.utc)
    project = backend.get_project(project_id, PROJECT_SELECTOR)
    short_name = project.get("shortName") or project_id
    with logger.timed_operation("critical_path", project_id=project_id):
        issues = backend.search_issues(
            f"project: {short_name} -state: Resolved",
            CRITICAL_PATH_SELECTOR,
            top=CRITICAL_PATH_SEARCH_TOP,
        )
    report: dict[str, Any] = {"reportType": "critical_path", "projectId": project_id}
    if not issues:
        report.update(issueCount=0, issues=[], note="No open issues to analyze")
        return report

    entries = [
        {
            "id": issue.get("idReadable") or issue.get("id"),
            "summary": issue.get("summary"),
            "priority": priority_label(issue) or DEFAULT_PRIORITY.capitalize(),
            "age": age_days(_created(issue), now),
            "createdAt": _created(issue),
        }
        for issue in issues
    ]
    ranked = rank_by_criticality(entries, now)[: max(0, limit)]
    for entry in ranked:
        entry["criticality"] = entry.pop("score")
        entry.pop("createdAt", None)
    report.update(issueCount=len(ranked), issues=ranked)
    return report


__all__ = [
    "PRIORITY_WEIGHTS",
    "age_days",
    "critical_path",
    "priority_label",
    "priority_weight",
    "rank_by_criticality",
    "score",
]
