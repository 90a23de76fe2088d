from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

DEFAULT_LINK_COMMAND = "relates to"


class ResolutionStatus(str, Enum):
    UNCHANGED = "unchanged"  # already readable, no lookup made
    RESOLVED = "resolved"
    FALLBACK = "fallback"  # lookup failed, original id kept


@dataclass(frozen=True)
class ResolvedId:
    """Outcome of a best-effort internal -> readable id lookup."""

    value: str
    original: str
    status: ResolutionStatus
    reason: str | None = None

    @property
    def confirmed(self) -> bool:
        return self.status is not ResolutionStatus.FALLBACK


class VerificationStatus(str, Enum):
    VERIFIED = "verified"
    MISMATCH = "mismatch"
    INDETERMINATE = "indeterminate"  # read-back failed, actual values unknown


@dataclass(frozen=True)
class FieldMismatch:
    field: str
    expected: str
    actual: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"field": self.field, "expected": self.expected}
        if self.actual is not None:
            out["actual"] = self.actual
        return out


@dataclass
class VerificationResult:
    status: VerificationStatus
    applied_fields: dict[str, str] = field(default_factory=dict)
    mismatches: list[FieldMismatch] = field(default_factory=list)
    message: str | None = None

    @property
    def success(self) -> bool:
        return self.status is VerificationStatus.VERIFIED


@dataclass
class UpdatePlan:
    """Translated form of one update request: patch body, commands and expected read-back."""

    payload: Any
    commands: list[str] = field(default_factory=list)
    expectations: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class LinkRequest:
    source_issue_id: Any
    target_issue_id: Any
    link_command: Any = None

    @classmethod
    def from_mapping(cls, raw: Any) -> LinkRequest:
        if isinstance(raw, LinkRequest):
            return raw
        if not isinstance(raw, Mapping):
            return cls(None, None)
        return cls(
            source_issue_id=raw.get("sourceIssueId", raw.get("source_issue_id")),
            target_issue_id=raw.get("targetIssueId", raw.get("target_issue_id")),
            link_command=raw.get("linkCommand", raw.get("link_command")),
        )


@dataclass
class BulkResult:
    """Aggregated outcome of one batch call.

    ``kind`` is ``"updated"`` or ``"linked"`` and names the success list in
    :meth:`to_dict`. ``error`` is set only when the batch was rejected before
    any item was processed.
    """

    kind: str
    items: list[dict[str, Any]] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)
    total: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and not self.errors

    @property
    def summary(self) -> dict[str, int]:
        return {"total": self.total, "successful": len(self.items), "failed": len(self.errors)}

    @property
    def message(self) -> str:
        if self.error is not None:
            return self.error
        noun = "issues updated" if self.kind == "updated" else "links created"
        verb = "update" if self.kind == "updated" else "link"
        return f"Bulk {verb} completed: {len(self.items)}/{self.total} {noun}"

    def to_dict(self) -> dict[str, Any]:
        if self.error is not None:
            return {"error": self.error}
        return {
            self.kind: list(self.items),
            "errors": list(self.errors),
            "summary": self.summary,
            "message": self.message,
        }


__all__ = [
    "DEFAULT_LINK_COMMAND",
    "BulkResult",
    "FieldMismatch",
    "LinkRequest",
    "ResolutionStatus",
    "ResolvedId",
    "UpdatePlan",
    "VerificationResult",
    "VerificationStatus",
]
