"""Read-back checks run after a batch item has been written."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .backend import IssueBackend
from .errors import redact
from .logging import get_logger
from .models import FieldMismatch, VerificationResult, VerificationStatus
from .youtrack_rest import LINKS_SELECTOR, VERIFY_FIELDS_SELECTOR

MISMATCH_MESSAGE = "Verification failed for one or more custom fields"


def _as_text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value).strip()


def field_value(field: Mapping[str, Any]) -> str | None:
    """Comparable value of a custom field: the value's name, else id, else login."""
    value = field.get("value")
    if not isinstance(value, Mapping):
        return None
    return _as_text(value.get("name") or value.get("id") or value.get("login"))


class VerificationEngine:
    def __init__(self, backend: IssueBackend):
        self.backend = backend
        self.logger = get_logger()

    def verify_fields(self, issue_id: str, expectations: Mapping[str, str]) -> VerificationResult:
        try:
            data = self.backend.fetch_issue(issue_id, VERIFY_FIELDS_SELECTOR)
        except Exception as exc:  # noqa: BLE001 - reported as an indeterminate outcome
            message = f"Verification error: {redact(str(exc))}"
            self.logger.warning("field verification indeterminate", issue_id=issue_id, error=message)
            return VerificationResult(VerificationStatus.INDETERMINATE, message=message)

        raw_fields = data.get("customFields") if isinstance(data, Mapping) else None
        custom_fields = [f for f in raw_fields or [] if isinstance(f, Mapping)]

        applied: dict[str, str] = {}
        mismatches: list[FieldMismatch] = []
        for name, expected in expectations.items():
            match = next((f for f in custom_fields if f.get("name") == name), None)
            actual = field_value(match) if match is not None else None
            if actual is not None and actual == expected.strip():
                applied[name] = actual
            else:
                mismatches.append(FieldMismatch(name, expected, actual))

        if mismatches:
            return VerificationResult(
                VerificationStatus.MISMATCH, mismatches=mismatches, message=MISMATCH_MESSAGE
            )
        return VerificationResult(VerificationStatus.VERIFIED, applied_fields=applied)

    def verify_link(self, source_id: str, target_id: str) -> bool:
        target = target_id.strip()
        try:
            data = self.backend.fetch_issue(source_id, LINKS_SELECTOR)
        except Exception as exc:  # noqa: BLE001 - an unreadable issue counts as unverified
            self.logger.warning(
                "link verification fetch failed", issue_id=source_id, error=redact(str(exc))
            )
            return False

        links = data.get("links") if isinstance(data, Mapping) else None
        for link in links or []:
            if not isinstance(link, Mapping):
                continue
            for issue in link.get("issues") or []:
                if not isinstance(issue, Mapping):
                    continue
                readable = issue.get("idReadable")
                internal = issue.get("id")
                if isinstance(readable, str) and readable.strip() == target:
                    return True
                if internal is not None and str(internal).strip() == target:
                    return True
        return False


__all__ = ["MISMATCH_MESSAGE", "VerificationEngine", "field_value"]
