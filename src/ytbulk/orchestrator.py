"""Sequential bulk update / bulk link execution with per-item failure isolation.

Items are processed one at a time so each item's writes are visible to its
own read-back. A failure on one item is recorded in that batch's error list
and never stops the next item; only an empty batch is rejected up front.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from .backend import IssueBackend
from .commands import CommandExecutor
from .errors import ValidationError, classify_error
from .logging import get_logger
from .models import DEFAULT_LINK_COMMAND, BulkResult, LinkRequest, VerificationStatus
from .resolver import LinkResolver
from .translator import RequestTranslator, has_payload_updates
from .verification import VerificationEngine

NO_ISSUES_MESSAGE = "No issue IDs provided for bulk update"
NO_LINKS_MESSAGE = "No link requests provided"
MISSING_LINK_IDS_MESSAGE = "sourceIssueId and targetIssueId are required"
LINK_UNVERIFIED_MESSAGE = "Link command executed but verification failed"

_WHITESPACE = re.compile(r"\s+")


def _trimmed(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def link_phrase(link_command: Any) -> str:
    phrase = _trimmed(link_command)
    return _WHITESPACE.sub(" ", phrase) if phrase else DEFAULT_LINK_COMMAND


def _error_entry(exc: BaseException, **ids: Any) -> dict[str, Any]:
    info = classify_error(exc)
    return {**ids, "error": info.message, "category": info.category}


class BulkOrchestrator:
    def __init__(
        self,
        backend: IssueBackend,
        *,
        translator: RequestTranslator | None = None,
        executor: CommandExecutor | None = None,
        resolver: LinkResolver | None = None,
        verifier: VerificationEngine | None = None,
    ):
        self.backend = backend
        self.translator = translator or RequestTranslator()
        self.executor = executor or CommandExecutor(backend)
        self.resolver = resolver or LinkResolver(backend)
        self.verifier = verifier or VerificationEngine(backend)
        self.logger = get_logger()

    # ---- bulk update --------------------------------------------------
    def bulk_update(self, issue_ids: Sequence[str] | None, update: Any) -> BulkResult:
        if not issue_ids:
            self.logger.log_error(NO_ISSUES_MESSAGE)
            return BulkResult("updated", error=NO_ISSUES_MESSAGE)

        result = BulkResult("updated", total=len(issue_ids))
        with self.logger.timed_operation("bulk_update", total=result.total):
            for issue_id in issue_ids:
                self._update_one(issue_id, update, result)
        self.logger.info(result.message, **result.summary)
        return result

    def _update_one(self, issue_id: str, update: Any, result: BulkResult) -> None:
        try:
            if not _trimmed(issue_id):
                raise ValidationError("issueId is required")
            issue_id = issue_id.strip()
            plan = self.translator.translate(update)
            if has_payload_updates(plan.payload):
                self.backend.patch_issue(issue_id, plan.payload)
            for command in plan.commands:
                self.executor.apply(issue_id, command)
            if not plan.expectations:
                result.items.append({"issueId": issue_id, "status": "updated"})
                self.logger.log_issue_action("update", issue_id)
                return
            verification = self.verifier.verify_fields(issue_id, plan.expectations)
        except Exception as exc:  # noqa: BLE001 - one item's failure never stops the batch
            result.errors.append(_error_entry(exc, issueId=issue_id))
            self.logger.log_issue_action("update", str(issue_id), ok=False, error=str(exc))
            return

        if verification.success:
            result.items.append(
                {
                    "issueId": issue_id,
                    "status": "updated",
                    "verified": True,
                    "appliedFields": dict(verification.applied_fields),
                }
            )
            self.logger.log_issue_action("update", issue_id, verified=True)
            return

        entry: dict[str, Any] = {
            "issueId": issue_id,
            "error": verification.message,
            "verification": verification.status.value,
        }
        if verification.status is VerificationStatus.MISMATCH:
            entry["details"] = [m.to_dict() for m in verification.mismatches]
        result.errors.append(entry)
        self.logger.log_issue_action(
            "update", issue_id, ok=False, verification=verification.status.value
        )

    # ---- bulk link ----------------------------------------------------
    def bulk_link(
        self,
        links: Iterable[LinkRequest | Mapping[str, Any]] | None,
        *,
        verify: bool = True,
    ) -> BulkResult:
        link_requests = [LinkRequest.from_mapping(raw) for raw in links or []]
        if not link_requests:
            self.logger.log_error(NO_LINKS_MESSAGE)
            return BulkResult("linked", error=NO_LINKS_MESSAGE)

        result = BulkResult("linked", total=len(link_requests))
        with self.logger.timed_operation("bulk_link", total=result.total, verify=verify):
            for request in link_requests:
                self._link_one(request, verify, result)
        self.logger.info(result.message, **result.summary)
        return result

    def _link_one(self, request: LinkRequest, verify: bool, result: BulkResult) -> None:
        source_id = _trimmed(request.source_issue_id)
        target_id = _trimmed(request.target_issue_id)
        phrase = link_phrase(request.link_command)

        if not source_id or not target_id:
            result.errors.append(
                {
                    "sourceIssueId": request.source_issue_id,
                    "targetIssueId": request.target_issue_id,
                    "error": MISSING_LINK_IDS_MESSAGE,
                    "category": "validation",
                }
            )
            return

        try:
            resolved = self.resolver.resolve(target_id)
            self.executor.apply(source_id, f"{phrase} {resolved.value}")
            if verify and not self.verifier.verify_link(source_id, resolved.value):
                result.errors.append(
                    {
                        "sourceIssueId": source_id,
                        "targetIssueId": resolved.value,
                        "error": LINK_UNVERIFIED_MESSAGE,
                        "category": "verification",
                    }
                )
                self.logger.log_issue_action("link", source_id, ok=False, target=resolved.value)
                return
        except Exception as exc:  # noqa: BLE001 - one item's failure never stops the batch
            result.errors.append(
                _error_entry(exc, sourceIssueId=source_id, targetIssueId=target_id)
            )
            self.logger.log_issue_action("link", source_id, ok=False, error=str(exc))
            return

        result.items.append(
            {
                "sourceIssueId": source_id,
                "targetIssueId": resolved.value,
                "command": phrase,
                "verified": verify,
                "targetResolution": resolved.status.value,
            }
        )
        self.logger.log_issue_action("link", source_id, target=resolved.value)


__all__ = [
    "BulkOrchestrator",
    "link_phrase",
    "NO_ISSUES_MESSAGE",
    "NO_LINKS_MESSAGE",
]
