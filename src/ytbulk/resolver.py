from __future__ import annotations

from .backend import IssueBackend
from .errors import redact
from .identifiers import is_internal_id
from .logging import get_logger
from .models import ResolutionStatus, ResolvedId
from .youtrack_rest import READABLE_ID_SELECTOR


class LinkResolver:
    """Map an internal issue id (``2-417``) to its readable form (``PROJ-7``).

    Resolution is best-effort: any failure yields a ``FALLBACK`` result
    carrying the original id, never an exception.
    """

    def __init__(self, backend: IssueBackend):
        self.backend = backend
        self.logger = get_logger()

    def resolve(self, issue_id: str) -> ResolvedId:
        trimmed = issue_id.strip()
        if not is_internal_id(trimmed):
            return ResolvedId(trimmed, trimmed, ResolutionStatus.UNCHANGED)
        try:
            data = self.backend.fetch_issue(trimmed, READABLE_ID_SELECTOR)
        except Exception as exc:  # noqa: BLE001 - any lookup failure falls back to the input
            reason = redact(str(exc))
            self.logger.warning("readable id lookup failed", issue_id=trimmed, error=reason)
            return ResolvedId(trimmed, trimmed, ResolutionStatus.FALLBACK, reason)
        readable = data.get("idReadable") if isinstance(data, dict) else None
        if isinstance(readable, str) and readable.strip():
            return ResolvedId(readable.strip(), trimmed, ResolutionStatus.RESOLVED)
        self.logger.warning("readable id missing from response", issue_id=trimmed)
        return ResolvedId(trimmed, trimmed, ResolutionStatus.FALLBACK, "idReadable missing")
