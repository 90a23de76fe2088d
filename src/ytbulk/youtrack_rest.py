from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

import requests

from .errors import BackendError
from .retry import TRANSIENT_STATUSES, RetryConfig, TransientHTTPError, run_with_retries

USER_AGENT = "ytbulk-rest/0.3.0"
HTTP_ERROR_STATUS = 400
DEFAULT_TIMEOUT = 30.0

VERIFY_FIELDS_SELECTOR = "id,idReadable,customFields(name,value(name,id,login))"
LINKS_SELECTOR = "idReadable,links(linkType(name),issues(id,idReadable))"
READABLE_ID_SELECTOR = "idReadable"
PROJECT_SELECTOR = "id,shortName,name"
CRITICAL_PATH_SELECTOR = "id,idReadable,summary,priority(name),created,customFields(name,value(name))"


class YouTrackAPIError(BackendError):
    """Raised when the YouTrack REST API returns an error."""


@dataclass
class YouTrackRestClient:
    """Lightweight REST client for the handful of YouTrack calls the bulk engine needs."""

    base_url: str
    token: str
    timeout: float = DEFAULT_TIMEOUT
    session: requests.Session | None = None
    retry: RetryConfig | None = None
    _session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._session = self.session or requests.Session()
        self._session.headers.setdefault("Authorization", f"Bearer {self.token}")
        self._session.headers.setdefault("Accept", "application/json")
        self._session.headers.setdefault("Content-Type", "application/json")
        self._session.headers.setdefault("User-Agent", USER_AGENT)

    # ---- REST helpers -------------------------------------------------
    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any | None = None,
    ) -> Any:
        url = f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

        def _run() -> Any:
            response = self._session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self._session.headers,
                timeout=self.timeout,
            )
            if response.status_code in TRANSIENT_STATUSES:
                headers = getattr(response, "headers", None) or {}
                raise TransientHTTPError(response.status_code, headers.get("Retry-After"))
            return response

        try:
            response = run_with_retries(_run, cfg=self.retry)
        except TransientHTTPError as exc:
            raise YouTrackAPIError(
                f"YouTrack API {method} {path} failed with {exc.status}", status=exc.status
            ) from exc
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise YouTrackAPIError(f"YouTrack API {method} {path} unreachable: {exc}") from exc

        if response.status_code >= HTTP_ERROR_STATUS:
            raise YouTrackAPIError(
                f"YouTrack API {method} {path} failed with {response.status_code}",
                status=response.status_code,
                response_text=response.text,
            )
        if response.text:
            try:
                return response.json()
            except ValueError:
                return response.text
        return None

    @staticmethod
    def _issue_path(issue_id: str) -> str:
        return f"/api/issues/{quote(issue_id.strip(), safe='')}"

    # ---- Issue operations --------------------------------------------
    def patch_issue(self, issue_id: str, fields: Mapping[str, Any]) -> Any:
        # YouTrack applies partial issue updates via POST
        return self._request("POST", self._issue_path(issue_id), json_body=dict(fields))

    def run_command(self, query: str, issues: Sequence[Mapping[str, str]]) -> Any:
        payload = {"query": query, "issues": [dict(ref) for ref in issues]}
        return self._request("POST", "/api/commands", json_body=payload)

    def fetch_issue(self, issue_id: str, fields: str) -> dict[str, Any]:
        data = self._request("GET", self._issue_path(issue_id), params={"fields": fields})
        if not isinstance(data, dict):
            raise YouTrackAPIError(f"Unexpected response for issue {issue_id}")
        return data

    def get_project(self, project_id: str, fields: str = PROJECT_SELECTOR) -> dict[str, Any]:
        data = self._request(
            "GET", f"/api/admin/projects/{quote(project_id, safe='')}", params={"fields": fields}
        )
        if not isinstance(data, dict):
            raise YouTrackAPIError(f"Project {project_id} not found")
        return data

    def search_issues(self, query: str, fields: str, top: int = 100) -> list[dict[str, Any]]:
        data = self._request(
            "GET", "/api/issues", params={"query": query, "fields": fields, "$top": top}
        )
        if not isinstance(data, list):
            return []
        return [entry for entry in data if isinstance(entry, dict)]


__all__ = [
    "YouTrackAPIError",
    "YouTrackRestClient",
    "VERIFY_FIELDS_SELECTOR",
    "LINKS_SELECTOR",
    "READABLE_ID_SELECTOR",
]
