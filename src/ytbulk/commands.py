from __future__ import annotations

from .backend import IssueBackend
from .identifiers import issue_reference
from .logging import get_logger


class CommandExecutor:
    """Run one command-grammar string against a single issue.

    Backend errors propagate; the caller decides how an item failure is recorded.
    """

    def __init__(self, backend: IssueBackend):
        self.backend = backend
        self.logger = get_logger()

    def apply(self, issue_id: str, command: str) -> None:
        query = command.strip()
        self.logger.debug("applying command", issue_id=issue_id, command=query)
        self.backend.run_command(query, [issue_reference(issue_id)])
