from __future__ import annotations

import re

INTERNAL_ID_PATTERN = re.compile(r"^\d+-\d+$")


def is_internal_id(issue_id: str) -> bool:
    """True for YouTrack database ids like ``2-417`` as opposed to ``PROJ-7``."""
    return bool(INTERNAL_ID_PATTERN.match(issue_id.strip()))


def issue_reference(issue_id: str) -> dict[str, str]:
    trimmed = issue_id.strip()
    if is_internal_id(trimmed):
        return {"id": trimmed}
    return {"idReadable": trimmed}
