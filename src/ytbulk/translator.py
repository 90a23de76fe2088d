"""Translate a loose update request into a patch body, commands and expectations.

YouTrack only lets a handful of built-in fields (type, state, priority,
assignee, subsystem) be set reliably through the command grammar, so those
shorthand keys are lifted out of the patch payload and turned into
``"<Field> <value>"`` commands. Every shorthand that survives normalization
also becomes an expectation that is checked after the write.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from .models import UpdatePlan

_WHITESPACE_OR_QUOTE = re.compile(r'[\s"]')


def _normalize_text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _normalize_user(value: Any) -> str | None:
    text = _normalize_text(value)
    if text is not None:
        return text
    if isinstance(value, Mapping):
        return _normalize_text(value.get("login"))
    return None


@dataclass(frozen=True)
class ShorthandField:
    key: str
    display_name: str
    normalize: Callable[[Any], str | None]
    expectation_transform: Callable[[str], str] | None = None

    def expected(self, value: str) -> str:
        return self.expectation_transform(value) if self.expectation_transform else value


# Order is the order commands are emitted in.
SHORTHAND_FIELDS: tuple[ShorthandField, ...] = (
    ShorthandField("type", "Type", _normalize_text),
    ShorthandField("state", "State", _normalize_text),
    ShorthandField("priority", "Priority", _normalize_text),
    ShorthandField("assignee", "Assignee", _normalize_user),
    ShorthandField("subsystem", "Subsystem", _normalize_text),
)


def format_command_value(value: str) -> str:
    """Quote a command argument when it holds whitespace or a double quote."""
    trimmed = value.strip()
    if _WHITESPACE_OR_QUOTE.search(trimmed):
        escaped = trimmed.replace('"', '\\"')
        return f'"{escaped}"'
    return trimmed


def _first_text(value: Mapping[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        text = _normalize_text(value.get(key))
        if text is not None:
            return text
    return None


def custom_field_expectations(payload: Any) -> dict[str, str]:
    """Expected read-back values for ``customFields`` entries with object values."""
    expectations: dict[str, str] = {}
    if not isinstance(payload, Mapping):
        return expectations
    custom_fields = payload.get("customFields")
    if not isinstance(custom_fields, list):
        return expectations
    for entry in custom_fields:
        if not isinstance(entry, Mapping):
            continue
        name = _normalize_text(entry.get("name"))
        if name is None:
            continue
        value = entry.get("value")
        if isinstance(value, Mapping):
            expected = _first_text(value, ("name", "id", "login"))
            if expected is not None:
                expectations[name] = expected
    return expectations


def has_payload_updates(payload: Any) -> bool:
    if not isinstance(payload, Mapping):
        return False
    if any(key != "customFields" for key in payload):
        return True
    custom_fields = payload.get("customFields")
    return isinstance(custom_fields, list) and len(custom_fields) > 0


class RequestTranslator:
    def __init__(self, fields: tuple[ShorthandField, ...] = SHORTHAND_FIELDS):
        self.fields = fields

    def translate(self, update: Any) -> UpdatePlan:
        if not isinstance(update, Mapping):
            return UpdatePlan(payload=update)

        payload: dict[str, Any] = dict(update)
        if isinstance(payload.get("customFields"), list):
            payload["customFields"] = list(payload["customFields"])

        commands: list[str] = []
        expectations: dict[str, str] = {}
        for shorthand in self.fields:
            if shorthand.key not in payload:
                continue
            normalized = shorthand.normalize(payload.pop(shorthand.key))
            if normalized:
                commands.append(f"{shorthand.display_name} {format_command_value(normalized)}")
                expectations[shorthand.display_name] = shorthand.expected(normalized)

        expectations.update(custom_field_expectations(payload))
        return UpdatePlan(payload=payload, commands=commands, expectations=expectations)


__all__ = [
    "SHORTHAND_FIELDS",
    "RequestTranslator",
    "ShorthandField",
    "custom_field_expectations",
    "format_command_value",
    "has_payload_updates",
]
