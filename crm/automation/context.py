"""Trigger context - dotted lookups and {{placeholder}} substitution."""

from __future__ import annotations

import re
from typing import Any

_PLACEHOLDER_RE = re.compile(r"\{\{(.+?)\}\}")
_MISSING = object()


class TriggerContext:
    """Wraps the trigger payload an automation runs against.

    Placeholders resolve against the payload with dotted paths
    (`{{contact.name}}`); unknown keys are left as written.
    """

    def __init__(self, trigger_data: dict | None = None):
        self._data: dict[str, Any] = dict(trigger_data or {})

    def lookup(self, key: str) -> Any:
        """Dotted-path lookup returning a sentinel when any segment is missing."""
        current: Any = self._data
        for part in key.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return _MISSING
        return current

    def get(self, key: str, default: Any = None) -> Any:
        value = self.lookup(key)
        return default if value is _MISSING or value is None else value

    def has(self, key: str) -> bool:
        return self.lookup(key) is not _MISSING

    def resolve_template(self, text: str) -> str:
        """Replace {{variable}} placeholders with context values."""
        def replacer(match):
            value = self.get(match.group(1).strip())
            return str(value) if value is not None else match.group(0)

        return _PLACEHOLDER_RE.sub(replacer, text)

    def resolve_config(self, config: dict) -> dict:
        """Deep-resolve all string values in a config dict."""
        resolved = {}
        for key, value in config.items():
            if isinstance(value, str):
                resolved[key] = self.resolve_template(value)
            elif isinstance(value, dict):
                resolved[key] = self.resolve_config(value)
            elif isinstance(value, list):
                resolved[key] = [
                    self.resolve_template(v) if isinstance(v, str) else v
                    for v in value
                ]
            else:
                resolved[key] = value
        return resolved

    def matches(self, conditions: dict | None) -> bool:
        """Every condition key (dotted) must equal the payload value."""
        for key, expected in (conditions or {}).items():
            if self.lookup(key) != expected:
                return False
        return True

    def to_dict(self) -> dict:
        return dict(self._data)
