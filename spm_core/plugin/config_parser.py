"""Typed accessors over an untyped plugin configuration map."""

from __future__ import annotations

import os
from typing import Any, Mapping

from .types import ValidationIssue

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off"})


def coerce_bool(value: Any) -> bool | None:
    """Return ``value`` as a bool, or ``None`` when it cannot be interpreted."""

    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return bool(value)
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in _TRUE_STRINGS:
            return True
        if normalized in _FALSE_STRINGS:
            return False
    return None


class ConfigParser:
    """Read values with default -> environment -> explicit precedence.

    Type mismatches never raise; they are recorded in :attr:`issues` and the
    default is used so every problem can be reported in one pass.
    """

    def __init__(
        self,
        raw: Mapping[str, Any] | None,
        *,
        environ: Mapping[str, str] | None = None,
        prefix: str = "",
    ) -> None:
        self._raw: Mapping[str, Any] = raw or {}
        self._environ = os.environ if environ is None else environ
        self._prefix = prefix
        self.issues: list[ValidationIssue] = []

    def _field(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _error(self, key: str, message: str) -> None:
        self.issues.append(ValidationIssue(field=self._field(key), message=message))

    def get_string(self, key: str, env_key: str = "", default: str = "") -> str:
        value = default
        if env_key:
            env_value = self._environ.get(env_key)
            if env_value:
                value = env_value
        raw_value = self._raw.get(key)
        if raw_value is None:
            return value
        if isinstance(raw_value, bool) or not isinstance(raw_value, (str, int, float)):
            self._error(key, f"expected a string, got {type(raw_value).__name__}")
            return value
        text = str(raw_value)
        return text if text else value

    def get_bool(self, key: str, default: bool = False, env_key: str = "") -> bool:
        value = default
        if env_key and self._environ.get(env_key):
            coerced = coerce_bool(self._environ[env_key])
            if coerced is None:
                self._error(key, f"environment variable {env_key} is not a boolean")
            else:
                value = coerced
        raw_value = self._raw.get(key)
        if raw_value is None:
            return value
        coerced = coerce_bool(raw_value)
        if coerced is None:
            self._error(key, f"expected a boolean, got {raw_value!r}")
            return value
        return coerced

    def get_string_list(self, key: str, default: tuple[str, ...] = ()) -> tuple[str, ...]:
        raw_value = self._raw.get(key)
        if raw_value is None:
            return default
        if isinstance(raw_value, str) or not isinstance(raw_value, (list, tuple)):
            self._error(key, "expected a list of strings")
            return default
        values: list[str] = []
        for item in raw_value:
            if not isinstance(item, str):
                self._error(key, f"ignoring non-string entry {item!r}")
                continue
            values.append(item)
        return tuple(values)

    def section(self, key: str) -> "ConfigParser":
        """Return a parser for a nested mapping, sharing the issue list."""

        raw_value = self._raw.get(key)
        if raw_value is not None and not isinstance(raw_value, Mapping):
            self._error(key, "expected a mapping")
            raw_value = None
        child = ConfigParser(raw_value, environ=self._environ, prefix=f"{self._field(key)}.")
        child.issues = self.issues
        return child
