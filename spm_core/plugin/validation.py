"""Collect field-tagged validation problems before reporting them together."""

from __future__ import annotations

from typing import Iterable

from .types import ValidateResponse, ValidationIssue


class ValidationBuilder:
    def __init__(self) -> None:
        self._issues: list[ValidationIssue] = []

    def add_error(self, field: str, message: str) -> "ValidationBuilder":
        self._issues.append(ValidationIssue(field=field, message=message))
        return self

    def extend(self, issues: Iterable[ValidationIssue]) -> "ValidationBuilder":
        self._issues.extend(issues)
        return self

    def build(self) -> ValidateResponse:
        return ValidateResponse(valid=not self._issues, errors=tuple(self._issues))
