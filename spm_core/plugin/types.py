"""Datatypes exchanged between the release pipeline and plugins."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class Hook(str, Enum):
    """Extension points exposed by the release pipeline."""

    PRE_INIT = "pre-init"
    POST_INIT = "post-init"
    PRE_PLAN = "pre-plan"
    POST_PLAN = "post-plan"
    PRE_VERSION = "pre-version"
    POST_VERSION = "post-version"
    PRE_NOTES = "pre-notes"
    POST_NOTES = "post-notes"
    PRE_APPROVE = "pre-approve"
    POST_APPROVE = "post-approve"
    PRE_PUBLISH = "pre-publish"
    POST_PUBLISH = "post-publish"
    ON_SUCCESS = "on-success"
    ON_ERROR = "on-error"


@dataclass(frozen=True)
class PluginInfo:
    name: str
    version: str
    description: str
    hooks: tuple[Hook, ...]


@dataclass(frozen=True)
class ReleaseContext:
    """Release facts supplied by the host pipeline."""

    version: str
    previous_version: str = ""
    tag_name: str = ""
    branch: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ReleaseContext":
        return cls(
            version=str(data.get("version", "")),
            previous_version=str(data.get("previous_version", "") or ""),
            tag_name=str(data.get("tag_name", "") or ""),
            branch=str(data.get("branch", "") or ""),
        )


@dataclass(frozen=True)
class ExecuteRequest:
    hook: Hook | str
    config: Mapping[str, Any]
    context: ReleaseContext
    dry_run: bool = False


@dataclass(frozen=True)
class ExecuteResponse:
    success: bool
    message: str
    outputs: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ValidationIssue:
    """A single field-tagged configuration problem."""

    field: str
    message: str


@dataclass(frozen=True)
class ValidateResponse:
    valid: bool
    errors: tuple[ValidationIssue, ...] = ()
