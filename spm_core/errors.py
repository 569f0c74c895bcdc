"""Typed errors raised by the release plugin core."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from spm_core.plugin.types import ValidationIssue


class SpmReleaseError(RuntimeError):
    """Base error for the release plugin."""


class ConfigurationError(SpmReleaseError):
    """Raised when the raw configuration map cannot be turned into a typed config."""

    def __init__(self, issues: Sequence["ValidationIssue"]) -> None:
        self.issues = tuple(issues)
        detail = "; ".join(f"{issue.field}: {issue.message}" for issue in self.issues)
        super().__init__(f"invalid configuration: {detail}" if detail else "invalid configuration")


class ExternalToolError(SpmReleaseError):
    """An external command (swift, git) exited unsuccessfully."""

    def __init__(self, command: Sequence[str], returncode: int | None, output: str = "") -> None:
        self.command = tuple(command)
        self.returncode = returncode
        self.output = output.strip()
        label = " ".join(self.command)
        if self.returncode is None:
            message = f"{label} could not be executed"
        else:
            message = f"{label} failed (exit={self.returncode})"
        if self.output:
            message = f"{message}: {self.output}"
        super().__init__(message)


class ArchiveError(SpmReleaseError):
    """Traversal or container write failure while packaging sources."""


class ArchiveWriteError(ArchiveError):
    """The zip container could not be finalized."""


class NotFoundError(SpmReleaseError):
    """A manifest pattern did not match."""


class RegistryError(SpmReleaseError):
    """Registry request failed or returned an unexpected status."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class CancellationError(SpmReleaseError):
    """The run context was cancelled or its deadline passed."""
