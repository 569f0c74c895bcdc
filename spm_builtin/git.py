"""Version-control helpers."""

from __future__ import annotations

from pathlib import Path

from spm_core.context import RunContext

from .process import run_command


def create_git_tag(tag: str, *, cwd: Path | str | None = None, ctx: RunContext | None = None) -> None:
    run_command(["git", "tag", tag], cwd=cwd, ctx=ctx, merge_output=True)
