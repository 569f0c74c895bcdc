"""Wrapper around the ``swift`` package-manager command line."""

from __future__ import annotations

import json
import shutil
from pathlib import Path

from spm_core.config import TestConfig
from spm_core.context import RunContext
from spm_core.errors import ExternalToolError
from spm_core.manifest import PackageManifest

from .process import run_command

SWIFT_BINARY = "swift"


def swift_available() -> bool:
    return shutil.which(SWIFT_BINARY) is not None


class SwiftCLI:
    """Run ``swift`` subcommands inside a package directory."""

    def __init__(self, work_dir: Path | str, *, ctx: RunContext | None = None) -> None:
        self.work_dir = Path(work_dir)
        self.ctx = ctx

    def _run(self, *args: str) -> str:
        result = run_command([SWIFT_BINARY, *args], cwd=self.work_dir, ctx=self.ctx)
        return result.stdout

    def validate(self) -> None:
        """Check manifest syntax, then make sure dependencies resolve."""

        self._run("package", "dump-package")
        self._run("package", "resolve")

    def build(self, configuration: str = "") -> None:
        args = ["build"]
        if configuration:
            args += ["-c", configuration]
        self._run(*args)

    def test(self, config: TestConfig) -> None:
        args = ["test"]
        if config.configuration:
            args += ["-c", config.configuration]
        if config.coverage:
            args.append("--enable-code-coverage")
        if config.parallel:
            args.append("--parallel")
        self._run(*args)

    def clean(self) -> None:
        self._run("package", "clean")

    def get_version(self) -> str:
        return self._run("--version").strip()

    def dump_package(self) -> PackageManifest:
        output = self._run("package", "dump-package")
        try:
            payload = json.loads(output)
        except json.JSONDecodeError as exc:
            raise ExternalToolError(
                [SWIFT_BINARY, "package", "dump-package"], 0, f"invalid JSON output: {exc}"
            ) from exc
        if not isinstance(payload, dict):
            raise ExternalToolError(
                [SWIFT_BINARY, "package", "dump-package"], 0, "expected a JSON object"
            )
        return PackageManifest.from_dict(payload)
