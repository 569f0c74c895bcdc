"""Command line entrypoint that drives the Swift PM plugin outside a host pipeline."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Sequence

import yaml

from spm_core.config import read_config_file
from spm_core.context import RunContext
from spm_core.plugin import ExecuteRequest, Hook, ReleaseContext
from spm_plugins import SwiftPMPlugin

CLI_VERSION = "0.1.0"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spm-release",
        description="Validate, build, archive and publish Swift packages to a registry.",
    )
    parser.add_argument("--version", action="version", version=f"spm-release v{CLI_VERSION}")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging verbosity (default: INFO)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    info = sub.add_parser("info", help="Show plugin metadata")
    info.add_argument("--format", choices=("text", "json"), default="text")

    validate = sub.add_parser("validate", help="Validate the plugin configuration")
    validate.add_argument("--config", "-c", default=None, help="YAML configuration file")

    run = sub.add_parser("run", help="Execute a release hook")
    run.add_argument("--config", "-c", default=None, help="YAML configuration file")
    run.add_argument(
        "--hook",
        required=True,
        choices=[hook.value for hook in Hook],
        help="Release hook to execute",
    )
    run.add_argument(
        "--version",
        "--release-version",
        dest="release_version",
        required=True,
        help="Version being released",
    )
    run.add_argument("--previous-version", dest="previous_version", default="")
    run.add_argument("--dry-run", action="store_true", help="Log side effects instead of running them")
    run.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Abort the hook after this many seconds",
    )
    return parser


def _load_raw_config(path: str | None) -> dict[str, Any] | None:
    try:
        return read_config_file(path)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        print(f"[spm-release] unable to read configuration: {exc}", file=sys.stderr)
        return None


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    try:
        args = parser.parse_args(list(argv) if argv is not None else None)
    except SystemExit as exc:
        return int(exc.code or 0)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    plugin = SwiftPMPlugin()

    if args.command == "info":
        info = plugin.get_info()
        if args.format == "json":
            payload = {
                "name": info.name,
                "version": info.version,
                "description": info.description,
                "hooks": [hook.value for hook in info.hooks],
            }
            print(json.dumps(payload, indent=2))
        else:
            print(f"{info.name} v{info.version}: {info.description}")
            print(f"hooks: {', '.join(hook.value for hook in info.hooks)}")
        return 0

    raw = _load_raw_config(args.config)
    if raw is None:
        return 1

    if args.command == "validate":
        response = plugin.validate(raw)
        if response.valid:
            print("[spm-release] configuration is valid")
            return 0
        for issue in response.errors:
            print(f"[spm-release] {issue.field}: {issue.message}")
        return 1

    ctx = RunContext.with_timeout(args.timeout) if args.timeout else RunContext.background()
    request = ExecuteRequest(
        hook=Hook(args.hook),
        config=raw,
        context=ReleaseContext(
            version=args.release_version,
            previous_version=args.previous_version,
        ),
        dry_run=bool(args.dry_run),
    )
    response = plugin.execute(request, ctx=ctx)
    print(f"[spm-release] {response.message}")
    return 0 if response.success else 1
