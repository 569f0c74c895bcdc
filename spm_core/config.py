"""Typed plugin configuration and the loader that builds it from a raw map."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml
from platformdirs import user_config_dir

from .errors import ConfigurationError
from .plugin.config_parser import ConfigParser
from .plugin.types import ValidationIssue

DEFAULT_APP_NAME = "spm-release"
CONFIG_FILE_NAME = "config.yml"
WORKSPACE_CONFIG_NAME = ".spm-release.yml"

DEFAULT_REGISTRY = "https://swift.pkg.github.com"
DEFAULT_MANIFEST = "Package.swift"
DEFAULT_VERSION_CONSTANT = "packageVersion"
DEFAULT_EXCLUDES: tuple[str, ...] = (".git", ".build", "Tests", "*.xcodeproj")

ENV_REGISTRY = "SWIFT_REGISTRY_URL"
ENV_SCOPE = "SWIFT_PACKAGE_SCOPE"
ENV_TOKEN = "SWIFT_REGISTRY_TOKEN"


def default_config_path() -> Path:
    """Return the platform-specific user config file for the CLI."""

    base_dir = Path(user_config_dir(DEFAULT_APP_NAME, appauthor=False))
    return base_dir / CONFIG_FILE_NAME


@dataclass(frozen=True)
class TestConfig:
    __test__ = False

    configuration: str = "debug"
    coverage: bool = False
    parallel: bool = True


@dataclass(frozen=True)
class ArchiveConfig:
    # include_docs is accepted for forward compatibility; it does not filter anything.
    include_docs: bool = True
    exclude: tuple[str, ...] = DEFAULT_EXCLUDES


@dataclass(frozen=True)
class PluginConfig:
    registry: str = DEFAULT_REGISTRY
    scope: str = ""
    token: str = field(default="", repr=False)
    package_name: str = ""
    manifest_path: str = DEFAULT_MANIFEST
    update_manifest: bool = False
    version_constant: str = DEFAULT_VERSION_CONSTANT
    create_tag: bool = True
    tag_prefix: str = ""
    validate: bool = True
    build: bool = True
    test: bool = True
    test_config: TestConfig = field(default_factory=TestConfig)
    archive: ArchiveConfig = field(default_factory=ArchiveConfig)
    skip_existing: bool = False
    dry_run: bool = False

    @property
    def work_dir(self) -> Path:
        """Directory holding the manifest; the package root for every tool call."""

        parent = Path(self.manifest_path).parent
        if str(parent) in ("", "."):
            return Path.cwd()
        return parent


def parse_config(
    raw: Mapping[str, Any] | None,
    *,
    environ: Mapping[str, str] | None = None,
) -> tuple[PluginConfig, list[ValidationIssue]]:
    """Build a :class:`PluginConfig` and return it with any coercion issues."""

    parser = ConfigParser(raw, environ=environ)

    test_section = parser.section("test_config")
    test_config = TestConfig(
        configuration=test_section.get_string("configuration", default="debug"),
        coverage=test_section.get_bool("coverage", False),
        parallel=test_section.get_bool("parallel", True),
    )

    archive_section = parser.section("archive")
    exclude = archive_section.get_string_list("exclude")
    archive = ArchiveConfig(
        include_docs=archive_section.get_bool("include_docs", True),
        exclude=exclude or DEFAULT_EXCLUDES,
    )

    config = PluginConfig(
        registry=parser.get_string("registry", ENV_REGISTRY, DEFAULT_REGISTRY),
        scope=parser.get_string("scope", ENV_SCOPE, ""),
        token=parser.get_string("token", ENV_TOKEN, ""),
        package_name=parser.get_string("package_name"),
        manifest_path=parser.get_string("manifest_path", default=DEFAULT_MANIFEST),
        update_manifest=parser.get_bool("update_manifest", False),
        version_constant=parser.get_string("version_constant", default=DEFAULT_VERSION_CONSTANT),
        create_tag=parser.get_bool("create_tag", True),
        tag_prefix=parser.get_string("tag_prefix"),
        validate=parser.get_bool("validate", True),
        build=parser.get_bool("build", True),
        test=parser.get_bool("test", True),
        test_config=test_config,
        archive=archive,
        skip_existing=parser.get_bool("skip_existing", False),
        dry_run=parser.get_bool("dry_run", False),
    )
    return config, list(parser.issues)


def load_config(
    raw: Mapping[str, Any] | None,
    *,
    environ: Mapping[str, str] | None = None,
) -> PluginConfig:
    """Return a fully typed config or raise :class:`ConfigurationError` listing every issue."""

    config, issues = parse_config(raw, environ=environ)
    if issues:
        raise ConfigurationError(issues)
    return config


def read_config_file(path: Path | str | None = None) -> dict[str, Any]:
    """Read the raw configuration map from YAML.

    Without an explicit path the workspace file is tried first, then the
    user config file. Missing files yield an empty map.
    """

    if path is not None:
        candidates = [Path(path)]
    else:
        candidates = [Path(os.getcwd()) / WORKSPACE_CONFIG_NAME, default_config_path()]

    for candidate in candidates:
        if not candidate.exists():
            if path is not None:
                raise FileNotFoundError(str(candidate))
            continue
        data = yaml.safe_load(candidate.read_text(encoding="utf-8")) or {}
        if not isinstance(data, Mapping):
            raise ValueError(f"expected mapping in {candidate}")
        return dict(data)
    return {}
