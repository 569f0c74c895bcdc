"""Swift Package Manager plugin: build and test before release, publish after."""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Mapping, MutableMapping
from urllib.parse import urlsplit

from spm_builtin.git import create_git_tag
from spm_builtin.swift import SwiftCLI, swift_available
from spm_core.archive import ArchiveArtifact, build_archive
from spm_core.config import PluginConfig, load_config, parse_config
from spm_core.context import RunContext
from spm_core.errors import ConfigurationError, SpmReleaseError
from spm_core.manifest import extract_tools_version, update_version_constant
from spm_core.plugin import (
    ExecuteRequest,
    ExecuteResponse,
    Hook,
    PluginInfo,
    ReleaseContext,
    ValidateResponse,
    ValidationBuilder,
)
from spm_core.registry import RegistryClient

PLUGIN_NAME = "swift-pm"
PLUGIN_VERSION = "0.1.0"
DRY_RUN_CHECKSUM = "dry-run-checksum"

_base_logger = logging.getLogger(__name__)


class _FieldsAdapter(logging.LoggerAdapter):
    """Append bound ``key=value`` fields to every message."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        fields = " ".join(f"{key}={value}" for key, value in (self.extra or {}).items())
        return (f"{msg} [{fields}]" if fields else msg), kwargs

    def bind(self, **fields: Any) -> "_FieldsAdapter":
        merged = dict(self.extra or {})
        merged.update(fields)
        return _FieldsAdapter(self.logger, merged)


def _failure(message: str) -> ExecuteResponse:
    return ExecuteResponse(success=False, message=message)


class SwiftPMPlugin:
    """Release hooks for a Swift package published to a package registry."""

    def get_info(self) -> PluginInfo:
        return PluginInfo(
            name=PLUGIN_NAME,
            version=PLUGIN_VERSION,
            description="Swift Package Manager registry publishing and package management",
            hooks=(Hook.PRE_PUBLISH, Hook.POST_PUBLISH),
        )

    def validate(self, raw_config: Mapping[str, Any] | None) -> ValidateResponse:
        """Report every configuration problem at once."""

        cfg, issues = parse_config(raw_config)
        vb = ValidationBuilder().extend(issues)

        if not swift_available():
            vb.add_error("swift", "Swift CLI not found in PATH")
        if not cfg.scope:
            vb.add_error("scope", "Package scope is required")
        if not cfg.token:
            vb.add_error("token", "Registry token is required")
        if cfg.registry:
            parts = urlsplit(cfg.registry)
            if parts.scheme not in ("http", "https") or not parts.netloc:
                vb.add_error("registry", "Invalid registry URL")
        if not Path(cfg.manifest_path).exists():
            vb.add_error("manifest_path", f"Package.swift not found at: {cfg.manifest_path}")

        return vb.build()

    def execute(self, request: ExecuteRequest, *, ctx: RunContext | None = None) -> ExecuteResponse:
        try:
            cfg = load_config(request.config)
        except ConfigurationError as exc:
            return _failure(str(exc))
        if request.dry_run and not cfg.dry_run:
            cfg = replace(cfg, dry_run=True)

        ctx = ctx or RunContext.background()
        hook = request.hook.value if isinstance(request.hook, Hook) else str(request.hook)
        log = _FieldsAdapter(_base_logger, {"plugin": PLUGIN_NAME, "hook": hook})

        if hook == Hook.PRE_PUBLISH.value:
            return self._pre_publish(request.context, cfg, ctx, log)
        if hook == Hook.POST_PUBLISH.value:
            return self._post_publish(request.context, cfg, ctx, log)
        return ExecuteResponse(
            success=True,
            message=f"Hook {hook} not handled by {PLUGIN_NAME} plugin",
        )

    def _pre_publish(
        self,
        release: ReleaseContext,
        cfg: PluginConfig,
        ctx: RunContext,
        log: _FieldsAdapter,
    ) -> ExecuteResponse:
        version = release.version
        log = log.bind(version=version)
        swift = SwiftCLI(cfg.work_dir, ctx=ctx)

        try:
            log.info("Swift tools version %s", extract_tools_version(cfg.manifest_path))
        except (SpmReleaseError, OSError) as exc:
            log.warning("Could not determine swift-tools-version: %s", exc)

        if cfg.validate:
            log.info("Validating package manifest")
            if cfg.dry_run:
                log.info("[DRY-RUN] Would validate Package.swift")
            else:
                try:
                    swift.validate()
                except SpmReleaseError as exc:
                    return _failure(f"Package validation failed: {exc}")

        if cfg.build:
            log.info("Building package")
            if cfg.dry_run:
                log.info("[DRY-RUN] Would build package")
            else:
                try:
                    swift.build("release")
                except SpmReleaseError as exc:
                    return _failure(f"Build failed: {exc}")

        if cfg.test:
            log.info("Running tests")
            if cfg.dry_run:
                log.info("[DRY-RUN] Would run tests with %s", cfg.test_config)
            else:
                try:
                    swift.test(cfg.test_config)
                except SpmReleaseError as exc:
                    return _failure(f"Tests failed: {exc}")

        if cfg.update_manifest and cfg.version_constant:
            log.info("Updating %s in Package.swift", cfg.version_constant)
            if cfg.dry_run:
                log.info("[DRY-RUN] Would set %s to %s", cfg.version_constant, version)
            else:
                try:
                    update_version_constant(cfg.manifest_path, cfg.version_constant, version)
                except (SpmReleaseError, OSError) as exc:
                    return _failure(f"Failed to update version: {exc}")

        log.info("PrePublish completed successfully")
        return ExecuteResponse(success=True, message="Package validated and built successfully")

    def _post_publish(
        self,
        release: ReleaseContext,
        cfg: PluginConfig,
        ctx: RunContext,
        log: _FieldsAdapter,
    ) -> ExecuteResponse:
        version = release.version
        log = log.bind(version=version)
        work_dir = cfg.work_dir

        package_name = cfg.package_name
        if not package_name:
            try:
                package_name = SwiftCLI(work_dir, ctx=ctx).dump_package().name
            except SpmReleaseError as exc:
                return _failure(f"Failed to parse Package.swift: {exc}")

        log = log.bind(package=package_name, scope=cfg.scope)
        outputs: dict[str, Any] = {"package": package_name, "version": version}

        client: RegistryClient | None = None
        if cfg.registry and not cfg.dry_run:
            client = RegistryClient(cfg.registry, token=cfg.token)
        try:
            already_published = False
            if client is not None and cfg.skip_existing:
                try:
                    already_published = client.version_exists(
                        cfg.scope, package_name, version, ctx=ctx
                    )
                except SpmReleaseError as exc:
                    return _failure(f"Failed to query registry: {exc}")
                if already_published:
                    log.info("Version already published, skipping archive and upload")

            artifact: ArchiveArtifact | None = None
            try:
                if not already_published:
                    log.info("Creating package archive")
                    if cfg.dry_run:
                        log.info(
                            "[DRY-RUN] Would create archive excluding %s", list(cfg.archive.exclude)
                        )
                        outputs["checksum"] = DRY_RUN_CHECKSUM
                    else:
                        try:
                            artifact = build_archive(work_dir, version, cfg.archive, ctx=ctx)
                        except (SpmReleaseError, OSError) as exc:
                            return _failure(f"Failed to create archive: {exc}")
                        outputs["checksum"] = artifact.sha256
                        log.info(
                            "Archive created checksum=%s size=%s", artifact.sha256, artifact.size
                        )

                if cfg.registry and not already_published:
                    log.info("Publishing to registry %s", cfg.registry)
                    if cfg.dry_run:
                        log.info(
                            "[DRY-RUN] Would publish %s.%s@%s to %s",
                            cfg.scope,
                            package_name,
                            version,
                            cfg.registry,
                        )
                    elif client is not None and artifact is not None:
                        try:
                            client.publish(
                                cfg.scope,
                                package_name,
                                version,
                                artifact.path,
                                artifact.sha256,
                                ctx=ctx,
                            )
                        except (SpmReleaseError, OSError) as exc:
                            return _failure(f"Failed to publish to registry: {exc}")
            finally:
                if artifact is not None:
                    artifact.path.unlink(missing_ok=True)

            if cfg.create_tag:
                tag = f"{cfg.tag_prefix}{version}"
                outputs["tag"] = tag
                log.info("Creating git tag %s", tag)
                if cfg.dry_run:
                    log.info("[DRY-RUN] Would create git tag %s", tag)
                else:
                    try:
                        create_git_tag(tag, cwd=work_dir, ctx=ctx)
                    except SpmReleaseError as exc:
                        return _failure(f"Failed to create git tag: {exc}")
        finally:
            if client is not None:
                client.close()

        if cfg.dry_run:
            message = f"[DRY-RUN] Would publish {package_name}@{version} to registry"
        elif already_published:
            message = f"{package_name}@{version} already published to registry"
        else:
            message = f"Published {package_name}@{version} to registry"
        log.info("PostPublish completed successfully")
        return ExecuteResponse(success=True, message=message, outputs=outputs)
