"""Regex-based edits of ``Package.swift``; no structural parsing."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from spm_core.errors import NotFoundError

logger = logging.getLogger(__name__)

_TOOLS_VERSION_RE = re.compile(rb"//\s*swift-tools-version:\s*(\d+\.\d+(?:\.\d+)?)")


def _version_constant_pattern(constant_name: str) -> re.Pattern[bytes]:
    name = re.escape(constant_name.encode("utf-8"))
    return re.compile(
        rb'(\b(?:let|var)\s+' + name + rb'\s*(?::\s*String\s*)?=\s*")([^"\n]+)(")'
    )


def update_version_constant(path: Path | str, constant_name: str, new_version: str) -> int:
    """Rewrite the quoted value of ``let <constant_name> = "..."`` in place.

    Every matching declaration is rewritten; more than one match is logged
    as a warning. Raises :class:`NotFoundError` and leaves the file alone
    when nothing matches. Returns the number of rewritten declarations.
    """

    manifest = Path(path)
    content = manifest.read_bytes()
    pattern = _version_constant_pattern(constant_name)
    replacement = new_version.encode("utf-8")

    new_content, count = pattern.subn(
        lambda match: match.group(1) + replacement + match.group(3), content
    )
    if count == 0:
        raise NotFoundError(f"version constant '{constant_name}' not found in {manifest}")
    if count > 1:
        logger.warning(
            "found %s declarations of %s in %s; rewriting all of them",
            count,
            constant_name,
            manifest,
        )

    manifest.write_bytes(new_content)
    return count


def extract_tools_version(path: Path | str) -> str:
    """Return the ``swift-tools-version`` declared by the manifest."""

    manifest = Path(path)
    match = _TOOLS_VERSION_RE.search(manifest.read_bytes())
    if match is None:
        raise NotFoundError(f"swift-tools-version not found in {manifest}")
    return match.group(1).decode("ascii")
