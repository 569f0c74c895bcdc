"""Build the zip source archive that gets published to the registry."""

from __future__ import annotations

import contextlib
import hashlib
import logging
import os
import shutil
import tempfile
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from spm_core.config import ArchiveConfig
from spm_core.context import RunContext
from spm_core.errors import ArchiveWriteError

from .exclude import SEPARATOR, should_exclude

logger = logging.getLogger(__name__)

ARCHIVE_PREFIX = "swift-package-"
ARCHIVE_SUFFIX = ".zip"
_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class ArchiveArtifact:
    """A finished archive on disk and the SHA-256 of its exact bytes."""

    path: Path
    sha256: str
    size: int


def iter_archive_members(
    source_dir: Path,
    exclude: tuple[str, ...] | list[str],
    *,
    ctx: RunContext | None = None,
) -> Iterator[tuple[Path, str]]:
    """Yield ``(file_path, member_name)`` for every file that belongs in the archive.

    Depth-first, entries sorted by name. Excluded directories are pruned;
    symlinked directories are not followed.
    """

    root = Path(source_dir)

    def walk(directory: Path, prefix: str) -> Iterator[tuple[Path, str]]:
        for entry in sorted(directory.iterdir(), key=lambda item: item.name):
            if ctx is not None:
                ctx.check()
            rel = f"{prefix}{entry.name}"
            is_dir = entry.is_dir() and not entry.is_symlink()
            if should_exclude(rel, exclude):
                continue
            if is_dir:
                yield from walk(entry, rel + SEPARATOR)
            elif entry.is_file():
                yield entry, rel

    yield from walk(root, "")


def _add_file(zf: zipfile.ZipFile, file_path: Path, member: str) -> None:
    info = zipfile.ZipInfo.from_file(file_path, arcname=member, strict_timestamps=False)
    info.compress_type = zipfile.ZIP_DEFLATED
    with file_path.open("rb") as src, zf.open(info, "w") as dst:
        shutil.copyfileobj(src, dst, _CHUNK_SIZE)


def sha256_file(path: Path) -> str:
    hash_obj = hashlib.sha256()
    with path.open("rb") as stream:
        for chunk in iter(lambda: stream.read(65536), b""):
            hash_obj.update(chunk)
    return hash_obj.hexdigest()


def archive_size(path: Path | str) -> int:
    """Return the size of a file in bytes."""

    return Path(path).stat().st_size


def build_archive(
    source_dir: Path | str,
    version: str,
    config: ArchiveConfig,
    *,
    ctx: RunContext | None = None,
    temp_dir: Path | str | None = None,
) -> ArchiveArtifact:
    """Package ``source_dir`` into a temporary zip and digest it.

    The caller owns the returned file and must delete it. Any failure
    removes the partial archive before the error propagates: ``OSError``
    for filesystem problems, :class:`ArchiveWriteError` when the container
    cannot be finalized, ``CancellationError`` when ``ctx`` is done.
    """

    source = Path(source_dir)
    if not source.is_dir():
        raise NotADirectoryError(f"source directory not found: {source}")

    fd, raw_path = tempfile.mkstemp(prefix=ARCHIVE_PREFIX, suffix=ARCHIVE_SUFFIX, dir=temp_dir)
    archive_path = Path(raw_path)
    try:
        with os.fdopen(fd, "wb") as handle:
            count = 0
            zf = zipfile.ZipFile(handle, mode="w", compression=zipfile.ZIP_DEFLATED)
            try:
                for file_path, member in iter_archive_members(source, config.exclude, ctx=ctx):
                    _add_file(zf, file_path, member)
                    count += 1
            except BaseException:
                with contextlib.suppress(OSError, ValueError):
                    zf.close()
                raise
            try:
                zf.close()
            except (OSError, zipfile.LargeZipFile, ValueError) as exc:
                raise ArchiveWriteError(f"failed to finalize archive: {exc}") from exc

        checksum = sha256_file(archive_path)
        size = archive_size(archive_path)
    except BaseException:
        archive_path.unlink(missing_ok=True)
        raise

    logger.debug(
        "archived %s files from %s for version %s -> %s (%s bytes)",
        count,
        source,
        version,
        archive_path,
        size,
    )
    return ArchiveArtifact(path=archive_path, sha256=checksum, size=size)
