"""Source archive packaging with layered path exclusions."""

from .builder import (
    ArchiveArtifact,
    archive_size,
    build_archive,
    iter_archive_members,
    sha256_file,
)
from .exclude import glob_match, should_exclude

__all__ = [
    "ArchiveArtifact",
    "archive_size",
    "build_archive",
    "iter_archive_members",
    "sha256_file",
    "glob_match",
    "should_exclude",
]
