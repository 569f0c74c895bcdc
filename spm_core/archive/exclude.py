"""Path exclusion rules applied while packaging a source tree."""

from __future__ import annotations

import re
from fnmatch import translate
from functools import lru_cache
from typing import Iterable

SEPARATOR = "/"


@lru_cache(maxsize=256)
def _compile_glob(pattern: str) -> re.Pattern[str] | None:
    # Character classes must be closed; anything else is a literal or wildcard.
    depth = 0
    for ch in pattern:
        if ch == "[":
            depth += 1
        elif ch == "]" and depth:
            depth -= 1
    if depth:
        return None
    # A leading "^" negates a class, same as "!".
    try:
        return re.compile(translate(pattern.replace("[^", "[!")))
    except re.error:
        return None


def glob_match(pattern: str, name: str) -> bool:
    """Case-sensitive glob match of a single path segment.

    Malformed patterns never match.
    """

    compiled = _compile_glob(pattern)
    if compiled is None:
        return False
    return compiled.match(name) is not None


def normalize_path(path: str) -> str:
    return path.replace("\\", SEPARATOR)


def should_exclude(path: str, patterns: Iterable[str]) -> bool:
    """Return True if ``path`` (relative, forward slashes) matches any pattern.

    Per pattern, in order: directory prefix (``dir/``), exact path, glob
    against any path segment, glob against the basename.
    """

    path = normalize_path(path)
    segments = path.split(SEPARATOR)
    basename = segments[-1]
    for pattern in patterns:
        if not pattern:
            continue
        if pattern.endswith(SEPARATOR):
            dir_pattern = pattern.rstrip(SEPARATOR)
            if path == dir_pattern or path.startswith(dir_pattern + SEPARATOR):
                return True

        if path == pattern:
            return True

        if any(glob_match(pattern, segment) for segment in segments):
            return True

        if glob_match(pattern, basename):
            return True
    return False
