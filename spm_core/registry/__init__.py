"""Convenience exports for the registry client."""

from .client import (
    ARCHIVE_MEDIA_TYPE,
    DEFAULT_TIMEOUT,
    JSON_MEDIA_TYPE,
    MANIFEST_MEDIA_TYPE,
    RegistryClient,
)
from .security import redact_token, redact_url, scrub_secret
from .types import Release, releases_from_listing

__all__ = [
    "ARCHIVE_MEDIA_TYPE",
    "DEFAULT_TIMEOUT",
    "JSON_MEDIA_TYPE",
    "MANIFEST_MEDIA_TYPE",
    "RegistryClient",
    "Release",
    "releases_from_listing",
    "redact_token",
    "redact_url",
    "scrub_secret",
]
