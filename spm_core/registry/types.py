"""Registry-side datatypes."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping

SOURCE_ARCHIVE_RESOURCE = "source-archive"


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, sort_keys=True)


@dataclass(frozen=True)
class Release:
    """One published ``(scope, name, version)`` of a package."""

    version: str
    checksum: str = ""
    signature: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, version: str = "") -> "Release":
        checksum = str(data.get("checksum") or "")
        signature = data.get("signature")
        resources = data.get("resources") or []
        for resource in resources:
            if not isinstance(resource, Mapping):
                continue
            if resource.get("name") != SOURCE_ARCHIVE_RESOURCE:
                continue
            checksum = str(resource.get("checksum") or checksum)
            signing = resource.get("signing")
            if isinstance(signing, Mapping) and signing.get("signatureBase64Encoded"):
                signature = str(signing["signatureBase64Encoded"])
            break

        metadata_raw = data.get("metadata")
        metadata: dict[str, str] = {}
        if isinstance(metadata_raw, Mapping):
            metadata = {str(key): _stringify(value) for key, value in metadata_raw.items()}

        return cls(
            version=str(data.get("version") or version),
            checksum=checksum,
            signature=str(signature) if signature else None,
            metadata=metadata,
        )


def releases_from_listing(data: Mapping[str, Any]) -> list[Release]:
    """Turn a ``{"releases": {version: {...}}}`` listing into releases."""

    raw = data.get("releases") or {}
    if not isinstance(raw, Mapping):
        return []
    releases: list[Release] = []
    for version, details in raw.items():
        metadata: dict[str, str] = {}
        if isinstance(details, Mapping):
            for key, value in details.items():
                metadata[str(key)] = _stringify(value)
        releases.append(Release(version=str(version), metadata=metadata))
    return releases
