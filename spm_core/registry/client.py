"""HTTP client for a Swift package registry."""

from __future__ import annotations

import logging
import ssl
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Iterator, Sequence

import requests
from requests import RequestException, Response
from requests.adapters import HTTPAdapter

from spm_core.context import RunContext
from spm_core.errors import CancellationError, RegistryError

from .security import redact_token, redact_url, scrub_secret
from .types import Release, releases_from_listing

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300.0
JSON_MEDIA_TYPE = "application/vnd.swift.registry.v1+json"
MANIFEST_MEDIA_TYPE = "text/x-swift"
ARCHIVE_MEDIA_TYPE = "application/zip"
MANIFEST_FILE_NAME = "Package.swift"

_OK = tuple(range(200, 300))
_UPLOAD_CHUNK_SIZE = 64 * 1024


class _CancellableReader:
    """Upload body that consults the run context before every read."""

    def __init__(self, handle: BinaryIO, size: int, ctx: RunContext) -> None:
        self._handle = handle
        self._size = size
        self._ctx = ctx

    def __len__(self) -> int:
        return self._size

    def read(self, amount: int = -1) -> bytes:
        self._ctx.check()
        return self._handle.read(amount)

    def __iter__(self) -> Iterator[bytes]:
        while True:
            chunk = self.read(_UPLOAD_CHUNK_SIZE)
            if not chunk:
                return
            yield chunk


class TLSFloorAdapter(HTTPAdapter):
    """Transport adapter that refuses anything older than TLS 1.2."""

    def init_poolmanager(self, *args: Any, **kwargs: Any) -> None:
        context = ssl.create_default_context()
        context.minimum_version = ssl.TLSVersion.TLSv1_2
        kwargs["ssl_context"] = context
        super().init_poolmanager(*args, **kwargs)


@dataclass
class RegistryClient:
    """Bearer-authenticated client for list/get/publish/manifest calls.

    One attempt per call; retry policy belongs to callers.
    """

    base_url: str
    token: str = field(default="", repr=False)
    timeout: float = DEFAULT_TIMEOUT
    session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")
        self.session = requests.Session()
        self.session.mount("https://", TLSFloorAdapter())
        if self.token:
            self.session.headers["Authorization"] = f"Bearer {self.token}"
        log.debug(
            "registry client for %s (token=%s)",
            redact_url(self.base_url),
            redact_token(self.token) or "<none>",
        )

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "RegistryClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _url(self, *parts: str) -> str:
        return self.base_url + "".join(f"/{part}" for part in parts)

    def _timeout(self, ctx: RunContext | None) -> float | None:
        if ctx is None:
            return self.timeout
        return ctx.timeout(self.timeout)

    def _request(
        self,
        method: str,
        url: str,
        *,
        ctx: RunContext | None = None,
        ok_statuses: Sequence[int] = _OK,
        not_found_ok: bool = False,
        action: str = "request",
        **kwargs: Any,
    ) -> Response | None:
        timeout = self._timeout(ctx)
        shown = redact_url(url)
        try:
            resp = self.session.request(method, url, timeout=timeout, **kwargs)
        except requests.Timeout as exc:
            detail = scrub_secret(str(exc), self.token)
            if ctx is not None and (ctx.expired or ctx.cancelled):
                raise CancellationError(f"{method} {shown} cancelled: {detail}") from exc
            raise RegistryError(f"{action} failed: {method} {shown} timed out: {detail}") from exc
        except RequestException as exc:
            detail = scrub_secret(str(exc), self.token)
            raise RegistryError(f"{action} failed: {method} {shown}: {detail}") from exc

        if ctx is not None:
            ctx.check()

        if not_found_ok and resp.status_code == 404:
            return None
        if resp.status_code not in ok_statuses:
            body = scrub_secret(resp.text, self.token)
            raise RegistryError(
                f"{action} failed with status {resp.status_code}: {body}",
                status_code=resp.status_code,
                body=body,
            )
        return resp

    def list_releases(self, scope: str, name: str, *, ctx: RunContext | None = None) -> list[Release]:
        """List releases; an unknown package has no releases."""

        resp = self._request(
            "GET",
            self._url(scope, name),
            ctx=ctx,
            not_found_ok=True,
            action="list releases",
            headers={"Accept": JSON_MEDIA_TYPE},
        )
        if resp is None:
            return []
        try:
            payload = resp.json()
        except ValueError as exc:
            raise RegistryError(
                f"list releases returned invalid JSON: {exc}",
                status_code=resp.status_code,
                body=resp.text,
            ) from exc
        if not isinstance(payload, dict):
            return []
        return releases_from_listing(payload)

    def get_release(
        self, scope: str, name: str, version: str, *, ctx: RunContext | None = None
    ) -> Release | None:
        """Return release metadata, or ``None`` when the registry answers 404."""

        resp = self._request(
            "GET",
            self._url(scope, name, version),
            ctx=ctx,
            not_found_ok=True,
            action="get release",
            headers={"Accept": JSON_MEDIA_TYPE},
        )
        if resp is None:
            return None
        try:
            payload = resp.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            return Release(version=version)
        return Release.from_dict(payload, version=version)

    def version_exists(
        self, scope: str, name: str, version: str, *, ctx: RunContext | None = None
    ) -> bool:
        return self.get_release(scope, name, version, ctx=ctx) is not None

    def publish(
        self,
        scope: str,
        name: str,
        version: str,
        archive_path: Path | str,
        checksum: str,
        *,
        ctx: RunContext | None = None,
    ) -> None:
        """Upload the archive as the release body.

        The digest header is advisory; the bytes on disk are trusted to be
        the bytes that were digested.
        """

        path = Path(archive_path)
        url = self._url(scope, name, version)
        with path.open("rb") as handle:
            size = path.stat().st_size
            headers = {
                "Content-Type": ARCHIVE_MEDIA_TYPE,
                "Content-Length": str(size),
                "Accept": JSON_MEDIA_TYPE,
                "Digest": f"sha-256={checksum}",
            }
            log.info(
                "Publishing %s.%s@%s -> %s (%s bytes)", scope, name, version, redact_url(url), size
            )
            self._request(
                "PUT",
                url,
                ctx=ctx,
                ok_statuses=(200, 201),
                action="publish",
                data=handle if ctx is None else _CancellableReader(handle, size, ctx),
                headers=headers,
            )

    def get_manifest(
        self, scope: str, name: str, version: str, *, ctx: RunContext | None = None
    ) -> str:
        resp = self._request(
            "GET",
            self._url(scope, name, version, MANIFEST_FILE_NAME),
            ctx=ctx,
            action="get manifest",
            headers={"Accept": MANIFEST_MEDIA_TYPE},
        )
        if resp is None:
            raise RegistryError("get manifest returned no response")
        return resp.text
