"""Registry client tests against an in-process mock Swift registry."""

from __future__ import annotations

import hashlib
import http.server
import json
import threading
from pathlib import Path
from typing import Any, Dict, Iterator, Tuple

import pytest

from spm_core.context import RunContext
from spm_core.errors import CancellationError, RegistryError
from spm_core.registry import JSON_MEDIA_TYPE, RegistryClient, Release

TOKEN = "s3cr3t-token"


class MockRegistryState:
    """Canned responses keyed by ``(method, path)`` plus a request log."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.responses: Dict[Tuple[str, str], Tuple[int, bytes, str]] = {}
        self.requests: list[dict[str, Any]] = []

    def respond(self, method: str, path: str, status: int, body: Any = b"", content_type: str = "application/json") -> None:
        if isinstance(body, (dict, list)):
            body = json.dumps(body).encode("utf-8")
        elif isinstance(body, str):
            body = body.encode("utf-8")
        self.responses[(method, path)] = (status, body, content_type)

    def record(self, entry: dict[str, Any]) -> None:
        with self._lock:
            self.requests.append(entry)


class _MockRegistryHandler(http.server.BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def _state(self) -> MockRegistryState:
        return self.server.state  # type: ignore[attr-defined]

    def _handle(self) -> None:
        length = int(self.headers.get("Content-Length", "0") or 0)
        body = self.rfile.read(length) if length else b""
        self._state().record(
            {
                "method": self.command,
                "path": self.path,
                "headers": {key.lower(): value for key, value in self.headers.items()},
                "body": body,
            }
        )
        status, payload, content_type = self._state().responses.get(
            (self.command, self.path), (404, b'{"detail": "not found"}', "application/problem+json")
        )
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    do_GET = _handle
    do_PUT = _handle

    def log_message(self, format: str, *args: object) -> None:
        return


class _ThreadedServer(http.server.ThreadingHTTPServer):
    daemon_threads = True
    allow_reuse_address = True


@pytest.fixture()
def registry() -> Iterator[Tuple[MockRegistryState, str]]:
    server = _ThreadedServer(("127.0.0.1", 0), _MockRegistryHandler)
    state = MockRegistryState()
    server.state = state  # type: ignore[attr-defined]
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield state, f"http://127.0.0.1:{server.server_port}"
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)


@pytest.fixture()
def client(registry) -> Iterator[RegistryClient]:
    _, base_url = registry
    with RegistryClient(base_url + "/", token=TOKEN, timeout=5) as instance:
        yield instance


def _archive(tmp_path: Path, payload: bytes = b"PK\x05\x06" + b"\x00" * 18) -> Tuple[Path, str]:
    path = tmp_path / "pkg.zip"
    path.write_bytes(payload)
    return path, hashlib.sha256(payload).hexdigest()


def test_get_release_returns_metadata(registry, client: RegistryClient) -> None:
    state, _ = registry
    state.respond(
        "GET",
        "/mona/LinkedList/1.1.1",
        200,
        {
            "id": "mona.LinkedList",
            "version": "1.1.1",
            "resources": [
                {
                    "name": "source-archive",
                    "type": "application/zip",
                    "checksum": "a" * 64,
                    "signing": {"signatureBase64Encoded": "c2ln", "signatureFormat": "cms-1.0.0"},
                }
            ],
            "metadata": {"description": "One thing links to another.", "licenseURL": None},
        },
    )

    release = client.get_release("mona", "LinkedList", "1.1.1")

    assert release == Release(
        version="1.1.1",
        checksum="a" * 64,
        signature="c2ln",
        metadata={"description": "One thing links to another.", "licenseURL": "null"},
    )
    sent = state.requests[-1]
    assert sent["headers"]["authorization"] == f"Bearer {TOKEN}"
    assert sent["headers"]["accept"] == JSON_MEDIA_TYPE


def test_get_release_returns_none_on_404(client: RegistryClient) -> None:
    assert client.get_release("mona", "LinkedList", "9.9.9") is None
    assert client.version_exists("mona", "LinkedList", "9.9.9") is False


def test_get_release_raises_on_server_error(registry, client: RegistryClient) -> None:
    state, _ = registry
    state.respond("GET", "/mona/LinkedList/1.0.0", 500, "boom", "text/plain")

    with pytest.raises(RegistryError) as excinfo:
        client.get_release("mona", "LinkedList", "1.0.0")

    assert excinfo.value.status_code == 500
    assert excinfo.value.body == "boom"
    assert "500" in str(excinfo.value)


def test_version_exists_true_when_release_present(registry, client: RegistryClient) -> None:
    state, _ = registry
    state.respond("GET", "/mona/LinkedList/1.0.0", 200, {"version": "1.0.0"})
    assert client.version_exists("mona", "LinkedList", "1.0.0") is True


def test_list_releases_parses_listing(registry, client: RegistryClient) -> None:
    state, _ = registry
    state.respond(
        "GET",
        "/mona/LinkedList",
        200,
        {
            "releases": {
                "1.1.1": {"url": "https://example.test/mona/LinkedList/1.1.1"},
                "1.0.0": {"url": "https://example.test/mona/LinkedList/1.0.0"},
            }
        },
    )

    releases = client.list_releases("mona", "LinkedList")

    assert [release.version for release in releases] == ["1.1.1", "1.0.0"]
    assert releases[0].metadata["url"].endswith("/1.1.1")


def test_list_releases_empty_on_404(client: RegistryClient) -> None:
    assert client.list_releases("mona", "Unknown") == []


def test_list_releases_raises_on_other_errors(registry, client: RegistryClient) -> None:
    state, _ = registry
    state.respond("GET", "/mona/LinkedList", 401, "unauthorized", "text/plain")
    with pytest.raises(RegistryError) as excinfo:
        client.list_releases("mona", "LinkedList")
    assert excinfo.value.status_code == 401


@pytest.mark.parametrize("status", [200, 201])
def test_publish_sends_archive_with_digest(registry, client: RegistryClient, tmp_path: Path, status: int) -> None:
    state, _ = registry
    state.respond("PUT", "/mona/LinkedList/1.2.0", status, {"message": "ok"})
    path, checksum = _archive(tmp_path, b"zip-bytes" * 1000)

    client.publish("mona", "LinkedList", "1.2.0", path, checksum)

    sent = state.requests[-1]
    assert sent["method"] == "PUT"
    assert sent["headers"]["content-type"] == "application/zip"
    assert sent["headers"]["digest"] == f"sha-256={checksum}"
    assert int(sent["headers"]["content-length"]) == path.stat().st_size
    assert sent["headers"]["authorization"] == f"Bearer {TOKEN}"
    assert sent["body"] == path.read_bytes()


@pytest.mark.parametrize("status", [202, 409, 422, 500])
def test_publish_rejects_other_statuses(registry, client: RegistryClient, tmp_path: Path, status: int) -> None:
    state, _ = registry
    state.respond("PUT", "/mona/LinkedList/1.2.0", status, "version exists", "text/plain")
    path, checksum = _archive(tmp_path)

    with pytest.raises(RegistryError) as excinfo:
        client.publish("mona", "LinkedList", "1.2.0", path, checksum)

    assert excinfo.value.status_code == status
    assert "version exists" in str(excinfo.value)


def test_publish_missing_archive_raises_oserror(client: RegistryClient, tmp_path: Path) -> None:
    with pytest.raises(OSError):
        client.publish("mona", "LinkedList", "1.2.0", tmp_path / "missing.zip", "0" * 64)


def test_get_manifest_returns_text(registry, client: RegistryClient) -> None:
    state, _ = registry
    manifest = "// swift-tools-version:5.7\nimport PackageDescription\n"
    state.respond("GET", "/mona/LinkedList/1.0.0/Package.swift", 200, manifest, "text/x-swift")

    assert client.get_manifest("mona", "LinkedList", "1.0.0") == manifest
    assert state.requests[-1]["headers"]["accept"] == "text/x-swift"


def test_get_manifest_raises_on_404(client: RegistryClient) -> None:
    with pytest.raises(RegistryError) as excinfo:
        client.get_manifest("mona", "LinkedList", "0.0.1")
    assert excinfo.value.status_code == 404


def test_connection_failure_is_registry_error() -> None:
    with RegistryClient("http://127.0.0.1:9", token=TOKEN, timeout=2) as unreachable:
        with pytest.raises(RegistryError) as excinfo:
            unreachable.get_release("mona", "LinkedList", "1.0.0")
    assert excinfo.value.status_code is None


def test_cancelled_context_short_circuits(client: RegistryClient) -> None:
    ctx = RunContext.background()
    ctx.cancel()
    with pytest.raises(CancellationError):
        client.list_releases("mona", "LinkedList", ctx=ctx)


def test_token_not_in_repr() -> None:
    instance = RegistryClient("https://registry.example", token=TOKEN)
    try:
        assert TOKEN not in repr(instance)
    finally:
        instance.close()


def test_error_body_never_echoes_token(registry, client: RegistryClient) -> None:
    state, _ = registry
    state.respond("GET", "/mona/LinkedList/1.0.0", 403, f"bad credentials: Bearer {TOKEN}", "text/plain")

    with pytest.raises(RegistryError) as excinfo:
        client.get_release("mona", "LinkedList", "1.0.0")

    assert TOKEN not in str(excinfo.value)
    assert TOKEN not in excinfo.value.body
    assert "s3c***en" in excinfo.value.body


class _CancelOnCheck(RunContext):
    """Context that cancels itself on the ``n``-th call to :meth:`check`."""

    def __init__(self, n: int) -> None:
        super().__init__()
        self._remaining = n

    def check(self) -> None:
        self._remaining -= 1
        if self._remaining <= 0:
            self.cancel()
        super().check()


def test_cancel_during_upload_stops_the_body(registry, client: RegistryClient, tmp_path: Path) -> None:
    state, _ = registry
    state.respond("PUT", "/mona/LinkedList/1.2.0", 201, {"message": "ok"})
    payload = b"z" * (1024 * 1024)
    path, checksum = _archive(tmp_path, payload)

    with pytest.raises(CancellationError):
        client.publish("mona", "LinkedList", "1.2.0", path, checksum, ctx=_CancelOnCheck(3))

    assert all(len(entry["body"]) < len(payload) for entry in state.requests if entry["method"] == "PUT")


def test_upload_with_live_context_sends_whole_body(registry, client: RegistryClient, tmp_path: Path) -> None:
    state, _ = registry
    state.respond("PUT", "/mona/LinkedList/1.2.0", 201, {"message": "ok"})
    path, checksum = _archive(tmp_path, b"q" * (300 * 1024))

    client.publish("mona", "LinkedList", "1.2.0", path, checksum, ctx=RunContext.with_timeout(30))

    sent = state.requests[-1]
    assert sent["body"] == path.read_bytes()
    assert int(sent["headers"]["content-length"]) == path.stat().st_size
    assert "transfer-encoding" not in sent["headers"]


def test_cancel_while_waiting_for_response_is_reported(registry, client: RegistryClient) -> None:
    state, _ = registry
    state.respond("GET", "/mona/LinkedList/1.0.0", 200, {"version": "1.0.0"})

    with pytest.raises(CancellationError):
        client.get_release("mona", "LinkedList", "1.0.0", ctx=_CancelOnCheck(2))

    assert len(state.requests) == 1
