"""Keep registry credentials out of logs and error messages."""

from __future__ import annotations

from urllib.parse import urlsplit


def redact_token(value: str) -> str:
    if not value:
        return value
    if len(value) <= 6:
        return "***"
    return f"{value[:3]}***{value[-2:]}"


def scrub_secret(text: str, secret: str) -> str:
    """Replace every occurrence of ``secret`` in ``text`` with its redacted form."""

    if not text or not secret:
        return text
    return text.replace(secret, redact_token(secret))


def redact_url(url: str) -> str:
    parsed = urlsplit(url)
    if not parsed.password:
        return url
    safe_netloc = parsed.netloc.replace(f":{parsed.password}@", ":***@")
    return url.replace(parsed.netloc, safe_netloc, 1)
