from __future__ import annotations

from urllib.parse import quote, urljoin, urlparse

# Characters left as-is in a request target; everything else is percent-encoded.
_TARGET_SAFE = "/?=&%:@!$'()*+,;~-._"


def parse_url(url: str):
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise ValueError("Only http and https schemes are supported")
    host = parsed.hostname or ""
    port = parsed.port or (443 if parsed.scheme == "https" else 80)
    path = parsed.path or "/"
    if parsed.query:
        path = f"{path}?{parsed.query}"
    return parsed, host, port, quote(path, safe=_TARGET_SAFE, errors="surrogateescape")


def resolve_location(base: str, location: str) -> str:
    """
    Resolve a Location header value against the URL that produced it.

    Header values arrive decoded as latin-1; the raw bytes are reinterpreted
    as UTF-8 so a non-ASCII target is percent-encoded byte for byte later.
    """
    raw = location.strip().encode("latin-1", errors="replace")
    return urljoin(base, raw.decode("utf-8", errors="surrogateescape"))
