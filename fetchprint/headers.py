from __future__ import annotations

from collections.abc import Iterable


def _sanitize_header(name: str, value: str) -> tuple[str, str]:
    """
    Strip CR, LF and NUL from a header name and value so a caller-supplied
    header can never terminate the request head early.
    """
    clean_name = name.replace("\r", "").replace("\n", "").replace("\x00", "")
    clean_value = value.replace("\r", "").replace("\n", "").replace("\x00", "")
    return clean_name, clean_value


def host_header(host: str, port: int, scheme: str) -> str:
    default_port = 443 if scheme == "https" else 80
    if ":" in host:
        host = f"[{host}]"
    if port != default_port:
        return f"{host}:{port}"
    return host


def default_request_headers(
    host: str,
    user_agent: str,
    accept_encoding: str | None,
) -> list[tuple[str, str]]:
    headers = [("Host", host), ("User-Agent", user_agent)]
    if accept_encoding:
        headers.append(("Accept-Encoding", accept_encoding))
    # One request per connection; the server may close once the body is sent.
    headers.append(("Connection", "close"))
    return headers


def merge_headers(
    defaults: Iterable[tuple[str, str]],
    overrides: dict[str, str] | None,
) -> list[tuple[str, str]]:
    """
    Merge caller headers over the defaults. Default positions are kept and
    new names are appended in insertion order.
    """
    merged: dict[str, tuple[str, str]] = {}
    for name, value in defaults:
        name, value = _sanitize_header(name, value)
        merged[name.lower()] = (name, value)
    if overrides:
        for name, value in overrides.items():
            name, value = _sanitize_header(name, value)
            merged[name.lower()] = (name, value)
    return list(merged.values())
