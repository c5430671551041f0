"""
Content-Encoding decoding for response bodies.

Supports gzip, deflate, and brotli (br) encodings.
"""

from __future__ import annotations

import gzip
import zlib

import brotli

from .errors import ReadError

DEFAULT_ACCEPT_ENCODING = "gzip, deflate, br"


def decode_body(body: bytes, content_encoding: str) -> bytes:
    """
    Decode response body based on Content-Encoding header.

    Args:
        body: Raw response body bytes
        content_encoding: Value of Content-Encoding header

    Returns:
        Decoded body bytes

    Raises:
        ReadError: if the body is not valid for a coding it declares
    """
    if not content_encoding or not body:
        return body

    # Codings are listed in the order they were applied; undo them in reverse.
    encodings = [e.strip() for e in content_encoding.lower().split(",")]

    result = body
    for enc in reversed(encodings):
        result = _decode_single(result, enc)
    return result


def _decode_single(body: bytes, encoding: str) -> bytes:
    if encoding in ("gzip", "x-gzip"):
        try:
            return gzip.decompress(body)
        except (OSError, EOFError, zlib.error) as exc:
            raise ReadError(f"gzip: {exc}") from exc

    if encoding == "deflate":
        try:
            return zlib.decompress(body, -zlib.MAX_WBITS)
        except zlib.error:
            pass
        try:
            # Some servers send zlib-wrapped deflate.
            return zlib.decompress(body)
        except zlib.error as exc:
            raise ReadError(f"flate: {exc}") from exc

    if encoding == "br":
        try:
            return brotli.decompress(body)
        except brotli.error as exc:
            raise ReadError(f"brotli: {exc}") from exc

    # identity or unknown: leave as-is
    return body
