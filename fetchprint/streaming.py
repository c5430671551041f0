from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING

from .compression import decode_body
from .errors import ReadError

if TYPE_CHECKING:
    import socket
    import ssl

logger = logging.getLogger(__name__)


class StreamingResponse:
    """
    HTTP response whose body is still on the wire.

    The response owns its socket until closed. Use it as a context manager so
    the socket is released exactly once, whether or not the body was read.
    """

    def __init__(
        self,
        status_code: int,
        reason: str,
        http_version: str,
        headers: list[tuple[str, str]],
        sock: socket.socket | ssl.SSLSocket,
        content_length: int | None,
        chunked: bool,
        content_encoding: str,
        auto_decompress: bool,
        chunk_size: int = 8192,
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        self.http_version = http_version
        self.raw_headers: list[tuple[str, str]] = headers
        self._sock = sock
        self._content_length = content_length
        self._chunked = chunked
        self._content_encoding = content_encoding
        self._auto_decompress = auto_decompress
        self._chunk_size = chunk_size
        self._content: bytes | None = None
        self._closed = False

    @property
    def headers(self) -> dict[str, str]:
        out: dict[str, str] = {}
        for name, value in self.raw_headers:
            out[name.lower()] = value
        return out

    @property
    def status(self) -> str:
        """Status line without the protocol version, e.g. ``"200 OK"``."""
        return f"{self.status_code} {self.reason}".rstrip()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def content(self) -> bytes:
        return self.read()

    @property
    def text(self) -> str:
        body = self.read()
        encoding = "utf-8"
        ctype = self.headers.get("content-type")
        if ctype and "charset=" in ctype:
            encoding = ctype.split("charset=")[-1].split(";")[0].strip().strip('"') or encoding
        try:
            return body.decode(encoding, errors="replace")
        except LookupError:
            return body.decode("utf-8", errors="replace")

    def iter_bytes(self, chunk_size: int | None = None) -> Iterator[bytes]:
        """
        Iterate over the response body in chunks.

        When the body carries a Content-Encoding and auto-decompression is on,
        the raw chunks are buffered and a single decoded chunk is yielded at
        the end.

        Raises:
            ReadError: if the stream ends early, is malformed, or fails
            RuntimeError: if the response has been closed
        """
        if self._closed:
            raise RuntimeError("Response has been closed")

        size = chunk_size or self._chunk_size
        if self._chunked:
            raw = self._iter_chunked(size)
        elif self._content_length is not None:
            raw = self._iter_content_length(size)
        else:
            raw = self._iter_until_close(size)

        decode = self._auto_decompress and bool(self._content_encoding)
        buffer = bytearray()
        try:
            for data in raw:
                if decode:
                    buffer += data
                else:
                    yield data
        except OSError as exc:
            raise ReadError(str(exc) or exc.__class__.__name__) from exc

        if decode and buffer:
            yield decode_body(bytes(buffer), self._content_encoding)

    def read(self) -> bytes:
        """Read the entire body into memory. Repeated calls return the same bytes."""
        if self._content is None:
            self._content = b"".join(self.iter_bytes())
            logger.debug("Read %d body bytes (status %s)", len(self._content), self.status_code)
        return self._content

    def _iter_chunked(self, chunk_size: int) -> Iterator[bytes]:
        while True:
            line = self._readline()
            if not line.endswith(b"\n"):
                raise ReadError("unexpected EOF")
            try:
                size = int(line.split(b";", 1)[0].strip(), 16)
            except ValueError as exc:
                raise ReadError(f"malformed chunked encoding: {line!r}") from exc
            if size < 0:
                raise ReadError(f"malformed chunked encoding: {line!r}")

            if size == 0:
                # Trailer section ends with an empty line.
                while True:
                    trailer = self._readline()
                    if not trailer.endswith(b"\n"):
                        raise ReadError("unexpected EOF")
                    if trailer in (b"\r\n", b"\n"):
                        return

            remaining = size
            while remaining > 0:
                data = self._read_exact(min(remaining, chunk_size))
                remaining -= len(data)
                yield data

            if self._read_exact(2) != b"\r\n":
                raise ReadError("malformed chunked encoding: missing CRLF after chunk")

    def _iter_content_length(self, chunk_size: int) -> Iterator[bytes]:
        assert self._content_length is not None
        remaining = self._content_length
        while remaining > 0:
            data = self._sock.recv(min(remaining, chunk_size))
            if not data:
                raise ReadError("unexpected EOF")
            remaining -= len(data)
            yield data

    def _iter_until_close(self, chunk_size: int) -> Iterator[bytes]:
        while True:
            data = self._sock.recv(chunk_size)
            if not data:
                return
            yield data

    def _readline(self) -> bytes:
        buf = bytearray()
        while True:
            ch = self._sock.recv(1)
            if not ch:
                break
            buf.extend(ch)
            if buf.endswith(b"\n"):
                break
        return bytes(buf)

    def _read_exact(self, n: int) -> bytes:
        remaining = n
        chunks: list[bytes] = []
        while remaining > 0:
            chunk = self._sock.recv(remaining)
            if not chunk:
                raise ReadError("unexpected EOF")
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def close(self) -> None:
        """Close the response and release the socket. Safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True
        try:
            self._sock.close()
        except OSError:
            logger.debug("Ignoring error while closing response socket", exc_info=True)

    def __enter__(self) -> StreamingResponse:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[bytes]:
        return self.iter_bytes()

    def __repr__(self) -> str:
        return f"<StreamingResponse [{self.status_code}]>"
