from __future__ import annotations

import logging
import socket
import ssl
from collections.abc import Iterable

from .errors import ProtocolError, TLSNegotiationError, TransportError
from .streaming import StreamingResponse

logger = logging.getLogger(__name__)

# Statuses that never carry a body, regardless of framing headers.
_NO_BODY_STATUSES = (204, 304)


class Connection:
    """
    Single TCP/TLS connection carrying one HTTP/1.1 exchange.

    The socket is handed to the returned StreamingResponse, which becomes
    responsible for closing it.
    """

    def __init__(self, host: str, port: int, scheme: str) -> None:
        self.host = host
        self.port = port
        self.scheme = scheme
        self.sock: socket.socket | ssl.SSLSocket | None = None
        self.negotiated_protocol: str | None = None
        self.closed = True

    def connect(self) -> None:
        raw = self._open_tcp()

        if self.scheme == "https":
            context = ssl.create_default_context()
            context.set_alpn_protocols(["http/1.1"])
            try:
                wrapped = context.wrap_socket(raw, server_hostname=self.host)
            except ssl.SSLError as exc:
                raw.close()
                raise TLSNegotiationError(f"tls: {exc}") from exc
            except OSError as exc:
                raw.close()
                raise TransportError(f"tls: {exc}") from exc
            self.negotiated_protocol = wrapped.selected_alpn_protocol()
            self.sock = wrapped
        else:
            self.sock = raw

        self.closed = False
        logger.debug(
            "Connected to %s:%d (%s, alpn=%s)",
            self.host,
            self.port,
            self.scheme,
            self.negotiated_protocol,
        )

    def stream(
        self,
        method: str,
        path: str,
        headers: Iterable[tuple[str, str]],
        body: bytes | None = None,
        auto_decompress: bool = True,
        chunk_size: int = 8192,
    ) -> StreamingResponse:
        """
        Send a request and parse the response head.

        Raises:
            TransportError: if the request cannot be sent or no valid response
                head is received. The socket is closed before raising.
        """
        try:
            request_bytes = self._build_request(method, path, headers, body)
            if self.closed or self.sock is None:
                self.connect()
            self._send(request_bytes)
            status_code, reason, version, resp_headers = self._read_head()
        except TransportError:
            self.close()
            raise
        except ValueError as exc:
            # Covers UnicodeError from targets or header values that cannot be encoded.
            self.close()
            raise TransportError(f"invalid request: {exc}") from exc
        except BaseException:
            self.close()
            raise

        header_map = {k.lower(): v for k, v in resp_headers}
        chunked = False
        content_length: int | None = None
        if (
            method.upper() == "HEAD"
            or 100 <= status_code < 200
            or status_code in _NO_BODY_STATUSES
        ):
            content_length = 0
        elif "chunked" in header_map.get("transfer-encoding", "").lower():
            chunked = True
        elif "content-length" in header_map:
            try:
                content_length = int(header_map["content-length"])
            except ValueError:
                content_length = -1
            if content_length < 0:
                self.close()
                raise ProtocolError(
                    f"bad Content-Length {header_map['content-length']!r}"
                )

        sock = self.sock
        assert sock is not None
        # Ownership of the socket moves to the response.
        self.sock = None
        self.closed = True
        return StreamingResponse(
            status_code=status_code,
            reason=reason,
            http_version=version,
            headers=resp_headers,
            sock=sock,
            content_length=content_length,
            chunked=chunked,
            content_encoding=header_map.get("content-encoding", ""),
            auto_decompress=auto_decompress,
            chunk_size=chunk_size,
        )

    def _build_request(
        self,
        method: str,
        path: str,
        headers: Iterable[tuple[str, str]],
        body: bytes | None,
    ) -> bytes:
        lines = [f"{method} {path} HTTP/1.1\r\n".encode("ascii")]
        for name, value in headers:
            lines.append(f"{name}: {value}\r\n".encode("latin-1"))
        lines.append(b"\r\n")
        if body:
            lines.append(body)
        return b"".join(lines)

    def _send(self, data: bytes) -> None:
        assert self.sock is not None
        try:
            self.sock.sendall(data)
        except OSError as exc:
            raise TransportError(f"write: {exc}") from exc

    def _read_head(self) -> tuple[int, str, str, list[tuple[str, str]]]:
        # Interim 1xx responses (other than 101) are skipped.
        while True:
            status_code, reason, version = self._read_status_line()
            headers = self._read_headers()
            if 100 <= status_code < 200 and status_code != 101:
                logger.debug("Skipping interim response %d", status_code)
                continue
            return status_code, reason, version, headers

    def _read_status_line(self) -> tuple[int, str, str]:
        status_line = self._readline()
        if not status_line:
            raise ProtocolError("EOF: server closed connection without a response")
        try:
            # e.g., HTTP/1.1 200 OK
            parts = status_line.decode("latin-1").strip().split(" ", 2)
            protocol, version = parts[0].split("/", 1)
            if protocol != "HTTP":
                raise ValueError(protocol)
            status_code = int(parts[1])
            reason = parts[2] if len(parts) > 2 else ""
        except (ValueError, IndexError) as exc:
            raise ProtocolError(f"malformed HTTP response {status_line!r}") from exc
        return status_code, reason, version

    def _read_headers(self) -> list[tuple[str, str]]:
        headers: list[tuple[str, str]] = []
        while True:
            line = self._readline()
            if line in (b"\r\n", b"\n"):
                return headers
            if not line.endswith(b"\n"):
                raise ProtocolError("unexpected EOF while reading headers")
            try:
                name, value = line.split(b":", 1)
            except ValueError as exc:
                raise ProtocolError(f"malformed MIME header line: {line!r}") from exc
            headers.append(
                (name.decode("latin-1").strip(), value.decode("latin-1").strip())
            )

    def _readline(self) -> bytes:
        assert self.sock is not None
        buf = bytearray()
        try:
            while True:
                ch = self.sock.recv(1)
                if not ch:
                    break
                buf.extend(ch)
                if buf.endswith(b"\n"):
                    break
        except OSError as exc:
            raise TransportError(f"read: {exc}") from exc
        return bytes(buf)

    def close(self) -> None:
        if self.sock:
            try:
                self.sock.close()
            finally:
                self.sock = None
        self.closed = True

    def _open_tcp(self) -> socket.socket:
        try:
            return socket.create_connection((self.host, self.port))
        except (OSError, UnicodeError) as exc:
            raise TransportError(f"dial tcp {self.host}:{self.port}: {exc}") from exc
