"""Pytest configuration and fixtures."""

import gzip
import io
import json
import socket
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer

import brotli
import pytest

POST_BODY = b'{"id":1}'


class FakeSocket:
    """Socket stand-in that serves canned bytes from recv()."""

    def __init__(self, data=b"", error=None):
        self._buf = io.BytesIO(data)
        self._error = error
        self.sent = bytearray()
        self.close_calls = 0

    def recv(self, n):
        chunk = self._buf.read(n)
        if not chunk and self._error is not None:
            raise self._error
        return chunk

    def sendall(self, data):
        self.sent.extend(data)

    def close(self):
        self.close_calls += 1


class SampleHandler(BaseHTTPRequestHandler):
    """Serves the fixed routes used by the client and fetcher tests."""

    protocol_version = "HTTP/1.1"

    def log_message(self, format, *args):
        pass  # Suppress logging

    def _send(self, status, body=b"", headers=()):
        self.send_response(status)
        for name, value in headers:
            self.send_header(name, value)
        if body is not None:
            self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if body:
            self.wfile.write(body)

    def do_GET(self):
        self.server.request_log.append((self.command, self.path, dict(self.headers)))
        if self.path == "/posts/1":
            self._send(200, POST_BODY, [("Content-Type", "application/json; charset=utf-8")])
        elif self.path == "/gzip":
            self._send(200, gzip.compress(POST_BODY), [("Content-Encoding", "gzip")])
        elif self.path == "/br":
            self._send(200, brotli.compress(POST_BODY), [("Content-Encoding", "br")])
        elif self.path == "/bad-gzip":
            self._send(200, b"definitely not gzip", [("Content-Encoding", "gzip")])
        elif self.path == "/chunked":
            self.send_response(200)
            self.send_header("Transfer-Encoding", "chunked")
            self.end_headers()
            for i in range(3):
                chunk = f"part{i};".encode()
                self.wfile.write(f"{len(chunk):x}\r\n".encode() + chunk + b"\r\n")
            self.wfile.write(b"0\r\n\r\n")
        elif self.path == "/until-close":
            self.send_response(200)
            self.send_header("Connection", "close")
            self.end_headers()
            self.wfile.write(b"streamed until close")
            self.close_connection = True
        elif self.path == "/latin1":
            self._send(
                200,
                "café".encode("latin-1"),
                [("Content-Type", "text/plain; charset=iso-8859-1")],
            )
        elif self.path == "/headers":
            self._send(200, json.dumps(dict(self.headers)).encode())
        elif self.path == "/no-content":
            self._send(204, None)
        elif self.path == "/redirect":
            self._send(302, b"", [("Location", "/posts/1")])
        elif self.path == "/redirect-absolute":
            host, port = self.server.server_address
            self._send(301, b"", [("Location", f"http://{host}:{port}/posts/1")])
        elif self.path == "/see-other":
            self._send(303, b"", [("Location", "posts/1")])
        elif self.path == "/loop":
            self._send(302, b"", [("Location", "/loop")])
        elif self.path == "/no-location":
            self._send(302, b"moved")
        else:
            self._send(404, b"not found")

    def do_HEAD(self):
        self.server.request_log.append((self.command, self.path, dict(self.headers)))
        self.send_response(200)
        self.send_header("Content-Length", str(len(POST_BODY)))
        self.end_headers()


@pytest.fixture(scope="module")
def http_server():
    """Start a local HTTP server and yield its base URL."""
    server = HTTPServer(("127.0.0.1", 0), SampleHandler)
    server.request_log = []
    port = server.server_address[1]
    thread = threading.Thread(target=server.serve_forever)
    thread.daemon = True
    thread.start()
    yield f"http://127.0.0.1:{port}", server
    server.shutdown()
    server.server_close()


@pytest.fixture
def base_url(http_server):
    url, server = http_server
    server.request_log.clear()
    return url


@pytest.fixture
def request_log(http_server):
    return http_server[1].request_log


@pytest.fixture
def raw_server():
    """
    Factory for one-shot servers that read a request head, reply with the
    given bytes verbatim, and close the connection.
    """
    listeners = []

    def start(payload: bytes) -> str:
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        listener.bind(("127.0.0.1", 0))
        listener.listen(1)
        listeners.append(listener)

        def serve():
            conn, _ = listener.accept()
            with conn:
                data = b""
                while b"\r\n\r\n" not in data:
                    chunk = conn.recv(4096)
                    if not chunk:
                        break
                    data += chunk
                conn.sendall(payload)

        threading.Thread(target=serve, daemon=True).start()
        host, port = listener.getsockname()
        return f"http://{host}:{port}"

    yield start
    for listener in listeners:
        listener.close()


@pytest.fixture
def closed_port():
    """A localhost port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


@pytest.fixture
def fake_socket():
    return FakeSocket
