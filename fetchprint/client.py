from __future__ import annotations

import logging

from fetchprint.compression import DEFAULT_ACCEPT_ENCODING
from fetchprint.connection import Connection
from fetchprint.errors import TooManyRedirectsError, TransportError
from fetchprint.headers import default_request_headers, host_header, merge_headers
from fetchprint.streaming import StreamingResponse
from fetchprint.utils import parse_url, resolve_location

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "fetchprint/0.1.0"
DEFAULT_MAX_REDIRECTS = 10

REDIRECT_STATUSES = (301, 302, 303, 307, 308)


class Client:
    """
    Synchronous HTTP/1.1 client with stock defaults: requests block without a
    timeout, TLS uses the platform trust store, redirects are followed and
    compressed bodies are decoded.

    Each request opens its own connection; nothing is pooled.

    Args:
        auto_decompress: Decode gzip/deflate/br response bodies (default: True)
        max_redirects: Redirect responses tolerated; the request fails on
            the one that reaches this count
        user_agent: User-Agent header sent with every request
    """

    def __init__(
        self,
        auto_decompress: bool = True,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.auto_decompress = auto_decompress
        self.max_redirects = max_redirects
        self.user_agent = user_agent

    def stream(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        chunk_size: int = 8192,
    ) -> StreamingResponse:
        """
        Send a request and return once the response head has arrived.

        Args:
            method: HTTP method (GET, HEAD, ...)
            url: Request URL
            headers: Additional headers, overriding the defaults
            chunk_size: Size of chunks read from the socket (default: 8192)

        Returns:
            StreamingResponse that owns the connection and must be closed

        Raises:
            TransportError: if no final response could be obtained

        Example:
            with client.stream("GET", url) as response:
                body = response.read()
        """
        method = method.upper()
        redirects = 0
        while True:
            response = self._send(method, url, headers, chunk_size)
            location = response.headers.get("location")
            if response.status_code not in REDIRECT_STATUSES or not location:
                return response

            response.close()
            redirects += 1
            if redirects >= self.max_redirects:
                raise TooManyRedirectsError(
                    f'{method.capitalize()} "{url}": stopped after {self.max_redirects} redirects'
                )
            next_url = resolve_location(url, location)
            if response.status_code == 303 or (
                response.status_code in (301, 302) and method not in ("GET", "HEAD")
            ):
                method = "GET"
            logger.debug("Following %d redirect to %s", response.status_code, next_url)
            url = next_url

    def get(self, url: str, headers: dict[str, str] | None = None) -> StreamingResponse:
        return self.stream("GET", url, headers=headers)

    def _send(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None,
        chunk_size: int,
    ) -> StreamingResponse:
        label = f'{method.capitalize()} "{url}"'
        try:
            parsed, host, port, path = parse_url(url)
        except ValueError as exc:
            raise TransportError(f"{label}: {exc}") from exc

        accept_encoding = DEFAULT_ACCEPT_ENCODING if self.auto_decompress else None
        merged_headers = merge_headers(
            default_request_headers(
                host_header(host, port, parsed.scheme), self.user_agent, accept_encoding
            ),
            headers,
        )

        conn = Connection(host, port, parsed.scheme)
        try:
            return conn.stream(
                method,
                path,
                merged_headers,
                auto_decompress=self.auto_decompress,
                chunk_size=chunk_size,
            )
        except TransportError as exc:
            raise type(exc)(f"{label}: {exc}") from exc
