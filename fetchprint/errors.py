class FetchError(Exception):
    """Base error for fetchprint."""


class TransportError(FetchError):
    """Raised when no HTTP response could be obtained."""


class TLSNegotiationError(TransportError):
    """Raised when the TLS handshake fails."""


class ProtocolError(TransportError):
    """Raised when the response head is malformed."""


class TooManyRedirectsError(TransportError):
    """Raised when the redirect limit is exceeded."""


class ReadError(FetchError):
    """Raised when a response body cannot be fully read."""
