import logging

from fetchprint.client import Client
from fetchprint.errors import (
    FetchError,
    ProtocolError,
    ReadError,
    TLSNegotiationError,
    TooManyRedirectsError,
    TransportError,
)
from fetchprint.fetcher import TARGET_URL, fetch_and_print
from fetchprint.streaming import StreamingResponse

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Client",
    "StreamingResponse",
    "FetchError",
    "TransportError",
    "TLSNegotiationError",
    "ProtocolError",
    "TooManyRedirectsError",
    "ReadError",
    "TARGET_URL",
    "fetch_and_print",
]
