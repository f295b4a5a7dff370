"""Wire-level HTTP/1.1: URL parsing, transport, encoder, decoder and client."""

from .client import HttpClient, request
from .decoder import DecodedResponse, DecoderState, ResponseDecoder
from .encoder import encode_request
from .status import status_reason
from .transport import Transport, create_ssl_context, open_transport
from .url import parse_url

__all__ = [
    "DecodedResponse",
    "DecoderState",
    "HttpClient",
    "ResponseDecoder",
    "Transport",
    "create_ssl_context",
    "encode_request",
    "open_transport",
    "parse_url",
    "request",
    "status_reason",
]
