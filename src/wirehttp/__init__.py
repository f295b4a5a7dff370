"""
wirehttp - A small HTTP/1.1 client that speaks the protocol over raw sockets.

Usage:
    from wirehttp import HttpMethod, RequestError, request

    try:
        response = request(HttpMethod.GET, "https://example.com/api/items/2")
    except RequestError as e:
        print(f"Request failed: {e}")
    else:
        if response is None:
            print("Invalid URL")
        else:
            print(response.status_code, response.json_body)
"""

__version__ = "1.0.0"

from .errors import (
    BodyTooLarge,
    ConnectError,
    ConnectionLost,
    ConnectRefused,
    ConnectTimeout,
    InvalidChunkFraming,
    MalformedHeader,
    MalformedStatusLine,
    NonUtf8Body,
    ReadFailed,
    ReadTimeout,
    RequestError,
    ResolutionFailed,
    ResponseError,
    SendError,
    TlsFailed,
    TruncatedBody,
    WriteTimeout,
)
from .http import HttpClient, parse_url, request
from .models import ClientConfig, HeaderMap, HttpMethod, HttpResponse, RequestSpec, Scheme, Url

__all__ = [
    "__version__",
    # Core
    "HttpClient",
    "request",
    "parse_url",
    # Models
    "ClientConfig",
    "HeaderMap",
    "HttpMethod",
    "HttpResponse",
    "RequestSpec",
    "Scheme",
    "Url",
    # Errors
    "RequestError",
    "ConnectError",
    "ConnectTimeout",
    "ConnectRefused",
    "ResolutionFailed",
    "TlsFailed",
    "SendError",
    "WriteTimeout",
    "ConnectionLost",
    "ResponseError",
    "MalformedStatusLine",
    "MalformedHeader",
    "TruncatedBody",
    "InvalidChunkFraming",
    "NonUtf8Body",
    "ReadFailed",
    "ReadTimeout",
    "BodyTooLarge",
]
