"""Exception hierarchy for request failures.

An invalid URL is not an error: ``HttpClient.request`` returns ``None`` for it.
Everything that goes wrong after the URL parsed is raised as a subclass of
``RequestError``, grouped by the phase that failed:

    RequestError
    ├── ConnectError     (DNS, TCP connect, TLS handshake)
    ├── SendError        (writing the request)
    └── ResponseError    (reading and decoding the response)
"""

from __future__ import annotations


class RequestError(Exception):
    """Base class for every network or protocol failure of a request."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__doc__ or self.__class__.__name__)
        self.message = message


# Connection establishment


class ConnectError(RequestError):
    """The transport connection could not be established."""


class ConnectTimeout(ConnectError):
    """Connecting (including DNS and TLS) took longer than the connect timeout."""


class ConnectRefused(ConnectError):
    """The remote host refused or reset the connection attempt."""


class ResolutionFailed(ConnectError):
    """The host name could not be resolved to an address."""


class TlsFailed(ConnectError):
    """The TLS handshake or certificate verification failed."""


# Sending


class SendError(RequestError):
    """The request could not be written to the connection."""


class WriteTimeout(SendError):
    """Writing the request took longer than the write timeout."""


class ConnectionLost(SendError):
    """The connection was closed or reset by the peer mid-exchange."""


# Receiving


class ResponseError(RequestError):
    """The response could not be read or decoded."""


class MalformedStatusLine(ResponseError):
    """The status line is missing or not of the form ``HTTP/x.y NNN reason``."""


class MalformedHeader(ResponseError):
    """A header line is invalid or the header block is incomplete."""


class TruncatedBody(ResponseError):
    """The connection closed before the whole body arrived."""


class InvalidChunkFraming(ResponseError):
    """A chunked body contains an invalid size line or chunk terminator."""


class NonUtf8Body(ResponseError):
    """The response body is not valid UTF-8."""


class ReadTimeout(ResponseError):
    """No data arrived within the read timeout."""


class BodyTooLarge(ResponseError):
    """The response body exceeds the configured size limit."""


class ReadFailed(ResponseError):
    """The connection failed while the response was being read."""
