r"""Serialization of requests to HTTP/1.1 wire format.

Wire format::

    METHOD /path?query HTTP/1.1\r\n
    Host: example.com\r\n
    User-Agent: wirehttp/1.0.0\r\n
    Accept: */*\r\n
    Connection: close\r\n
    Content-Type: application/json\r\n      (only with a body)
    Content-Length: 7\r\n                    (only with a body)
    \r\n
    {"a":1}
"""

from __future__ import annotations

import re
from urllib.parse import quote

from ..models.config import DEFAULT_USER_AGENT
from ..models.messages import RequestSpec

CRLF = b"\r\n"
HTTP_VERSION = "HTTP/1.1"
DEFAULT_CONTENT_TYPE = "application/json"

# Headers whose value is dictated by the framing this client performs
RESERVED_HEADERS = frozenset({"host", "connection", "content-length", "transfer-encoding"})

_TOKEN_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
_FORBIDDEN_VALUE_CHARS = ("\r", "\n", "\0")
# Everything printable in ASCII passes through; only non-ASCII is percent-encoded
_TARGET_SAFE = "".join(chr(c) for c in range(0x21, 0x7F))


def _validate_header(name: str, value: str) -> None:
    if not _TOKEN_RE.match(name):
        raise ValueError(f"Invalid header name: {name!r}")
    if any(ch in value for ch in _FORBIDDEN_VALUE_CHARS):
        raise ValueError(f"Invalid characters in value of header {name!r}")
    try:
        value.encode("latin-1")
    except UnicodeEncodeError as err:
        raise ValueError(f"Value of header {name!r} is not latin-1 encodable") from err
    if name.lower() in RESERVED_HEADERS:
        raise ValueError(f"Header {name!r} is set by the client and cannot be overridden")


def build_headers(spec: RequestSpec, user_agent: str | None = DEFAULT_USER_AGENT) -> list[tuple[str, str]]:
    """
    Assemble the ordered header list for a request.

    Args:
        spec: The request to describe
        user_agent: User-Agent value, or None to omit the header

    Returns:
        (name, value) pairs in the order they are written

    Raises:
        ValueError: If a caller-supplied header is malformed or reserved
    """
    for name, value in spec.headers:
        _validate_header(name, value)

    headers: list[tuple[str, str]] = [("Host", spec.url.authority)]
    if user_agent is not None:
        headers.append(("User-Agent", user_agent))
    headers.append(("Accept", "*/*"))
    headers.extend(spec.headers)
    headers.append(("Connection", "close"))

    if spec.body is not None:
        if not any(name.lower() == "content-type" for name, _ in spec.headers):
            headers.append(("Content-Type", DEFAULT_CONTENT_TYPE))
        headers.append(("Content-Length", str(len(spec.body))))

    return headers


def encode_request(spec: RequestSpec, user_agent: str | None = DEFAULT_USER_AGENT) -> bytes:
    """
    Serialize a request to wire-format bytes.

    The output depends only on the arguments, so equal requests always encode
    to identical bytes.

    Args:
        spec: The request to encode
        user_agent: User-Agent value, or None to omit the header

    Returns:
        Request line, header block, blank line and body

    Raises:
        ValueError: If a caller-supplied header is malformed or reserved
    """
    target = quote(spec.url.target, safe=_TARGET_SAFE)
    parts: list[bytes] = [f"{spec.method.value} {target} {HTTP_VERSION}".encode("ascii"), CRLF]

    for name, value in build_headers(spec, user_agent):
        parts.append(f"{name}: {value}".encode("latin-1"))
        parts.append(CRLF)

    # Blank line separates headers from body
    parts.append(CRLF)

    if spec.body:
        parts.append(spec.body)

    return b"".join(parts)
