"""Request and response models shared by the encoder, decoder and client."""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union


class HttpMethod(str, Enum):
    """HTTP request methods the client can send."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @classmethod
    def coerce(cls, value: Union[HttpMethod, str]) -> HttpMethod:
        """Accept a member or a method name in any case."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value.upper())
        except (AttributeError, ValueError) as err:
            raise ValueError(f"Unsupported HTTP method: {value!r}") from err


class Scheme(str, Enum):
    """URL schemes understood by the client."""

    HTTP = "http"
    HTTPS = "https"

    @property
    def default_port(self) -> int:
        return 443 if self is Scheme.HTTPS else 80

    @property
    def secure(self) -> bool:
        return self is Scheme.HTTPS


@dataclass(frozen=True)
class Url:
    """
    A parsed absolute http(s) URL.

    Attributes:
        scheme: http or https
        host: Host name or IP literal (IPv6 without brackets), never empty
        port: Explicit port, or the scheme default when the URL had none
        path: Path component, "/" when the URL had none
        query: Query string without the leading "?", or None
    """

    scheme: Scheme
    host: str
    port: int
    path: str = "/"
    query: Optional[str] = None

    @property
    def target(self) -> str:
        """Request target as it appears on the request line."""
        if self.query is None:
            return self.path
        return f"{self.path}?{self.query}"

    @property
    def authority(self) -> str:
        """Value for the Host header; the port is omitted when it is the default."""
        host = f"[{self.host}]" if ":" in self.host else self.host
        if self.port == self.scheme.default_port:
            return host
        return f"{host}:{self.port}"

    def __str__(self) -> str:
        return f"{self.scheme.value}://{self.authority}{self.target}"


class HeaderMap(Mapping[str, str]):
    """
    Immutable, case-insensitive mapping of header names to values.

    Names are lowercased on insertion and lookup. When a name occurs more than
    once only the last value is kept. Being immutable it is hashable, so
    frozen responses that carry one can be hashed too.

    Example:
        headers = HeaderMap([("Content-Type", "text/plain"), ("X-A", "1"), ("x-a", "2")])
        headers["content-type"]  # "text/plain"
        headers["X-A"]           # "2"
    """

    __slots__ = ("_items",)

    def __init__(self, items: Union[Mapping[str, str], Iterable[tuple[str, str]], None] = None) -> None:
        pairs = items.items() if isinstance(items, Mapping) else (items or ())
        self._items: dict[str, str] = {}
        for name, value in pairs:
            self._items[name.lower()] = value

    def __getitem__(self, name: str) -> str:
        return self._items[name.lower()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __hash__(self) -> int:
        return hash(frozenset(self._items.items()))

    def __repr__(self) -> str:
        return f"HeaderMap({self._items!r})"


def _empty_headers() -> tuple[tuple[str, str], ...]:
    return ()


@dataclass(frozen=True)
class RequestSpec:
    """
    Fully resolved description of one outgoing request.

    A body is accepted for every method; whether a method should carry one is
    the caller's decision.
    """

    method: HttpMethod
    url: Url
    body: Optional[bytes] = None
    headers: tuple[tuple[str, str], ...] = field(default_factory=_empty_headers)


@dataclass(frozen=True)
class HttpResponse:
    """
    Immutable HTTP response returned by HttpClient.

    Attributes:
        status_code: HTTP status code (200, 404, etc.)
        status_text: Reason phrase from the status line
        headers: Response headers, case-insensitive
        json_body: Body decoded as UTF-8 text (not validated as JSON)
        duration: Seconds spent connecting, sending and receiving
    """

    status_code: int
    status_text: str
    headers: HeaderMap
    json_body: str
    duration: float

    @property
    def ok(self) -> bool:
        """True for 2xx responses."""
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """Parse the body as JSON. Raises json.JSONDecodeError if it is not."""
        return json.loads(self.json_body)
