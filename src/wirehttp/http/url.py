"""Parsing of absolute http(s) URLs."""

from __future__ import annotations

from ..models.messages import Scheme, Url

MAX_PORT = 65535

_SCHEME_PREFIXES = (
    ("http://", Scheme.HTTP),
    ("https://", Scheme.HTTPS),
)


def _split_scheme(text: str) -> tuple[Scheme, str] | None:
    lowered = text[:8].lower()
    for prefix, scheme in _SCHEME_PREFIXES:
        if lowered.startswith(prefix):
            return scheme, text[len(prefix) :]
    return None


def _split_host_port(authority: str, scheme: Scheme) -> tuple[str, int] | None:
    """Split ``host[:port]`` (or ``[v6]:port``) and apply the scheme default."""
    if authority.startswith("["):
        end = authority.find("]")
        if end == -1:
            return None
        host = authority[1:end]
        rest = authority[end + 1 :]
        if rest and not rest.startswith(":"):
            return None
        port_text = rest[1:] if rest else ""
    else:
        host, _, port_text = authority.partition(":")
        if ":" in port_text:
            return None

    if not host:
        return None
    if not host.isascii():
        try:
            host = host.encode("idna").decode("ascii")
        except UnicodeError:
            return None

    if not port_text:
        return host.lower(), scheme.default_port
    if not port_text.isdigit() or not port_text.isascii():
        return None
    port = int(port_text)
    if port > MAX_PORT:
        return None
    return host.lower(), port


def parse_url(text: str) -> Url | None:
    """
    Parse an absolute http or https URL.

    The authority ends at the first "/", "?" or "#". The path runs up to the
    first "?", the query up to the first "#". Fragments are dropped since they
    are never sent to the server.

    Args:
        text: The URL string

    Returns:
        The parsed Url, or None when the string is not a usable http(s) URL
        (unknown scheme, empty host, bad port, credentials, whitespace)
    """
    text = text.strip()
    if not text or any(ch.isspace() for ch in text):
        return None

    split = _split_scheme(text)
    if split is None:
        return None
    scheme, remainder = split

    remainder = remainder.split("#", 1)[0]

    cut = len(remainder)
    for delimiter in "/?":
        index = remainder.find(delimiter)
        if index != -1:
            cut = min(cut, index)
    authority, rest = remainder[:cut], remainder[cut:]

    # Credentials are never sent, so refuse to silently drop them
    if "@" in authority:
        return None

    host_port = _split_host_port(authority, scheme)
    if host_port is None:
        return None
    host, port = host_port

    path, sep, query = rest.partition("?")
    if not path:
        path = "/"

    return Url(
        scheme=scheme,
        host=host,
        port=port,
        path=path,
        query=query if sep else None,
    )
