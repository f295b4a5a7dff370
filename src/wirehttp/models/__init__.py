"""wirehttp configuration and message models."""

from .config import DEFAULT_USER_AGENT, ByteSize, ClientConfig
from .messages import HeaderMap, HttpMethod, HttpResponse, RequestSpec, Scheme, Url

__all__ = [
    # Config
    "ByteSize",
    "ClientConfig",
    "DEFAULT_USER_AGENT",
    # Messages
    "HeaderMap",
    "HttpMethod",
    "HttpResponse",
    "RequestSpec",
    "Scheme",
    "Url",
]
