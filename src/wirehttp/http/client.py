"""HTTP client: one connect-send-receive-close cycle per request."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable, Mapping
from typing import Optional, Union

from ..models.config import ClientConfig
from ..models.messages import HttpMethod, HttpResponse, RequestSpec
from .decoder import ResponseDecoder
from .encoder import encode_request
from .transport import create_ssl_context, open_transport
from .url import parse_url

logger = logging.getLogger(__name__)

HeadersArg = Union[Mapping[str, str], Iterable[tuple[str, str]], None]
MethodArg = Union[HttpMethod, str]


def _header_pairs(headers: HeadersArg) -> tuple[tuple[str, str], ...]:
    if headers is None:
        return ()
    if isinstance(headers, Mapping):
        return tuple(headers.items())
    return tuple(headers)


class HttpClient:
    """
    HTTP/1.1 client that speaks the protocol directly over sockets.

    The client keeps no connections or other per-request state; it only holds
    its configuration, so a single instance can serve concurrent tasks.

    Features:
    - http and https (platform trust store)
    - Content-Length, chunked and read-until-close response bodies
    - Separate connect, write and read timeouts
    - Typed errors for every failure after the URL parsed

    Example:
        client = HttpClient(ClientConfig(connect_timeout=5))

        response = await client.get("https://example.com/api/items")
        if response is None:
            print("Invalid URL")
        else:
            print(response.status_code, response.json_body)
    """

    def __init__(self, config: Optional[ClientConfig] = None) -> None:
        """
        Initialize the HTTP client.

        Args:
            config: Timeouts, limits and TLS settings (default: ClientConfig())
        """
        self.config = config or ClientConfig()

    async def request(
        self,
        method: MethodArg,
        url: str,
        body: Optional[bytes] = None,
        *,
        timeout: Optional[float] = None,
        headers: HeadersArg = None,
    ) -> Optional[HttpResponse]:
        """
        Perform one HTTP request.

        Args:
            method: HttpMethod or method name (e.g. "post")
            url: Absolute http or https URL
            body: Request body bytes, sent verbatim
            timeout: Overrides the connect, write and read timeouts for this call
            headers: Extra request headers

        Returns:
            HttpResponse, or None when url is not a valid http(s) URL

        Raises:
            ConnectError: Resolution, connect or TLS failure, or connect timeout
            SendError: Writing the request failed or timed out
            ResponseError: The response was malformed, truncated or timed out
            ValueError: Unsupported method or invalid extra headers
        """
        http_method = HttpMethod.coerce(method)

        parsed = parse_url(url)
        if parsed is None:
            logger.warning(f"Invalid URL: {url!r}")
            return None

        spec = RequestSpec(method=http_method, url=parsed, body=body, headers=_header_pairs(headers))
        payload = encode_request(spec, user_agent=self.config.user_agent)

        connect_timeout = timeout if timeout is not None else self.config.connect_timeout
        write_timeout = timeout if timeout is not None else self.config.write_timeout
        read_timeout = timeout if timeout is not None else self.config.read_timeout

        ssl_context = create_ssl_context(self.config.verify_tls) if parsed.scheme.secure else None

        logger.debug(f"{http_method.value} {parsed}")
        started = time.perf_counter()
        try:
            async with open_transport(
                parsed.host,
                parsed.port,
                secure=parsed.scheme.secure,
                timeout=connect_timeout,
                ssl_context=ssl_context,
            ) as transport:
                await transport.write(payload, timeout=write_timeout)
                decoder = ResponseDecoder(
                    transport,
                    read_timeout=read_timeout,
                    max_header_bytes=self.config.max_header_bytes,
                    max_body_bytes=self.config.max_body_bytes,
                )
                decoded = await decoder.decode()
        finally:
            duration = time.perf_counter() - started

        logger.debug(f"{http_method.value} {parsed} -> {decoded.status_code} in {duration:.3f}s")
        return HttpResponse(
            status_code=decoded.status_code,
            status_text=decoded.status_text,
            headers=decoded.headers,
            json_body=decoded.body,
            duration=duration,
        )

    async def get(self, url: str, **kwargs) -> Optional[HttpResponse]:
        """Perform a GET request."""
        return await self.request(HttpMethod.GET, url, **kwargs)

    async def post(self, url: str, body: Optional[bytes] = None, **kwargs) -> Optional[HttpResponse]:
        """Perform a POST request."""
        return await self.request(HttpMethod.POST, url, body, **kwargs)

    async def delete(self, url: str, **kwargs) -> Optional[HttpResponse]:
        """Perform a DELETE request."""
        return await self.request(HttpMethod.DELETE, url, **kwargs)


def request(
    method: MethodArg,
    url: str,
    body: Optional[bytes] = None,
    *,
    timeout: Optional[float] = None,
    headers: HeadersArg = None,
    config: Optional[ClientConfig] = None,
) -> Optional[HttpResponse]:
    """
    Blocking request for sync code that can't use async/await.

    Runs the request on a fresh event loop and blocks the calling thread until
    it completes. For concurrent requests call it from separate threads, or use
    HttpClient directly from async code.

    WARNING: Do not call from within an existing event loop (e.g., Jupyter,
    asyncio-based frameworks). Use HttpClient.request instead.

    Example:
        response = request("GET", "http://example.com/")
        if response is not None:
            print(response.status_code, response.status_text)

    Returns:
        HttpResponse, or None when url is not a valid http(s) URL

    Raises:
        RequestError: See HttpClient.request
    """
    client = HttpClient(config)
    return asyncio.run(client.request(method, url, body, timeout=timeout, headers=headers))
