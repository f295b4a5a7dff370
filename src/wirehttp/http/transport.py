"""Byte-stream transport over asyncio streams, optionally wrapped in TLS."""

from __future__ import annotations

import asyncio
import logging
import socket
import ssl
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from types import TracebackType

from ..errors import (
    ConnectionLost,
    ConnectRefused,
    ConnectTimeout,
    ReadFailed,
    ReadTimeout,
    ResolutionFailed,
    TlsFailed,
    WriteTimeout,
)

logger = logging.getLogger(__name__)


def create_ssl_context(verify: bool = True) -> ssl.SSLContext:
    """
    Build the TLS context used for https connections.

    Args:
        verify: Verify certificates against the platform trust store

    Returns:
        A client-side SSLContext
    """
    context = ssl.create_default_context()
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


class Transport:
    """
    One connection to one host, used for exactly one request.

    Every blocking step (connect, write, read) takes its own timeout. The
    connection is owned by a single request and never shared.

    Example:
        async with open_transport("example.com", 443, secure=True, timeout=10) as transport:
            await transport.write(payload, timeout=30)
            data = await transport.read_available(65536, timeout=30)
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        host: str,
        port: int,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self.host = host
        self.port = port
        self._closed = False

    @classmethod
    async def connect(
        cls,
        host: str,
        port: int,
        secure: bool,
        timeout: float,
        ssl_context: ssl.SSLContext | None = None,
    ) -> Transport:
        """
        Resolve the host and open a connection, negotiating TLS when secure.

        Resolution, TCP connect and the TLS handshake all share one timeout.

        Args:
            host: Host name or IP literal
            port: TCP port
            secure: Wrap the connection in TLS
            timeout: Seconds allowed for the whole establishment
            ssl_context: TLS context (default: platform trust store)

        Returns:
            A connected Transport

        Raises:
            ConnectTimeout: Establishment exceeded the timeout
            ResolutionFailed: The host name did not resolve
            TlsFailed: Handshake or certificate verification failed
            ConnectRefused: The connection was refused or failed otherwise
        """
        ssl_arg: ssl.SSLContext | None = None
        if secure:
            ssl_arg = ssl_context or create_ssl_context()

        logger.debug(f"Connecting to {host}:{port} (tls={secure})")
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(
                    host,
                    port,
                    ssl=ssl_arg,
                    server_hostname=host if secure else None,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise ConnectTimeout(f"Connecting to {host}:{port} timed out after {timeout}s") from e
        except socket.gaierror as e:
            raise ResolutionFailed(f"Could not resolve {host}: {e}") from e
        except ssl.SSLError as e:
            raise TlsFailed(f"TLS handshake with {host}:{port} failed: {e}") from e
        except OSError as e:
            raise ConnectRefused(f"Could not connect to {host}:{port}: {e}") from e

        logger.debug(f"Connected to {host}:{port}")
        return cls(reader, writer, host, port)

    async def write(self, data: bytes, timeout: float) -> None:
        """
        Send all of data.

        Raises:
            WriteTimeout: The peer did not accept the data in time
            ConnectionLost: The connection broke while sending
        """
        try:
            self._writer.write(data)
            await asyncio.wait_for(self._writer.drain(), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise WriteTimeout(f"Sending to {self.host}:{self.port} timed out after {timeout}s") from e
        except OSError as e:
            raise ConnectionLost(f"Connection to {self.host}:{self.port} lost while sending: {e}") from e
        logger.debug(f"Sent {len(data)} bytes to {self.host}:{self.port}")

    async def read_available(self, max_bytes: int, timeout: float | None) -> bytes:
        """
        Read up to max_bytes, returning as soon as any data is available.

        A connection reset by the peer, or a TLS stream that ends without
        close_notify, is reported as end of stream; the decoder turns that
        into the appropriate truncation error.

        Args:
            max_bytes: Upper bound on the returned length
            timeout: Seconds to wait for data (None = wait forever)

        Returns:
            The bytes read, or b"" at end of stream

        Raises:
            ReadTimeout: Nothing arrived within the timeout
            ReadFailed: Any other socket or TLS error
        """
        try:
            return await asyncio.wait_for(self._reader.read(max_bytes), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise ReadTimeout(f"No data from {self.host}:{self.port} within {timeout}s") from e
        except (ConnectionResetError, ssl.SSLEOFError) as e:
            logger.debug(f"Connection to {self.host}:{self.port} ended abruptly: {e}")
            return b""
        except OSError as e:
            raise ReadFailed(f"Reading from {self.host}:{self.port} failed: {e}") from e

    @property
    def closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except (OSError, ssl.SSLError) as e:
            # The socket is released either way; peers often drop TLS without close_notify
            logger.debug(f"Error while closing connection to {self.host}:{self.port}: {e}")
        logger.debug(f"Closed connection to {self.host}:{self.port}")

    async def __aenter__(self) -> Transport:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()


@asynccontextmanager
async def open_transport(
    host: str,
    port: int,
    secure: bool,
    timeout: float,
    ssl_context: ssl.SSLContext | None = None,
) -> AsyncIterator[Transport]:
    """
    Connect and yield a Transport that is closed on every exit path.

    Example:
        async with open_transport("example.com", 80, secure=False, timeout=10) as transport:
            ...
    """
    transport = await Transport.connect(host, port, secure, timeout, ssl_context=ssl_context)
    try:
        yield transport
    finally:
        await transport.close()
