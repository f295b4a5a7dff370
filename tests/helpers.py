"""Shared test helpers: scripted byte sources, response framing and loopback servers."""

from __future__ import annotations

import asyncio
import socket
import threading
from collections.abc import AsyncIterator, Iterable, Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import Optional, Union

from wirehttp.errors import ReadTimeout

#: Put this in a ScriptedSource script to simulate a read timeout
TIMEOUT = object()


class ScriptedSource:
    """Byte source that hands out pre-split pieces, then end of stream."""

    def __init__(self, pieces: Iterable[Union[bytes, object]]):
        self.pieces = list(pieces)
        self.reads = 0

    async def read_available(self, max_bytes: int, timeout: Optional[float]) -> bytes:
        self.reads += 1
        if not self.pieces:
            return b""
        piece = self.pieces.pop(0)
        if piece is TIMEOUT:
            raise ReadTimeout(f"scripted timeout after {timeout}s")
        assert isinstance(piece, bytes)
        if len(piece) > max_bytes:
            self.pieces.insert(0, piece[max_bytes:])
            piece = piece[:max_bytes]
        return piece


class FakeReader:
    """StreamReader stand-in: returns byte items, raises exception items, then EOF."""

    def __init__(self, items: Iterable[Union[bytes, BaseException]]):
        self.items = list(items)

    async def read(self, n: int = -1) -> bytes:
        if not self.items:
            return b""
        item = self.items.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


class FakeWriter:
    """StreamWriter stand-in that records what was written."""

    def __init__(self) -> None:
        self.data = bytearray()
        self.closed = False

    def write(self, data: bytes) -> None:
        self.data.extend(data)

    async def drain(self) -> None:
        pass

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        pass


def split_every(data: bytes, size: int) -> list[bytes]:
    """Split data into pieces of at most size bytes."""
    return [data[i : i + size] for i in range(0, len(data), size)] or [b""]


def frame_response(
    status_line: str = "HTTP/1.1 200 OK",
    headers: Iterable[tuple[str, str]] = (),
    body: bytes = b"",
    *,
    content_length: bool = True,
) -> bytes:
    """Frame a response the way a server would, with Content-Length by default."""
    lines = [status_line]
    lines.extend(f"{name}: {value}" for name, value in headers)
    if content_length:
        lines.append(f"Content-Length: {len(body)}")
    return ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1") + body


def frame_chunked(
    chunks: Iterable[bytes],
    status_line: str = "HTTP/1.1 200 OK",
    headers: Iterable[tuple[str, str]] = (),
    trailers: Iterable[tuple[str, str]] = (),
) -> bytes:
    """Frame a response with chunked transfer coding, one chunk per element."""
    head = frame_response(
        status_line,
        [*headers, ("Transfer-Encoding", "chunked")],
        content_length=False,
    )
    body = b"".join(f"{len(chunk):x}\r\n".encode() + chunk + b"\r\n" for chunk in chunks if chunk)
    tail = b"0\r\n" + b"".join(f"{n}: {v}\r\n".encode() for n, v in trailers) + b"\r\n"
    return head + body + tail


async def _read_request(reader: asyncio.StreamReader) -> bytes:
    head = await reader.readuntil(b"\r\n\r\n")
    length = 0
    for line in head.split(b"\r\n"):
        name, _, value = line.partition(b":")
        if name.strip().lower() == b"content-length":
            length = int(value.strip())
    body = await reader.readexactly(length) if length else b""
    return head + body


@asynccontextmanager
async def serve(
    response: bytes,
    *,
    delay: float = 0.0,
    pieces: Optional[int] = None,
) -> AsyncIterator[tuple[int, list[bytes]]]:
    """
    Run a one-shot HTTP server on 127.0.0.1.

    Each connection gets the raw request recorded and `response` written back
    (optionally split into `pieces`-byte writes, after `delay` seconds), then
    the connection is closed.

    Yields:
        (port, list of raw requests received)
    """
    received: list[bytes] = []

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            received.append(await _read_request(reader))
            if delay:
                await asyncio.sleep(delay)
            for piece in split_every(response, pieces or len(response) or 1):
                writer.write(piece)
                await writer.drain()
        except (asyncio.IncompleteReadError, ConnectionError):
            pass
        finally:
            writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        yield port, received
    finally:
        server.close()
        await server.wait_closed()


@contextmanager
def serve_in_thread(response: bytes) -> Iterator[tuple[int, list[bytes]]]:
    """Blocking-socket variant of serve() for testing the sync wrapper."""
    received: list[bytes] = []
    listener = socket.create_server(("127.0.0.1", 0))
    port = listener.getsockname()[1]

    def run() -> None:
        conn, _ = listener.accept()
        with conn:
            data = b""
            while b"\r\n\r\n" not in data:
                chunk = conn.recv(4096)
                if not chunk:
                    break
                data += chunk
            head, _, body = data.partition(b"\r\n\r\n")
            length = 0
            for line in head.split(b"\r\n"):
                name, _, value = line.partition(b":")
                if name.strip().lower() == b"content-length":
                    length = int(value.strip())
            while len(body) < length:
                chunk = conn.recv(4096)
                if not chunk:
                    break
                body += chunk
            received.append(head + b"\r\n\r\n" + body)
            conn.sendall(response)

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    try:
        yield port, received
    finally:
        thread.join(timeout=5)
        listener.close()


def unused_port() -> int:
    """A loopback port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
