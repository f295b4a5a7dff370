"""Incremental parsing of HTTP/1.1 responses read from a byte source.

The decoder is a small state machine::

    STATUS_LINE -> HEADERS -> BODY -> DONE

Bytes arrive in arbitrary pieces, so every step works on an internal buffer
that is refilled from the source on demand. The body is framed by, in order
of precedence: the status code (1xx, 204 and 304 have none), chunked
transfer coding, Content-Length, or the end of the connection.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from ..errors import (
    BodyTooLarge,
    InvalidChunkFraming,
    MalformedHeader,
    MalformedStatusLine,
    NonUtf8Body,
    ResponseError,
    TruncatedBody,
)
from ..models.messages import HeaderMap
from .status import allows_body, status_reason

logger = logging.getLogger(__name__)

READ_SIZE = 64 * 1024
DEFAULT_MAX_HEADER_BYTES = 64 * 1024

_STATUS_LINE_RE = re.compile(r"^HTTP/(\d+(?:\.\d+)?) (\d{3})(?: (.*))?$")
_HEX_RE = re.compile(rb"^[0-9A-Fa-f]+$")


class ByteSource(Protocol):
    """Anything the decoder can pull bytes from (a Transport in production)."""

    async def read_available(self, max_bytes: int, timeout: Optional[float]) -> bytes:
        """Return up to max_bytes, or b"" at end of stream."""
        ...


class DecoderState(str, Enum):
    """Parsing phase of a ResponseDecoder."""

    STATUS_LINE = "status_line"
    HEADERS = "headers"
    BODY = "body"
    DONE = "done"


@dataclass(frozen=True)
class DecodedResponse:
    """Everything read off the wire for one response."""

    http_version: str
    status_code: int
    status_text: str
    headers: HeaderMap
    body: str


class ResponseDecoder:
    """
    Read one HTTP/1.1 response from a byte source.

    Example:
        decoder = ResponseDecoder(transport, read_timeout=30.0)
        response = await decoder.decode()
        print(response.status_code, response.body)
    """

    def __init__(
        self,
        source: ByteSource,
        read_timeout: Optional[float] = 30.0,
        max_header_bytes: int = DEFAULT_MAX_HEADER_BYTES,
        max_body_bytes: Optional[int] = None,
    ) -> None:
        """
        Initialize the decoder.

        Args:
            source: Where response bytes come from
            read_timeout: Seconds to wait for each read (None = no limit)
            max_header_bytes: Limit for the status line plus header block
            max_body_bytes: Limit for the decoded body (None = unlimited)
        """
        self._source = source
        self._read_timeout = read_timeout
        self._max_header_bytes = max_header_bytes
        self._max_body_bytes = max_body_bytes

        self._buffer = bytearray()
        self._eof = False
        self._head_bytes = 0
        self._trailer_bytes = 0
        self.state = DecoderState.STATUS_LINE

    # -- buffer management -------------------------------------------------

    async def _fill(self) -> bool:
        """Append the next piece from the source. Returns False at end of stream."""
        if self._eof:
            return False
        data = await self._source.read_available(READ_SIZE, self._read_timeout)
        if not data:
            self._eof = True
            return False
        self._buffer.extend(data)
        return True

    async def _read_line(self, on_eof: type[ResponseError], what: str) -> bytes:
        """
        Take one line off the buffer, without its terminator.

        CRLF is the terminator; a bare LF is tolerated. Lines in the head count
        against the header section limit, lines inside a chunked body (size
        lines, terminators, trailers) are each capped at max_header_bytes.
        """
        start = 0
        while True:
            index = self._buffer.find(b"\n", start)
            if index != -1:
                if self.state is DecoderState.BODY:
                    self._check_body_line_size(index, what)
                line = bytes(self._buffer[:index])
                del self._buffer[: index + 1]
                if line.endswith(b"\r"):
                    line = line[:-1]
                return line
            start = len(self._buffer)
            if self.state is DecoderState.BODY:
                self._check_body_line_size(len(self._buffer), what)
            else:
                self._check_head_size(len(self._buffer))
            if not await self._fill():
                raise on_eof(f"Connection closed while reading {what}")

    async def _read_exact(self, size: int, what: str) -> bytes:
        while len(self._buffer) < size:
            if not await self._fill():
                raise TruncatedBody(
                    f"Connection closed after {len(self._buffer)} of {size} bytes of {what}"
                )
        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        return data

    async def _read_to_eof(self) -> bytes:
        while await self._fill():
            self._check_body_size(len(self._buffer))
        data = bytes(self._buffer)
        self._buffer.clear()
        return data

    def _check_head_size(self, pending: int) -> None:
        if self._head_bytes + pending > self._max_header_bytes:
            raise MalformedHeader(f"Response header section exceeds {self._max_header_bytes} bytes")

    def _check_body_line_size(self, pending: int, what: str) -> None:
        if pending > self._max_header_bytes:
            raise InvalidChunkFraming(f"Line in {what} exceeds {self._max_header_bytes} bytes")

    def _check_body_size(self, size: int) -> None:
        if self._max_body_bytes is not None and size > self._max_body_bytes:
            raise BodyTooLarge(f"Response body exceeds {self._max_body_bytes} bytes")

    # -- states --------------------------------------------------------------

    async def _read_status_line(self) -> tuple[str, int, str]:
        line = await self._read_line(MalformedStatusLine, "the status line")
        self._head_bytes += len(line) + 2
        self._check_head_size(0)

        text = line.decode("latin-1")
        match = _STATUS_LINE_RE.match(text)
        if not match:
            raise MalformedStatusLine(f"Bad status line: {text!r}")

        version, code_text, reason = match.groups()
        status_code = int(code_text)
        reason = (reason or "").strip()
        return version, status_code, reason or status_reason(status_code)

    async def _read_header_lines(
        self, what: str, on_eof: type[ResponseError] = MalformedHeader
    ) -> list[tuple[str, str]]:
        """Read ``Name: value`` lines up to and including the blank line."""
        pairs: list[tuple[str, str]] = []
        while True:
            line = await self._read_line(on_eof, what)
            if self.state is DecoderState.HEADERS:
                self._head_bytes += len(line) + 2
                self._check_head_size(0)
            else:
                self._trailer_bytes += len(line) + 2
                if self._trailer_bytes > self._max_header_bytes:
                    raise InvalidChunkFraming(f"Chunked trailer section exceeds {self._max_header_bytes} bytes")
            if not line:
                return pairs

            text = line.decode("latin-1")
            name, sep, value = text.partition(":")
            name = name.strip()
            if not sep or not name:
                raise MalformedHeader(f"Bad header line: {text!r}")
            pairs.append((name, value.strip()))

    async def _read_fixed_body(self, content_length: str) -> bytes:
        if not (content_length.isascii() and content_length.isdigit()):
            raise MalformedHeader(f"Content-Length is not a non-negative integer: {content_length!r}")
        size = int(content_length)
        self._check_body_size(size)
        return await self._read_exact(size, "the body")

    async def _read_chunk_size(self) -> int:
        line = await self._read_line(TruncatedBody, "a chunk size line")
        size_token = line.split(b";", 1)[0].strip()
        if not _HEX_RE.match(size_token):
            raise InvalidChunkFraming(f"Bad chunk size line: {line!r}")
        return int(size_token, 16)

    async def _read_chunked_body(self) -> bytes:
        body = bytearray()
        while True:
            size = await self._read_chunk_size()
            if size == 0:
                break

            self._check_body_size(len(body) + size)
            body.extend(await self._read_exact(size, "a chunk"))

            terminator = await self._read_line(TruncatedBody, "a chunk terminator")
            if terminator:
                raise InvalidChunkFraming(f"Chunk data not followed by a line terminator: {terminator[:32]!r}")

        # Trailer fields are read so the message is complete, then dropped
        try:
            trailers = await self._read_header_lines("the chunked trailer", on_eof=TruncatedBody)
        except MalformedHeader as e:
            raise InvalidChunkFraming(f"Bad chunked trailer: {e}") from e
        if trailers:
            logger.debug(f"Discarded {len(trailers)} trailer field(s)")
        return bytes(body)

    async def _read_body(self, status_code: int, headers: HeaderMap) -> bytes:
        if not allows_body(status_code):
            return b""

        codings = [c.strip().lower() for c in headers.get("transfer-encoding", "").split(",")]
        if codings[-1] == "chunked":
            logger.debug("Reading chunked body")
            return await self._read_chunked_body()

        content_length = headers.get("content-length")
        if content_length is not None:
            logger.debug(f"Reading {content_length} byte body")
            return await self._read_fixed_body(content_length)

        logger.debug("Reading body until connection closes")
        return await self._read_to_eof()

    # -- entry point ---------------------------------------------------------

    async def decode(self) -> DecodedResponse:
        """
        Read and parse a complete response.

        Returns:
            DecodedResponse with status, headers and UTF-8 body text

        Raises:
            MalformedStatusLine: Missing or invalid status line
            MalformedHeader: Invalid header line, header block or Content-Length
            TruncatedBody: Connection closed before the body was complete
            InvalidChunkFraming: Bad or oversized chunk size line, terminator or trailer
            NonUtf8Body: Body bytes are not valid UTF-8
            ReadTimeout: A read exceeded the read timeout
            ReadFailed: The connection failed while reading
            BodyTooLarge: Body exceeds max_body_bytes
        """
        self.state = DecoderState.STATUS_LINE
        version, status_code, status_text = await self._read_status_line()

        self.state = DecoderState.HEADERS
        headers = HeaderMap(await self._read_header_lines("the response headers"))

        self.state = DecoderState.BODY
        raw_body = await self._read_body(status_code, headers)

        try:
            body = raw_body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise NonUtf8Body(f"Response body is not valid UTF-8: {e}") from e

        self.state = DecoderState.DONE
        logger.debug(f"Decoded {status_code} response with {len(raw_body)} byte body")
        return DecodedResponse(
            http_version=version,
            status_code=status_code,
            status_text=status_text,
            headers=headers,
            body=body,
        )
