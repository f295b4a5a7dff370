"""Tests for request serialization."""

import io
from http.client import parse_headers

import pytest

from wirehttp.http.encoder import build_headers, encode_request
from wirehttp.http.url import parse_url
from wirehttp.models import HttpMethod, RequestSpec


def make_spec(method=HttpMethod.GET, url="http://example.com/", body=None, headers=()):
    return RequestSpec(method=method, url=parse_url(url), body=body, headers=tuple(headers))


def reparse(data: bytes):
    """Parse encoded bytes with the standard library's header parser."""
    stream = io.BytesIO(data)
    request_line = stream.readline().decode("ascii").rstrip("\r\n")
    method, target, version = request_line.split(" ")
    headers = parse_headers(stream)
    body = stream.read()
    return method, target, version, headers, body


class TestEncodeRequest:
    """Tests for encode_request."""

    def test_get_request_exact_bytes(self):
        """Test the complete wire form of a simple GET."""
        data = encode_request(make_spec(url="http://example.com/posts/2"), user_agent="test/1.0")
        assert data == (
            b"GET /posts/2 HTTP/1.1\r\n"
            b"Host: example.com\r\n"
            b"User-Agent: test/1.0\r\n"
            b"Accept: */*\r\n"
            b"Connection: close\r\n"
            b"\r\n"
        )

    def test_post_with_body(self):
        """Test Content-Type and Content-Length for a body."""
        body = b'{"a":1}'
        data = encode_request(make_spec(HttpMethod.POST, "https://example.com/comments", body))
        method, target, version, headers, parsed_body = reparse(data)
        assert method == "POST"
        assert target == "/comments"
        assert version == "HTTP/1.1"
        assert headers["Host"] == "example.com"
        assert headers["Content-Type"] == "application/json"
        assert headers["Content-Length"] == "7"
        assert headers["Connection"] == "close"
        assert parsed_body == body

    def test_content_length_counts_bytes_not_characters(self):
        """Test Content-Length for multi-byte UTF-8 bodies."""
        body = '{"name":"Zoë ☃"}'.encode()
        data = encode_request(make_spec(HttpMethod.POST, body=body))
        _, _, _, headers, parsed_body = reparse(data)
        assert headers["Content-Length"] == str(len(body))
        assert parsed_body == body

    def test_empty_body_still_framed(self):
        """Test that an empty but present body sends Content-Length: 0."""
        _, _, _, headers, parsed_body = reparse(encode_request(make_spec(HttpMethod.POST, body=b"")))
        assert headers["Content-Length"] == "0"
        assert parsed_body == b""

    def test_body_allowed_on_any_method(self):
        """Test that the encoder does not reject a body on DELETE or GET."""
        for method in (HttpMethod.GET, HttpMethod.DELETE):
            _, _, _, headers, parsed_body = reparse(encode_request(make_spec(method, body=b"x")))
            assert headers["Content-Length"] == "1"
            assert parsed_body == b"x"

    def test_no_body_headers_without_body(self):
        """Test that bodiless requests carry no framing headers."""
        _, _, _, headers, _ = reparse(encode_request(make_spec(HttpMethod.DELETE)))
        assert "Content-Length" not in headers
        assert "Content-Type" not in headers

    def test_query_in_request_line(self):
        """Test that the query string follows the path."""
        data = encode_request(make_spec(url="http://example.com/search?q=a&page=2"))
        assert data.startswith(b"GET /search?q=a&page=2 HTTP/1.1\r\n")

    def test_non_default_port_in_host_header(self):
        """Test Host carries the port only when it is not the default."""
        _, _, _, headers, _ = reparse(encode_request(make_spec(url="http://example.com:8080/")))
        assert headers["Host"] == "example.com:8080"
        _, _, _, headers, _ = reparse(encode_request(make_spec(url="https://example.com:443/")))
        assert headers["Host"] == "example.com"

    def test_non_ascii_path_is_percent_encoded(self):
        """Test that the request line stays ASCII."""
        data = encode_request(make_spec(url="http://example.com/café?q=ü"))
        assert data.startswith(b"GET /caf%C3%A9?q=%C3%BC HTTP/1.1\r\n")

    def test_existing_escapes_untouched(self):
        """Test that percent-escapes are not encoded twice."""
        data = encode_request(make_spec(url="http://example.com/a%20b"))
        assert data.startswith(b"GET /a%20b HTTP/1.1\r\n")

    def test_user_agent_can_be_omitted(self):
        """Test user_agent=None drops the header."""
        _, _, _, headers, _ = reparse(encode_request(make_spec(), user_agent=None))
        assert "User-Agent" not in headers

    def test_deterministic(self):
        """Test identical input always yields identical bytes."""
        spec = make_spec(HttpMethod.POST, "http://example.com/x?y=1", b"{}", [("X-Trace", "abc")])
        assert encode_request(spec) == encode_request(spec)
        assert encode_request(spec) == encode_request(make_spec(HttpMethod.POST, "http://example.com/x?y=1", b"{}", [("X-Trace", "abc")]))


class TestExtraHeaders:
    """Tests for caller-supplied headers."""

    def test_extra_headers_in_order(self):
        """Test extra headers are written in the order given."""
        spec = make_spec(headers=[("X-B", "2"), ("X-A", "1")])
        names = [name for name, _ in build_headers(spec)]
        assert names == ["Host", "User-Agent", "Accept", "X-B", "X-A", "Connection"]

    def test_custom_content_type_replaces_default(self):
        """Test a caller Content-Type suppresses application/json."""
        spec = make_spec(HttpMethod.POST, body=b"a=1", headers=[("Content-Type", "application/x-www-form-urlencoded")])
        _, _, _, headers, _ = reparse(encode_request(spec))
        assert headers.get_all("Content-Type") == ["application/x-www-form-urlencoded"]

    @pytest.mark.parametrize("name", ["Host", "connection", "Content-Length", "Transfer-Encoding"])
    def test_reserved_headers_rejected(self, name):
        """Test headers owned by the client cannot be overridden."""
        with pytest.raises(ValueError, match="cannot be overridden"):
            encode_request(make_spec(headers=[(name, "x")]))

    @pytest.mark.parametrize(
        "name, value",
        [
            ("X-Bad\r\nInjected", "1"),
            ("Bad Name", "1"),
            ("", "1"),
            ("X-Ok", "line\r\nInjected: 1"),
            ("X-Ok", "nul\0"),
            ("X-Ok", "snow ☃"),
        ],
    )
    def test_invalid_headers_rejected(self, name, value):
        """Test header injection and unencodable values are refused."""
        with pytest.raises(ValueError):
            encode_request(make_spec(headers=[(name, value)]))
