"""
Unit tests for request line parsing.
"""

import pytest

from staticserver.http.request import HTTPRequest, parse_request


class TestParseRequest:
    """Tests for parse_request()."""

    def test_parse_simple_get(self, sample_get_request: bytes):
        """Method and path come from the first line."""
        request = parse_request(sample_get_request, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.path == "/a.txt"
        assert request.client_address == ("127.0.0.1", 12345)
        assert request.is_malformed is False

    def test_path_kept_verbatim(self):
        """Query string and percent-encoding are not touched."""
        request = parse_request(b"GET /my%20file.md?x=1#top HTTP/1.1\r\n\r\n")

        assert request.path == "/my%20file.md?x=1#top"

    def test_headers_ignored(self):
        """Only the request line matters."""
        request = parse_request(
            b"GET / HTTP/1.1\r\nHost: evil\r\nX-Path: /etc/passwd\r\n\r\n"
        )
        assert request.path == "/"

    def test_bare_newlines(self):
        """A request terminated with \\n instead of \\r\\n still parses."""
        request = parse_request(b"GET /sub/ HTTP/1.1\nHost: x\n\n")

        assert request.method == "GET"
        assert request.path == "/sub/"

    def test_extra_whitespace(self):
        """Runs of spaces and tabs count as one separator."""
        request = parse_request(b"  GET \t  /a.txt   HTTP/1.1\r\n")

        assert request.method == "GET"
        assert request.path == "/a.txt"

    def test_method_not_validated(self):
        """Any method token is accepted; the pipeline ignores it."""
        request = parse_request(b"DELETE /a.txt HTTP/1.1\r\n\r\n")

        assert request.method == "DELETE"
        assert request.path == "/a.txt"


class TestMalformedRequests:
    """parse_request() never raises; missing parts are empty."""

    @pytest.mark.parametrize("data,method", [
        (b"", ""),
        (b"\r\n\r\n", ""),
        (b"GET\r\n\r\n", "GET"),
        (b"   \r\n", ""),
    ])
    def test_missing_path(self, data: bytes, method: str):
        request = parse_request(data)

        assert request.method == method
        assert request.path == ""
        assert request.is_malformed is True

    def test_invalid_utf8(self):
        """Undecodable bytes are replaced rather than rejected."""
        request = parse_request(b"GET /caf\xe9 HTTP/1.1\r\n\r\n")

        assert request.method == "GET"
        assert request.path == "/caf�"

    def test_binary_garbage(self):
        request = parse_request(b"\x00\xff\xfe")

        assert isinstance(request, HTTPRequest)
        assert request.is_malformed is True


class TestHTTPRequest:
    """Tests for the HTTPRequest dataclass."""

    def test_defaults(self):
        request = HTTPRequest()

        assert request.method == ""
        assert request.path == ""
        assert request.client_address == ("", 0)
        assert request.is_malformed is True
