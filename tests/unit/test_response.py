"""
Unit tests for the single-use response builder.
"""

import asyncio

import pytest

from staticserver.http.response import (
    DEFAULT_CONTENT_TYPE,
    HTTPResponse,
    ResponseAlreadySentError,
)
from staticserver.http.status_codes import HTTPStatus, reason_phrase


class TestStatusLine:
    """Tests for status line generation."""

    def test_default_is_200(self, fake_connection):
        response = HTTPResponse(fake_connection)
        assert response.status_line == "HTTP/1.1 200 OK"

    @pytest.mark.parametrize("code,line", [
        (HTTPStatus.OK, "HTTP/1.1 200 OK"),
        (HTTPStatus.PERMANENT_REDIRECT, "HTTP/1.1 308 Permanent Redirect"),
        (HTTPStatus.NOT_FOUND, "HTTP/1.1 404 Page Not Found"),
        (HTTPStatus.INTERNAL_SERVER_ERROR, "HTTP/1.1 500 Internal Server Error"),
    ])
    def test_known_codes(self, fake_connection, code, line):
        response = HTTPResponse(fake_connection).status(code)
        assert response.status_line == line

    def test_unknown_code_has_empty_phrase(self, fake_connection):
        response = HTTPResponse(fake_connection).status(299)
        assert response.status_line == "HTTP/1.1 299 "

    def test_reason_phrase(self):
        assert reason_phrase(404) == "Page Not Found"
        assert reason_phrase(418) == ""


class TestSerialize:
    """Tests for the wire format."""

    def test_default_content_type(self, fake_connection):
        data = HTTPResponse(fake_connection).serialize()

        assert data == b"HTTP/1.1 200 OK\r\nContent-Type: text/html\r\n\r\n"
        assert DEFAULT_CONTENT_TYPE == "text/html"

    def test_explicit_content_type_wins(self, fake_connection):
        response = HTTPResponse(fake_connection).set_header("Content-Type", "text/plain")
        data = response.serialize()

        assert b"Content-Type: text/plain\r\n" in data
        assert b"text/html" not in data

    def test_header_order_preserved(self, fake_connection):
        response = (HTTPResponse(fake_connection)
            .set_header("X-One", "1")
            .set_header("X-Two", "2")
            .set_header("X-One", "uno"))

        head = response.serialize().decode().split("\r\n")
        assert head[1:4] == ["X-One: uno", "X-Two: 2", "Content-Type: text/html"]

    def test_no_content_length(self, fake_connection):
        data = HTTPResponse(fake_connection).serialize(b"hello")
        assert b"Content-Length" not in data

    def test_body_follows_blank_line(self, fake_connection):
        data = HTTPResponse(fake_connection).serialize("héllo")
        assert data.endswith("\r\n\r\nhéllo".encode("utf-8"))

    def test_serialize_does_not_mutate(self, fake_connection):
        response = HTTPResponse(fake_connection)
        response.serialize()
        assert response.headers == {}


class TestSend:
    """Tests for the terminal send() operation."""

    def test_send_writes_once_and_closes(self, fake_connection):
        response = HTTPResponse(fake_connection)
        result = asyncio.run(response.send(b"body"))

        assert result is True
        assert fake_connection.raw == b"HTTP/1.1 200 OK\r\nContent-Type: text/html\r\n\r\nbody"
        assert fake_connection.close_count == 1
        assert response.sent is True
        assert response.body_size == 4

    def test_send_without_body(self, fake_connection):
        asyncio.run(HTTPResponse(fake_connection).status(404).send())

        assert fake_connection.raw.endswith(b"\r\n\r\n")
        assert fake_connection.status_line == "HTTP/1.1 404 Page Not Found"

    def test_send_str_body_encoded(self, fake_connection):
        response = HTTPResponse(fake_connection)
        asyncio.run(response.send("ü"))

        assert fake_connection.body == "ü".encode("utf-8")
        assert response.body_size == 2

    def test_second_send_raises(self, fake_connection):
        response = HTTPResponse(fake_connection)

        async def send_twice():
            await response.send()
            await response.send()

        with pytest.raises(ResponseAlreadySentError):
            asyncio.run(send_twice())

        assert len(fake_connection.sent) == 1

    def test_mutation_after_send_raises(self, fake_connection):
        response = HTTPResponse(fake_connection)
        asyncio.run(response.send())

        with pytest.raises(ResponseAlreadySentError):
            response.set_header("X-Late", "1")
        with pytest.raises(ResponseAlreadySentError):
            response.status(500)

    def test_closed_even_if_client_gone(self, gone_connection):
        result = asyncio.run(HTTPResponse(gone_connection).send(b"x"))

        assert result is False
        assert gone_connection.close_count == 1
