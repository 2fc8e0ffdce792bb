"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Accumulates a status code and headers, then serializes them (with an
optional body) onto the connection and closes it.

=============================================================================
RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  HTTP/1.1 308 Permanent Redirect\r\n    ◄── STATUS LINE             │
    │  Location: /new/index.html\r\n          ◄── HEADERS, in the order   │
    │  Content-Type: text/html\r\n                they were set           │
    │  \r\n                                   ◄── BLANK LINE (always)     │
    │  ...                                    ◄── BODY (optional)         │
    └─────────────────────────────────────────────────────────────────────┘

The connection is closed right after the body. That close is how the client
learns where the body ends, which is why no Content-Length header is needed.

=============================================================================
BUILD, THEN SEND ONCE
=============================================================================

    response = HTTPResponse(conn)          status 200, no headers
    response.status(404)                   ┐
    response.set_header("Content-Type",    ├─ mutable phase
                        "text/plain")      ┘
    await response.send()                  terminal: write + close

    response.set_header(...)               ✗ ResponseAlreadySentError
    await response.send()                  ✗ ResponseAlreadySentError

After send() the response is finalized. The connection has been closed, so
a second send would write onto a dead transport; instead of allowing that,
both send() and the mutators check a flag and raise.

=============================================================================
CONTENT-TYPE DEFAULT
=============================================================================

If nothing set "Content-Type" by the time send() runs, "text/html" is added.
Directory listings rely on this, and so does Markdown output (.md has no
entry in the MIME registry).

=============================================================================
"""

from typing import Optional, Dict, Union, TYPE_CHECKING

from .status_codes import reason_phrase

if TYPE_CHECKING:
    from ..core.connection import Connection


DEFAULT_CONTENT_TYPE = "text/html"


class ResponseAlreadySentError(RuntimeError):
    """Raised when a response is modified or sent after send()."""


class HTTPResponse:
    """
    Single-use response bound to one connection.

    Attributes:
        status_code: Integer status code (default 200).
        version: Protocol version for the status line.
        headers: Header name → value, insertion ordered.
    """

    def __init__(
        self,
        connection: "Connection",
        status_code: int = 200,
        version: str = "HTTP/1.1",
    ):
        self._connection = connection
        self.status_code = int(status_code)
        self.version = version
        self.headers: Dict[str, str] = {}
        self.body_size = 0
        self._sent = False

    @property
    def sent(self) -> bool:
        """True once send() has been called."""
        return self._sent

    def _check_open(self):
        if self._sent:
            raise ResponseAlreadySentError(
                f"Response {self.status_code} was already sent"
            )

    # =========================================================================
    # MUTATORS (only valid before send)
    # =========================================================================

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """
        Set a header. Setting an existing name replaces its value but keeps
        its original position.

        Returns:
            Self for method chaining.
        """
        self._check_open()
        self.headers[name] = value
        return self

    def status(self, status_code: int) -> "HTTPResponse":
        """
        Set the status code.

        Returns:
            Self for method chaining:
                await response.status(404).send()
        """
        self._check_open()
        self.status_code = int(status_code)
        return self

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    @property
    def status_line(self) -> str:
        """
        Status line without the trailing CRLF, e.g. "HTTP/1.1 200 OK".

        Unknown codes get an empty reason phrase: "HTTP/1.1 299 ".
        """
        return f"{self.version} {self.status_code} {reason_phrase(self.status_code)}"

    def serialize(self, body: Optional[Union[bytes, str]] = None) -> bytes:
        """
        Render the full response as bytes, without sending it.

        Applies the Content-Type default to a copy of the headers, so calling
        this does not change the response.

        Args:
            body: Optional body; str is encoded as UTF-8.

        Returns:
            Status line, headers, blank line and body.
        """
        headers = dict(self.headers)
        if "Content-Type" not in headers:
            headers["Content-Type"] = DEFAULT_CONTENT_TYPE

        lines = [self.status_line]
        for name, value in headers.items():
            lines.append(f"{name}: {value}")

        # Two CRLFs: one ends the last header line, one is the blank line
        head = ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")

        if body is None:
            return head
        if isinstance(body, str):
            body = body.encode("utf-8")
        return head + body

    # =========================================================================
    # TERMINAL OPERATION
    # =========================================================================

    async def send(self, body: Optional[Union[bytes, str]] = None) -> bool:
        """
        Write the response and close the connection.

        Args:
            body: Optional body; str is encoded as UTF-8.

        Returns:
            True if the bytes were written, False if the client had already
            gone away. The connection is closed either way.

        Raises:
            ResponseAlreadySentError: If called a second time.
        """
        self._check_open()
        self._sent = True

        if "Content-Type" not in self.headers:
            self.headers["Content-Type"] = DEFAULT_CONTENT_TYPE

        if isinstance(body, str):
            body = body.encode("utf-8")
        self.body_size = len(body) if body else 0

        data = self.serialize(body)

        try:
            return await self._connection.send_response(data)
        finally:
            await self._connection.close()
