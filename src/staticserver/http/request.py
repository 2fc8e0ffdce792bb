"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the raw bytes of one inbound request into an HTTPRequest.

=============================================================================
WHAT WE READ, WHAT WE IGNORE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  GET /docs/notes.md HTTP/1.1\r\n      ◄── REQUEST LINE (parsed)     │
    │  ─┬─ ───────┬──────                                                  │
    │   │         │                                                        │
    │ method     path        (the version token is ignored)               │
    │                                                                      │
    │  Host: localhost:3000\r\n             ◄── HEADERS (ignored)          │
    │  Accept: text/html\r\n                                               │
    │  \r\n                                                                │
    │  ...                                  ◄── BODY (ignored)             │
    └─────────────────────────────────────────────────────────────────────┘

This server only retrieves static content, so the method and the path are
all it needs. Everything after the first line is dropped.

=============================================================================
LENIENT PARSING
=============================================================================

The parser never raises. Whatever arrives on the socket gives an
HTTPRequest:

    b"GET / HTTP/1.1\r\n\r\n"   → method="GET", path="/"
    b"GET\r\n"                  → method="GET", path=""
    b""                         → method="",    path=""
    b"\xff\xfe garbage"         → decoded with U+FFFD replacements

A request with no path is "malformed". The content pipeline answers it with
404 Page Not Found, the same as a request for a file that isn't there.

The path is attacker-controlled. It is NOT validated here (no ".." check,
no decoding). Turning it into a filesystem path is the job of the path
resolver, which is the one place where that is done safely.

=============================================================================
"""

from dataclasses import dataclass


@dataclass
class HTTPRequest:
    """
    A parsed request: the first two tokens of the request line.

    Attributes:
        method: HTTP method token, e.g. "GET". Empty if absent.
        path: Request target exactly as sent, e.g. "/a%20b.txt?x=1".
              Empty if absent. Untrusted.
        client_address: (ip, port) of the peer, for logging only.
    """

    method: str = ""
    path: str = ""
    client_address: tuple[str, int] = ("", 0)

    @property
    def is_malformed(self) -> bool:
        """True when the request line did not carry a path."""
        return not self.path


def parse_request(
    data: bytes,
    client_address: tuple[str, int] = ("", 0),
) -> HTTPRequest:
    """
    Parse raw request bytes.

    =========================================================================
    ALGORITHM
    =========================================================================

        1. Decode as UTF-8, replacing invalid bytes (never fails)
        2. Take everything before the first line break
        3. Split on whitespace, keep tokens 0 and 1

    Splitting with str.split() (no argument) means runs of spaces or tabs
    count as one separator and leading whitespace is skipped.

    =========================================================================

    Args:
        data: Bytes from a single read on the connection.
        client_address: Peer address, carried along for logging.

    Returns:
        HTTPRequest. Missing tokens are empty strings.
    """
    text = data.decode("utf-8", errors="replace") if data else ""

    # splitlines() handles \r\n, bare \n and bare \r alike
    lines = text.splitlines()
    request_line = lines[0] if lines else ""

    tokens = request_line.split()
    method = tokens[0] if len(tokens) > 0 else ""
    path = tokens[1] if len(tokens) > 1 else ""

    return HTTPRequest(method=method, path=path, client_address=client_address)
