"""
=============================================================================
HTTP PROTOCOL MODULE
=============================================================================

The wire-level pieces of the server: parsing what comes in, serializing what
goes out, and the two lookup tables used along the way.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   raw bytes ──► parse_request() ──► HTTPRequest(method, path)       │
    │                                                                      │
    │   HTTPResponse ──► status() / set_header() ──► send(body) ──► bytes │
    │                                                                      │
    │   MimeRegistry        extension → Content-Type (or None)            │
    │   reason_phrase()     status code → reason phrase (or "")           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .request import HTTPRequest, parse_request
from .response import HTTPResponse, ResponseAlreadySentError, DEFAULT_CONTENT_TYPE
from .status_codes import HTTPStatus, reason_phrase
from .mime_types import MimeRegistry, DEFAULT_MIME_TYPES, get_extension

__all__ = [
    # Request parsing
    "HTTPRequest",
    "parse_request",

    # Response building
    "HTTPResponse",
    "ResponseAlreadySentError",
    "DEFAULT_CONTENT_TYPE",

    # Status codes
    "HTTPStatus",
    "reason_phrase",

    # MIME types
    "MimeRegistry",
    "DEFAULT_MIME_TYPES",
    "get_extension",
]
