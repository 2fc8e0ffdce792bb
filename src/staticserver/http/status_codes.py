"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The handful of status codes this server can produce, and the reason phrases
written after them on the status line.

=============================================================================
THE STATUS LINE
=============================================================================

Every response starts with exactly one status line:

    HTTP/1.1 404 Page Not Found\r\n
    ───┬──── ─┬─ ──────┬───────
       │      │        │
    Version  Code   Reason phrase

The code is what clients act on. The reason phrase is informational text for
humans (RFC 7230 lets clients ignore it), which is why an unknown code is not
an error here: we simply leave the phrase empty.

=============================================================================
CODES THIS SERVER PRODUCES
=============================================================================

    ┌──────┬────────────────────────┬──────────────────────────────────────┐
    │ Code │ Reason phrase          │ When                                 │
    ├──────┼────────────────────────┼──────────────────────────────────────┤
    │ 200  │ OK                     │ File or directory listing served     │
    │ 308  │ Permanent Redirect     │ Path found in the redirect table     │
    │ 404  │ Page Not Found         │ Nothing on disk (or malformed line)  │
    │ 500  │ Internal Server Error  │ stat / read / listing failed         │
    └──────┴────────────────────────┴──────────────────────────────────────┘

Why 308 and not 301? Both are permanent, but 308 forbids the client from
changing the method on the follow-up request.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    Status codes produced by the content pipeline.

    Being an IntEnum, members compare equal to plain integers:

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Page Not Found'
    """

    OK = 200                      # File or listing served
    PERMANENT_REDIRECT = 308      # Redirect table hit
    NOT_FOUND = 404               # Nothing at the resolved path
    INTERNAL_SERVER_ERROR = 500   # Filesystem failure

    @property
    def phrase(self) -> str:
        """Reason phrase written on the status line."""
        return _STATUS_PHRASES[self]


# =============================================================================
# REASON PHRASES
# =============================================================================
#
# Keyed by plain int so that reason_phrase() can look up any code a caller
# passes, not only HTTPStatus members.
#
# =============================================================================

_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.PERMANENT_REDIRECT: "Permanent Redirect",
    HTTPStatus.NOT_FOUND: "Page Not Found",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}


def reason_phrase(status_code: int) -> str:
    """
    Get the reason phrase for a status code.

    Args:
        status_code: Any integer status code.

    Returns:
        The phrase from the table, or an empty string for codes we don't
        know. Never raises.

    Examples:
        >>> reason_phrase(308)
        'Permanent Redirect'
        >>> reason_phrase(418)
        ''
    """
    try:
        return _STATUS_PHRASES.get(int(status_code), "")
    except (TypeError, ValueError):
        return ""
