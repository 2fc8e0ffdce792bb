"""
=============================================================================
PATH RESOLVER
=============================================================================

Turns an untrusted request path into a filesystem path that is guaranteed to
stay inside the root directory. This is the server's only security boundary:
every filesystem call in the content pipeline goes through resolve_path().

=============================================================================
PATH TRAVERSAL
=============================================================================

    GET /../../etc/passwd HTTP/1.1

    Naive:   os.path.join("/srv/site", "../../etc/passwd")
             → "/srv/site/../../etc/passwd"
             → "/etc/passwd"                         ✗ escaped the root

    Naive:   os.path.join("/srv/site", "/etc/passwd")
             → "/etc/passwd"                         ✗ absolute path wins

=============================================================================
THE FIX: NORMALIZE AGAINST A SYNTHETIC ROOT, THEN JOIN
=============================================================================

    untrusted:        "../../etc/passwd"
         │
         ▼  prefix "/"
                      "/../../etc/passwd"
         │
         ▼  posixpath.normpath()       ".." cannot climb above "/"
                      "/etc/passwd"
         │
         ▼  split into segments, drop empty ones and drives
                      ["etc", "passwd"]
         │
         ▼  join onto the real root
                      "/srv/site/etc/passwd"             ✓ inside root

The normalization happens while the path is still rooted at a fake "/", so
every ".." that would climb past the top collapses to nothing. Only the
already-clean relative remainder is ever joined onto the real root.

Dropping empty segments and drive qualifiers afterwards covers the inputs
that would otherwise re-root os.path.join:

    "/etc/passwd"          → etc, passwd
    "//server/share/x"     → server, share, x
    "C:/Windows/win.ini"   → Windows, win.ini     (Windows only: a drive)

On POSIX a backslash is an ordinary filename character, so
"..\\..\\win.ini" is a single oddly-named file inside the root. On Windows
it is converted to forward slashes first and normalized like any other path.

=============================================================================
WHAT THIS DOES NOT DO
=============================================================================

It does not look at the filesystem, so it cannot see symlinks. A link
inside the root that points outside is caught by the content pipeline,
which refuses any path with a symlink in one of its components.

=============================================================================
"""

import os
import posixpath


def resolve_path(root_directory: str, untrusted_path: str) -> str:
    """
    Resolve a request path to a filesystem path inside root_directory.

    Args:
        root_directory: Trusted directory being served. Made absolute.
        untrusted_path: Path as received from the client (already decoded,
                        if decoding is wanted). May be empty.

    Returns:
        Normalized absolute path equal to root_directory or below it.

    Examples:
        >>> resolve_path("/srv/site", "/docs/a.txt")
        '/srv/site/docs/a.txt'
        >>> resolve_path("/srv/site", "../../etc/passwd")
        '/srv/site/etc/passwd'
        >>> resolve_path("/srv/site", "")
        '/srv/site'
    """
    root = os.path.normpath(os.path.abspath(root_directory))
    untrusted = untrusted_path or ""

    if os.sep != "/":
        untrusted = untrusted.replace(os.sep, "/")

    # Normalize while anchored at a synthetic "/"
    anchored = posixpath.normpath("/" + untrusted)

    # Splitting drops the leading separators. A segment carrying a drive
    # ("C:") would make os.path.join start over on that drive; splitdrive()
    # never reports one on POSIX.
    segments = [
        s for s in anchored.split("/")
        if s and s != "." and not os.path.splitdrive(s)[0]
    ]
    if not segments:
        return root

    return os.path.normpath(os.path.join(root, *segments))


def is_within_root(root_directory: str, path: str) -> bool:
    """
    Check that path is root_directory itself or lies below it.

    Compares whole path components, so "/srv/site-backup" is NOT within
    "/srv/site".
    """
    root = os.path.normpath(os.path.abspath(root_directory))
    candidate = os.path.normpath(os.path.abspath(path))
    try:
        return os.path.commonpath([root, candidate]) == root
    except ValueError:
        # Different drives on Windows
        return False
