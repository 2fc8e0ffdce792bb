"""
=============================================================================
MIME TYPE REGISTRY
=============================================================================

Maps file extensions to the Content-Type header value sent with a file.

=============================================================================
HOW LOOKUPS WORK
=============================================================================

    "photos/IMAGE.PNG"
          │
          ▼
    get_extension()      "png"      (lowercased, no leading dot)
          │
          ▼
    MimeRegistry.lookup("png")
          │
          ├── known   → "image/png"
          └── unknown → None        (NOT an exception, NOT a default)

The registry deliberately returns None for unknown extensions instead of
falling back to application/octet-stream. The caller decides what "unknown"
means: the content pipeline simply leaves the Content-Type header unset, and
the response builder then applies its text/html default at send time.

    ┌─────────────────────────────────────────────────────────────────────┐
    │  Extension   │  Content-Type                                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │  jpg         │  image/jpg                                           │
    │  jpeg        │  image/jpeg                                          │
    │  png         │  image/png                                           │
    │  html        │  text/html                                           │
    │  css         │  text/css                                            │
    │  txt         │  text/plain                                          │
    └─────────────────────────────────────────────────────────────────────┘

Note what is NOT in the table: "md". Markdown files are rendered to HTML by
a postprocessor, and they reach the client with the text/html default.

=============================================================================
IMMUTABILITY
=============================================================================

A registry is built once at startup and shared by every request. The table
is wrapped in types.MappingProxyType, so nothing can add or change entries
while the server is running. Requests only ever read it, so no locking is
needed.

=============================================================================
"""

import posixpath
from types import MappingProxyType
from typing import Mapping, Optional


# =============================================================================
# DEFAULT TABLE
# =============================================================================
#
# Keys are lowercase and carry no leading dot.
#
# =============================================================================

DEFAULT_MIME_TYPES: Mapping[str, str] = MappingProxyType({
    "jpg": "image/jpg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "html": "text/html",
    "css": "text/css",
    "txt": "text/plain",
})


def get_extension(file_name: str) -> str:
    """
    Get the normalized extension of a file name or URL path.

    The result is always lowercase and never includes the leading dot.
    Names without an extension (or dotfiles like ".bashrc") give "".

    Args:
        file_name: A file name, filesystem path or URL path.

    Returns:
        The extension, e.g. "png" for "/img/LOGO.PNG".

    Examples:
        >>> get_extension("notes.MD")
        'md'
        >>> get_extension("/docs/")
        ''
    """
    if not file_name:
        return ""
    # URL paths and POSIX paths both use "/", and os.path would treat a
    # backslash as a separator on Windows only; normalise to one behaviour.
    _, ext = posixpath.splitext(file_name.replace("\\", "/"))
    return ext[1:].lower()


class MimeRegistry:
    """
    Read-only extension → content type lookup.

    Usage:
        registry = MimeRegistry()
        registry.lookup("PNG")          # 'image/png'
        registry.for_path("/a/b.css")   # 'text/css'
        registry.for_path("/a/b.xyz")   # None

    Args:
        types: Extension → content type table. Keys are lowercased and any
               leading dot is dropped, so {".PNG": ...} is accepted too.
    """

    def __init__(self, types: Optional[Mapping[str, str]] = None):
        source = DEFAULT_MIME_TYPES if types is None else types
        self._types: Mapping[str, str] = MappingProxyType({
            ext.lower().lstrip("."): content_type
            for ext, content_type in source.items()
        })

    @property
    def types(self) -> Mapping[str, str]:
        """The underlying read-only table."""
        return self._types

    def lookup(self, extension: str) -> Optional[str]:
        """
        Look up a content type by extension.

        Args:
            extension: Extension with or without the leading dot, any case.

        Returns:
            The content type, or None if the extension is unknown or empty.
        """
        if not extension:
            return None
        return self._types.get(extension.lower().lstrip("."))

    def for_path(self, path: str) -> Optional[str]:
        """Look up the content type for a file name or path."""
        return self.lookup(get_extension(path))

    def __contains__(self, extension: str) -> bool:
        return self.lookup(extension) is not None

    def __repr__(self) -> str:
        return f"MimeRegistry({dict(self._types)!r})"
