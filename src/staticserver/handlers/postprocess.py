"""
=============================================================================
POSTPROCESSORS
=============================================================================

Transforms applied to a file's bytes, chosen by extension, before the bytes
become the response body.

    notes.md ──read──► b"# Title\n..." ──render_markdown──► b"<h1>Title</h1>..."
    logo.png ──read──► b"\x89PNG..."   ──(no entry)───────► b"\x89PNG..."

Only Markdown is registered today. Raw HTML embedded in a Markdown file is
passed through unescaped, so a site author can drop a <table> or <div> into
their notes.

The Content-Type header is NOT decided here. It still comes from the
original extension via the MIME registry.

=============================================================================
"""

from types import MappingProxyType
from typing import Callable, Mapping, Optional

import markdown


Postprocessor = Callable[[bytes], bytes]


def render_markdown(content: bytes) -> bytes:
    """
    Render Markdown source to an HTML fragment.

    Args:
        content: Markdown source. Invalid UTF-8 is replaced, not rejected.

    Returns:
        UTF-8 encoded HTML.
    """
    text = content.decode("utf-8", errors="replace")
    return markdown.markdown(text).encode("utf-8")


DEFAULT_POSTPROCESSORS: Mapping[str, Postprocessor] = MappingProxyType({
    "md": render_markdown,
})


class PostprocessorRegistry:
    """
    Read-only extension → postprocessor lookup.

    Args:
        processors: Extension → callable. Keys are lowercased and a leading
                    dot is dropped.
    """

    def __init__(self, processors: Optional[Mapping[str, Postprocessor]] = None):
        source = DEFAULT_POSTPROCESSORS if processors is None else processors
        self._processors: Mapping[str, Postprocessor] = MappingProxyType({
            ext.lower().lstrip("."): func for ext, func in source.items()
        })

    def lookup(self, extension: str) -> Optional[Postprocessor]:
        """Return the postprocessor for an extension, or None to pass through."""
        if not extension:
            return None
        return self._processors.get(extension.lower().lstrip("."))

    def __contains__(self, extension: str) -> bool:
        return self.lookup(extension) is not None

    def __repr__(self) -> str:
        return f"PostprocessorRegistry({sorted(self._processors)!r})"
