"""
=============================================================================
HANDLERS MODULE
=============================================================================

Everything between "we have a parsed request" and "we have sent a response".

    ┌─────────────────────────────────────────────────────────────────────┐
    │ Module          │ Provides                                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │ content.py      │ ContentPipeline: redirect → exists → stat →       │
    │                 │ directory listing / file + postprocess            │
    │ paths.py        │ resolve_path(): the traversal-safe join           │
    │ postprocess.py  │ PostprocessorRegistry, render_markdown()          │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
USAGE
=============================================================================

    from staticserver.handlers import ContentPipeline

    pipeline = ContentPipeline("./public", redirects={"/old": "/new.html"})
    await pipeline.handle(request, response)

=============================================================================
"""

from .content import (
    ContentPipeline,
    DirectoryEntry,
    EntryKind,
    render_directory_listing,
    split_request_path,
)
from .paths import resolve_path, is_within_root
from .postprocess import (
    PostprocessorRegistry,
    DEFAULT_POSTPROCESSORS,
    render_markdown,
)

__all__ = [
    "ContentPipeline",
    "DirectoryEntry",
    "EntryKind",
    "render_directory_listing",
    "split_request_path",
    "resolve_path",
    "is_within_root",
    "PostprocessorRegistry",
    "DEFAULT_POSTPROCESSORS",
    "render_markdown",
]
