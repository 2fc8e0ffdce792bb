"""
=============================================================================
CONTENT PIPELINE
=============================================================================

Decides what to answer for one request and sends exactly one response.

=============================================================================
THE DECISION SEQUENCE
=============================================================================

Every request walks the same stages in the same order. Each stage either
sends a terminal response or hands a result to the next one.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   request                                                            │
    │      │                                                               │
    │      ▼                                                               │
    │   0. malformed? ───────────── yes ──► 404 text/plain                │
    │      │                                                               │
    │      ▼                                                               │
    │   1. path in redirects? ───── yes ──► 308 + Location                │
    │      │                                                               │
    │      ▼  resolve_path()                                               │
    │   2. exists? ───────────────── no ──► 404 text/plain                │
    │      │                                                               │
    │      ▼                                                               │
    │   3. symlink? lstat() ────── error ─► 500                            │
    │      │                                                               │
    │      ├── DIRECTORY ──► 4. list entries ──► 200 HTML index  (or 500) │
    │      ├── FILE ───────► 5. read + postprocess ──► 200       (or 500) │
    │      └── OTHER ──────► 6. symlink / socket / device ──► 500         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The redirect table is consulted BEFORE the filesystem, with the raw request
path as key. If "/old.html" is both a redirect key and a real file, the
client gets the 308.

=============================================================================
ASYNC FILESYSTEM ACCESS
=============================================================================

The whole server runs on one event loop thread. A plain os.stat() or
open().read() on a slow disk would freeze every other connection while it
runs. The filesystem calls here go through aiofiles, which runs them on the
loop's thread pool executor:

    await aiofiles.os.path.exists(path)     existence check
    await aiofiles.os.path.islink(path)     symlink check, every component
    await aiofiles.os.stat(path, ...)       type check (no symlink follow)
    await aiofiles.os.scandir(path)         directory enumeration
    async with aiofiles.open(path, "rb")    file read

While one request waits on the disk, the loop keeps serving others.

Postprocessors (Markdown rendering) are CPU work rather than I/O. They run
in the loop's default executor too, so a large notes file does not stall
other connections while it renders.

=============================================================================
SYMBOLIC LINKS
=============================================================================

A symlink anywhere between the root and the target is refused with a 500,
not only a link in the last component:

    /srv/site/link -> /home/user

    GET /link              link is the last component  ──► 500
    GET /link/.ssh/id_rsa   link is an inner component  ──► 500

resolve_path() works on names only, so this check is what keeps a link
inside the root from exposing files outside it. Directory listings still
show links, as plain entries without the trailing "/".

=============================================================================
ERROR MAPPING
=============================================================================

    ┌──────────────────────────┬──────────────────────────────┬────────┐
    │ Situation                │ Caught as                    │ Status │
    ├──────────────────────────┼──────────────────────────────┼────────┤
    │ No request path          │ HTTPRequest.is_malformed     │ 404    │
    │ Path does not exist      │ exists() is False            │ 404    │
    │ Vanished / no permission │ OSError from stat            │ 500    │
    │ Not a file or directory  │ EntryKind.OTHER              │ 500    │
    │ Symlink below the root   │ EntryKind.OTHER              │ 500    │
    │ Cannot list directory    │ OSError from scandir         │ 500    │
    │ Cannot read file         │ OSError from open/read       │ 500    │
    │ Postprocessor blew up    │ Exception from the transform │ 500    │
    └──────────────────────────┴──────────────────────────────┴────────┘

Nothing is retried and nothing escapes: each branch ends in one send().

=============================================================================
"""

import asyncio
import html
import logging
import os
import stat
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional
from urllib.parse import quote, unquote

import aiofiles
import aiofiles.os

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse
from ..http.status_codes import HTTPStatus
from ..http.mime_types import MimeRegistry, get_extension
from .paths import resolve_path, is_within_root
from .postprocess import PostprocessorRegistry


logger = logging.getLogger(__name__)


class EntryKind(Enum):
    """What the resolved path turned out to be."""

    MISSING = "missing"
    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"      # symlink, socket, FIFO, device...
    ERROR = "error"      # stat() itself failed


@dataclass(frozen=True)
class DirectoryEntry:
    """One child of a listed directory."""

    name: str
    is_dir: bool

    @property
    def display_name(self) -> str:
        """
        Printable name with a trailing "/" for directories. Bytes that are
        not valid UTF-8 show as U+FFFD.
        """
        text = os.fsencode(self.name).decode("utf-8", errors="replace")
        return text + "/" if self.is_dir else text


def split_request_path(path: str) -> tuple[str, str]:
    """
    Separate the URL path from the filesystem form of it.

    Returns:
        (url_path, fs_path): url_path is the request target without query
        string or fragment, still percent-encoded. fs_path is url_path
        percent-decoded, ready for resolve_path(). Escapes that are not
        valid UTF-8 decode to surrogates, which os functions turn back into
        the original bytes, so links to such names round-trip.

    Example:
        >>> split_request_path("/my%20notes.md?raw=1")
        ('/my%20notes.md', '/my notes.md')
    """
    url_path = path.split("?", 1)[0].split("#", 1)[0]
    return url_path, unquote(url_path, errors="surrogateescape")


def render_directory_listing(url_path: str, entries: list[DirectoryEntry]) -> str:
    """
    Render the HTML index page for a directory.

    One <a> per entry, in the order given. Directory links end in "/".
    Links are absolute (built from the request path), so they work whether
    or not the request path itself ended in a slash.

    Args:
        url_path: Request path of the directory, percent-encoded.
        entries: Children as returned by enumeration.

    Returns:
        Complete HTML document.
    """
    base = url_path if url_path.endswith("/") else url_path + "/"
    title = html.escape(unquote(base))

    items = []
    for entry in entries:
        # Names that are not valid UTF-8 arrive with surrogate escapes;
        # quote the raw bytes and show a lossy text form
        href = base + quote(os.fsencode(entry.name)) + ("/" if entry.is_dir else "")
        items.append(
            f'    <li><a href="{html.escape(href, quote=True)}">'
            f"{html.escape(entry.display_name)}</a></li>"
        )

    listing = "\n".join(items)
    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        "<head>\n"
        '  <meta charset="utf-8">\n'
        f"  <title>Index of {title}</title>\n"
        "</head>\n"
        "<body>\n"
        f"  <h1>Index of {title}</h1>\n"
        "  <ul>\n"
        f"{listing}\n"
        "  </ul>\n"
        "</body>\n"
        "</html>\n"
    )


class ContentPipeline:
    """
    Produces exactly one response per request from the root directory and
    the redirect table.

    Everything the pipeline holds is read-only after construction, so a
    single instance is shared by all connections.

    Usage:
        pipeline = ContentPipeline(
            root_directory="./public",
            redirects={"/old": "/new.html"},
        )
        await pipeline.handle(request, HTTPResponse(conn))

    Args:
        root_directory: Directory to serve. Made absolute.
        redirects: Request path → target path. Copied into a read-only map.
        mime_types: Content-Type lookup. Defaults to MimeRegistry().
        postprocessors: Transform lookup. Defaults to PostprocessorRegistry().
    """

    def __init__(
        self,
        root_directory: str,
        redirects: Optional[Mapping[str, str]] = None,
        mime_types: Optional[MimeRegistry] = None,
        postprocessors: Optional[PostprocessorRegistry] = None,
    ):
        self.root_directory = os.path.normpath(os.path.abspath(root_directory))
        self.redirects: Mapping[str, str] = MappingProxyType(dict(redirects or {}))
        self.mime_types = mime_types if mime_types is not None else MimeRegistry()
        self.postprocessors = (
            postprocessors if postprocessors is not None else PostprocessorRegistry()
        )

    # =========================================================================
    # ENTRY POINT
    # =========================================================================

    async def handle(self, request: HTTPRequest, response: HTTPResponse) -> None:
        """
        Run the decision sequence and send the response.

        Args:
            request: Parsed request.
            response: Fresh response bound to the client connection.
        """
        # ─────────────────────────────────────────────────────────────────
        # STAGE 0: MALFORMED REQUEST LINE
        # ─────────────────────────────────────────────────────────────────
        if request.is_malformed:
            logger.debug("Malformed request line, answering 404")
            await self._send_not_found(response)
            return

        # ─────────────────────────────────────────────────────────────────
        # STAGE 1: REDIRECTS (exact match on the raw path)
        # ─────────────────────────────────────────────────────────────────
        target = self.redirects.get(request.path)
        if target is not None:
            await self._send_redirect(response, target)
            return

        # ─────────────────────────────────────────────────────────────────
        # STAGE 2 + 3: RESOLVE, EXISTS, LSTAT
        # ─────────────────────────────────────────────────────────────────
        url_path, fs_path = split_request_path(request.path)
        full_path = resolve_path(self.root_directory, fs_path)

        if ".." in fs_path.split("/"):
            logger.debug(f"Traversal segments in {request.path!r}, resolved to {full_path}")

        if not is_within_root(self.root_directory, full_path):
            # resolve_path() guarantees this never happens
            logger.error(f"Resolved path escaped root: {request.path!r} -> {full_path!r}")
            await self._send_not_found(response)
            return

        kind = await self.entry_kind(full_path)

        # ─────────────────────────────────────────────────────────────────
        # STAGE 4-6: BRANCH ON ENTRY KIND
        # ─────────────────────────────────────────────────────────────────
        if kind is EntryKind.MISSING:
            logger.debug(f"Not found: {full_path}")
            await self._send_not_found(response)
        elif kind is EntryKind.DIRECTORY:
            await self._send_directory(response, full_path, url_path)
        elif kind is EntryKind.FILE:
            await self._send_file(response, full_path)
        else:
            if kind is EntryKind.OTHER:
                logger.warning(f"Refusing to serve special entry: {full_path}")
            await self._send_error(response)

    # =========================================================================
    # FILESYSTEM STAGES
    # =========================================================================

    async def entry_kind(self, full_path: str) -> EntryKind:
        """
        Classify a resolved path.

        Existence is checked first (MISSING). A symlink in any component
        below the root makes the entry OTHER. The entry itself is then
        lstat()ed for its type.
        """
        if not await aiofiles.os.path.exists(full_path):
            return EntryKind.MISSING

        try:
            if await self.crosses_symlink(full_path):
                return EntryKind.OTHER
        except (OSError, ValueError) as e:
            logger.warning(f"Symlink check failed for {full_path}: {e}")
            return EntryKind.ERROR

        try:
            st = await aiofiles.os.stat(full_path, follow_symlinks=False)
        except (OSError, ValueError) as e:
            logger.warning(f"stat failed for {full_path}: {e}")
            return EntryKind.ERROR

        if stat.S_ISDIR(st.st_mode):
            return EntryKind.DIRECTORY
        if stat.S_ISREG(st.st_mode):
            return EntryKind.FILE
        return EntryKind.OTHER

    async def crosses_symlink(self, full_path: str) -> bool:
        """True if any component from the root down to full_path is a symlink."""
        relative = os.path.relpath(full_path, self.root_directory)
        if relative == os.curdir:
            return False

        current = self.root_directory
        for part in relative.split(os.sep):
            current = os.path.join(current, part)
            if await aiofiles.os.path.islink(current):
                return True
        return False

    async def list_directory(self, full_path: str) -> list[DirectoryEntry]:
        """
        Enumerate the immediate children of a directory.

        Name and kind come from the same scandir() pass. Symlinks are not
        followed, so a link to a directory is listed as a plain entry.
        Order is whatever the OS returns; it is not sorted.

        Raises:
            OSError: If the directory cannot be read.
        """
        with await aiofiles.os.scandir(full_path) as scan:
            return [
                DirectoryEntry(name=item.name, is_dir=item.is_dir(follow_symlinks=False))
                for item in scan
            ]

    async def read_file(self, full_path: str) -> bytes:
        """
        Read a whole file.

        Raises:
            OSError: If the file cannot be opened or read.
        """
        async with aiofiles.open(full_path, "rb") as f:
            return await f.read()

    # =========================================================================
    # RESPONSES
    # =========================================================================

    async def _send_redirect(self, response: HTTPResponse, target: str):
        response.status(HTTPStatus.PERMANENT_REDIRECT)
        response.set_header("Location", target)

        content_type = self.mime_types.for_path(target)
        if content_type is not None:
            response.set_header("Content-Type", content_type)

        await response.send()

    async def _send_not_found(self, response: HTTPResponse):
        response.status(HTTPStatus.NOT_FOUND)
        response.set_header("Content-Type", "text/plain")
        await response.send()

    async def _send_error(self, response: HTTPResponse):
        await response.status(HTTPStatus.INTERNAL_SERVER_ERROR).send()

    async def _send_directory(self, response: HTTPResponse, full_path: str, url_path: str):
        """Stage 4: HTML index of the directory (Content-Type left to default)."""
        try:
            entries = await self.list_directory(full_path)
            page = render_directory_listing(url_path, entries).encode("utf-8")
        except (OSError, ValueError) as e:
            # UnicodeError is a ValueError
            logger.warning(f"Cannot list directory {full_path}: {e}")
            await self._send_error(response)
            return

        await response.send(page)

    async def _send_file(self, response: HTTPResponse, full_path: str):
        """
        Stage 5: file contents, postprocessed if an entry exists for the
        extension. Content-Type always follows the ORIGINAL extension.
        """
        try:
            content = await self.read_file(full_path)
        except (OSError, ValueError) as e:
            logger.warning(f"Cannot read file {full_path}: {e}")
            await self._send_error(response)
            return

        extension = get_extension(full_path)

        processor = self.postprocessors.lookup(extension)
        if processor is not None:
            try:
                loop = asyncio.get_running_loop()
                content = await loop.run_in_executor(None, processor, content)
            except Exception as e:
                logger.error(f"Postprocessing failed for {full_path}: {e}")
                await self._send_error(response)
                return

        content_type = self.mime_types.lookup(extension)
        if content_type is not None:
            response.set_header("Content-Type", content_type)

        await response.send(content)
