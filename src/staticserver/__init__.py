"""
=============================================================================
STATICSERVER - Minimal HTTP/1.1 Static Content Server
=============================================================================

Serves one directory tree over HTTP/1.1 on a single asyncio event loop.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   GET /old.html    ──► 308 Permanent Redirect (redirect table)      │
    │   GET /docs/       ──► 200 HTML index of the directory              │
    │   GET /notes.md    ──► 200 Markdown rendered to HTML                │
    │   GET /logo.png    ──► 200 file bytes, Content-Type image/png       │
    │   GET /../secret   ──► never leaves the root directory              │
    │   GET /missing     ──► 404 Page Not Found                           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    staticserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m staticserver)
    ├── server.py            # HTTPServer: read → parse → pipeline → log
    ├── config.py            # ServerConfig dataclass, JSON/env loading
    ├── access_log.py        # RequestLog, "staticserver.access" logger
    ├── core/
    │   ├── socket_server.py # asyncio listener, signals
    │   └── connection.py    # one read, one write, close
    ├── http/
    │   ├── request.py       # request line parsing
    │   ├── response.py      # single-use response builder
    │   ├── status_codes.py  # 200 / 308 / 404 / 500 and phrases
    │   └── mime_types.py    # extension → Content-Type registry
    └── handlers/
        ├── content.py       # the decision sequence
        ├── paths.py         # traversal-safe path resolution
        └── postprocess.py   # Markdown → HTML

=============================================================================
QUICK START
=============================================================================

    from staticserver import HTTPServer, ServerConfig

    HTTPServer(ServerConfig(root_directory="./public")).run()

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig, load_config
from .server import HTTPServer

__all__ = [
    "__version__",
    "HTTPServer",
    "ServerConfig",
    "load_config",
]
