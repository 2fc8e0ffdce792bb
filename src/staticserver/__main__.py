"""
=============================================================================
STATIC SERVER CLI ENTRY POINT
=============================================================================

    # Serve the current directory on localhost:3000
    python -m staticserver

    # Serve ./public on port 8000
    python -m staticserver --root ./public --port 8000

    # Root directory and redirect table from a JSON file
    python -m staticserver --config site.json

    # Listen on all interfaces (for containers)
    python -m staticserver --host 0.0.0.0

Flags override the config file, which overrides HTTP_* environment
variables. See config.py for the file format.

=============================================================================
"""

import argparse
import sys
from typing import Optional, Sequence

from . import __version__
from .config import LOG_FORMATS, LOG_LEVELS, load_config
from .server import HTTPServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="staticserver",
        description="Serve a directory over HTTP/1.1 with redirects, "
                    "directory listings and Markdown rendering",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m staticserver                          # Serve . on localhost:3000
  python -m staticserver --root ./public          # Serve ./public
  python -m staticserver --config site.json       # Root + redirects from file
  python -m staticserver --host 0.0.0.0 -p 8080   # All interfaces, port 8080
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--config", "-c",
        default=None,
        help="JSON file with root_directory and redirect_map"
    )

    parser.add_argument(
        "--root", "-r",
        default=None,
        help="Directory to serve (default: current directory)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: localhost, use 0.0.0.0 for containers)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 3000)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=LOG_LEVELS,
        type=str.upper,
        default=None,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=None,
        help="Access log format (default: text)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"staticserver {__version__}"
    )

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    CLI entry point.

    Returns:
        Process exit code: 0 after a clean shutdown, 1 on a bad
        configuration or a bind failure.
    """
    args = build_parser().parse_args(argv)

    try:
        config = load_config(
            args.config,
            root_directory=args.root,
            host=args.host,
            port=args.port,
            log_level=args.log_level,
            log_format=args.log_format,
        )
        server = HTTPServer(config)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
