"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the static content server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m staticserver --root ./public --port 8000        │
    │                                                                      │
    │   2. Configuration file (JSON)                                      │
    │      └── python -m staticserver --config config.json               │
    │                                                                      │
    │   3. Environment variables                                          │
    │      └── HTTP_ROOT_DIR=./public python -m staticserver             │
    │                                                                      │
    │   4. Defaults in ServerConfig                                       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
CONFIG FILE FORMAT
=============================================================================

    {
        "root_directory": "public",
        "redirect_map": {
            "/old.html": "/new.html",
            "/blog": "/posts/index.html"
        },
        "host": "localhost",
        "port": 3000
    }

root_directory is resolved relative to the directory holding the config
file, not the current working directory, so the same file works no matter
where the server is started from. A file kept in a subdirectory next to
the site says so explicitly:

    project/
    ├── conf/site.json      { "root_directory": "../public" }
    └── public/

host and port are optional. Keys the file leaves out come from the
environment, then from the defaults.

=============================================================================
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for the static content server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size

    CONTENT
    - root_directory, redirects

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "localhost"
    """Address to bind to. "0.0.0.0" listens on all interfaces."""

    port: int = 3000
    """Port to listen on. 0 lets the OS pick a free port (useful in tests)."""

    backlog: int = 128
    """Maximum number of connections waiting to be accepted."""

    buffer_size: int = 65536
    """
    Size of the single read that makes up a request, in bytes.
    Requests are never reassembled from several reads.
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    root_directory: str = "."
    """Directory whose contents are served. Nothing outside it is reachable."""

    redirects: Dict[str, str] = field(default_factory=dict)
    """
    Request path → target path, answered with 308 Permanent Redirect.
    Keys must match the request path exactly.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    log_format: str = "text"
    """Access log format: 'text' (Apache-style line) or 'json'."""

    def __post_init__(self):
        self.root_directory = os.path.abspath(self.root_directory)

    @property
    def level(self) -> int:
        """The log_level as a logging module constant."""
        return getattr(logging, self.log_level.upper(), logging.INFO)

    # =========================================================================
    # ALTERNATE CONSTRUCTORS
    # =========================================================================

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTP_HOST        Server host (default: localhost)
        HTTP_PORT        Server port (default: 3000)
        HTTP_ROOT_DIR    Directory to serve (default: .)
        HTTP_LOG_LEVEL   Logging level (default: INFO)
        HTTP_LOG_FORMAT  Access log format (default: text)

        =====================================================================
        """
        port = os.getenv("HTTP_PORT", "3000")
        try:
            port_number = int(port)
        except ValueError:
            raise ValueError(f"HTTP_PORT must be an integer, got {port!r}")

        return cls(
            host=os.getenv("HTTP_HOST", "localhost"),
            port=port_number,
            root_directory=os.getenv("HTTP_ROOT_DIR", "."),
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO"),
            log_format=os.getenv("HTTP_LOG_FORMAT", "text"),
        )

    @classmethod
    def from_file(cls, path: str, **overrides: Any) -> "ServerConfig":
        """
        Load configuration from a JSON file.

        Args:
            path: Path to the JSON config file.
            **overrides: Field values that take precedence over the file
                         (used by the CLI for explicit flags).

        Returns:
            ServerConfig. Not yet validated.

        Raises:
            ValueError: If the file cannot be read, is not valid JSON, or
                        does not hold a JSON object.
        """
        values = cls._file_values(path)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @staticmethod
    def _file_values(path: str) -> Dict[str, Any]:
        """
        Read a JSON config file into field values.

        Only the keys present in the file appear in the result, so callers
        can tell "set to the default" apart from "not set".
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise ValueError(f"Cannot read config file {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a JSON object")

        base_dir = os.path.dirname(os.path.abspath(path))

        values: Dict[str, Any] = {}
        if "root_directory" in data:
            values["root_directory"] = os.path.join(base_dir, str(data["root_directory"]))
        if "redirect_map" in data:
            values["redirects"] = data["redirect_map"]
        for key in ("host", "port", "backlog", "buffer_size", "log_level", "log_format"):
            if key in data:
                values[key] = data[key]
        return values

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def validate(self) -> None:
        """
        Validate configuration values.

        Called by HTTPServer at construction, so a bad root directory or a
        malformed redirect map stops the server before it binds a port.

        Raises:
            ValueError: Describing the first invalid value found.
        """
        if not isinstance(self.port, int) or not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if not os.path.isdir(self.root_directory):
            raise ValueError(f"Root directory does not exist: {self.root_directory}")

        if not isinstance(self.redirects, dict):
            raise ValueError("redirects must be a mapping of path to target")
        for source, target in self.redirects.items():
            if not isinstance(source, str) or not isinstance(target, str):
                raise ValueError(f"Invalid redirect {source!r} -> {target!r}: both must be strings")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(LOG_FORMATS)}")


def load_config(config_path: Optional[str] = None, **overrides: Any) -> ServerConfig:
    """
    Build a ServerConfig from the usual sources.

    The environment supplies the base. Every key present in the config file
    replaces it, even when the file repeats a default value. Explicit
    overrides (non-None) win over both.

    Args:
        config_path: Optional JSON config file.
        **overrides: Field values from the command line.

    Returns:
        Validated ServerConfig.
    """
    config = ServerConfig.from_env()

    if config_path:
        for name, value in ServerConfig._file_values(config_path).items():
            setattr(config, name, value)

    for name, value in overrides.items():
        if value is not None:
            setattr(config, name, value)
    config.root_directory = os.path.abspath(config.root_directory)

    config.validate()
    return config
