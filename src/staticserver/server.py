"""
=============================================================================
STATIC CONTENT SERVER
=============================================================================

Ties the listener, the request parser and the content pipeline together.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    STATIC SERVER ARCHITECTURE                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │   HTTPServer    │                          │
    │                        │  (Orchestrator) │                          │
    │                        └────────┬────────┘                          │
    │                                 │                                    │
    │            ┌────────────────────┼────────────────────┐              │
    │            │                    │                    │              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐        │
    │    │ SocketServer │    │ parse_request│    │ContentPipeline│       │
    │    │  (asyncio)   │    │  (request    │    │ (redirects,  │        │
    │    │              │    │   line)      │    │  filesystem) │        │
    │    └──────┬───────┘    └──────────────┘    └──────┬───────┘        │
    │           │                                       │                 │
    │           ▼                                       ▼                 │
    │    ┌──────────────┐                       ┌──────────────┐         │
    │    │  Connection  │◄──────────────────────│ HTTPResponse │         │
    │    │              │   one send, then close│ (single use) │         │
    │    └──────────────┘                       └──────────────┘         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    1. CLIENT CONNECTS
       └── SocketServer accepts, spawns a task with a Connection

    2. READ
       └── One read of up to buffer_size bytes (EOF → just close)

    3. PARSE
       └── Method and path from the first line (never fails)

    4. PIPELINE
       └── redirect / 404 / directory listing / file (+ postprocess) / 500

    5. SEND + CLOSE
       └── HTTPResponse.send() writes once and closes the connection

    6. ACCESS LOG
       └── One line on "staticserver.access"

=============================================================================
"""

import asyncio
import logging
from typing import Optional

from .access_log import RequestLog, log_request
from .config import ServerConfig
from .core import Connection, SocketServer
from .handlers import ContentPipeline, PostprocessorRegistry
from .http import HTTPResponse, HTTPStatus, MimeRegistry, parse_request


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Static content server over HTTP/1.1.

    =========================================================================
    USAGE
    =========================================================================

        config = ServerConfig(
            root_directory="./public",
            redirects={"/old.html": "/new.html"},
        )
        HTTPServer(config).run()          # blocks until Ctrl+C

    From async code (tests, embedding):

        server = HTTPServer(config)
        task = asyncio.create_task(server.serve())
        await server.wait_started()
        host, port = server.address
        ...
        server.shutdown()
        await task

    =========================================================================
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        mime_types: Optional[MimeRegistry] = None,
        postprocessors: Optional[PostprocessorRegistry] = None,
    ):
        """
        Args:
            config: Server configuration. Defaults to ServerConfig().
            mime_types: Extension → Content-Type table. Defaults to the
                        built-in table.
            postprocessors: Extension → transform table. Defaults to
                            Markdown rendering for "md".

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()  # Fail-fast on invalid config

        self._socket_server = SocketServer(self.config)
        self._pipeline = ContentPipeline(
            root_directory=self.config.root_directory,
            redirects=self.config.redirects,
            mime_types=mime_types,
            postprocessors=postprocessors,
        )

    @property
    def pipeline(self) -> ContentPipeline:
        return self._pipeline

    @property
    def address(self) -> tuple[str, int]:
        """Bound (host, port); the real port once started."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self):
        """
        Start the server (blocking).

        Configures logging, then runs the event loop until SIGINT/SIGTERM.
        """
        self._setup_logging()

        try:
            asyncio.run(self.serve())
        except KeyboardInterrupt:
            # Platforms without loop signal handlers
            logger.info("Received keyboard interrupt")

        logger.info("Server stopped")

    async def serve(self):
        """Serve until shutdown() is called."""
        logger.info(
            f"Serving {self.config.root_directory} on "
            f"http://{self.config.host}:{self.config.port}"
        )
        if self.config.redirects:
            logger.info(f"Loaded {len(self.config.redirects)} redirect(s)")

        await self._socket_server.start(self._handle_connection)

    async def wait_started(self):
        """Wait until the listening socket is bound."""
        await self._socket_server.wait_started()

    def shutdown(self):
        """Stop accepting connections; serve() returns shortly after."""
        self._socket_server.shutdown()

    def _setup_logging(self):
        """Configure logging based on config."""
        level = self.config.level

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("staticserver").setLevel(level)

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    async def _handle_connection(self, conn: Connection):
        """
        Serve exactly one request on a connection.

        Called by SocketServer in its own task for every client.

        Args:
            conn: The client connection.
        """
        try:
            raw_request = await conn.read_request()
            if raw_request is None:
                logger.debug(f"[{conn.id}] Client sent nothing, closing")
                return

            request = parse_request(raw_request, conn.address)
            response = HTTPResponse(conn)

            try:
                await self._pipeline.handle(request, response)
            except Exception as e:
                logger.exception(f"[{conn.id}] Handler error: {e}")
                if not response.sent:
                    await response.status(HTTPStatus.INTERNAL_SERVER_ERROR).send()

            log_request(RequestLog.build(conn, request, response), self.config.log_format)
        finally:
            await conn.close()
