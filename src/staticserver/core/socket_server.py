"""
=============================================================================
CONNECTION LISTENER
=============================================================================

Binds the listening socket and hands every accepted connection to the
server's connection handler as its own asyncio task.

=============================================================================
ONE THREAD, MANY CONNECTIONS
=============================================================================

There are no worker threads. A single event loop multiplexes every client:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         EVENT LOOP                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   listening socket ──accept──► task A: read ─► stat ─► send ─► close │
    │          │                                                           │
    │          ├──────────accept──► task B: read ─► (waiting on disk)      │
    │          │                                                           │
    │          └──────────accept──► task C: read ─► scandir ─► send       │
    │                                                                      │
    │   Whenever a task awaits (socket or filesystem), the loop runs       │
    │   another one. A slow client never blocks a fast one.                │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

asyncio.start_server() does bind(), listen() and the accept loop for us and
calls our callback with a (reader, writer) stream pair per client. The
callback is scheduled as a task, so each connection progresses
independently.

=============================================================================
SOCKET OPTIONS
=============================================================================

SO_REUSEADDR:
─────────────
Passed as reuse_address=True. Lets the server restart immediately instead
of waiting out TIME_WAIT:

    server.stop()
    server.start()  # Works immediately, no "Address already in use"

Port 0:
───────
Asks the OS for any free port. The port actually bound is available from
SocketServer.address once started, which is how the integration tests run
without colliding.

=============================================================================
SIGNAL HANDLING FOR GRACEFUL SHUTDOWN
=============================================================================

SIGINT (2):   Sent when user presses Ctrl+C
SIGTERM (15): Sent by docker stop, systemd stop, kill command

Both are registered with loop.add_signal_handler() so that the handler
runs inside the loop and can simply set the shutdown event. On platforms
without add_signal_handler (Windows) Ctrl+C surfaces as KeyboardInterrupt
and is handled by HTTPServer.run().

=============================================================================
"""

import asyncio
import signal
import logging
from typing import Awaitable, Callable, Optional

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


ConnectionHandler = Callable[[Connection], Awaitable[None]]

# Seconds to wait for open connections when stopping
SHUTDOWN_TIMEOUT = 5.0


class SocketServer:
    """
    Asyncio TCP listener.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      SocketServer Internals                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    start(handler)                                                    │
    │        │                                                             │
    │        ├──► asyncio.start_server()   bind + listen                   │
    │        ├──► _setup_signals()         SIGTERM/SIGINT → shutdown()     │
    │        ├──► _started.set()           tests may connect now           │
    │        │                                                             │
    │        └──► await _shutdown_event    (serves until shutdown)         │
    │                 │                                                    │
    │                 └──► per client: _on_client(reader, writer)          │
    │                          Connection(...)                             │
    │                          await handler(conn)                         │
    │                                                                      │
    │    shutdown()        set the event, start() returns                  │
    │    _cleanup()        stop listening, restore signals                 │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        async def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        await server.start(handle_connection)  # Returns after shutdown()
    """

    def __init__(self, config: ServerConfig):
        """
        Args:
            config: Server configuration (host, port, backlog, buffer_size).

        Nothing is bound until start().
        """
        self.config = config

        self._server: Optional[asyncio.AbstractServer] = None
        self._running = False

        # Created inside start() so they belong to the running loop
        self._shutdown_event: Optional[asyncio.Event] = None
        self._started: Optional[asyncio.Event] = None

        self._signals: list[int] = []

    @property
    def is_running(self) -> bool:
        """Check if server is running."""
        return self._running

    @property
    def address(self) -> tuple[str, int]:
        """
        The bound (host, port).

        Before start(), or when the listener has no sockets, this is the
        configured address. After start() it is the real one, which matters
        when the configured port was 0.
        """
        if self._server is not None and self._server.sockets:
            sockname = self._server.sockets[0].getsockname()
            return (sockname[0], sockname[1])
        return (self.config.host, self.config.port)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def start(self, connection_handler: ConnectionHandler):
        """
        Bind, listen and serve until shutdown() is called.

        Args:
            connection_handler: Coroutine function run once per accepted
                                connection. It owns the connection and is
                                expected to close it.

        Raises:
            OSError: If the address cannot be bound.
        """
        self._shutdown_event = asyncio.Event()
        self._started = asyncio.Event()

        async def on_client(reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
            await self._on_client(reader, writer, connection_handler)

        try:
            self._server = await asyncio.start_server(
                on_client,
                host=self.config.host,
                port=self.config.port,
                backlog=self.config.backlog,
                reuse_address=True,
            )
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            raise

        self._running = True
        self._setup_signals()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")
        self._started.set()

        try:
            await self._shutdown_event.wait()
        finally:
            await self._cleanup()

    async def wait_started(self):
        """Wait until the listener is bound. For tests and embedding."""
        while self._started is None:
            await asyncio.sleep(0)
        await self._started.wait()

    def shutdown(self):
        """
        Initiate graceful shutdown. Safe to call more than once and before
        start() has bound anything.
        """
        if not self._running:
            return
        logger.info("Shutting down socket server...")
        self._running = False
        if self._shutdown_event is not None:
            self._shutdown_event.set()

    async def _cleanup(self):
        self._running = False
        self._restore_signals()

        if self._server is not None:
            self._server.close()
            try:
                # Newer Pythons also wait here for clients still connected
                await asyncio.wait_for(self._server.wait_closed(), timeout=SHUTDOWN_TIMEOUT)
            except asyncio.TimeoutError:
                logger.warning(
                    f"Connections still open after {SHUTDOWN_TIMEOUT:.0f}s, abandoning them"
                )
            self._server = None

        logger.info("Socket server stopped")

    # =========================================================================
    # PER-CONNECTION TASK
    # =========================================================================

    async def _on_client(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        connection_handler: ConnectionHandler,
    ):
        """
        Wrap the stream pair and run the handler.

        Anything the handler lets escape is logged with its traceback and
        the connection is closed; the listener itself keeps going.
        """
        peer = writer.get_extra_info("peername") or ("", 0)
        conn = Connection(
            reader=reader,
            writer=writer,
            address=(peer[0], peer[1]),
            buffer_size=self.config.buffer_size,
        )

        logger.debug(f"[{conn.id}] Accepted connection from {conn.client_ip}:{peer[1]}")

        try:
            await connection_handler(conn)
        except Exception as e:
            logger.exception(f"[{conn.id}] Connection error: {e}")
        finally:
            await conn.close()

    # =========================================================================
    # SIGNALS
    # =========================================================================

    def _setup_signals(self):
        """Route SIGTERM and SIGINT to shutdown() where the loop supports it."""
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
            except (NotImplementedError, RuntimeError, ValueError):
                # Windows, or not running in the main thread
                continue
            self._signals.append(sig)

    def _on_signal(self, signum: int):
        logger.info(f"Received {signal.Signals(signum).name}, initiating shutdown...")
        self.shutdown()

    def _restore_signals(self):
        """Remove the handlers installed by _setup_signals()."""
        if not self._signals:
            return
        loop = asyncio.get_running_loop()
        for sig in self._signals:
            loop.remove_signal_handler(sig)
        self._signals.clear()
