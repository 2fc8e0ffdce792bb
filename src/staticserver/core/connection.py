"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps the asyncio stream pair for one client with the three operations the
server needs: read the request, write the response, close.

=============================================================================
ONE READ = ONE REQUEST
=============================================================================

TCP is a byte stream. A request *can* arrive split over several reads:

    recv() → "GET /doc"
    recv() → "s/ HTTP/1.1\r\n\r\n"

This server does not reassemble. It performs a single read of up to
buffer_size bytes and treats whatever came back as the whole request. For
a browser or curl sending a short GET on a fresh connection the request line
virtually always lands in the first segment, and the request line is all we
parse. Clients that dribble bytes will see a 404 for the truncated path.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──────► READING ──────► PROCESSING ──────► WRITING
     │             │                                  │
     │             ▼                                  ▼
     └──────────► CLOSING ◄───────────────────────────┘
                    │
                    ▼
                  CLOSED

No KEEP_ALIVE state: every connection serves exactly one response and is
then closed.

=============================================================================
TOLERATING DEAD PEERS
=============================================================================

Filesystem work can take a while, and the client may hang up before we are
done. Writing to a closed socket raises ConnectionResetError or
BrokenPipeError. Those are caught here, logged at WARNING and reported as
False, so a vanished client never takes the server down with it.

=============================================================================
"""

import asyncio
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states, used for logging and close handling."""

    NEW = "new"                # Just accepted
    READING = "reading"        # Waiting for request bytes
    PROCESSING = "processing"  # Request handed to the content pipeline
    WRITING = "writing"        # Sending the response
    CLOSING = "closing"        # Close in progress
    CLOSED = "closed"          # Transport released


@dataclass
class Connection:
    """
    One accepted client connection.

    Attributes:
        reader: asyncio stream reader for the client socket.
        writer: asyncio stream writer for the client socket.
        address: Client's (ip, port) tuple.
        id: Short random identifier used in log lines.
        state: Current connection state.
        created_at: Time the connection was accepted.
        buffer_size: Maximum bytes taken by the single request read.
    """

    reader: asyncio.StreamReader
    writer: asyncio.StreamWriter
    address: tuple[str, int] = ("", 0)

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    buffer_size: int = 65536

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0]

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    @property
    def is_closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    # =========================================================================
    # READING
    # =========================================================================

    async def read_request(self) -> Optional[bytes]:
        """
        Read the request with a single read on the stream.

        Returns:
            The bytes received, or None if the client closed the connection
            (or reset it) before sending anything.
        """
        self.state = ConnectionState.READING

        try:
            data = await self.reader.read(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError) as e:
            logger.debug(f"[{self.id}] Read failed: {e}")
            return None

        if not data:
            return None  # EOF: client went away without a request

        self.state = ConnectionState.PROCESSING
        return data

    # =========================================================================
    # WRITING
    # =========================================================================

    async def send_response(self, data: bytes) -> bool:
        """
        Write response bytes and wait until they are flushed.

        Args:
            data: Complete serialized response.

        Returns:
            True if the write succeeded, False if the client is gone.
        """
        if self.is_closed:
            logger.warning(f"[{self.id}] Send on closed connection dropped")
            return False

        self.state = ConnectionState.WRITING

        try:
            self.writer.write(data)
            # drain() is where a dead peer actually surfaces as an error
            await self.writer.drain()
            return True
        except (ConnectionResetError, BrokenPipeError, OSError) as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    async def close(self):
        """
        Close the connection. Safe to call more than once.

        writer.close() sends FIN once buffered data is flushed;
        wait_closed() waits for the transport to be released. Errors from a
        peer that already disconnected are ignored.
        """
        if self.state in (ConnectionState.CLOSING, ConnectionState.CLOSED):
            return

        self.state = ConnectionState.CLOSING

        try:
            self.writer.close()
            await self.writer.wait_closed()
        except (ConnectionResetError, BrokenPipeError, OSError):
            pass  # Peer already gone

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age * 1000:.1f}ms")
