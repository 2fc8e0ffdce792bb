"""
Core networking: the asyncio listener and the per-client connection wrapper.
"""

from .connection import Connection, ConnectionState
from .socket_server import SocketServer, ConnectionHandler

__all__ = [
    "Connection",
    "ConnectionState",
    "SocketServer",
    "ConnectionHandler",
]
