"""
=============================================================================
ACCESS LOG
=============================================================================

One line per answered request, written to the "staticserver.access" logger.

=============================================================================
LOG FORMATS
=============================================================================

    TEXT (default), Apache-style:
    ┌─────────────────────────────────────────────────────────────────────┐
    │ 127.0.0.1 - - [17/Oct/2026:10:55:36 +0000] "GET /a.txt" 200 12 1.42ms│
    │ ─────────────────────────────────────────────────────────────────── │
    │ IP          Timestamp              Method/Path Status Size Duration  │
    └─────────────────────────────────────────────────────────────────────┘

    JSON (for log aggregators):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ {"connection_id": "a1b2c3d4", "method": "GET", "path": "/a.txt",    │
    │  "client_ip": "127.0.0.1", "status_code": 200,                      │
    │  "content_length": 12, "duration_ms": 1.42, "timestamp": "..."}     │
    └─────────────────────────────────────────────────────────────────────┘

The access logger is separate from the module loggers, so it can be routed
on its own:

    logging.getLogger("staticserver.access").addHandler(file_handler)

=============================================================================
"""

import json
import logging
import time
from dataclasses import dataclass, asdict

from .core.connection import Connection
from .http.request import HTTPRequest
from .http.response import HTTPResponse


logger = logging.getLogger("staticserver.access")


@dataclass
class RequestLog:
    """
    Structured log entry for a request.

    connection_id:  Connection.id, ties the line to debug output
    method:         Request method as sent ("" if malformed)
    path:           Request path as sent ("" if malformed)
    client_ip:      Client's IP address
    status_code:    Response status
    content_length: Response body size in bytes
    duration_ms:    Time from accept to response sent
    timestamp:      When the response was sent
    """

    connection_id: str
    method: str
    path: str
    client_ip: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    @classmethod
    def build(
        cls,
        conn: Connection,
        request: HTTPRequest,
        response: HTTPResponse,
    ) -> "RequestLog":
        return cls(
            connection_id=conn.id,
            method=request.method,
            path=request.path,
            client_ip=conn.client_ip,
            status_code=response.status_code,
            content_length=response.body_size,
            duration_ms=conn.age * 1000,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        """Format as an Apache-style access line."""
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )

    def format(self, log_format: str = "text") -> str:
        if log_format == "json":
            return json.dumps(self.to_dict())
        return self.to_text()


def log_request(entry: RequestLog, log_format: str = "text"):
    """Write an entry to the access logger at INFO."""
    logger.info(entry.format(log_format))
