"""
pytest configuration and fixtures.
"""

import asyncio
import socket
import threading
from typing import Generator, Optional
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from staticserver import HTTPServer, ServerConfig


PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request as a browser would send it."""
    return (
        b"GET /a.txt HTTP/1.1\r\n"
        b"Host: localhost:3000\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: */*\r\n"
        b"\r\n"
    )


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """
    A small site:

        a.txt           "hello"
        page.html       "<p>page</p>"
        notes.md        "# Title"
        IMAGE.PNG       PNG signature bytes
        sub/b.txt       "bee"
        sub/deeper/     (empty)
    """
    (tmp_path / "a.txt").write_text("hello")
    (tmp_path / "page.html").write_text("<p>page</p>")
    (tmp_path / "notes.md").write_text("# Title\n")
    (tmp_path / "IMAGE.PNG").write_bytes(PNG_BYTES)
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "b.txt").write_text("bee")
    (tmp_path / "sub" / "deeper").mkdir()
    return tmp_path


class FakeConnection:
    """Stands in for core.Connection: records what was sent and closes."""

    def __init__(self, fail_send: bool = False):
        self.sent: list[bytes] = []
        self.close_count = 0
        self.fail_send = fail_send
        self.id = "test0001"
        self.address = ("127.0.0.1", 50000)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def age(self) -> float:
        return 0.001

    @property
    def closed(self) -> bool:
        return self.close_count > 0

    async def send_response(self, data: bytes) -> bool:
        if self.fail_send:
            return False
        self.sent.append(data)
        return True

    async def close(self):
        self.close_count += 1

    # ─────────────────────────────────────────────────────────────────────
    # Inspection helpers
    # ─────────────────────────────────────────────────────────────────────

    @property
    def raw(self) -> bytes:
        assert len(self.sent) == 1, f"expected exactly one send, got {len(self.sent)}"
        return self.sent[0]

    @property
    def head(self) -> str:
        return self.raw.split(b"\r\n\r\n", 1)[0].decode("utf-8")

    @property
    def body(self) -> bytes:
        return self.raw.split(b"\r\n\r\n", 1)[1]

    @property
    def status_line(self) -> str:
        return self.head.split("\r\n")[0]

    @property
    def headers(self) -> dict:
        result = {}
        for line in self.head.split("\r\n")[1:]:
            name, _, value = line.partition(": ")
            result[name] = value
        return result


@pytest.fixture
def fake_connection() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def gone_connection() -> FakeConnection:
    """A connection whose client hung up before the response."""
    return FakeConnection(fail_send=True)


def fetch(port: int, raw_request: bytes) -> bytes:
    """Send raw bytes to the server and read until it closes."""
    with socket.create_connection(("127.0.0.1", port), timeout=5) as s:
        s.sendall(raw_request)
        chunks = []
        while True:
            chunk = s.recv(65536)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


class TestServer:
    """Test server helper that runs the event loop in a background thread."""

    __test__ = False  # not a test class

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._ready = threading.Event()

    @property
    def port(self) -> int:
        return self.server.address[1]

    def _run(self):
        self._loop = asyncio.new_event_loop()

        async def main():
            task = asyncio.create_task(self.server.serve())
            await self.server.wait_started()
            self._ready.set()
            await task

        try:
            self._loop.run_until_complete(main())
        finally:
            self._loop.close()

    def start(self):
        """Start server in background thread and wait for the bind."""
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

        if not self._ready.wait(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        if self._loop is not None and self._loop.is_running():
            self._loop.call_soon_threadsafe(self.server.shutdown)

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def get(self, path: str) -> bytes:
        return fetch(self.port, f"GET {path} HTTP/1.1\r\nHost: localhost\r\n\r\n".encode())


@pytest.fixture
def test_server(site_root: Path) -> Generator[TestServer, None, None]:
    """A running server on a free port, serving site_root."""
    server = HTTPServer(ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        root_directory=str(site_root),
        redirects={"/old.html": "/page.html", "/a.txt-moved": "/a.txt"},
        log_level="WARNING",
    ))

    test_srv = TestServer(server)
    test_srv.start()

    yield test_srv

    test_srv.stop()
