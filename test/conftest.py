"""pytest configuration and fixtures for RCON client tests.

Provides:
- FakeTransport: Scripted in-memory transport for session unit tests
- StubRconServer: Minimal threaded TCP server for integration tests
- Markers for unit vs integration tests
"""

import socket
import threading
from collections import deque
from collections.abc import Callable, Generator

import pytest

from common.connection import AllocationError, ServerAddress
from common.message import FrameBuffer, Packet, decode_packet
from session.rcon import RconSession

Responder = Callable[[Packet], list[bytes | OSError]]


def _no_reply(packet: Packet) -> list[bytes | OSError]:
    return []


class FakeTransport:
    """Scripted stand-in for Transport.

    Each item in `inbox` is consumed by one readiness check: bytes make the
    check report ready and are returned by the next recv_one(); an OSError
    instance is raised from poll_readable(). An empty inbox reads as idle.

    `responder` is called for every packet sent and its return value is
    appended to the inbox, so replies can echo the random packet id.
    """

    def __init__(self, address: ServerAddress) -> None:
        self.address = address
        self.responder: Responder = _no_reply
        self.connect_ok = True
        self.open_error: AllocationError | None = None
        self.send_ok = True
        self.inbox: deque[bytes | OSError] = deque()
        self.sent: list[Packet] = []
        self.open_count = 0
        self.close_count = 0
        self.poll_count = 0
        self._ready: bytes | None = None
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        if self.open_error is not None:
            raise self.open_error
        self._open = True
        self.open_count += 1

    def connect_with_timeout(self, timeout_s: float = 2.0) -> bool:
        return self.connect_ok

    def send_all(self, data: bytes) -> bool:
        if not self.send_ok:
            return False
        frames = FrameBuffer().feed(data)
        for frame in frames:
            packet = decode_packet(frame)
            self.sent.append(packet)
            self.inbox.extend(self.responder(packet))
        return True

    def poll_readable(self, timeout_s: float) -> bool:
        self.poll_count += 1
        if not self.inbox:
            return False
        item = self.inbox.popleft()
        if isinstance(item, OSError):
            raise item
        self._ready = item
        return True

    def recv_one(self) -> bytes:
        assert self._ready is not None
        data, self._ready = self._ready, None
        return data

    def close(self) -> None:
        if self._open:
            self.close_count += 1
        self._open = False


class StubRconServer:
    """Single-connection RCON server answering through a responder.

    Runs on a daemon thread; every decoded request is recorded in
    `received` and answered with the frames the responder returns.
    """

    def __init__(self, responder: Callable[[Packet], list[bytes]]) -> None:
        self._responder = responder
        self._listener = socket.create_server(("127.0.0.1", 0))
        self._listener.settimeout(5.0)
        self.address = ServerAddress("127.0.0.1", self._listener.getsockname()[1])
        self.received: list[Packet] = []
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        try:
            conn, _ = self._listener.accept()
        except OSError:
            return

        with conn:
            conn.settimeout(5.0)
            frames = FrameBuffer()
            while True:
                try:
                    data = conn.recv(4096)
                except OSError:
                    return
                if not data:
                    return
                for frame in frames.feed(data):
                    packet = decode_packet(frame)
                    self.received.append(packet)
                    for reply in self._responder(packet):
                        conn.sendall(reply)

    def close(self) -> None:
        self._listener.close()
        self._thread.join(timeout=6.0)


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test (uses loopback TCP)")


@pytest.fixture
def address() -> ServerAddress:
    """Address used by sessions running on a FakeTransport."""
    return ServerAddress("127.0.0.1", 27015)


@pytest.fixture
def fake_transport(address: ServerAddress) -> FakeTransport:
    return FakeTransport(address)


@pytest.fixture
def session(
    address: ServerAddress, fake_transport: FakeTransport
) -> Generator[RconSession, None, None]:
    """Disconnected session wired to fake_transport."""
    s = RconSession(address, seed=1234, transport_factory=lambda _addr: fake_transport)
    yield s
    s.close()


@pytest.fixture
def connected_session(session: RconSession) -> RconSession:
    session.connect()
    assert session.is_connected()
    return session


@pytest.fixture
def rcon_server() -> Generator[Callable[[Callable[[Packet], list[bytes]]], StubRconServer], None, None]:
    """Factory starting a StubRconServer with the given responder.

    Servers are shut down when the test finishes.
    """
    servers: list[StubRconServer] = []

    def start(responder: Callable[[Packet], list[bytes]]) -> StubRconServer:
        server = StubRconServer(responder)
        servers.append(server)
        return server

    yield start

    for server in servers:
        server.close()


@pytest.fixture
def closed_port() -> int:
    """A loopback port with nothing listening on it."""
    with socket.create_server(("127.0.0.1", 0)) as sock:
        return sock.getsockname()[1]
