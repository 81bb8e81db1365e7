"""Unit tests for the interactive client runner."""

import io

import pytest

from client.runner import (
    PROMPT,
    ExitCode,
    attempt_reconnect,
    confirm_empty_password,
    is_ipv4,
    run_client,
)
from common.message import Packet, encode
from common.protocol import PacketType
from session.rcon import RconSession


def _game_server(packet: Packet) -> list[bytes | OSError]:
    if packet.type == PacketType.AUTH:
        return [
            encode(packet.id, PacketType.RESPONSE_VALUE, b""),
            encode(packet.id, PacketType.AUTH_RESPONSE, b""),
        ]
    return [encode(packet.id, PacketType.RESPONSE_VALUE, b"echo:" + packet.body)]


@pytest.fixture
def session_factory(fake_transport):
    return lambda addr: RconSession(addr, seed=1, transport_factory=lambda _a: fake_transport)


@pytest.mark.unit
class TestHelpers:
    """Tests for address validation and prompts."""

    @pytest.mark.parametrize("text", ["127.0.0.1", "0.0.0.0", "255.255.255.255"])
    def test_valid_ipv4(self, text: str) -> None:
        assert is_ipv4(text) is True

    @pytest.mark.parametrize("text", ["256.0.0.1", "localhost", "1.2.3", "::1", ""])
    def test_invalid_ipv4(self, text: str) -> None:
        assert is_ipv4(text) is False

    @pytest.mark.parametrize("answer,expected", [("y\n", True), ("Y\n", True), ("n\n", False), ("\n", False), ("", False)])
    def test_confirm_empty_password(self, answer: str, expected: bool) -> None:
        out = io.StringIO()
        assert confirm_empty_password(io.StringIO(answer), out) is expected
        assert "(y/N)" in out.getvalue()

    def test_attempt_reconnect_gives_up(self, session, fake_transport) -> None:
        fake_transport.connect_ok = False
        assert attempt_reconnect(session, attempts=3) is False
        assert fake_transport.open_count == 3

    def test_attempt_reconnect_succeeds(self, session) -> None:
        assert attempt_reconnect(session) is True
        assert session.is_connected()


@pytest.mark.unit
class TestRunClient:
    """Tests for run_client exit codes and console output."""

    def test_commands_until_eof(self, address, fake_transport, session_factory) -> None:
        fake_transport.responder = _game_server
        stdin = io.StringIO("status\nplayers\n")
        stdout = io.StringIO()
        code = run_client(address, "secret", stdin, stdout, session_factory)
        assert code == ExitCode.SUCCESS
        output = stdout.getvalue()
        assert "Connection: SUCCESS" in output
        assert "echo:status\n" in output
        assert "echo:players\n" in output
        assert output.count(PROMPT) == 3
        assert fake_transport.is_open is False

    def test_connect_failure(self, address, fake_transport, session_factory) -> None:
        fake_transport.connect_ok = False
        stdout = io.StringIO()
        code = run_client(address, "secret", io.StringIO(""), stdout, session_factory)
        assert code == ExitCode.CONNECT_FAILED
        assert "Connection: FAILED" in stdout.getvalue()

    def test_auth_failure_keeps_console(self, address, fake_transport, session_factory) -> None:
        def respond(packet: Packet) -> list[bytes | OSError]:
            if packet.type == PacketType.AUTH:
                return [encode(packet.id, PacketType.RESPONSE_VALUE, b"")]
            return _game_server(packet)

        fake_transport.responder = respond
        stdout = io.StringIO()
        code = run_client(address, "bad", io.StringIO("status\n"), stdout, session_factory)
        assert code == ExitCode.SUCCESS
        assert "not authenticated" in stdout.getvalue()
        assert "echo:status" in stdout.getvalue()

    def test_drop_during_login_reconnects_before_prompt(
        self, address, fake_transport, session_factory
    ) -> None:
        def respond(packet: Packet) -> list[bytes | OSError]:
            if packet.type == PacketType.AUTH and fake_transport.open_count == 1:
                return [b""]  # server hangs up mid-handshake
            return _game_server(packet)

        fake_transport.responder = respond
        stdout = io.StringIO()
        code = run_client(address, "secret", io.StringIO("status\n"), stdout, session_factory)
        assert code == ExitCode.SUCCESS
        assert fake_transport.open_count == 2
        assert [p.type for p in fake_transport.sent] == [
            PacketType.AUTH,
            PacketType.AUTH,
            PacketType.EXEC_COMMAND,
        ]
        assert "echo:status" in stdout.getvalue()

    def test_drop_during_reauthentication(self, address, fake_transport, session_factory) -> None:
        def respond(packet: Packet) -> list[bytes | OSError]:
            if fake_transport.open_count == 1 and packet.type == PacketType.AUTH:
                return _game_server(packet)
            return [b""]

        fake_transport.responder = respond
        stdout = io.StringIO()
        code = run_client(address, "secret", io.StringIO("status\nstatus\n"), stdout, session_factory)
        assert code == ExitCode.CONNECTION_LOST
        assert fake_transport.open_count == 2
        assert stdout.getvalue().count(PROMPT) == 1

    def test_reconnects_and_reauthenticates(self, address, fake_transport, session_factory, caplog) -> None:
        dropped = []

        def respond(packet: Packet) -> list[bytes | OSError]:
            if packet.body == b"quit" and not dropped:
                dropped.append(packet.id)
                return [b""]  # server hangs up
            return _game_server(packet)

        fake_transport.responder = respond
        stdout = io.StringIO()
        code = run_client(address, "secret", io.StringIO("quit\nstatus\n"), stdout, session_factory)
        assert code == ExitCode.SUCCESS
        assert fake_transport.open_count == 2
        auth_packets = [p for p in fake_transport.sent if p.type == PacketType.AUTH]
        assert len(auth_packets) == 2
        assert "echo:status" in stdout.getvalue()
        assert "may not have reached the server" in caplog.text

    def test_connection_lost(self, address, fake_transport, session_factory) -> None:
        def respond(packet: Packet) -> list[bytes | OSError]:
            if packet.type == PacketType.AUTH:
                return _game_server(packet)
            fake_transport.connect_ok = False
            return [b""]

        fake_transport.responder = respond
        code = run_client(address, "secret", io.StringIO("status\nstatus\n"), io.StringIO(), session_factory)
        assert code == ExitCode.CONNECTION_LOST
