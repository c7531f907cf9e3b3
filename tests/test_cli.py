import pytest
from typer.testing import CliRunner

from proxy_tunnel.cmd import cli

runner = CliRunner()


class FakeProxySocket:
    """Connected socket that answers a SOCKS5 handshake, then echoes a line."""

    def __init__(self, script: bytes) -> None:
        self.script = script
        self.sent = b""

    def send(self, data):
        self.sent += data
        return len(data)

    def sendall(self, data):
        self.sent += data

    def recv(self, bufsize, flags=0):
        data, self.script = self.script[:bufsize], self.script[bufsize:]
        return data

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def connect_to(monkeypatch):
    calls = []

    def install(script: bytes | None = None, error: Exception | None = None):
        def create_connection(address, timeout=None):
            calls.append((address, timeout))
            if error is not None:
                raise error
            return FakeProxySocket(script)

        monkeypatch.setattr(cli.socket, "create_connection", create_connection)
        return calls

    return install


def test_probe_success(connect_to):
    calls = connect_to(b"\x05\x00\x05\x00\x00\x01" + b"\x00" * 6)

    result = runner.invoke(
        cli.app, ["probe", "--proxy", "socks5://127.0.0.1:1080", "--target", "example.com:443"]
    )

    assert result.exit_code == 0, result.output
    assert "tunnel established" in result.output
    assert calls == [(("127.0.0.1", 1080), 10.0)]


def test_probe_send_through_tunnel(connect_to):
    connect_to(b"HTTP/1.1 200 OK\r\n\r\nSSH-2.0-test")

    result = runner.invoke(
        cli.app,
        ["probe", "--proxy", "http://proxy:3128", "-t", "example.com:22", "--send", "hi"],
    )

    assert result.exit_code == 0, result.output
    assert "SSH-2.0-test" in result.output


def test_probe_rejected(connect_to):
    connect_to(b"HTTP/1.1 403 Forbidden\r\n\r\n")

    result = runner.invoke(
        cli.app, ["probe", "--proxy", "http://proxy:3128", "--target", "example.com:443"]
    )

    assert result.exit_code == 1
    assert "upstream_rejected" in result.output
    assert "403" in result.output


def test_probe_proxy_from_environment(connect_to):
    calls = connect_to(b"\x05\x00\x05\x00\x00\x01" + b"\x00" * 6)

    result = runner.invoke(
        cli.app,
        ["probe", "--target", "example.com:443"],
        env={"PROXY_TUNNEL_PROXY": "socks5://10.0.0.2"},
    )

    assert result.exit_code == 0, result.output
    assert calls[0][0] == ("10.0.0.2", 1080)


def test_probe_unreachable_proxy(connect_to):
    connect_to(error=ConnectionRefusedError("refused"))

    result = runner.invoke(
        cli.app, ["probe", "--proxy", "socks5://127.0.0.1:1", "--target", "example.com:443"]
    )

    assert result.exit_code == 1
    assert "Could not reach proxy" in result.output


def test_probe_bad_url(connect_to):
    calls = connect_to()

    result = runner.invoke(
        cli.app, ["probe", "--proxy", "ftp://host", "--target", "example.com:443"]
    )

    assert result.exit_code == 2
    assert calls == []
