"""Shared fixtures for the negotiation tests."""

import os
import tempfile

import pytest

# Keep CLI log files out of the home directory
os.environ.setdefault("PROXY_TUNNEL_LOG_DIR", tempfile.mkdtemp(prefix="proxy_tunnel_logs_"))


class ScriptedSocket:
    """Socket stand-in that serves a fixed byte script to ``recv``.

    Args:
        script: Bytes the "proxy" sends back, in order
        chunk: Largest number of bytes a single ``recv`` returns
        short_write: If set, ``send`` reports this many bytes written
        recv_error: Exception raised once the script is exhausted instead of EOF
    """

    def __init__(
        self,
        script: bytes = b"",
        chunk: int | None = None,
        short_write: int | None = None,
        recv_error: Exception | None = None,
    ) -> None:
        self.script = script
        self.chunk = chunk
        self.short_write = short_write
        self.recv_error = recv_error
        self.sent = bytearray()
        self.sends: list[bytes] = []
        self.consumed = 0
        self.recv_calls = 0

    def send(self, data: bytes) -> int:
        self.sends.append(bytes(data))
        if self.short_write is not None:
            self.sent += data[: self.short_write]
            return self.short_write
        self.sent += data
        return len(data)

    def recv(self, bufsize: int, flags: int = 0) -> bytes:
        self.recv_calls += 1
        remaining = self.script[self.consumed :]
        if not remaining and self.recv_error is not None:
            raise self.recv_error
        size = bufsize if self.chunk is None else min(bufsize, self.chunk)
        data = remaining[:size]
        self.consumed += len(data)
        return data

    @property
    def unread(self) -> bytes:
        return self.script[self.consumed :]


@pytest.fixture
def scripted_socket():
    """Factory for ``ScriptedSocket`` instances."""
    return ScriptedSocket
