"""Blocking send/receive primitive over a caller-owned socket.

Both negotiators talk to the proxy exclusively through ``Transport``. It adds
no timeouts of its own: read and write deadlines belong to the socket, and a
socket timeout surfaces here as a ``TransportError`` like any other failure.
"""

import socket
from enum import Enum
from typing import Protocol

from loguru import logger

from proxy_tunnel.core.exceptions import TransportError


class SocketLike(Protocol):
    """The subset of ``socket.socket`` used by the transport."""

    def send(self, data: bytes, /) -> int: ...

    def recv(self, bufsize: int, flags: int = ..., /) -> bytes: ...


class RecvMode(Enum):
    """How ``Transport.recv`` waits for data."""

    EXACT = "exact"  # block until exactly ``count`` bytes arrived
    PARTIAL = "partial"  # return as soon as any data is available


class Transport:
    """Blocking byte transport over a connected stream socket."""

    def __init__(self, sock: SocketLike | socket.socket) -> None:
        self.sock = sock

    def send(self, data: bytes) -> int:
        """Send ``data`` with a single call; a short write is an error.

        Returns:
            int: Number of bytes written (always ``len(data)``)

        Raises:
            TransportError: On a short write or socket error
        """
        try:
            written = self.sock.send(data)
        except OSError as e:
            raise TransportError(f"Send failed: {e}") from e
        if written != len(data):
            raise TransportError(f"Short write: {written} of {len(data)} bytes sent")
        logger.debug(f"Sent {written} bytes")
        return written

    def recv(self, count: int, mode: RecvMode = RecvMode.EXACT) -> bytes:
        """Receive up to ``count`` bytes.

        Args:
            count: Number of bytes wanted
            mode: ``EXACT`` to wait for all of them, ``PARTIAL`` to return
                whatever a single read yields

        Raises:
            TransportError: If the peer closes early or the socket fails
        """
        if mode is RecvMode.PARTIAL:
            chunk = self._recv_once(count)
            if not chunk:
                raise TransportError("Connection closed by proxy")
            return chunk

        data = bytearray()
        while len(data) < count:
            chunk = self._recv_once(count - len(data))
            if not chunk:
                raise TransportError(
                    f"Connection closed after {len(data)} of {count} bytes"
                )
            data += chunk
        return bytes(data)

    def recv_exact(self, count: int) -> bytes:
        return self.recv(count, RecvMode.EXACT)

    def _recv_once(self, count: int) -> bytes:
        try:
            return self.sock.recv(count)
        except OSError as e:
            raise TransportError(f"Receive failed: {e}") from e
