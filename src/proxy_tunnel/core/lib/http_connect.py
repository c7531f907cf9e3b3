"""HTTP CONNECT tunnel negotiation.

Sends a ``CONNECT host:port HTTP/1.1`` request, with a ``Basic``
``Proxy-Authorization`` header when a username is given, and reads the
response headers one byte at a time so nothing past the blank line that ends
them is consumed. The read is bounded: a proxy that never finishes its
headers cannot keep the negotiation reading forever.
"""

import re
from typing import Final

from loguru import logger

from proxy_tunnel.core.address import Address, to_host_port
from proxy_tunnel.core.exceptions import ProtocolViolation, ResponseTooLarge, UpstreamRejected
from proxy_tunnel.core.lib.base64_codec import basic_auth_token
from proxy_tunnel.core.lib.transport import RecvMode, Transport
from proxy_tunnel.core.models import Credentials

HEADER_TERMINATOR: Final = b"\r\n\r\n"
MAX_RESPONSE_SIZE: Final = 1024
HTTP_OK: Final = 200

STATUS_LINE_RE: Final = re.compile(rb"HTTP/1\.(\d) (\d{3})(?: [^\r\n]*)?")


def build_connect_request(destination: Address, credentials: Credentials | None = None) -> bytes:
    """Build the full CONNECT request, blank line included."""
    host_port = to_host_port(destination)
    lines = [
        f"CONNECT {host_port} HTTP/1.1",
        f"Host: {host_port}",
    ]
    if credentials and credentials.offered:
        token = basic_auth_token(credentials.username, credentials.password)
        lines.append(f"Proxy-Authorization: Basic {token}")
    return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")


def parse_status_line(response: bytes) -> int:
    """Extract the status code from a response head.

    Raises:
        ProtocolViolation: If the first line is not ``HTTP/1.x NNN ...``
    """
    status_line = response.split(b"\r\n", 1)[0]
    match = STATUS_LINE_RE.fullmatch(status_line)
    if not match:
        raise ProtocolViolation(f"Malformed status line: {status_line[:64]!r}")
    return int(match.group(2))


class HttpConnectNegotiator:
    """Client side of an HTTP CONNECT tunnel."""

    def __init__(
        self,
        transport: Transport,
        credentials: Credentials | None = None,
        max_response_size: int = MAX_RESPONSE_SIZE,
    ) -> None:
        self.transport = transport
        self.credentials = credentials
        self.max_response_size = max_response_size

    def connect(self, destination: Address) -> None:
        """Negotiate a tunnel to ``destination``.

        Raises:
            ProxyError: Subclass describing the first failure
        """
        request = build_connect_request(destination, self.credentials)
        logger.debug(f"Sending HTTP CONNECT for {destination}")
        self.transport.send(request)

        status = parse_status_line(self._read_response_head())
        if status != HTTP_OK:
            raise UpstreamRejected(f"Proxy answered CONNECT with status {status}", status)

    def _read_response_head(self) -> bytes:
        response = bytearray()
        while len(response) < self.max_response_size:
            response += self.transport.recv(1, RecvMode.PARTIAL)
            if response.endswith(HEADER_TERMINATOR):
                logger.debug(f"Read {len(response)} byte response head")
                return bytes(response)
        raise ResponseTooLarge(
            f"No end of headers within {self.max_response_size} bytes"
        )
