"""SOCKS5 client negotiation (RFC 1928, RFC 1929).

This module drives the client side of a SOCKS5 handshake on an already
connected socket:
- Method negotiation (no-auth, optionally username/password)
- Username/password sub-negotiation
- CONNECT request for the destination
- Reply parsing, draining the bound address that follows it

The exchange is strictly sequential and stops at the first failure. Local
checks on the destination and the credentials run before anything is sent.

Example:
    negotiator = Socks5Negotiator(Transport(sock), Credentials("user", "pass"))
    negotiator.connect(DomainAddr("example.com", 443))
"""

from typing import Final

from loguru import logger

from proxy_tunnel.core.address import (
    ATYP_IPV4,
    ATYP_IPV6,
    Address,
    to_socks5_fragment,
)
from proxy_tunnel.core.exceptions import (
    AuthRejected,
    CredentialsTooLong,
    MethodNotAccepted,
    ProtocolViolation,
    UpstreamRejected,
)
from proxy_tunnel.core.lib.transport import Transport
from proxy_tunnel.core.models import MAX_CREDENTIAL_LENGTH, Credentials
from proxy_tunnel.core.wire import WireBuffer

# SOCKS protocol constants
SOCKS_VERSION: Final = 5
CONNECT_CMD: Final = 1
RESERVED: Final = 0

# Authentication methods
METHOD_NO_AUTH: Final = 0x00
METHOD_USERNAME_PASSWORD: Final = 0x02
METHOD_NO_ACCEPTABLE: Final = 0xFF

# Username/password sub-negotiation
AUTH_VERSION: Final = 1
AUTH_SUCCESS: Final = 0

# Reply codes
RESP_SUCCESS: Final = 0

# Bound address bytes following the reply header: address + port
BOUND_ADDR_SIZES: Final = {
    ATYP_IPV4: 4 + 2,
    ATYP_IPV6: 16 + 2,
}

REPLY_HEADER_SIZE: Final = 4
# VER + CMD + RSV + ATYP + length + 255-byte domain + port
REQUEST_MAX_SIZE: Final = 3 + 1 + 1 + 255 + 2
# VER + ULEN + UNAME + PLEN + PASSWD
AUTH_REQUEST_MAX_SIZE: Final = 1 + 1 + MAX_CREDENTIAL_LENGTH + 1 + MAX_CREDENTIAL_LENGTH


def build_method_request(methods: list[int]) -> bytes:
    """Build the greeting ``VER NMETHODS METHODS...``."""
    buffer = WireBuffer(2 + len(methods))
    buffer.write_u8(SOCKS_VERSION).write_u8(len(methods))
    for method in methods:
        buffer.write_u8(method)
    return bytes(buffer)


def build_auth_request(credentials: Credentials) -> bytes:
    """Build the RFC 1929 ``VER ULEN UNAME PLEN PASSWD`` request.

    Raises:
        CredentialsTooLong: If the username or password exceeds 255 bytes
    """
    username = credentials.username.encode("utf-8")
    password = credentials.password.encode("utf-8")
    for field, value in (("Username", username), ("Password", password)):
        if len(value) > MAX_CREDENTIAL_LENGTH:
            raise CredentialsTooLong(
                f"{field} is {len(value)} bytes, limit is {MAX_CREDENTIAL_LENGTH}"
            )

    buffer = WireBuffer(AUTH_REQUEST_MAX_SIZE)
    buffer.write_u8(AUTH_VERSION).write_prefixed(username).write_prefixed(password)
    return bytes(buffer)


def build_connect_request(destination: Address) -> bytes:
    """Build ``VER CMD RSV`` followed by the destination fragment."""
    buffer = WireBuffer(REQUEST_MAX_SIZE)
    buffer.write_u8(SOCKS_VERSION).write_u8(CONNECT_CMD).write_u8(RESERVED)
    buffer.write(to_socks5_fragment(destination))
    return bytes(buffer)


class Socks5Negotiator:
    """Client side of a SOCKS5 CONNECT handshake."""

    def __init__(self, transport: Transport, credentials: Credentials | None = None) -> None:
        self.transport = transport
        self.credentials = credentials if credentials and credentials.offered else None

    @property
    def methods(self) -> list[int]:
        """Methods offered in the greeting."""
        if self.credentials:
            return [METHOD_NO_AUTH, METHOD_USERNAME_PASSWORD]
        return [METHOD_NO_AUTH]

    def connect(self, destination: Address) -> None:
        """Negotiate a tunnel to ``destination``.

        Returns normally once the proxy confirmed the connection and the
        whole reply was consumed.

        Raises:
            ProxyError: Subclass describing the first failure
        """
        request = build_connect_request(destination)
        auth_request = build_auth_request(self.credentials) if self.credentials else None

        method = self._negotiate_method()
        if method == METHOD_USERNAME_PASSWORD and auth_request is not None:
            self._authenticate(auth_request)

        logger.debug(f"Sending SOCKS5 CONNECT for {destination}")
        self.transport.send(request)
        self._read_reply()

    def _negotiate_method(self) -> int:
        offered = self.methods
        self.transport.send(build_method_request(offered))

        version, method = self.transport.recv_exact(2)
        if version != SOCKS_VERSION:
            raise ProtocolViolation(f"Unexpected SOCKS version in method reply: {version}")
        if method == METHOD_NO_ACCEPTABLE:
            raise MethodNotAccepted("Proxy accepted none of the offered methods", code=method)
        if method not in offered:
            raise MethodNotAccepted(
                f"Proxy selected method 0x{method:02x}, offered "
                f"{', '.join(f'0x{m:02x}' for m in offered)}",
                code=method,
            )
        logger.debug(f"SOCKS5 method 0x{method:02x} selected")
        return method

    def _authenticate(self, auth_request: bytes) -> None:
        self.transport.send(auth_request)

        version, status = self.transport.recv_exact(2)
        if version != AUTH_VERSION or status != AUTH_SUCCESS:
            raise AuthRejected(
                f"Authentication rejected (version {version}, status {status})",
                code=status,
            )
        logger.debug("SOCKS5 authentication succeeded")

    def _read_reply(self) -> None:
        version, reply, _, atyp = self.transport.recv_exact(REPLY_HEADER_SIZE)
        if version != SOCKS_VERSION:
            raise ProtocolViolation(f"Unexpected SOCKS version in reply: {version}")
        if reply != RESP_SUCCESS:
            raise UpstreamRejected(f"Proxy rejected CONNECT with reply 0x{reply:02x}", reply)

        size = BOUND_ADDR_SIZES.get(atyp)
        if size is None:
            raise ProtocolViolation(f"Unknown address type in reply: 0x{atyp:02x}")
        # Bound address is not used, only drained
        self.transport.recv_exact(size)
