"""Destination addresses and their proxy wire forms.

This module defines the closed set of destination address variants and
converts them to the two forms the negotiators need:
- A "host:port" authority for HTTP CONNECT
- The SOCKS5 ``ATYP || DST.ADDR || DST.PORT`` request fragment

Addresses can come from a tagged ``Address`` value or from a native Python
socket address (``family`` plus the tuple returned by ``getpeername()``).

Example:
    address = address_from_sockaddr(socket.AF_INET, ("93.184.216.34", 443))
    to_socks5_fragment(address)  # b"\\x01]\\xb8\\xd8\\"\\x01\\xbb"
"""

import ipaddress
import socket
from dataclasses import dataclass
from typing import Any, Final

from proxy_tunnel.core.exceptions import AddressTooLong, UnsupportedAddressFamily
from proxy_tunnel.core.wire import MAX_U16, WireBuffer

# SOCKS5 address types
ATYP_IPV4: Final = 0x01
ATYP_DOMAIN: Final = 0x03
ATYP_IPV6: Final = 0x04

MAX_DOMAIN_LENGTH: Final = 255

# ATYP + length prefix + domain + port
MAX_FRAGMENT_SIZE: Final = 1 + 1 + MAX_DOMAIN_LENGTH + 2


def _check_port(port: int) -> None:
    if not 0 <= port <= MAX_U16:
        raise ValueError(f"Port {port} is outside 0-65535")


@dataclass(frozen=True)
class IPv4Addr:
    """IPv4 destination.

    Attributes:
        ip: 4-byte IPv4 address
        port: Destination port
    """

    ip: ipaddress.IPv4Address
    port: int

    def __post_init__(self) -> None:
        _check_port(self.port)


@dataclass(frozen=True)
class IPv6Addr:
    """IPv6 destination.

    Attributes:
        ip: 16-byte IPv6 address
        port: Destination port
    """

    ip: ipaddress.IPv6Address
    port: int

    def __post_init__(self) -> None:
        _check_port(self.port)


@dataclass(frozen=True)
class DomainAddr:
    """Domain name destination, passed to the proxy unresolved.

    Attributes:
        name: Domain name (at most 255 bytes once encoded)
        port: Destination port
    """

    name: str
    port: int

    def __post_init__(self) -> None:
        _check_port(self.port)

    @property
    def encoded(self) -> bytes:
        return self.name.encode("utf-8")


Address = IPv4Addr | IPv6Addr | DomainAddr


def make_address(host: str, port: int) -> Address:
    """Build an address from a textual host, detecting IP literals."""
    try:
        ip = ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        return DomainAddr(host, port)
    if isinstance(ip, ipaddress.IPv4Address):
        return IPv4Addr(ip, port)
    return IPv6Addr(ip, port)


def address_from_sockaddr(family: int, sockaddr: tuple) -> Address:
    """Convert a native socket address into an ``Address``.

    Args:
        family: Address family (``socket.AF_INET`` or ``socket.AF_INET6``)
        sockaddr: Tuple as returned by ``getpeername()`` for that family

    Raises:
        UnsupportedAddressFamily: For any other family, or a malformed address
    """
    try:
        if family == socket.AF_INET:
            host, port = sockaddr[:2]
            return IPv4Addr(ipaddress.IPv4Address(host), port)
        if family == socket.AF_INET6:
            host, port = sockaddr[:2]
            # Drop any "%scope" suffix, the proxy has no use for it
            return IPv6Addr(ipaddress.IPv6Address(str(host).split("%", 1)[0]), port)
    except (ValueError, TypeError) as e:
        raise UnsupportedAddressFamily(
            f"Malformed address {sockaddr!r} for family {family!r}: {e}"
        ) from e
    raise UnsupportedAddressFamily(f"Unsupported address family: {family!r}")


def address_from_socket(sock: socket.socket) -> Address:
    """Return the peer address of a connected socket."""
    return address_from_sockaddr(sock.family, sock.getpeername())


def coerce_address(value: Any) -> Address:
    """Accept either an ``Address`` or a native ``(family, sockaddr)`` pair."""
    if isinstance(value, IPv4Addr | IPv6Addr | DomainAddr):
        return value
    if isinstance(value, tuple) and len(value) == 2 and isinstance(value[1], tuple):
        family, sockaddr = value
        return address_from_sockaddr(family, sockaddr)
    raise UnsupportedAddressFamily(f"Unsupported destination: {value!r}")


def _checked_domain(address: DomainAddr) -> bytes:
    encoded = address.encoded
    if len(encoded) > MAX_DOMAIN_LENGTH:
        raise AddressTooLong(
            f"Domain name is {len(encoded)} bytes, limit is {MAX_DOMAIN_LENGTH}"
        )
    return encoded


def to_host_port(address: Address) -> str:
    """Format an address as an HTTP CONNECT authority ("host:port")."""
    match address:
        case IPv4Addr(ip=ip, port=port):
            return f"{ip}:{port}"
        case IPv6Addr(ip=ip, port=port):
            return f"[{ip}]:{port}"
        case DomainAddr(port=port):
            _checked_domain(address)
            return f"{address.name}:{port}"
        case _:
            raise UnsupportedAddressFamily(f"Unsupported destination: {address!r}")


def to_socks5_fragment(address: Address) -> bytes:
    """Serialize ``ATYP || DST.ADDR || DST.PORT`` for a SOCKS5 request.

    Raises:
        AddressTooLong: If a domain name exceeds 255 bytes
    """
    buffer = WireBuffer(MAX_FRAGMENT_SIZE)
    match address:
        case IPv4Addr(ip=ip):
            buffer.write_u8(ATYP_IPV4).write(ip.packed)
        case IPv6Addr(ip=ip):
            buffer.write_u8(ATYP_IPV6).write(ip.packed)
        case DomainAddr():
            buffer.write_u8(ATYP_DOMAIN).write_prefixed(_checked_domain(address))
        case _:
            raise UnsupportedAddressFamily(f"Unsupported destination: {address!r}")
    buffer.write_u16(address.port)
    return bytes(buffer)


__all__ = [
    "Address",
    "DomainAddr",
    "IPv4Addr",
    "IPv6Addr",
    "address_from_socket",
    "address_from_sockaddr",
    "coerce_address",
    "make_address",
    "to_host_port",
    "to_socks5_fragment",
]
