"""Main entry point for proxy tunnel negotiation.

This module is the boundary between the host application and the
negotiators. It accepts a connected socket, the protocol chosen by the host,
a destination and optional credentials, and always returns a
``NegotiationOutcome``: errors raised inside the negotiators never escape.

The module abstracts away:
- Destination normalization (tagged addresses or native socket addresses)
- Dispatch to the SOCKS5 or HTTP CONNECT negotiator
- Conversion of negotiation errors into failure values

Example:
    from proxy_tunnel.core.tunnel import negotiate

    sock = socket.create_connection(("127.0.0.1", 1080))
    outcome = negotiate(sock, ProtocolSelection.SOCKS5, DomainAddr("example.com", 443))
    if outcome:
        sock.sendall(b"GET / HTTP/1.1\\r\\nHost: example.com\\r\\n\\r\\n")
"""

import socket
from typing import Any

from loguru import logger

from proxy_tunnel.core.address import coerce_address
from proxy_tunnel.core.exceptions import ProxyError
from proxy_tunnel.core.lib import HttpConnectNegotiator, Socks5Negotiator, Transport
from proxy_tunnel.core.lib.transport import SocketLike
from proxy_tunnel.core.models import Credentials, NegotiationOutcome, ProtocolSelection


def negotiate(
    sock: SocketLike | socket.socket,
    protocol: ProtocolSelection,
    destination: Any,
    credentials: Credentials | None = None,
) -> NegotiationOutcome:
    """Negotiate a tunnel to ``destination`` over ``sock``.

    Args:
        sock: Connected stream socket to the upstream proxy
        protocol: Protocol spoken by the proxy
        destination: ``Address`` value, or a ``(family, sockaddr)`` pair
        credentials: Optional username/password

    Returns:
        NegotiationOutcome: Success, or a failure with a structured reason
    """
    try:
        address = coerce_address(destination)
        transport = Transport(sock)
        match ProtocolSelection(protocol):
            case ProtocolSelection.SOCKS5:
                Socks5Negotiator(transport, credentials).connect(address)
            case ProtocolSelection.HTTP_CONNECT:
                HttpConnectNegotiator(transport, credentials).connect(address)
    except ProxyError as e:
        outcome = NegotiationOutcome.failed(e)
        logger.warning(f"{protocol} negotiation to {destination} failed: {outcome.failure}")
        return outcome

    logger.debug(f"{protocol} tunnel to {address} established")
    return NegotiationOutcome.success()


def socks5_connect(
    sock: SocketLike | socket.socket,
    destination: Any,
    credentials: Credentials | None = None,
) -> NegotiationOutcome:
    """Negotiate a SOCKS5 tunnel, see ``negotiate``."""
    return negotiate(sock, ProtocolSelection.SOCKS5, destination, credentials)


def http_connect(
    sock: SocketLike | socket.socket,
    destination: Any,
    credentials: Credentials | None = None,
) -> NegotiationOutcome:
    """Negotiate an HTTP CONNECT tunnel, see ``negotiate``."""
    return negotiate(sock, ProtocolSelection.HTTP_CONNECT, destination, credentials)


__all__ = ["http_connect", "negotiate", "socks5_connect"]
