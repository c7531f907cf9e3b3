"""Custom exceptions for proxy tunnel negotiation.

This module defines the exceptions raised while negotiating a tunnel with an
upstream proxy. Every exception carries an ``ErrorKind`` so it can be turned
into a plain failure value at the public boundary:
- Transport failures (short writes, closed or failed reads)
- Protocol violations (bad version bytes, unknown address types, bad status lines)
- Authentication and method selection failures
- Explicit rejections by the upstream proxy, with the raw status/reply code
- Local rejections of addresses and credentials before any I/O

Example:
    try:
        fragment = to_socks5_fragment(address)
    except AddressTooLong as e:
        logger.warning(f"Cannot tunnel to {address}: {e}")
"""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Closed set of negotiation failure categories."""

    TRANSPORT_ERROR = "transport_error"
    PROTOCOL_VIOLATION = "protocol_violation"
    AUTH_REJECTED = "auth_rejected"
    METHOD_NOT_ACCEPTED = "method_not_accepted"
    UPSTREAM_REJECTED = "upstream_rejected"
    ADDRESS_TOO_LONG = "address_too_long"
    UNSUPPORTED_ADDRESS_FAMILY = "unsupported_address_family"
    RESPONSE_TOO_LARGE = "response_too_large"
    CREDENTIALS_TOO_LONG = "credentials_too_long"


class ProxyError(Exception):
    """Base exception for proxy negotiation errors."""

    kind: ErrorKind = ErrorKind.PROTOCOL_VIOLATION

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class TransportError(ProxyError):
    """Raised when a send is short or a receive fails before completion."""

    kind = ErrorKind.TRANSPORT_ERROR


class ProtocolViolation(ProxyError):
    """Raised when the proxy sends a structurally invalid reply."""

    kind = ErrorKind.PROTOCOL_VIOLATION


class AuthRejected(ProxyError):
    """Raised when SOCKS5 username/password authentication fails."""

    kind = ErrorKind.AUTH_REJECTED


class MethodNotAccepted(ProxyError):
    """Raised when the proxy selects a SOCKS5 method that was not offered."""

    kind = ErrorKind.METHOD_NOT_ACCEPTED


class UpstreamRejected(ProxyError):
    """Raised when the proxy declines the connection.

    The raw SOCKS5 reply code or HTTP status code is kept in ``code``.
    """

    kind = ErrorKind.UPSTREAM_REJECTED

    def __init__(self, message: str, code: int) -> None:
        super().__init__(message, code)


class AddressTooLong(ProxyError):
    """Raised when a domain name does not fit in 255 bytes."""

    kind = ErrorKind.ADDRESS_TOO_LONG


class UnsupportedAddressFamily(ProxyError):
    """Raised for destinations that are neither IPv4, IPv6 nor a domain."""

    kind = ErrorKind.UNSUPPORTED_ADDRESS_FAMILY


class ResponseTooLarge(ProxyError):
    """Raised when the HTTP header terminator is not found within the read bound."""

    kind = ErrorKind.RESPONSE_TOO_LARGE


class CredentialsTooLong(ProxyError):
    """Raised when a SOCKS5 username or password exceeds 255 bytes."""

    kind = ErrorKind.CREDENTIALS_TOO_LONG
