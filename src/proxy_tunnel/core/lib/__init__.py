"""Core negotiation library components."""

from .http_connect import HttpConnectNegotiator
from .socks5 import Socks5Negotiator
from .transport import RecvMode, Transport

__all__ = [
    "HttpConnectNegotiator",
    "RecvMode",
    "Socks5Negotiator",
    "Transport",
]
