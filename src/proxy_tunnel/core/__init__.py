"""Core tunnel negotiation implementation.

This package contains the core components of the tunnel negotiator:
- Destination address types and their wire forms
- The blocking transport over a caller-owned socket
- SOCKS5 and HTTP CONNECT negotiators
- Outcome and error types
- Proxy URL configuration parsing

The core package has no knowledge of how sockets are created or which proxy
is chosen; those decisions belong to the host application.
"""
