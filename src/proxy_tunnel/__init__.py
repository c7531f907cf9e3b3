"""SOCKS5 and HTTP CONNECT tunnel negotiation over caller-owned sockets."""

import pathlib
import tomllib


def get_version() -> str:
    """Read version from pyproject.toml."""
    # Start from the current file's directory
    current_dir = pathlib.Path(__file__).parent
    # Look for pyproject.toml in parent directories
    for parent in [current_dir] + list(current_dir.parents):
        pyproject_path = parent / "pyproject.toml"
        if pyproject_path.exists():
            with pyproject_path.open("rb") as f:
                pyproject_data = tomllib.load(f)
            return pyproject_data["project"]["version"]
    
    # Fallback version if file not found
    return "0.0.0"


__version__ = get_version()

from proxy_tunnel.core.address import DomainAddr, IPv4Addr, IPv6Addr  # noqa: E402
from proxy_tunnel.core.models import (  # noqa: E402
    Credentials,
    NegotiationFailure,
    NegotiationOutcome,
    ProtocolSelection,
)
from proxy_tunnel.core.tunnel import http_connect, negotiate, socks5_connect  # noqa: E402

__all__ = [
    "Credentials",
    "DomainAddr",
    "IPv4Addr",
    "IPv6Addr",
    "NegotiationFailure",
    "NegotiationOutcome",
    "ProtocolSelection",
    "__version__",
    "http_connect",
    "negotiate",
    "socks5_connect",
]
