"""Value types shared by the negotiators and their callers.

This module holds the transient data of a single negotiation:
- Credentials offered to the proxy
- The protocol chosen by the host
- The outcome reported back, with a structured failure reason

Example:
    outcome = negotiate(sock, ProtocolSelection.SOCKS5, destination)
    if not outcome.ok:
        print(outcome.failure.kind, outcome.failure.code)
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Final

from proxy_tunnel.core.exceptions import ErrorKind, ProxyError

MAX_CREDENTIAL_LENGTH: Final = 255


class ProtocolSelection(StrEnum):
    """Tunnel protocol used for a socket, chosen by the host."""

    SOCKS5 = "socks5"
    HTTP_CONNECT = "http"


@dataclass(frozen=True)
class Credentials:
    """Username/password pair offered to the proxy.

    An empty username means no authentication is offered.
    """

    username: str
    password: str = ""

    @property
    def offered(self) -> bool:
        return bool(self.username)

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='***')"


@dataclass(frozen=True)
class NegotiationFailure:
    """Why a negotiation failed.

    Attributes:
        kind: Failure category, used for control flow
        message: Human readable description
        code: Raw SOCKS5 reply code or HTTP status, when the proxy sent one
    """

    kind: ErrorKind
    message: str
    code: int | None = None

    @classmethod
    def from_error(cls, error: ProxyError) -> "NegotiationFailure":
        return cls(kind=error.kind, message=error.message, code=error.code)

    def __str__(self) -> str:
        if self.code is not None:
            return f"{self.kind} ({self.code}): {self.message}"
        return f"{self.kind}: {self.message}"


@dataclass(frozen=True)
class NegotiationOutcome:
    """Result of one negotiation: success, or a failure with its reason."""

    failure: NegotiationFailure | None = None

    @classmethod
    def success(cls) -> "NegotiationOutcome":
        return cls()

    @classmethod
    def failed(cls, error: ProxyError) -> "NegotiationOutcome":
        return cls(failure=NegotiationFailure.from_error(error))

    @property
    def ok(self) -> bool:
        return self.failure is None

    def __bool__(self) -> bool:
        return self.ok
