import ipaddress

import pytest

from proxy_tunnel.core.address import DomainAddr, IPv4Addr, IPv6Addr
from proxy_tunnel.core.exceptions import (
    AddressTooLong,
    AuthRejected,
    CredentialsTooLong,
    MethodNotAccepted,
    ProtocolViolation,
    TransportError,
    UpstreamRejected,
)
from proxy_tunnel.core.lib.socks5 import (
    Socks5Negotiator,
    build_auth_request,
    build_connect_request,
    build_method_request,
)
from proxy_tunnel.core.lib.transport import Transport
from proxy_tunnel.core.models import Credentials

METHOD_NO_AUTH_REPLY = b"\x05\x00"
METHOD_USERPASS_REPLY = b"\x05\x02"
AUTH_OK = b"\x01\x00"
IPV4_SUCCESS = b"\x05\x00\x00\x01" + b"\x7f\x00\x00\x01" + b"\x04\x38"
IPV6_SUCCESS = b"\x05\x00\x00\x04" + b"\x00" * 15 + b"\x01" + b"\x04\x38"

DESTINATION = DomainAddr("example.com", 443)


def negotiator(sock, credentials=None):
    return Socks5Negotiator(Transport(sock), credentials)


def test_build_method_request():
    assert build_method_request([0]) == b"\x05\x01\x00"
    assert build_method_request([0, 2]) == b"\x05\x02\x00\x02"


def test_build_auth_request():
    assert build_auth_request(Credentials("user", "pw")) == b"\x01\x04user\x02pw"


def test_build_connect_request():
    assert build_connect_request(DESTINATION) == b"\x05\x01\x00\x03\x0bexample.com\x01\xbb"


def test_connect_without_auth(scripted_socket):
    sock = scripted_socket(METHOD_NO_AUTH_REPLY + IPV4_SUCCESS + b"payload")

    negotiator(sock).connect(DESTINATION)

    assert sock.sends == [
        b"\x05\x01\x00",
        b"\x05\x01\x00\x03\x0bexample.com\x01\xbb",
    ]
    assert sock.unread == b"payload"


def test_ipv4_reply_consumes_exactly_ten_bytes(scripted_socket):
    sock = scripted_socket(METHOD_NO_AUTH_REPLY + IPV4_SUCCESS + b"extra")

    negotiator(sock).connect(IPv4Addr(ipaddress.IPv4Address("10.1.2.3"), 80))

    assert sock.consumed == len(METHOD_NO_AUTH_REPLY) + 4 + 6


def test_ipv6_reply_drains_bound_address(scripted_socket):
    sock = scripted_socket(METHOD_NO_AUTH_REPLY + IPV6_SUCCESS + b"x", chunk=3)

    negotiator(sock).connect(IPv6Addr(ipaddress.IPv6Address("::1"), 80))

    assert sock.consumed == len(METHOD_NO_AUTH_REPLY) + 4 + 18
    assert sock.unread == b"x"


def test_connect_with_auth(scripted_socket):
    sock = scripted_socket(METHOD_USERPASS_REPLY + AUTH_OK + IPV4_SUCCESS)

    negotiator(sock, Credentials("alice", "s3cret")).connect(DESTINATION)

    assert sock.sends[0] == b"\x05\x02\x00\x02"
    assert sock.sends[1] == b"\x01\x05alice\x06s3cret"
    assert sock.sends[2].startswith(b"\x05\x01\x00\x03")


def test_credentials_offered_but_no_auth_selected(scripted_socket):
    sock = scripted_socket(METHOD_NO_AUTH_REPLY + IPV4_SUCCESS)

    negotiator(sock, Credentials("alice", "s3cret")).connect(DESTINATION)

    assert len(sock.sends) == 2


def test_empty_username_offers_no_auth(scripted_socket):
    sock = scripted_socket(METHOD_NO_AUTH_REPLY + IPV4_SUCCESS)

    negotiator(sock, Credentials("", "ignored")).connect(DESTINATION)

    assert sock.sends[0] == b"\x05\x01\x00"


@pytest.mark.parametrize("reply", [METHOD_USERPASS_REPLY, b"\x05\xff"])
def test_auth_required_without_credentials(scripted_socket, reply):
    sock = scripted_socket(reply)

    with pytest.raises(MethodNotAccepted) as exc_info:
        negotiator(sock).connect(DESTINATION)

    assert exc_info.value.code == reply[1]
    assert len(sock.sends) == 1


def test_bad_version_in_method_reply(scripted_socket):
    with pytest.raises(ProtocolViolation):
        negotiator(scripted_socket(b"\x04\x00")).connect(DESTINATION)


@pytest.mark.parametrize("reply", [b"\x01\x01", b"\x02\x00"])
def test_auth_rejected(scripted_socket, reply):
    sock = scripted_socket(METHOD_USERPASS_REPLY + reply)

    with pytest.raises(AuthRejected):
        negotiator(sock, Credentials("alice", "wrong")).connect(DESTINATION)

    assert len(sock.sends) == 2


def test_upstream_rejection_keeps_reply_code(scripted_socket):
    sock = scripted_socket(METHOD_NO_AUTH_REPLY + b"\x05\x05\x00\x01" + b"\x00" * 6)

    with pytest.raises(UpstreamRejected) as exc_info:
        negotiator(sock).connect(DESTINATION)

    assert exc_info.value.code == 0x05


def test_unknown_reply_address_type(scripted_socket):
    sock = scripted_socket(METHOD_NO_AUTH_REPLY + b"\x05\x00\x00\x03" + b"\x00" * 10)

    with pytest.raises(ProtocolViolation):
        negotiator(sock).connect(DESTINATION)


def test_bad_version_in_connect_reply(scripted_socket):
    sock = scripted_socket(METHOD_NO_AUTH_REPLY + b"\x04\x00\x00\x01" + b"\x00" * 6)

    with pytest.raises(ProtocolViolation):
        negotiator(sock).connect(DESTINATION)


def test_truncated_bound_address(scripted_socket):
    sock = scripted_socket(METHOD_NO_AUTH_REPLY + b"\x05\x00\x00\x01\x7f\x00")

    with pytest.raises(TransportError):
        negotiator(sock).connect(DESTINATION)


def test_long_domain_rejected_before_io(scripted_socket):
    sock = scripted_socket(METHOD_NO_AUTH_REPLY + IPV4_SUCCESS)

    with pytest.raises(AddressTooLong):
        negotiator(sock).connect(DomainAddr("a" * 256, 443))

    assert sock.sends == []
    assert sock.consumed == 0


def test_long_password_rejected_before_io(scripted_socket):
    sock = scripted_socket(METHOD_USERPASS_REPLY)

    with pytest.raises(CredentialsTooLong):
        negotiator(sock, Credentials("alice", "p" * 256)).connect(DESTINATION)

    assert sock.sends == []


def test_short_write_of_greeting(scripted_socket):
    with pytest.raises(TransportError):
        negotiator(scripted_socket(short_write=1)).connect(DESTINATION)
