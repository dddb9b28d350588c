import asyncio

import pytest

from socks5gate.aiobuffer import socks5
from socks5gate.aiobuffer.buffer import TransportBuffer
from socks5gate.aiobuffer.socks5 import AuthMethod, AuthStatus, Atyp, Rep
from socks5gate.exceptions import (
    ProtocolVersionMismatch,
    ShortRead,
    UnknownAddressType,
)
from socks5gate.transport import BytesTransport

DEFAULT_REPLY = bytes.fromhex("05000001000000000000")


def decode(func, data):
    transport = BytesTransport(data)
    return asyncio.run(func(TransportBuffer(transport))), transport


def test_greeting():
    greeting, transport = decode(socks5.decode_greeting, b"\x05\x02\x00\x02")
    assert greeting.ver == 5
    assert greeting.nmethods == 2
    assert greeting.methods == [0, 2]
    assert len(transport) == 0


def test_greeting_foreign_version_is_decoded():
    greeting, _ = decode(socks5.decode_greeting, b"\x04\x01\x00")
    assert greeting.ver == 4


def test_greeting_short_read():
    with pytest.raises(ShortRead) as exc_info:
        decode(socks5.decode_greeting, b"\x05\x03\x00")
    assert exc_info.value.expected == 3
    assert exc_info.value.received == 1


def test_method_selection():
    assert socks5.encode_method_selection(AuthMethod.no_auth) == b"\x05\x00"
    assert socks5.encode_method_selection(AuthMethod.user_auth) == b"\x05\x02"


def test_method_selection_as_two_bytes():
    data = socks5.encode_method_selection(AuthMethod.user_auth)
    pair, _ = decode(lambda buffer: buffer.pull("BB"), data)
    assert pair == (5, AuthMethod.user_auth)
    selection, _ = decode(lambda buffer: buffer.pull(socks5.MethodSelection), data)
    assert selection.method is AuthMethod.user_auth


def test_auth_request():
    request, transport = decode(
        socks5.decode_auth_request, b"\x01\x05alice\x06secret"
    )
    assert request.username == b"alice"
    assert request.password == b"secret"
    # version, ulen, uname, plen, passwd
    assert transport.receive_calls == 5


def test_auth_request_short_password():
    with pytest.raises(ShortRead):
        decode(socks5.decode_auth_request, b"\x01\x05alice\x06sec")


def test_auth_request_bad_version():
    with pytest.raises(ProtocolVersionMismatch) as exc_info:
        decode(socks5.decode_auth_request, b"\x05\x05alice\x06secret")
    assert exc_info.value.expected == 1
    assert exc_info.value.actual == 5


def test_auth_reply():
    assert socks5.encode_auth_reply(AuthStatus.succeeded) == b"\x01\x00"
    assert socks5.encode_auth_reply(AuthStatus.failure) == b"\x01\x01"


def test_connection_request_ipv4():
    data = b"\x05\x01\x00\x01" + bytes([93, 184, 216, 34]) + b"\x00\x50"
    request, _ = decode(socks5.decode_connection_request, data)
    assert request.cmd == socks5.Cmd.connect
    assert request.rsv == 0
    assert request.addr.atyp == Atyp.ipv4
    assert request.addr.host == bytes([93, 184, 216, 34])
    assert request.addr.port == 80


def test_connection_request_port_is_big_endian():
    data = b"\x05\x01\x00\x03\x0bexample.com\x1f\x90"
    request, _ = decode(socks5.decode_connection_request, data)
    assert request.addr.host == b"example.com"
    assert request.addr.port == 8080


def test_connection_request_ipv6():
    data = b"\x05\x01\x00\x04" + bytes(15) + b"\x01" + b"\x01\xbb"
    request, _ = decode(socks5.decode_connection_request, data)
    assert request.addr.host == bytes(15) + b"\x01"
    assert request.addr.port == 443


def test_connection_request_empty_domain():
    request, _ = decode(socks5.decode_connection_request, b"\x05\x01\x00\x03\x00\x00\x50")
    assert request.addr.host == b""
    assert request.addr.port == 80


def test_connection_request_unknown_address_type():
    with pytest.raises(UnknownAddressType) as exc_info:
        decode(socks5.decode_connection_request, b"\x05\x01\x00\x02abcd\x00\x50")
    assert exc_info.value.atyp == 2


def test_connection_request_unknown_command_is_kept():
    data = b"\x05\x09\x00\x01\x7f\x00\x00\x01\x00\x50"
    request, _ = decode(socks5.decode_connection_request, data)
    assert request.cmd == 9


def test_connection_request_truncated_port():
    with pytest.raises(ShortRead):
        decode(socks5.decode_connection_request, b"\x05\x01\x00\x01\x7f\x00\x00\x01\x00")


@pytest.mark.parametrize(
    "addr",
    [
        b"\x01" + bytes([10, 0, 0, 1]),
        b"\x03\x03" + b"a.b",
        b"\x03\xff" + b"x" * 255,
        b"\x04" + bytes(range(16)),
    ],
)
def test_reply_keeps_version_and_reserved(addr):
    request, _ = decode(
        socks5.decode_connection_request, b"\x05\x01\x00" + addr + b"\x04\x38"
    )
    reply = socks5.encode_connection_reply(
        Rep.succeeded, request.addr.atyp, request.addr.host, request.addr.port
    )
    assert reply[0] == 5
    assert reply[2] == 0
    assert reply[3:] == addr + b"\x04\x38"


def test_default_reply():
    assert socks5.encode_connection_reply(Rep.succeeded) == DEFAULT_REPLY
    reply = socks5.encode_connection_reply(Rep.command_not_supported)
    assert reply == bytes.fromhex("05070001000000000000")


def test_every_reply_code():
    assert [int(rep) for rep in Rep] == list(range(9))
    for rep in Rep:
        reply = socks5.encode_connection_reply(rep)
        assert reply[1] == rep
        assert reply[3:] == DEFAULT_REPLY[3:]


def test_reply_with_bound_address():
    reply = socks5.encode_connection_reply(
        Rep.succeeded, Atyp.ipv4, b"\x7f\x00\x00\x01", 80
    )
    assert reply == b"\x05\x00\x00\x01\x7f\x00\x00\x01\x00\x50"
    reply = socks5.encode_connection_reply(
        Rep.host_unreachable, Atyp.domain_name, b"example.com", 443
    )
    assert reply == b"\x05\x04\x00\x03\x0bexample.com\x01\xbb"


def test_reply_rejects_malformed_address():
    with pytest.raises(ValueError):
        socks5.encode_connection_reply(Rep.succeeded, Atyp.ipv4, b"\x00" * 5, 0)
    with pytest.raises(ValueError):
        socks5.encode_connection_reply(Rep.succeeded, Atyp.domain_name, b"x" * 256, 0)
    with pytest.raises(UnknownAddressType):
        socks5.encode_connection_reply(Rep.succeeded, 2, b"\x00" * 4, 0)


def test_supported_methods():
    assert socks5.SUPPORTED_METHODS == {AuthMethod.no_auth, AuthMethod.user_auth}
    assert isinstance(socks5.SUPPORTED_METHODS, frozenset)
