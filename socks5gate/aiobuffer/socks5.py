# references:
# rfc1928(SOCKS Protocol Version 5): https://www.ietf.org/rfc/rfc1928.txt
# rfc1929(Username/Password Authentication for SOCKS V5):
# https://tools.ietf.org/html/rfc1929
# handshake                                   server selection
# +----+----------+----------+                +----+--------+
# |VER | NMETHODS | METHODS  |                |VER | METHOD |
# +----+----------+----------+                +----+--------+
# | 1  |    1     | 1 to 255 |                | 1  |   1    |
# +----+----------+----------+                +----+--------+
# Username/Password Authentication            auth reply
# +----+------+----------+------+----------+  +----+--------+
# |VER | ULEN |  UNAME   | PLEN |  PASSWD  |  |VER | STATUS |
# +----+------+----------+------+----------+  +----+--------+
# | 1  |  1   | 1 to 255 |  1   | 1 to 255 |  | 1  |   1    |
# +----+------+----------+------+----------+  +----+--------+
# request
# +----+-----+-------+------+----------+----------+
# |VER | CMD |  RSV  | ATYP | DST.ADDR | DST.PORT |
# +----+-----+-------+------+----------+----------+
# | 1  |  1  | X'00' |  1   | Variable |    2     |
# +----+-----+-------+------+----------+----------+
# reply
# +----+-----+-------+------+----------+----------+
# |VER | REP |  RSV  | ATYP | BND.ADDR | BND.PORT |
# +----+-----+-------+------+----------+----------+
# | 1  |  1  | X'00' |  1   | Variable |    2     |
# +----+-----+-------+------+----------+----------+
import enum

from ..exceptions import ProtocolVersionMismatch, UnknownAddressType
from . import buffer as schema
from .buffer import TransportBuffer

VERSION = 5
AUTH_VERSION = 1


class AuthMethod(enum.IntEnum):
    no_auth = 0
    gssapi = 1
    user_auth = 2
    private = 0x80
    no_acceptable_method = 0xFF


class Cmd(enum.IntEnum):
    connect = 1
    bind = 2
    associate = 3


class Atyp(enum.IntEnum):
    ipv4 = 1
    domain_name = 3
    ipv6 = 4


class Rep(enum.IntEnum):
    succeeded = 0
    general_failure = 1
    not_allowed = 2
    network_unreachable = 3
    host_unreachable = 4
    connection_refused = 5
    ttl_expired = 6
    command_not_supported = 7
    address_type_not_supported = 8


class AuthStatus(enum.IntEnum):
    succeeded = 0
    failure = 1


# methods this server is able to select
SUPPORTED_METHODS = frozenset({AuthMethod.no_auth, AuthMethod.user_auth})


class Addr(schema.BinarySchema):
    atyp = schema.u8
    host = schema.Switch(
        "atyp",
        {
            Atyp.ipv4: schema.Bytes(4),
            Atyp.domain_name: schema.LengthPrefixedBytes(schema.u8),
            Atyp.ipv6: schema.Bytes(16),
        },
        error=UnknownAddressType,
    )
    port = schema.u16be

    @classmethod
    def unspecified(cls):
        return cls(Atyp.ipv4, b"\x00\x00\x00\x00", 0)


# version is checked by the caller, a foreign version is not an error here
class Greeting(schema.BinarySchema):
    ver = schema.u8
    methods = schema.Convert(
        schema.LengthPrefixedBytes(schema.u8), encode=bytes, decode=list
    )

    @property
    def nmethods(self) -> int:
        return len(self.methods)


class MethodSelection(schema.BinarySchema):
    ver = schema.MustEqual(schema.u8, VERSION, ProtocolVersionMismatch)
    method = schema.SizedIntEnum(schema.u8, AuthMethod)


class AuthRequest(schema.BinarySchema):
    auth_ver = schema.MustEqual(schema.u8, AUTH_VERSION, ProtocolVersionMismatch)
    username = schema.LengthPrefixedBytes(schema.u8)
    password = schema.LengthPrefixedBytes(schema.u8)


class AuthReply(schema.BinarySchema):
    auth_ver = schema.MustEqual(schema.u8, AUTH_VERSION, ProtocolVersionMismatch)
    status = schema.SizedIntEnum(schema.u8, AuthStatus)


# cmd stays a plain byte: unknown commands get COMMAND_NOT_SUPPORTED too
class ConnectionRequest(schema.BinarySchema):
    ver = schema.MustEqual(schema.u8, VERSION, ProtocolVersionMismatch)
    cmd = schema.u8
    rsv = schema.u8
    addr = Addr


class ConnectionReply(schema.BinarySchema):
    ver = schema.MustEqual(schema.u8, VERSION, ProtocolVersionMismatch)
    rep = schema.SizedIntEnum(schema.u8, Rep)
    rsv = schema.MustEqual(schema.u8, 0)
    bind_addr = Addr


async def decode_greeting(buffer: TransportBuffer) -> Greeting:
    return await buffer.pull(Greeting)


def encode_method_selection(method: AuthMethod) -> bytes:
    return MethodSelection(..., method).binary


async def decode_auth_request(buffer: TransportBuffer) -> AuthRequest:
    return await buffer.pull(AuthRequest)


def encode_auth_reply(status: AuthStatus) -> bytes:
    return AuthReply(..., status).binary


async def decode_connection_request(buffer: TransportBuffer) -> ConnectionRequest:
    return await buffer.pull(ConnectionRequest)


def encode_connection_reply(
    rep: Rep, atyp: Atyp = None, address: bytes = None, port: int = None
) -> bytes:
    """``atyp``/``address``/``port`` describe the bound address; without
    them the reply carries 0.0.0.0:0"""
    if atyp is None:
        bind_addr = Addr.unspecified()
    else:
        bind_addr = Addr(atyp, address, port or 0)
    return ConnectionReply(..., rep, ..., bind_addr).binary
