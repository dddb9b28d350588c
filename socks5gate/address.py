import ipaddress
from typing import Tuple

from .aiobuffer.socks5 import Atyp
from .models import ResolvedTarget


def format_host(atyp: int, raw: bytes) -> str:
    """
    render DST.ADDR as text, no DNS resolution involved

    >>> format_host(Atyp.ipv4, bytes([93, 184, 216, 34]))
    '93.184.216.34'
    >>> format_host(Atyp.ipv6, bytes(15) + b"\\x01")
    '[0000:0000:0000:0000:0000:0000:0000:0001]'
    >>> format_host(Atyp.domain_name, b"example.com")
    'example.com'
    """
    if atyp == Atyp.ipv4:
        return ".".join(str(b) for b in raw)
    if atyp == Atyp.ipv6:
        groups = (f"{raw[i]:02X}{raw[i + 1]:02X}" for i in range(0, 16, 2))
        return "[" + ":".join(groups) + "]"
    # latin-1 maps every byte to one character, so the name is kept as is
    return bytes(raw).decode("latin-1")


def parse_host(host: str) -> Tuple[Atyp, bytes]:
    """
    >>> parse_host("127.0.0.1")
    (<Atyp.ipv4: 1>, b'\\x7f\\x00\\x00\\x01')
    >>> parse_host("[::1]")[0]
    <Atyp.ipv6: 4>
    >>> parse_host("example.com")
    (<Atyp.domain_name: 3>, b'example.com')
    """
    try:
        address = ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        return Atyp.domain_name, host.encode("latin-1")
    if address.version == 4:
        return Atyp.ipv4, address.packed
    return Atyp.ipv6, address.packed


def format_target(atyp: int, raw: bytes, port: int) -> ResolvedTarget:
    return ResolvedTarget(host=format_host(atyp, raw), port=port)
