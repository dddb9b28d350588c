"""Server side of the SOCKS5 handshake (RFC 1928 / RFC 1929)."""
__version__ = "0.1.0"
