class Socks5Error(Exception):
    ...


class ProtocolVersionMismatch(Socks5Error):
    def __init__(self, expected: int, actual: int):
        super().__init__(f"expect version {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class TransportError(Socks5Error):
    ...


class ShortRead(TransportError):
    def __init__(self, expected: int, received: int = 0):
        super().__init__(f"expect {expected} bytes, got {received}")
        self.expected = expected
        self.received = received


class ReadTimeout(ShortRead):
    def __init__(self, expected: int, timeout: int):
        TransportError.__init__(
            self, f"timed out after {timeout}ms waiting for {expected} bytes"
        )
        self.expected = expected
        self.received = 0
        self.timeout = timeout


class SendFailed(TransportError):
    ...


class UnknownAddressType(Socks5Error):
    def __init__(self, atyp: int):
        super().__init__(f"unknown address type {atyp:#04x}")
        self.atyp = atyp


class UnsupportedCommand(Socks5Error):
    def __init__(self, cmd: int):
        super().__init__(f"only support connect command now, got {cmd:#04x}")
        self.cmd = cmd


class AuthenticationFailed(Socks5Error):
    ...


class NoAcceptableMethod(Socks5Error):
    def __init__(self, method: int, offered):
        super().__init__(f"method {method:#04x} not in offered {list(offered)}")
        self.method = method
        self.offered = offered
