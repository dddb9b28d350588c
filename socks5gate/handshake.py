import contextlib
from typing import Optional

from .address import format_target
from .aiobuffer import socks5
from .aiobuffer.buffer import TransportBuffer
from .aiobuffer.socks5 import AuthMethod, AuthStatus, Cmd, Rep
from .auth import Authenticator
from .exceptions import (
    AuthenticationFailed,
    NoAcceptableMethod,
    Socks5Error,
    UnsupportedCommand,
)
from .models import HandshakeResult, Outcome, State
from .transport import Transport

# the client was answered before these were raised
REJECTIONS = (AuthenticationFailed, NoAcceptableMethod, UnsupportedCommand)


class Handshake:
    """Server side of one SOCKS5 handshake, one instance per connection.

    The method is picked from configuration alone: USERNAME/PASSWORD when an
    authenticator is given, NO-AUTH otherwise. The methods offered by the
    client are kept on ``greeting`` and are only consulted when
    ``strict_methods`` is set, in which case an unoffered method is answered
    with NO ACCEPTABLE METHODS.

    ``run`` closes the transport on every path except a CONNECT success,
    where it is left open for the caller to relay over.
    """

    def __init__(
        self,
        transport: Transport,
        authenticator: Optional[Authenticator] = None,
        timeout: int = None,
        strict_methods: bool = False,
    ):
        self.transport = transport
        self.buffer = TransportBuffer(transport)
        self.authenticator = authenticator
        self.strict_methods = strict_methods
        self.state = State.start
        self.greeting = None
        self.method = None
        self.request = None
        self.target = None
        if timeout is not None:
            transport.settimeout(timeout)

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.state.value} {self.transport!r}>"

    def select_method(self) -> AuthMethod:
        if self.authenticator is None:
            return AuthMethod.no_auth
        return AuthMethod.user_auth

    async def run(self) -> HandshakeResult:
        async with contextlib.AsyncExitStack() as stack:
            stack.push_async_callback(self.transport.close)
            try:
                outcome = await self._negotiate()
            except REJECTIONS as e:
                return self._result(Outcome.rejected, e)
            except Socks5Error as e:
                self.state = State.aborted
                return self._result(Outcome.aborted, e)
            if outcome is Outcome.connected:
                self.state = State.done
                stack.pop_all()
            return self._result(outcome)

    def _result(self, outcome: Outcome, error: Exception = None) -> HandshakeResult:
        return HandshakeResult(
            outcome=outcome,
            state=self.state,
            target=self.target if outcome is Outcome.connected else None,
            error=error,
        )

    async def _negotiate(self) -> Outcome:
        self.greeting = await socks5.decode_greeting(self.buffer)
        self.state = State.methods_received
        if self.greeting.ver != socks5.VERSION:
            return Outcome.not_socks5

        self.method = self.select_method()
        if self.strict_methods and self.method not in self.greeting.methods:
            await self.transport.send(
                socks5.encode_method_selection(AuthMethod.no_acceptable_method)
            )
            raise NoAcceptableMethod(self.method, self.greeting.methods)
        await self.transport.send(socks5.encode_method_selection(self.method))
        self.state = State.method_sent

        if self.method is AuthMethod.user_auth:
            await self._authenticate()

        self.request = await socks5.decode_connection_request(self.buffer)
        self.state = State.request_received
        if self.request.cmd != Cmd.connect:
            await self.transport.send(
                socks5.encode_connection_reply(Rep.command_not_supported)
            )
            self.state = State.replied
            raise UnsupportedCommand(self.request.cmd)

        addr = self.request.addr
        self.target = format_target(addr.atyp, addr.host, addr.port)
        await self.transport.send(socks5.encode_connection_reply(Rep.succeeded))
        self.state = State.replied
        return Outcome.connected

    async def _authenticate(self):
        auth_request = await socks5.decode_auth_request(self.buffer)
        self.state = State.auth_received
        status = self.authenticator.verify(auth_request.username, auth_request.password)
        await self.transport.send(socks5.encode_auth_reply(status))
        self.state = State.auth_replied
        if status is not AuthStatus.succeeded:
            raise AuthenticationFailed(
                f"bad credentials for user {auth_request.username!r}"
            )


async def handshake(
    transport: Transport,
    username: str = None,
    password: str = None,
    timeout: int = None,
    strict_methods: bool = False,
) -> HandshakeResult:
    authenticator = Authenticator.from_credentials(username, password)
    return await Handshake(transport, authenticator, timeout, strict_methods).run()
