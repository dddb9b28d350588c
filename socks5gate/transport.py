import abc
import asyncio

from .exceptions import ReadTimeout, SendFailed, ShortRead

DEFAULT_TIMEOUT = 1000  # milliseconds


class Transport(abc.ABC):
    """Byte stream the handshake runs over.
    If you plug in your own stream, you must inherit from it"""

    timeout: int = DEFAULT_TIMEOUT

    def settimeout(self, timeout: int = None):
        "set the per-connection timeout in milliseconds"
        self.timeout = DEFAULT_TIMEOUT if timeout is None else timeout

    @abc.abstractmethod
    async def receive(self, nbytes: int) -> bytes:
        "return *exactly* ``nbytes`` or raise ShortRead/ReadTimeout"

    @abc.abstractmethod
    async def send(self, data: bytes) -> None:
        "write all of ``data`` or raise SendFailed"

    @abc.abstractmethod
    async def close(self) -> None:
        ...


class StreamTransport(Transport):
    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        timeout: int = None,
    ):
        self.reader = reader
        self.writer = writer
        self.settimeout(timeout)

    def __repr__(self):
        peername = self.writer.get_extra_info("peername")
        sockname = self.writer.get_extra_info("sockname")
        peer = f"{peername[0]}:{peername[1]}" if peername else ""
        sock = f"{sockname[0]}:{sockname[1]}" if sockname else ""
        return f"{self.__class__.__name__}({peer} -> {sock})"

    async def receive(self, nbytes: int) -> bytes:
        try:
            return await asyncio.wait_for(
                self.reader.readexactly(nbytes), self.timeout / 1000
            )
        except asyncio.IncompleteReadError as e:
            raise ShortRead(nbytes, len(e.partial)) from e
        except asyncio.TimeoutError as e:
            raise ReadTimeout(nbytes, self.timeout) from e
        except OSError as e:
            raise ShortRead(nbytes) from e

    async def send(self, data: bytes) -> None:
        try:
            self.writer.write(data)
            await asyncio.wait_for(self.writer.drain(), self.timeout / 1000)
        except (OSError, asyncio.TimeoutError) as e:
            raise SendFailed(f"send {len(data)} bytes failed: {e!r}") from e

    async def close(self) -> None:
        if self.writer.is_closing():
            return
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except OSError:
            pass


class BytesTransport(Transport):
    """in-memory transport: ``receive`` consumes ``data``, ``send`` appends to
    ``sent``.

    >>> import asyncio
    >>> t = BytesTransport(b"\\x05\\x01\\x00")
    >>> asyncio.run(t.receive(2))
    b'\\x05\\x01'
    """

    def __init__(self, data: bytes = b"", timeout: int = None, fail_send=False):
        self._buf = bytearray(data)
        self.sent = bytearray()
        self.closed = False
        self.receive_calls = 0
        self.fail_send = fail_send
        self.settimeout(timeout)

    def __len__(self):
        return len(self._buf)

    def __repr__(self):
        return f"BytesTransport<{bytes(self._buf)}>"

    async def receive(self, nbytes: int) -> bytes:
        self.receive_calls += 1
        if len(self._buf) < nbytes:
            received = len(self._buf)
            del self._buf[:]
            raise ShortRead(nbytes, received)
        result = bytes(self._buf[:nbytes])
        del self._buf[:nbytes]
        return result

    async def send(self, data: bytes) -> None:
        if self.closed or self.fail_send:
            raise SendFailed("transport closed")
        self.sent.extend(data)

    async def close(self) -> None:
        self.closed = True
