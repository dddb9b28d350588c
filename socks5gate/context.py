import asyncio
import contextlib
import traceback
from contextvars import ContextVar

import click

from . import app
from .container import Container
from .models import ListenNamespace, Outcome
from .transport import StreamTransport

source_addr_var = ContextVar("source_addr", default=("", 0))
inbound_addr_var = ContextVar("inbound_addr", default=("", 0))
remote_addr_var = ContextVar("remote_addr", default=("", 0))
target_var = ContextVar("target", default="")

RELAY_CHUNK = 65536


class ProxyContext:
    stack: contextlib.AsyncExitStack

    def __init__(self, inbound_ns: ListenNamespace):
        self.inbound_ns = inbound_ns
        timeout = inbound_ns.timeout
        if timeout is None:
            timeout = app.settings.timeout
        self.container = Container(
            inbound_ns=inbound_ns,
            timeout=timeout,
            strict_methods=inbound_ns.strict or app.settings.strict_methods,
        )
        self.tasks = set()

    async def create_server(self):
        server = await asyncio.start_server(
            self.tcp_handler, self.inbound_ns.host, self.inbound_ns.port
        )
        return await self.stack.enter_async_context(server)

    async def tcp_handler(self, reader, writer):
        source_addr_var.set(writer.get_extra_info("peername"))
        inbound_addr_var.set(writer.get_extra_info("sockname"))
        transport = StreamTransport(reader, writer)
        try:
            handshake = self.container.handshake(transport)
            result = await handshake.run()
            if result.outcome is not Outcome.connected:
                if result.error is not None and app.settings.verbose > 0:
                    click.secho(
                        f"{self.get_route()} {result.outcome.value}: {result.error}",
                        fg="yellow",
                    )
                return
            target_var.set(str(result.target))
            remote_reader, remote_writer = await asyncio.open_connection(
                result.target.dial_host, result.target.port
            )
            remote_addr_var.set(remote_writer.get_extra_info("peername"))
            if app.settings.verbose > 0:
                print(self.get_route(), flush=True)
            self.create_task(self.relay(reader, writer, remote_reader, remote_writer))
        except Exception as e:
            if app.settings.verbose > 0:
                click.secho(f"{self.get_route()} {e!r}", fg="yellow")
            if app.settings.verbose > 1:
                traceback.print_exc()
            await transport.close()

    async def relay(self, reader, writer, remote_reader, remote_writer):
        try:
            await asyncio.gather(
                self.pipe(reader, remote_writer), self.pipe(remote_reader, writer)
            )
        finally:
            remote_writer.close()
            writer.close()

    @staticmethod
    async def pipe(reader, writer):
        while True:
            data = await reader.read(RELAY_CHUNK)
            if not data:
                break
            writer.write(data)
            await writer.drain()
        if writer.can_write_eof() and not writer.is_closing():
            writer.write_eof()

    @staticmethod
    def get_route():
        s = source_addr_var.get() or ("", 0)
        i = inbound_addr_var.get() or ("", 0)
        r = remote_addr_var.get() or ("", 0)
        t = target_var.get()
        return f"{s[0]}:{s[1]} -> {i[0]}:{i[1]} -> {r[0]}:{r[1]}({t})"

    def task_callback(self, task):
        self.tasks.discard(task)
        try:
            exc = task.exception()
        except asyncio.CancelledError as e:
            if app.settings.verbose > 0:
                click.secho(f"{e!r}", fg="yellow")
            return
        if exc and app.settings.verbose > 0:
            click.secho(f"{self.get_route()} {exc!r}", fg="magenta")
            if app.settings.verbose > 1:
                traceback.print_tb(exc.__traceback__)

    def create_task(self, coro):
        task = asyncio.create_task(coro)
        self.tasks.add(task)
        task.add_done_callback(self.task_callback)
        return task
