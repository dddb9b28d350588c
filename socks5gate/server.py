import asyncio
import contextlib
import signal


async def run_server(ctx_list):
    loop = asyncio.get_running_loop()
    quit_event = asyncio.Event()
    loop.add_signal_handler(signal.SIGINT, quit_event.set)
    loop.add_signal_handler(signal.SIGTERM, quit_event.set)

    async with contextlib.AsyncExitStack() as stack:
        for ctx in ctx_list:
            ctx.stack = stack
            server = await ctx.create_server()
            for sock in server.sockets:
                host, port = sock.getsockname()[:2]
                print(
                    f"server running at {ctx.inbound_ns} ({host}:{port})", flush=True
                )
        await quit_event.wait()
        for ctx in ctx_list:
            for task in list(ctx.tasks):
                task.cancel()
