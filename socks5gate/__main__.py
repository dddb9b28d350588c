import click
import uvloop

from . import app
from .context import ProxyContext
from .server import run_server
from .urlparser import grammar, parse_url

url_format = "socks5://[username:password@][host]:port[#key1=value1,...]"


class URLParamType(click.ParamType):
    name = "url"

    def convert(self, value, param, ctx):
        try:
            return parse_url(value)
        except Exception as e:
            self.fail(
                f"bad url format: {e}\nrules:\n{grammar}",
                param,
                ctx,
            )


URL = URLParamType()


def validate_urls(ctx, param, urls):
    for url in urls:
        if url.timeout is not None and url.timeout <= 0:
            raise click.BadParameter(f"timeout must be positive, got {url.timeout}")
    return urls


@click.command(help=f"INBOUND format: {url_format}")
@click.argument(
    "inbound_list",
    metavar="INBOUND",
    nargs=-1,
    required=True,
    type=URL,
    callback=validate_urls,
)
@click.option(
    "--timeout",
    type=click.IntRange(min=1),
    default=None,
    help="handshake read/write timeout in milliseconds, default to 1000",
)
@click.option(
    "--strict-methods",
    is_flag=True,
    default=None,
    help="refuse clients that did not offer the method the server requires",
)
@click.option("-v", "--verbose", count=True)
def main(inbound_list, timeout, strict_methods, verbose):
    overrides = {}
    if verbose:
        overrides["verbose"] = verbose
    if timeout is not None:
        overrides["timeout"] = timeout
    if strict_methods:
        overrides["strict_methods"] = True
    app.settings = app.Settings(**overrides)
    ctx_list = [ProxyContext(inbound_ns) for inbound_ns in inbound_list]
    uvloop.run(run_server(ctx_list))


if __name__ == "__main__":
    main()
