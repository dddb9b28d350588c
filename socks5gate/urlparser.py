import sys
import ipaddress

from parsimonious.grammar import Grammar
from parsimonious.nodes import NodeVisitor
from pydantic import ValidationError

from .models import ListenNamespace

grammar = r"""
url         = proxy "://" (username ":" password "@")? host? ":" port
              ("#" pair ("," pair)* )?
proxy       = "socks5"
host        = ipv4 / fqdn / ipv6repr
ipv4        = ~r"\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}"
fqdn        = ~r"([0-9a-z]((-[0-9a-z])|[0-9a-z])*\.){0,4}[a-z]+"i
ipv6repr    = "{" ipv6 "}"
ipv6        = ~r"[\w:]+"
username    = ~r"[\w-]+"
password    = ~r"[\w-]+"
port        = ~r"\d+"
pair        = key "=" value
key         = "timeout" / "strict" / "name"
value       = ~r"[\w-]+"
"""


grammar = Grammar(grammar)


class URLVisitor(NodeVisitor):
    """
    >>> url = 'socks5://alice:secret@:1080#timeout=500,name=x'
    >>> ns = URLVisitor().visit(grammar.parse(url))
    >>> assert ns.timeout == 500
    >>> assert ns.host == '0.0.0.0'
    >>> assert ns.credentials == ('alice', 'secret')
    >>> ns = URLVisitor().visit(grammar.parse('socks5://{::1}:1080'))
    >>> assert ns.host == '::1'
    >>> assert ns.credentials is None
    """

    unwrapped_exceptions = (ValidationError,)

    def __init__(self):
        self.info = {
            "username": None,
            "password": None,
            "host": "0.0.0.0",
        }

    def visit_username(self, node, visited_children):
        self.info["username"] = node.text

    def visit_password(self, node, visited_children):
        self.info["password"] = node.text

    def visit_host(self, node, visited_children):
        expr_name = node.children[0].expr_name
        if expr_name == "ipv6repr":
            host = ipaddress.ip_address(node.text[1:-1]).compressed
        elif expr_name == "ipv4":
            host = ipaddress.ip_address(node.text).compressed
        else:
            host = node.text
        self.info["host"] = host

    def visit_port(self, node, visited_children):
        self.info["port"] = int(node.text)

    def visit_pair(self, node, visited_children):
        self.info[node.children[0].text] = node.children[2].text

    def visit_url(self, node, visited_children):
        return ListenNamespace.model_validate(self.info)

    def generic_visit(self, node, visited_children):
        return node


def parse_url(url: str) -> ListenNamespace:
    return URLVisitor().visit(grammar.parse(url))


if __name__ == "__main__":
    print(parse_url(sys.argv[1]))
