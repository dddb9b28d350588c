from dependency_injector import containers, providers

from .auth import Authenticator
from .handshake import Handshake
from .models import ListenNamespace


class Container(containers.DeclarativeContainer):
    inbound_ns = providers.Dependency(instance_of=ListenNamespace)
    timeout = providers.Dependency(instance_of=int)
    strict_methods = providers.Dependency(instance_of=bool)
    # read-only for the lifetime of the listener, shared by every connection
    authenticator = providers.Singleton(
        Authenticator.from_credentials,
        inbound_ns.provided.username,
        inbound_ns.provided.password,
    )
    # called with the connection's transport
    handshake = providers.Factory(
        Handshake,
        authenticator=authenticator,
        timeout=timeout,
        strict_methods=strict_methods,
    )
