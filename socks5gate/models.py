from enum import Enum, unique
from typing import Optional

from pydantic import BaseModel, ConfigDict


@unique
class State(Enum):
    start = "start"
    methods_received = "methods_received"
    method_sent = "method_sent"
    auth_received = "auth_received"
    auth_replied = "auth_replied"
    request_received = "request_received"
    replied = "replied"
    done = "done"
    aborted = "aborted"


@unique
class Outcome(Enum):
    connected = "connected"  # CONNECT accepted, target available
    not_socks5 = "not_socks5"  # foreign greeting, closed silently
    rejected = "rejected"  # client was told why before closing
    aborted = "aborted"  # transport or framing error, nothing more sent


class ResolvedTarget(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str
    port: int

    def __str__(self):
        return f"{self.host}:{self.port}"

    @property
    def dial_host(self) -> str:
        "host without the brackets around an IPv6 literal"
        if self.host.startswith("[") and self.host.endswith("]"):
            return self.host[1:-1]
        return self.host


class HandshakeResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    outcome: Outcome
    state: State
    target: Optional[ResolvedTarget] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.connected


class ListenNamespace(BaseModel):
    model_config = ConfigDict(extra="forbid")

    host: str = "0.0.0.0"
    port: int
    username: Optional[str] = None
    password: Optional[str] = None
    timeout: Optional[int] = None  # milliseconds, falls back to settings
    strict: bool = False
    name: Optional[str] = None

    @property
    def credentials(self):
        if self.username is None or self.password is None:
            return None
        return self.username, self.password

    def __str__(self):
        auth = f"{self.username}:{self.password}@" if self.username else ""
        host = f"{{{self.host}}}" if ":" in self.host else self.host
        return f"socks5://{auth}{host}:{self.port}"
