import hmac
from typing import Optional

from .aiobuffer.socks5 import AuthStatus


def verify(
    username: bytes, password: bytes, expected_username: bytes, expected_password: bytes
) -> AuthStatus:
    # "&" so both fields are always compared
    matched = hmac.compare_digest(username, expected_username) & hmac.compare_digest(
        password, expected_password
    )
    return AuthStatus.succeeded if matched else AuthStatus.failure


class Authenticator:
    def __init__(self, username: str, password: str):
        self.username = username.encode()
        self.password = password.encode()

    def __repr__(self):
        return f"{self.__class__.__name__}({self.username!r})"

    @classmethod
    def from_credentials(
        cls, username: Optional[str] = None, password: Optional[str] = None
    ) -> Optional["Authenticator"]:
        "None unless both username and password are configured"
        if username is None or password is None:
            return None
        return cls(username, password)

    def verify(self, username: bytes, password: bytes) -> AuthStatus:
        return verify(username, password, self.username, self.password)
