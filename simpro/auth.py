from __future__ import annotations

from typing import Dict, MutableMapping, Protocol


class Authenticator(Protocol):
    def apply(self, headers: MutableMapping[str, str]) -> MutableMapping[str, str]: ...


class TokenAuthenticator:
    """Bearer token taken from the configured API key; applied to every request."""

    def __init__(self, token: str, prefix: str = "Bearer") -> None:
        self.token = token
        self.prefix = prefix

    def apply(self, headers: MutableMapping[str, str]) -> MutableMapping[str, str]:
        headers["Authorization"] = f"{self.prefix} {self.token}"
        return headers

    def __repr__(self) -> str:
        # Never leak the key into logs / tracebacks.
        return f"TokenAuthenticator(prefix={self.prefix!r}, token=***)"


def default_headers() -> Dict[str, str]:
    return {
        "Accept": "application/json",
        "Content-Type": "application/json",
    }
