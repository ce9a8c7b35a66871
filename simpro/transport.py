"""
Network transport: one resolved request in, one ResponseEnvelope out.

IMPORTANT:
  - The session used here must NOT do its own urllib3 status retries; 429 backoff is
    owned by the rate limiter, and a hidden Retry-After sleep inside adapter.send()
    would look like a hang and bypass the shared window.
  - Connectivity / timeout errors (requests.RequestException) propagate unmodified.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol

import requests
from requests.adapters import HTTPAdapter

from .config import SimproConfig
from .constants import DEFAULT_CONNECT_TIMEOUT_SECONDS, DEFAULT_READ_TIMEOUT_SECONDS, USER_AGENT
from .models import ResponseEnvelope


class Transport(Protocol):
    def send(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        params: Optional[Mapping[str, Any]] = None,
        json_body: Optional[Mapping[str, Any]] = None,
    ) -> ResponseEnvelope: ...

    def close(self) -> None: ...


@dataclass(frozen=True)
class _Timeouts:
    connect: float
    read: float


def pooled_session(session: Optional[requests.Session] = None) -> requests.Session:
    """A requests.Session with connection pooling and no automatic retries."""
    sess = session or requests.Session()
    adapter = HTTPAdapter(max_retries=0, pool_connections=25, pool_maxsize=25)
    sess.mount("http://", adapter)
    sess.mount("https://", adapter)
    sess.headers.update({"User-Agent": USER_AGENT})
    return sess


class RequestsTransport:
    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        connect_timeout_s: float = DEFAULT_CONNECT_TIMEOUT_SECONDS,
        read_timeout_s: float = DEFAULT_READ_TIMEOUT_SECONDS,
    ) -> None:
        self._owns_session = session is None
        self.session = pooled_session(session) if session is None else session
        self._timeouts = _Timeouts(connect=float(connect_timeout_s), read=float(read_timeout_s))

    @classmethod
    def from_config(cls, cfg: SimproConfig) -> "RequestsTransport":
        return cls(connect_timeout_s=cfg.request_connect_timeout_s, read_timeout_s=cfg.request_timeout_s)

    def send(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        params: Optional[Mapping[str, Any]] = None,
        json_body: Optional[Mapping[str, Any]] = None,
    ) -> ResponseEnvelope:
        resp = self.session.request(
            method=method.upper(),
            url=url,
            headers=dict(headers),
            params=dict(params) if params else None,
            json=dict(json_body) if json_body is not None else None,
            timeout=(self._timeouts.connect, self._timeouts.read),
        )
        return ResponseEnvelope(status=resp.status_code, headers=resp.headers, body=resp.content or b"")

    def close(self) -> None:
        if self._owns_session:
            self.session.close()
