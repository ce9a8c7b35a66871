from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import pytest

from simpro.config import CacheSettings, RateLimitSettings, SimproConfig
from simpro.models import ResponseEnvelope
from simpro.runtime.events import RuntimeEvent, use_emitter


class FakeClock:
    """Wall clock whose sleep() just advances time."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubRandom:
    """random.Random stand-in returning a fixed sequence from random()."""

    def __init__(self, *values: float) -> None:
        self._values = list(values) or [0.0]
        self._i = 0

    def random(self) -> float:
        v = self._values[min(self._i, len(self._values) - 1)]
        self._i += 1
        return v


Responder = Union[ResponseEnvelope, Exception, Callable[..., ResponseEnvelope]]


class FakeTransport:
    def __init__(self, responses: Optional[Sequence[Responder]] = None) -> None:
        self.responses: List[Responder] = list(responses or [])
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def queue(self, *responses: Responder) -> None:
        self.responses.extend(responses)

    def send(self, method, url, *, headers, params=None, json_body=None) -> ResponseEnvelope:
        call = {
            "method": method,
            "url": url,
            "headers": dict(headers),
            "params": dict(params or {}),
            "json": json_body,
        }
        self.calls.append(call)
        if not self.responses:
            raise AssertionError(f"Unexpected request: {method} {url}")
        nxt = self.responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        if callable(nxt):
            return nxt(**call)
        return nxt

    def close(self) -> None:
        self.closed = True


def json_response(data: Any, status: int = 200, headers: Optional[Dict[str, str]] = None) -> ResponseEnvelope:
    body = json.dumps(data).encode("utf-8") if data is not None else b""
    return ResponseEnvelope(status=status, headers={"Content-Type": "application/json", **(headers or {})}, body=body)


def page_response(items: List[Any], *, pages: Optional[int], total: Optional[int] = None) -> ResponseEnvelope:
    headers: Dict[str, str] = {}
    if pages is not None:
        headers["Result-Pages"] = str(pages)
    if total is not None:
        headers["Result-Total"] = str(total)
    return json_response(items, headers=headers)


def make_config(**overrides: Any) -> SimproConfig:
    params: Dict[str, Any] = {
        "base_url": "https://acme.simprosuite.com",
        "api_key": "secret-key",
        "rate_limit": RateLimitSettings(enabled=False),
        "cache": CacheSettings(enabled=False),
    }
    params.update(overrides)
    return SimproConfig(**params)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def events():
    captured: List[RuntimeEvent] = []
    with use_emitter(captured.append):
        yield captured
