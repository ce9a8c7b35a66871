"""
Process-wide event bus for the Simpro connector.

The connector reports what it is doing (requests, cache hits, 429 backoffs, page
progress) as small RuntimeEvent records. Nothing is printed here: whoever wants the
events installs an emitter, usually for the duration of one command:

  with use_emitter(console_emitter):
      connector.paginate(req).collect()

With no emitter installed, emit() is a no-op.
"""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, Optional

LEVELS = ("debug", "info", "warn", "error")

EventEmitter = Callable[["RuntimeEvent"], None]

_EMITTER: Optional[EventEmitter] = None


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class RuntimeEvent:
    # "message" for log lines, "records" for per-page item counts
    type: str
    message: str
    connector: Optional[str] = None
    stream: Optional[str] = None
    count: Optional[int] = None
    level: str = "info"
    ts: str = field(default_factory=_utc_now)
    fields: Dict[str, Any] = field(default_factory=dict)


def set_emitter(fn: Optional[EventEmitter]) -> None:
    global _EMITTER
    _EMITTER = fn


def get_emitter() -> Optional[EventEmitter]:
    return _EMITTER


@contextmanager
def use_emitter(fn: Optional[EventEmitter]) -> Iterator[Optional[EventEmitter]]:
    """Install `fn` for the block and put the previous emitter back afterwards."""
    previous = get_emitter()
    set_emitter(fn)
    try:
        yield fn
    finally:
        set_emitter(previous)


def emit(
    event_type: str,
    message: str,
    *,
    connector: Optional[str] = None,
    stream: Optional[str] = None,
    count: Optional[int] = None,
    level: str = "info",
    **fields: Any,
) -> None:
    fn = _EMITTER
    if fn is None:
        return
    if level not in LEVELS:
        raise ValueError(f"Unknown event level {level!r} (expected one of {LEVELS})")

    evt = RuntimeEvent(
        type=event_type,
        message=message,
        connector=connector,
        stream=stream,
        count=count,
        level=level,
        fields=fields,
    )
    try:
        fn(evt)
    except Exception:
        # A broken progress display must not fail the API call it reports on.
        return
