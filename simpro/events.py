"""
Connector-side event helpers. Every event is stamped with the connector name; the
endpoint path is used as the stream so callers can group progress per endpoint.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from .constants import _CONNECTOR_NAME
from .runtime.events import emit

if TYPE_CHECKING:
    from .models import RequestDescriptor


def _message(level: str, message: str, stream: Optional[str], fields: Any) -> None:
    emit("message", message, connector=_CONNECTOR_NAME, stream=stream, level=level, **fields)


def debug(message: str, *, stream: Optional[str] = None, **fields: Any) -> None:
    _message("debug", message, stream, fields)


def info(message: str, *, stream: Optional[str] = None, **fields: Any) -> None:
    _message("info", message, stream, fields)


def warn(message: str, *, stream: Optional[str] = None, **fields: Any) -> None:
    _message("warn", message, stream, fields)


def error(message: str, *, stream: Optional[str] = None, **fields: Any) -> None:
    _message("error", message, stream, fields)


def request_event(
    message: str,
    request: "RequestDescriptor",
    url: str,
    *,
    level: str = "info",
    **fields: Any,
) -> None:
    """
    One `http.request.*` event: stream, method and url come from the request, the
    rest (status, attempt, elapsed_ms, ...) from the call site. None values are dropped.
    """
    extra = {k: v for k, v in fields.items() if v is not None}
    _message(level, message, request.endpoint, {"method": request.method, "url": url, **extra})


def records(stream: str, count: int) -> None:
    """Per-page item count (type "records"); callers sum these for running totals."""
    emit("records", "records", connector=_CONNECTOR_NAME, stream=stream, count=int(count), level="info")
