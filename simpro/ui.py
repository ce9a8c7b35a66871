from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .errors import (
    HttpError,
    InfiniteLoopDetected,
    PaginationContractViolation,
    RateLimitExceeded,
    SimproConfigError,
)
from .runtime.events import RuntimeEvent

_LEVEL_STYLES = {"debug": "dim", "info": "cyan", "warn": "yellow", "error": "red"}


def is_htmlish(content_type: str, body_preview: str) -> bool:
    ct = (content_type or "").lower()
    lower_body = (body_preview or "").lower()
    return ("text/html" in ct) or ("<html" in lower_body)


def render_error_panel(e: Exception) -> Panel:
    if isinstance(e, RateLimitExceeded):
        return Panel(
            f"[red]Rate limited (429)[/red]\nSimpro kept rejecting the call after {e.retries} backoff(s).\n"
            "Lower rate_limit.per_second / threshold or raise rate_limit.max_retries.",
            style="red",
        )

    if isinstance(e, HttpError) and e.response is not None:
        status = e.response.status
        ct = e.response.header("Content-Type") or ""
        body_preview = e.response.text()[:800]

        if is_htmlish(ct, body_preview):
            return Panel(
                f"[red]HTML Response Error[/red]\n"
                f"Endpoint returned HTML instead of JSON. Check SIMPRO_BASE_URL.\n"
                f"Status: {status}\n\n[dim]{body_preview}[/dim]",
                style="red",
            )
        if status in (401, 403):
            return Panel(
                f"[red]Auth Error {status}[/red]\nUnauthorized/Forbidden. Check the API key and its access.\n\n"
                f"[dim]{body_preview}[/dim]",
                style="red",
            )
        if status == 404:
            return Panel(f"[red]Not Found[/red]\n{e}\n\n[dim]{body_preview}[/dim]", style="red")
        return Panel(f"[red]HTTP {status}[/red]\n\n[dim]{body_preview}[/dim]", style="red")

    if isinstance(e, SimproConfigError):
        return Panel(f"[red]Configuration Error[/red]\n{e}", style="red")
    if isinstance(e, (PaginationContractViolation, InfiniteLoopDetected)):
        return Panel(f"[red]Pagination Error[/red]\n{e}", style="red")

    return Panel(f"[red]{type(e).__name__}[/red]\n{e}", style="red")


def render_event(evt: RuntimeEvent) -> Text:
    style = _LEVEL_STYLES.get(evt.level, "")
    fields = " ".join(f"{k}={v}" for k, v in (evt.fields or {}).items() if v is not None)
    parts = [evt.level.upper(), evt.message]
    if evt.stream:
        parts.append(f"[{evt.stream}]")
    if evt.count is not None:
        parts.append(f"count={evt.count}")
    if fields:
        parts.append(fields)
    return Text(" ".join(parts), style=style)


def records_table(rows: Sequence[Any], *, title: Optional[str] = None, max_columns: int = 8) -> Table:
    table = Table(title=title, show_lines=False)
    dict_rows: List[Dict[str, Any]] = [r for r in rows if isinstance(r, dict)]
    columns: List[str] = []
    for r in dict_rows:
        for k in r.keys():
            if k not in columns and len(columns) < max_columns:
                columns.append(str(k))

    if not columns:
        table.add_column("value")
        for r in rows:
            table.add_row(str(r))
        return table

    for c in columns:
        table.add_column(c, overflow="fold")
    for r in dict_rows:
        table.add_row(*("" if r.get(c) is None else str(r.get(c)) for c in columns))
    return table
