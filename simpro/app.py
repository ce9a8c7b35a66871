"""
`simpro` command line: quick calls against the Simpro API through the connector.

  simpro get /companies/0/quotes/12
  simpro list /companies/0/customers/ --page-size 50 --max-pages 2 -v

Credentials come from SIMPRO_BASE_URL / SIMPRO_API_KEY (or --base-url / --api-key);
a missing key is prompted for when running interactively.
"""
from __future__ import annotations

import argparse
import os
import sys
from typing import Any, Dict, List, Optional

import questionary
import requests
from rich.console import Console

from .config import SimproConfig
from .connector import SimproConnector
from .errors import PaginationContractViolation, PaginationNotStarted, SimproError
from .models import RequestDescriptor
from .runtime.events import RuntimeEvent, get_emitter, use_emitter
from .ui import records_table, render_error_panel, render_event

console = Console()


def parse_params(pairs: Optional[List[str]]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for raw in pairs or []:
        if "=" not in raw:
            raise argparse.ArgumentTypeError(f"Expected key=value, got {raw!r}")
        k, v = raw.split("=", 1)
        out[k.strip()] = v
    return out


def positive_int(raw: str) -> int:
    try:
        n = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected an integer, got {raw!r}") from None
    if n < 1:
        raise argparse.ArgumentTypeError(f"Must be >= 1, got {n}")
    return n


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="simpro", description="Call the Simpro API through the rate-limited, cached connector.")
    p.add_argument("--base-url", help="Simpro host, e.g. https://acme.simprosuite.com (default: $SIMPRO_BASE_URL)")
    p.add_argument("--api-key", help="API key (default: $SIMPRO_API_KEY)")
    p.add_argument("-v", "--verbose", action="store_true", help="Print connector events")
    sub = p.add_subparsers(dest="command", required=True)

    g = sub.add_parser("get", help="GET one endpoint and print the JSON body")
    g.add_argument("endpoint")
    g.add_argument("--param", "-p", action="append", metavar="KEY=VALUE")
    g.add_argument("--no-cache", action="store_true")

    ls = sub.add_parser("list", help="Page through a collection endpoint")
    ls.add_argument("endpoint")
    ls.add_argument("--param", "-p", action="append", metavar="KEY=VALUE")
    ls.add_argument("--page-size", type=positive_int, default=None)
    ls.add_argument("--max-pages", type=positive_int, default=None)
    ls.add_argument("--json", action="store_true", help="Print JSON instead of a table")
    return p


def _console_emitter(evt: RuntimeEvent) -> None:
    console.print(render_event(evt))


def load_config(args: argparse.Namespace) -> SimproConfig:
    creds: Dict[str, Any] = {}
    if args.base_url:
        creds["base_url"] = args.base_url
    if args.api_key:
        creds["api_key"] = args.api_key

    if not creds.get("api_key") and not (os.getenv("SIMPRO_API_KEY") or "").strip() and sys.stdin.isatty():
        creds["api_key"] = questionary.password("Simpro API key:").ask() or ""
    return SimproConfig.from_env_and_creds(creds)


def cmd_get(conn: SimproConnector, args: argparse.Namespace) -> int:
    req = RequestDescriptor("GET", args.endpoint, query=args.params)
    resp = conn.send(req, use_cache=not args.no_cache)
    console.print_json(data=resp.json())
    if resp.cached:
        console.print("[dim](served from cache)[/dim]")
    return 0


def cmd_list(conn: SimproConnector, args: argparse.Namespace) -> int:
    req = RequestDescriptor("GET", args.endpoint, query=args.params, paginatable=True)
    kwargs: Dict[str, Any] = {"max_pages": args.max_pages}
    if args.page_size is not None:
        kwargs["per_page_limit"] = args.page_size
    paginator = conn.paginate(req, **kwargs)
    rows = paginator.collect()

    if args.json:
        console.print_json(data=rows)
    else:
        console.print(records_table(rows, title=args.endpoint))
    try:
        total = paginator.get_total_results()
    except (PaginationContractViolation, PaginationNotStarted):
        console.print(f"[green]{len(rows)}[/green] result(s)")
    else:
        console.print(f"[green]{len(rows)}[/green] of {total} result(s)")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        args.params = parse_params(args.param)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))
    emitter = _console_emitter if args.verbose else get_emitter()

    with use_emitter(emitter):
        try:
            cfg = load_config(args)
            with SimproConnector(cfg) as conn:
                if args.command == "get":
                    return cmd_get(conn, args)
                return cmd_list(conn, args)
        except (SimproError, requests.RequestException) as e:
            console.print(render_error_panel(e))
            return 1


if __name__ == "__main__":
    sys.exit(main())
