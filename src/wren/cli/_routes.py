"""``wren routes`` — list compiled routes.

Boots the app and prints the dispatch table in match order, with the
owning module, route kind and route name of every entry.
"""

import argparse
import asyncio
import sys

from wren.cli._resolve import resolve_app
from wren.errors import ConfigurationError


def run_routes(args: argparse.Namespace) -> None:
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    try:
        asyncio.run(app.boot())
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    routes = app.routes
    if not routes:
        print("No routes registered.")
        return

    rows = [
        (route.method, route.url, f"{route.module}.{route.kind.value}[{route.name!r}]")
        for route in routes
    ]

    max_method = max(6, *(len(r[0]) for r in rows))  # "METHOD" header
    max_url = max(4, *(len(r[1]) for r in rows))  # "PATH" header

    fmt = f"{{:<{max_method}}}  {{:<{max_url}}}  {{}}"
    print(fmt.format("METHOD", "PATH", "ROUTE"))
    sep_len = max_method + max_url + 4 + max(len(r[2]) for r in rows)
    print("-" * min(sep_len, 80))
    for method, url, source in rows:
        print(fmt.format(method, url, source))
