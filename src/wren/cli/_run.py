"""``wren run``."""

import argparse
import sys

from wren.cli._resolve import resolve_app


def run_server(args: argparse.Namespace) -> None:
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1) from exc
    # Modules boot on lifespan startup, inside uvicorn's loop.
    app.run(host=args.host, port=args.port)
