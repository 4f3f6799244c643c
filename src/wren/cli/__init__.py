"""Wren CLI — serve an app, list its routes, run module tasks.

Entry point registered as ``wren`` in ``pyproject.toml``::

    [project.scripts]
    wren = "wren.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``wren`` command."""
    parser = argparse.ArgumentParser(
        prog="wren",
        description="Compose modules into an ASGI app; serve it, list its routes, run its tasks.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- wren run ---------------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Start the server (uvicorn)")
    run_parser.add_argument("app", help="Import string (e.g. myapp:app)")
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")

    # -- wren routes ------------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List compiled routes in match order")
    routes_parser.add_argument("app", help="Import string (e.g. myapp:app)")

    # -- wren task --------------------------------------------------------
    task_parser = subparsers.add_parser("task", help="Boot the app and run a module task")
    task_parser.add_argument("app", help="Import string (e.g. myapp:app)")
    task_parser.add_argument("task", help="Task command (e.g. article:reindex)")
    task_parser.add_argument("args", nargs=argparse.REMAINDER, help="Arguments passed to the task")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "run":
        from wren.cli._run import run_server

        run_server(args)
    elif args.command == "routes":
        from wren.cli._routes import run_routes

        run_routes(args)
    elif args.command == "task":
        from wren.cli._task import run_task

        run_task(args)
