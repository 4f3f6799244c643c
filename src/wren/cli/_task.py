"""``wren task`` — boot an app and run one module task.

The task command becomes ``argv[0]`` of the app, so the module that
owns it runs it at the matching lifecycle point. Most tasks exit the
process when done; tasks with ``exit_after=False`` let the boot finish.
"""

import argparse
import asyncio
import sys

from wren.cli._resolve import resolve_app
from wren.errors import ConfigurationError


def run_task(args: argparse.Namespace) -> None:
    argv = [args.task, *args.args]
    try:
        app = resolve_app(args.app, argv=argv)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if not app.argv:
        app.argv = tuple(argv)

    module_name, _, task_name = args.task.partition(":")
    module_definitions = {chain[-1].name for chain in app.definitions}
    if not task_name or module_name not in module_definitions:
        print(f"Error: no module provides task {args.task!r}", file=sys.stderr)
        raise SystemExit(1)

    try:
        asyncio.run(app.boot())
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if not app.task_ran:
        print(f"Error: task {args.task!r} did not run", file=sys.stderr)
        raise SystemExit(1)
