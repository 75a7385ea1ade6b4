"""Command line entry point: session control, markers, export and the REST server."""

from __future__ import annotations

import argparse
import asyncio
import json
import locale
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from marking_time import __version__
from marking_time.api import APIController, APIServer
from marking_time.core.config import TrackingConfig
from marking_time.core.context import ActionResult, SessionContext
from marking_time.core.logging_utils import get_module_logger
from marking_time.core import paths
from marking_time.core.settings_store import JsonSettingsStore
from marking_time.events import EventRegistry, TrackingEventHandlers

from .common import (
    add_common_cli_arguments,
    add_tracking_arguments,
    install_exception_handlers,
    install_signal_handlers,
    setup_logging,
)

logger = get_module_logger("CLI")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="marking-time",
        description="Timestamp tabletop session events for video-editor sync",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    add_common_cli_arguments(parser)

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Show tracking state and timestamp count")
    sub.add_parser("start", help="Start session tracking")
    sub.add_parser("stop", help="Stop session tracking")
    sub.add_parser("toggle", help="Start if idle, stop if tracking")

    mark = sub.add_parser("mark", help="Mark an important moment")
    mark.add_argument("description", help="Brief description")
    mark.add_argument("--details", default="", help="Additional details")

    export = sub.add_parser("export", help="Export timestamps as CSV")
    export.add_argument("--output-dir", type=Path, default=paths.EXPORTS_DIR, help="Directory for the CSV file")
    export.add_argument("--stdout", action="store_true", help="Print the CSV instead of writing a file")
    export.add_argument("--header", action="store_true", help="Include a column header row")

    event = sub.add_parser("event", help="Deliver a host event (combatStart, sceneChange, ...)")
    event.add_argument("name", help="Event name")
    event.add_argument("--payload", default="{}", help="Event payload as a JSON object")
    add_tracking_arguments(event)

    serve = sub.add_parser("serve", help="Run the REST API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8765)
    serve.add_argument(
        "--allow-remote",
        dest="localhost_only",
        action="store_false",
        help="Accept requests from other machines",
    )
    add_tracking_arguments(serve)

    return parser


def _print_result(result: ActionResult) -> int:
    stream = sys.stdout if result.success else sys.stderr
    print(result.message, file=stream)
    return 0 if result.success else 1


async def _run_command(args: argparse.Namespace) -> int:
    store = JsonSettingsStore(args.store)
    context = SessionContext.open(store)

    try:
        if args.command == "status":
            print(json.dumps(context.status(), indent=2))
            return 0
        if args.command == "start":
            return _print_result(await context.start())
        if args.command == "stop":
            return _print_result(await context.stop())
        if args.command == "toggle":
            return _print_result(await context.toggle())
        if args.command == "mark":
            return _print_result(await context.add_marker(args.description, args.details))
        if args.command == "export":
            if args.stdout:
                result = context.export_csv(include_header=args.header)
                if result.success:
                    sys.stdout.write(result.content or "")
                    return 0
                return _print_result(result)
            return _print_result(await context.export(args.output_dir, include_header=args.header))
        if args.command == "event":
            return await _deliver_event(context, args)
        if args.command == "serve":
            return await _serve(context, args)
    finally:
        context.close()

    raise ValueError(f"Unknown command {args.command}")


async def _deliver_event(context: SessionContext, args: argparse.Namespace) -> int:
    try:
        payload = json.loads(args.payload)
    except json.JSONDecodeError as exc:
        print(f"Invalid payload: {exc}", file=sys.stderr)
        return 2
    if not isinstance(payload, dict):
        print("Invalid payload: expected a JSON object", file=sys.stderr)
        return 2

    config = TrackingConfig.from_store(context.store, args)
    registry = EventRegistry(TrackingEventHandlers(context), config)
    record = await registry.dispatch(args.name, payload)
    if record is None:
        print(f"{args.name}: nothing recorded")
        return 0
    print(f"{record.elapsed_time} {record.kind.value} {record.description}")
    return 0


async def _serve(context: SessionContext, args: argparse.Namespace) -> int:
    loop = asyncio.get_running_loop()
    install_exception_handlers(logger.logger, loop)

    shutdown_event = asyncio.Event()
    install_signal_handlers(shutdown_event, loop)

    config = TrackingConfig.from_store(context.store, args)
    controller = APIController(context, config=config)
    server = APIServer(controller, host=args.host, port=args.port, localhost_only=args.localhost_only)

    await server.start()
    print(f"Marking Time API listening on {server.url}", flush=True)
    try:
        await shutdown_event.wait()
    finally:
        await server.stop()
    return 0


def _use_system_time_locale() -> None:
    """Absolute times follow the user's date and time conventions."""
    try:
        locale.setlocale(locale.LC_TIME, "")
    except locale.Error as exc:
        logger.warning("Keeping the C time locale: %s", exc)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args, default_log_file=paths.MASTER_LOG_FILE if args.command == "serve" else None)
    _use_system_time_locale()

    try:
        return asyncio.run(_run_command(args))
    except KeyboardInterrupt:
        return 130


__all__ = ["build_parser", "main"]
