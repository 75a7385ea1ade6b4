from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
from pathlib import Path
from typing import Any, Optional

from marking_time.core.logging_config import configure_logging
from marking_time.core.logging_utils import get_module_logger
from marking_time.core import paths


LOG_LEVELS: dict[str, int] = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def add_common_cli_arguments(
    parser: argparse.ArgumentParser,
    *,
    default_store: Optional[Path | str] = None,
    default_log_level: str = "warning",
) -> None:
    parser.add_argument(
        "--store",
        type=Path,
        default=Path(default_store or paths.SETTINGS_FILE),
        help="JSON file holding the persisted session and settings",
    )

    parser.add_argument(
        "--log-level",
        choices=sorted(LOG_LEVELS.keys()),
        default=default_log_level,
        help="Logging verbosity",
    )

    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help=f"Optional path to write logs (serve defaults to {paths.MASTER_LOG_FILE})",
    )

    console_group = parser.add_mutually_exclusive_group()
    console_group.add_argument(
        "--console",
        dest="console_output",
        action="store_true",
        default=True,
        help="Log to stderr (default)",
    )
    console_group.add_argument(
        "--no-console",
        dest="console_output",
        action="store_false",
        help="Log to file only",
    )


def add_tracking_arguments(parser: argparse.ArgumentParser) -> None:
    """Per-run overrides for the stored tracking flags."""
    parser.add_argument(
        "--track-combat",
        dest="track_combat",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Record combat start, end and rounds",
    )
    parser.add_argument(
        "--track-scene-changes",
        dest="track_scene_changes",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Record scene activations",
    )
    parser.add_argument(
        "--track-dice-rolls",
        dest="track_dice_rolls",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Record natural 20s and natural 1s",
    )
    parser.add_argument(
        "--viewer-user-id",
        dest="viewer_user_id",
        type=str,
        default=None,
        help="User that receives the sync marker announcement",
    )


def setup_logging(args: Any, *, default_log_file: Optional[Path] = None) -> None:
    log_file = args.log_file or default_log_file
    configure_logging(
        args.log_level,
        console=args.console_output,
        log_file=log_file,
    )


def install_exception_handlers(
    logger: logging.Logger,
    loop: Optional[asyncio.AbstractEventLoop] = None
) -> None:
    def handle_exception(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        logger.critical(
            "Uncaught exception",
            exc_info=(exc_type, exc_value, exc_traceback)
        )

    sys.excepthook = handle_exception

    if loop is not None:
        def handle_asyncio_exception(loop, context):
            exception = context.get('exception')
            message = context.get('message', 'Unhandled asyncio exception')
            if exception:
                logger.error("Asyncio exception: %s", message, exc_info=exception)
            else:
                logger.error("Asyncio error: %s, context: %s", message, context)

        loop.set_exception_handler(handle_asyncio_exception)


def install_signal_handlers(shutdown_event: asyncio.Event, loop: asyncio.AbstractEventLoop) -> None:
    """Register SIGINT/SIGTERM handlers that set ``shutdown_event``."""

    def signal_handler():
        if not shutdown_event.is_set():
            get_module_logger("CLI").info("Shutdown requested")
            shutdown_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, signal_handler)


__all__ = [
    "LOG_LEVELS",
    "add_common_cli_arguments",
    "add_tracking_arguments",
    "setup_logging",
    "install_exception_handlers",
    "install_signal_handlers",
]
