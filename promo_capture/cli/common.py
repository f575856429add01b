from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
from pathlib import Path
from typing import Callable, Optional

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
    default_output: Optional[Path | str] = None,
    include_config: bool = True,
    default_log_level: str = "info",
) -> None:
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path(default_output) if default_output is not None else None,
        help="Directory where locally saved videos are written",
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
        help="Optional path to write structured logs",
    )

    if include_config:
        parser.add_argument(
            "--config",
            type=Path,
            default=None,
            help="Configuration file (default: config.txt in the project root)",
        )


def _positive_number(value: str, typ: type, name: str):
    """Generic positive number validator for argparse."""
    try:
        parsed = typ(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Value must be a {name}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("Value must be positive")
    return parsed

def positive_float(value: str) -> float:
    return _positive_number(value, float, "number")


def device_spec(value: str) -> int | str:
    """Camera index (``0``) or device path (``/dev/video2``)."""
    text = value.strip()
    return int(text) if text.isdigit() else text


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


def install_signal_handlers(loop: asyncio.AbstractEventLoop, on_signal: Callable[[], None]) -> None:
    """Route SIGINT/SIGTERM to ``on_signal`` where the loop supports it."""
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, on_signal)


def log_startup(logger, args: argparse.Namespace, **extra_info) -> None:
    logger.info("=" * 60)
    logger.info("========== PROMO CAPTURE START ==========")
    logger.info("Log level: %s", args.log_level)
    if getattr(args, "log_file", None):
        logger.info("Log file: %s", args.log_file)
    for key, value in extra_info.items():
        display_key = key.replace("_", " ").title()
        logger.info("%s: %s", display_key, value)
    logger.info("=" * 60)


__all__ = [
    "LOG_LEVELS",
    "add_common_cli_arguments",
    "device_spec",
    "install_exception_handlers",
    "install_signal_handlers",
    "log_startup",
    "positive_float",
]
