"""Logging setup for the promo_capture command line.

Installs a stdout handler and an optional rotating log file. Every handler
carries a ``TokenRedactingFilter`` so bot tokens embedded in Bot API URLs
(``/bot<id>:<secret>/sendVideo``), which aiohttp repeats in its error
messages, never reach the console or the file.
"""

from __future__ import annotations

import contextlib
import logging
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from .logging_utils import mask_secret

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
LOG_MAX_BYTES = 500 * 1024
LOG_BACKUP_COUNT = 2

# aiohttp access lines and FFmpeg chatter drown out the capture cycle
NOISY_LOGGERS = ("aiohttp.access", "aiohttp.client", "libav", "asyncio")

BOT_TOKEN_PATTERN = re.compile(r"(?<=bot)(\d{3,}:[A-Za-z0-9_-]{10,})")

_configured = False


def _coerce_level(level: Union[int, str]) -> int:
    if isinstance(level, str):
        name = level.upper()
        if not hasattr(logging, name):
            raise ValueError(f"Unknown log level '{level}'")
        return getattr(logging, name)
    return int(level)


def redact_tokens(text: str) -> str:
    return BOT_TOKEN_PATTERN.sub(lambda match: mask_secret(match.group(1)), text)


class TokenRedactingFilter(logging.Filter):
    """Masks bot tokens in the rendered message before any handler writes it."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            return True
        redacted = redact_tokens(message)
        if redacted != message:
            record.msg, record.args = redacted, None
        return True


def _quiet_libav(level: int) -> None:
    import av.logging

    # FFmpeg logs through its own callback; keep it at errors unless debugging
    av.logging.set_level(av.logging.DEBUG if level <= logging.DEBUG else av.logging.ERROR)


def configure_logging(
    level: Union[int, str] = logging.INFO,
    *,
    force: bool = False,
    console: bool = True,
    log_file: Optional[Union[str, Path]] = None,
) -> None:
    """Configure root logging once per process.

    Args:
        level: Logging level (int or name such as "info").
        force: Rebuild the handlers even when already configured.
        console: Emit logs to stdout.
        log_file: Path for a rotating log file, if any.
    """

    global _configured
    numeric_level = _coerce_level(level)
    root = logging.getLogger()

    if _configured and not force:
        root.setLevel(numeric_level)
        return

    for handler in list(root.handlers):
        root.removeHandler(handler)
        with contextlib.suppress(Exception):
            handler.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    handlers: list[logging.Handler] = []

    if console:
        handlers.append(logging.StreamHandler(sys.stdout))

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(log_path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT, encoding="utf-8")
        )

    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        handler.addFilter(TokenRedactingFilter())
        root.addHandler(handler)

    root.setLevel(numeric_level)

    noisy_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)
    _quiet_libav(numeric_level)

    _configured = True


__all__ = [
    "LOG_DATEFMT",
    "LOG_FORMAT",
    "TokenRedactingFilter",
    "configure_logging",
    "redact_tokens",
]
