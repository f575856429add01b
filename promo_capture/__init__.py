"""Promo video capture with participant details and fallback delivery."""

from __future__ import annotations

import asyncio
import sys
from importlib import metadata
from typing import Optional, Sequence

from .app.runner import main

try:
    __version__ = metadata.version("promo-capture")
except metadata.PackageNotFoundError:  # pragma: no cover - local dev
    __version__ = "0.0.0"


def run(argv: Optional[Sequence[str]] = None) -> None:
    """Console script wrapper around the async entry point."""
    sys.exit(asyncio.run(main(list(argv) if argv is not None else None)))


__all__ = ["__version__", "main", "run"]
