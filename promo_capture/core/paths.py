"""Centralized path constants for promo_capture."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Configuration
CONFIG_PATH = PROJECT_ROOT / "config.txt"

# User-specific state (allows running from read-only project directories)
_USER_STATE_ENV = os.environ.get("PROMO_CAPTURE_STATE_DIR")
USER_STATE_DIR = Path(_USER_STATE_ENV).expanduser() if _USER_STATE_ENV else (Path.home() / ".promo_capture")
LOGS_DIR = USER_STATE_DIR / "logs"
DEFAULT_LOG_FILE = LOGS_DIR / "promo_capture.log"

# Where the local save channel drops artifacts for manual sharing
DEFAULT_DOWNLOADS_DIR = Path.home() / "Downloads"

# Rendered previews live only for one capture cycle
PREVIEW_DIR = Path(tempfile.gettempdir()) / "promo_capture_previews"


def ensure_directories() -> None:
    """Create necessary directories if they don't exist."""

    USER_STATE_DIR.mkdir(parents=True, exist_ok=True)
    LOGS_DIR.mkdir(parents=True, exist_ok=True)


__all__ = [
    "PROJECT_ROOT",
    "CONFIG_PATH",
    "USER_STATE_DIR",
    "LOGS_DIR",
    "DEFAULT_LOG_FILE",
    "DEFAULT_DOWNLOADS_DIR",
    "PREVIEW_DIR",
    "ensure_directories",
]
