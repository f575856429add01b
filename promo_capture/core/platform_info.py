"""
Platform detection for promo_capture.

Detected once and cached. The capture constraint negotiator uses the
platform family to decide which additive constraint hints apply.
"""

import platform
import sys
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from promo_capture.core.logging_utils import get_module_logger

logger = get_module_logger("PlatformInfo")


@dataclass(frozen=True)
class PlatformInfo:
    """Immutable platform information.

    Attributes:
        platform: System platform ('linux', 'darwin', 'win32')
        architecture: CPU architecture ('x86_64', 'arm64', 'aarch64', 'armv7l')
        is_raspberry_pi: True if running on a Raspberry Pi
        pi_model: Raspberry Pi model string if applicable
    """

    platform: str
    architecture: str
    is_raspberry_pi: bool = False
    pi_model: Optional[str] = None

    @property
    def family(self) -> str:
        """Coarse platform family used as the capture platform hint."""
        if self.is_raspberry_pi:
            return "raspberry_pi"
        if self.platform.startswith("linux"):
            return "linux"
        if self.platform == "darwin":
            return "darwin"
        if self.platform in ("win32", "cygwin"):
            return "windows"
        return "other"

    def __str__(self) -> str:
        if self.is_raspberry_pi:
            return f"{self.pi_model or 'Raspberry Pi'} ({self.architecture})"
        return f"{self.platform} ({self.architecture})"


def _detect_raspberry_pi() -> tuple[bool, Optional[str]]:
    model_paths = [
        "/proc/device-tree/model",
        "/sys/firmware/devicetree/base/model",
    ]

    for path in model_paths:
        try:
            with open(path, "r", encoding="utf-8") as f:
                model = f.read().strip().rstrip("\x00")
                if "raspberry pi" in model.lower():
                    return True, model
        except OSError:
            continue

    return False, None


def detect_platform() -> PlatformInfo:
    """Detect current platform information (uncached)."""
    is_pi = False
    pi_model = None
    if sys.platform.startswith("linux"):
        is_pi, pi_model = _detect_raspberry_pi()

    info = PlatformInfo(
        platform=sys.platform,
        architecture=platform.machine(),
        is_raspberry_pi=is_pi,
        pi_model=pi_model,
    )
    logger.info("Platform detected: %s (family=%s)", info, info.family)
    return info


@lru_cache(maxsize=1)
def get_platform_info() -> PlatformInfo:
    return detect_platform()


__all__ = ["PlatformInfo", "detect_platform", "get_platform_info"]
