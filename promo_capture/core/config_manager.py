import asyncio
import os
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

import aiofiles

from promo_capture.core.logging_utils import get_module_logger


logger = get_module_logger("ConfigManager")

ENV_PREFIX = "PROMO_CAPTURE_"


class ConfigManager:
    """Reads ``key = value`` config files and applies environment overrides.

    Environment variables named ``PROMO_CAPTURE_<KEY>`` override file values.
    The key is upper-cased and dots become underscores, so
    ``destination.accepted.token`` is overridden by
    ``PROMO_CAPTURE_DESTINATION_ACCEPTED_TOKEN``.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self.logger = get_module_logger("ConfigManager")
        self._environ = environ if environ is not None else os.environ

    # ------------------------------------------------------------------
    # Internal helpers

    @staticmethod
    def env_key(key: str) -> str:
        return ENV_PREFIX + key.upper().replace(".", "_").replace("-", "_")

    def _parse_config_lines(self, lines: Iterable[str]) -> Dict[str, str]:
        config: Dict[str, str] = {}

        for raw_line in lines:
            line = raw_line.strip()
            if not line or line.startswith('#'):
                continue
            if '=' not in line:
                continue

            key, value = line.split('=', 1)
            key = key.strip()
            value = value.strip()

            if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
                value = value[1:-1]
            elif ' #' in value:
                value = value.split(' #', 1)[0].strip()

            config[key] = value

        return config

    def _apply_env_overrides(self, config: Dict[str, str]) -> Dict[str, str]:
        for key in list(config.keys()):
            override = self._environ.get(self.env_key(key))
            if override is not None:
                config[key] = override
        return config

    # ------------------------------------------------------------------
    # Public API

    def parse_text(self, text: str) -> Dict[str, str]:
        return self._apply_env_overrides(self._parse_config_lines(text.splitlines()))

    def read_config(self, config_path: Path) -> Dict[str, str]:
        config: Dict[str, str] = {}

        if config_path.exists():
            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    config = self._parse_config_lines(f)
            except OSError as e:
                logger.error("Failed to read config %s: %s", config_path, e)
        else:
            logger.debug("Config %s not found, using defaults", config_path)

        return self._apply_env_overrides(config)

    async def read_config_async(self, config_path: Path) -> Dict[str, str]:
        config: Dict[str, str] = {}

        if await asyncio.to_thread(config_path.exists):
            try:
                lines: list[str] = []
                async with aiofiles.open(config_path, 'r', encoding='utf-8') as f:
                    async for line in f:
                        lines.append(line)
                config = self._parse_config_lines(lines)
            except OSError as e:
                logger.error("Failed to read config %s: %s", config_path, e)

        return self._apply_env_overrides(config)


_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


__all__ = ["ConfigManager", "get_config_manager", "ENV_PREFIX"]
