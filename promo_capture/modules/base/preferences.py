"""Shared preference helpers for module configs."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from promo_capture.core.config_manager import ConfigManager, get_config_manager
from promo_capture.core.logging_utils import get_module_logger

logger = get_module_logger(__name__)


class ModulePreferences:
    """Read-only view over a ``config.txt`` file."""

    def __init__(
        self,
        config_path: Optional[Path] = None,
        *,
        config_manager: Optional[ConfigManager] = None,
        initial_data: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._config_path = Path(config_path) if config_path else None
        self._manager = config_manager or get_config_manager()
        self._cache: Dict[str, Any] = {}
        if initial_data is not None:
            self._cache = dict(initial_data)
        else:
            self.reload()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModulePreferences":
        return cls(initial_data=data)

    @property
    def config_path(self) -> Optional[Path]:
        return self._config_path

    def snapshot(self) -> Dict[str, Any]:
        return dict(self._cache)

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        return self._cache.get(key, default)

    def get_bool(self, key: str, default: bool = False) -> bool:
        if key not in self._cache:
            return default
        return str(self._cache[key]).strip().lower() in {"true", "1", "yes", "on"}

    def reload(self) -> Dict[str, Any]:
        if self._config_path is None:
            self._cache = {}
        else:
            self._cache = self._manager.read_config(self._config_path)
        return self.snapshot()

    async def reload_async(self) -> Dict[str, Any]:
        if self._config_path is not None:
            self._cache = await self._manager.read_config_async(self._config_path)
        return self.snapshot()

    def scope(self, prefix: str, *, separator: str = ".") -> "ScopedPreferences":
        """Return a scoped view that automatically prefixes keys."""

        return ScopedPreferences(self, prefix, separator=separator)


class ScopedPreferences:
    """Wrapper around ModulePreferences that automatically prefixes keys."""

    def __init__(self, base: ModulePreferences, prefix: str, *, separator: str = ".") -> None:
        self._base = base
        self._prefix = prefix.strip().rstrip(separator)
        self._separator = separator

    @property
    def prefix(self) -> str:
        return self._prefix

    def _qualify(self, key: str) -> str:
        if not self._prefix:
            return key
        if not key:
            return self._prefix
        return f"{self._prefix}{self._separator}{key}"

    def snapshot(self) -> Dict[str, Any]:
        base_snapshot = self._base.snapshot()
        if not self._prefix:
            return base_snapshot
        prefix = f"{self._prefix}{self._separator}"
        scoped: Dict[str, Any] = {}
        for key, value in base_snapshot.items():
            if key.startswith(prefix):
                scoped[key[len(prefix):]] = value
        return scoped

    def children(self) -> list[str]:
        """Distinct first path segments below this scope, in file order."""
        seen: list[str] = []
        for key in self.snapshot():
            head = key.split(self._separator, 1)[0]
            if head and head not in seen:
                seen.append(head)
        return seen

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        return self._base.get(self._qualify(key), default)

    def get_bool(self, key: str, default: bool = False) -> bool:
        return self._base.get_bool(self._qualify(key), default)

    def scope(self, prefix: str, *, separator: str = ".") -> "ScopedPreferences":
        combined = self._qualify(prefix)
        return self._base.scope(combined, separator=separator)


__all__ = ["ModulePreferences", "ScopedPreferences"]
