"""Typed configuration protocol for module configs with type coercion helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, TypeVar, Union, runtime_checkable

from .preferences import ModulePreferences, ScopedPreferences

PrefsLike = Union[ModulePreferences, ScopedPreferences]


@runtime_checkable
class ModuleConfig(Protocol):
    """Protocol for typed module configuration classes.

    Config dataclasses build themselves from preferences (optionally
    overridden by parsed CLI args) and export to a plain dict.
    """

    @classmethod
    def from_preferences(cls, prefs: PrefsLike, args: Any = None) -> "ModuleConfig":
        ...

    def to_dict(self) -> dict[str, Any]:
        ...


T = TypeVar("T", bound=ModuleConfig)


def load_typed_config(config_cls: type[T], prefs: PrefsLike, args: Any = None) -> T:
    return config_cls.from_preferences(prefs, args)


# ---------------------------------------------------------------------------
# Type coercion helpers for from_preferences() implementations
# ---------------------------------------------------------------------------


def get_pref_str(prefs: PrefsLike, key: str, default: str) -> str:
    val = prefs.get(key)
    return str(val) if val is not None else default


def get_pref_int(prefs: PrefsLike, key: str, default: int) -> int:
    val = prefs.get(key)
    if val is None:
        return default
    try:
        return int(val)
    except (ValueError, TypeError):
        return default


def get_pref_float(prefs: PrefsLike, key: str, default: float) -> float:
    val = prefs.get(key)
    if val is None:
        return default
    try:
        return float(val)
    except (ValueError, TypeError):
        return default


def get_pref_optional_float(prefs: PrefsLike, key: str) -> float | None:
    val = prefs.get(key)
    if val is None or str(val).strip() == "":
        return None
    try:
        return float(val)
    except (ValueError, TypeError):
        return None


def get_pref_bool(prefs: PrefsLike, key: str, default: bool) -> bool:
    val = prefs.get(key)
    if val is None:
        return default
    if isinstance(val, bool):
        return val
    return str(val).strip().lower() in {"true", "1", "yes", "on"}


def get_pref_path(prefs: PrefsLike, key: str, default: Path) -> Path:
    val = prefs.get(key)
    if val is None:
        return default
    text = str(val).strip()
    return Path(text).expanduser() if text else default


__all__ = [
    "ModuleConfig",
    "PrefsLike",
    "load_typed_config",
    "get_pref_str",
    "get_pref_int",
    "get_pref_float",
    "get_pref_optional_float",
    "get_pref_bool",
    "get_pref_path",
]
