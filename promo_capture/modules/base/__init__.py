"""Shared preference and typed-config helpers for modules."""

from .preferences import ModulePreferences, ScopedPreferences
from .typed_config import (
    ModuleConfig,
    PrefsLike,
    get_pref_bool,
    get_pref_float,
    get_pref_int,
    get_pref_optional_float,
    get_pref_path,
    get_pref_str,
    load_typed_config,
)

__all__ = [
    "ModuleConfig",
    "ModulePreferences",
    "PrefsLike",
    "ScopedPreferences",
    "get_pref_bool",
    "get_pref_float",
    "get_pref_int",
    "get_pref_optional_float",
    "get_pref_path",
    "get_pref_str",
    "load_typed_config",
]
