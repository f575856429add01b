"""Typed configuration for the capture module."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

from promo_capture.core.paths import PREVIEW_DIR
from promo_capture.core.platform_info import get_platform_info
from promo_capture.modules.base.typed_config import (
    PrefsLike,
    get_pref_bool,
    get_pref_float,
    get_pref_int,
    get_pref_path,
    get_pref_str,
)

from .capture.device import DeviceProvider, OpenCVDeviceProvider
from .recording.recorder import AVRecorder, DEFAULT_AUDIO_BITRATE, DEFAULT_TIMESLICE_MS, DEFAULT_VIDEO_BITRATE
from .session import CaptureSession


def _parse_device(value: str) -> int | str:
    text = value.strip()
    return int(text) if text.isdigit() else text


@dataclass(slots=True)
class CaptureConfig:
    """Typed configuration for the capture module."""

    # Devices
    camera_device: int | str = 0
    audio_enabled: bool = True
    audio_device: Optional[int | str] = None

    # Recording
    duration_s: float = 15.0
    timeslice_ms: int = DEFAULT_TIMESLICE_MS
    video_bitrate: int = DEFAULT_VIDEO_BITRATE
    audio_bitrate: int = DEFAULT_AUDIO_BITRATE
    preview_dir: Path = field(default_factory=lambda: PREVIEW_DIR)

    # Platform family override ("" = detect)
    platform_hint: str = ""

    @classmethod
    def from_preferences(cls, prefs: PrefsLike, args: Any = None) -> "CaptureConfig":
        defaults = cls()
        audio_device_text = get_pref_str(prefs, "audio_device", "").strip()

        config = cls(
            camera_device=_parse_device(get_pref_str(prefs, "camera_device", str(defaults.camera_device))),
            audio_enabled=get_pref_bool(prefs, "audio_enabled", defaults.audio_enabled),
            audio_device=_parse_device(audio_device_text) if audio_device_text else None,
            duration_s=get_pref_float(prefs, "duration_s", defaults.duration_s),
            timeslice_ms=get_pref_int(prefs, "timeslice_ms", defaults.timeslice_ms),
            video_bitrate=get_pref_int(prefs, "video_bitrate", defaults.video_bitrate),
            audio_bitrate=get_pref_int(prefs, "audio_bitrate", defaults.audio_bitrate),
            preview_dir=get_pref_path(prefs, "preview_dir", defaults.preview_dir),
            platform_hint=get_pref_str(prefs, "platform_hint", defaults.platform_hint),
        )

        if args is not None:
            config = config._apply_args_override(args)
        return config

    def _apply_args_override(self, args: Any) -> "CaptureConfig":
        values = asdict(self)
        arg_mappings = {
            "duration": "duration_s",
            "camera": "camera_device",
        }
        for arg_name, config_key in arg_mappings.items():
            val = getattr(args, arg_name, None)
            if val is not None:
                values[config_key] = val
        if getattr(args, "no_audio", False):
            values["audio_enabled"] = False
        return CaptureConfig(**values)

    def build_provider(self) -> DeviceProvider:
        return OpenCVDeviceProvider(
            self.camera_device,
            audio_enabled=self.audio_enabled,
            audio_device=self.audio_device,
        )

    def build_recorder(self) -> AVRecorder:
        return AVRecorder(
            video_bitrate=self.video_bitrate,
            audio_bitrate=self.audio_bitrate,
            timeslice_ms=self.timeslice_ms,
        )

    def build_session(self, provider: Optional[DeviceProvider] = None) -> CaptureSession:
        return CaptureSession(
            provider or self.build_provider(),
            self.build_recorder,
            platform_hint=self.platform_hint or get_platform_info(),
            preview_dir=self.preview_dir,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["preview_dir"] = str(self.preview_dir)
        return data
