"""Capture constraint and container/codec negotiation.

Both selectors are pure: they read the platform hint or query runtime
capability and return a value, nothing else.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Union

import av

from promo_capture.core.logging_utils import get_module_logger
from promo_capture.core.platform_info import PlatformInfo

logger = get_module_logger(__name__)


@dataclass(frozen=True)
class Range:
    ideal: float
    min: float
    max: float

    def clamp(self, value: float) -> float:
        return max(self.min, min(self.max, value))

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


@dataclass(frozen=True)
class VideoConstraints:
    width: Range = field(default_factory=lambda: Range(640, 320, 1280))
    height: Range = field(default_factory=lambda: Range(480, 240, 720))
    frame_rate: Range = field(default_factory=lambda: Range(30, 15, 30))
    facing_mode: str = "environment"
    # Platform hints; absent unless the platform family asks for them
    aspect_ratio: Optional[float] = None
    resize_mode: Optional[str] = None

    @property
    def ideal_resolution(self) -> tuple[int, int]:
        return int(self.width.ideal), int(self.height.ideal)


@dataclass(frozen=True)
class AudioConstraints:
    echo_cancellation: bool = True
    noise_suppression: bool = True
    auto_gain_control: bool = True
    sample_rate: int = 44100
    channels: int = 1


@dataclass(frozen=True)
class CaptureConstraints:
    video: VideoConstraints = field(default_factory=VideoConstraints)
    audio: AudioConstraints = field(default_factory=AudioConstraints)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# Additive per-family hints. Only fields that are still unset get filled in.
PLATFORM_VIDEO_HINTS: Mapping[str, Mapping[str, Any]] = {
    "darwin": {"aspect_ratio": 16 / 9, "resize_mode": "crop-and-scale"},
}


def _platform_family(platform_hint: Union[str, PlatformInfo, None]) -> str:
    if isinstance(platform_hint, PlatformInfo):
        return platform_hint.family
    return (platform_hint or "").strip().lower()


def select_capture_constraints(
    platform_hint: Union[str, PlatformInfo, None] = None,
    *,
    base: Optional[CaptureConstraints] = None,
) -> CaptureConstraints:
    """Return capture constraints for ``platform_hint``.

    Platform hints only ever add fields; the resolution, frame rate and
    audio processing settings of ``base`` are always carried through.
    """
    constraints = base or CaptureConstraints()
    family = _platform_family(platform_hint)
    hints = PLATFORM_VIDEO_HINTS.get(family)
    if hints:
        additions = {
            name: value
            for name, value in hints.items()
            if getattr(constraints.video, name) is None
        }
        if additions:
            constraints = replace(constraints, video=replace(constraints.video, **additions))
    logger.debug("Capture constraints for platform '%s': %s", family or "unknown", constraints)
    return constraints


# ---------------------------------------------------------------------------
# Container / codec negotiation
# ---------------------------------------------------------------------------

# Codecs used when a candidate names only a container.
DEFAULT_CONTAINER_CODECS: Mapping[str, tuple[str, str]] = {
    "mp4": ("mpeg4", "aac"),
    "webm": ("libvpx", "libopus"),
}


@dataclass(frozen=True)
class FormatCandidate:
    """A container/codec pair, labelled the way the artifact will declare it."""

    label: str
    container: str
    video_codec: Optional[str] = None
    audio_codec: Optional[str] = None

    @property
    def mime_type(self) -> str:
        return self.label.split(";", 1)[0].strip()

    @property
    def codecs(self) -> tuple[str, str]:
        default_video, default_audio = DEFAULT_CONTAINER_CODECS.get(self.container, ("mpeg4", "aac"))
        return self.video_codec or default_video, self.audio_codec or default_audio

    def __str__(self) -> str:
        return self.label


# Priority order: the container the bot endpoint handles best comes first,
# ahead of the one with the best compression.
DEFAULT_FORMAT_CANDIDATES: tuple[FormatCandidate, ...] = (
    FormatCandidate('video/mp4; codecs="avc1.424028, mp4a.40.2"', "mp4", "libx264", "aac"),
    FormatCandidate('video/webm; codecs="vp9, opus"', "webm", "libvpx-vp9", "libopus"),
    FormatCandidate('video/webm; codecs="vp8, opus"', "webm", "libvpx", "libopus"),
    FormatCandidate("video/mp4", "mp4"),
    FormatCandidate("video/webm", "webm"),
)

FALLBACK_FORMAT = FormatCandidate("video/webm", "webm")


def _has_encoder(name: str) -> bool:
    try:
        av.codec.Codec(name, "w")
    except (ValueError, av.FFmpegError):
        return False
    return True


def av_supports(candidate: FormatCandidate) -> bool:
    """Report whether the local FFmpeg build can mux ``candidate``."""
    if candidate.container not in av.formats_available:
        return False
    return all(_has_encoder(codec) for codec in candidate.codecs)


def select_container_format(
    candidates: Iterable[FormatCandidate] = DEFAULT_FORMAT_CANDIDATES,
    is_supported: Callable[[FormatCandidate], bool] = av_supports,
    *,
    fallback: FormatCandidate = FALLBACK_FORMAT,
) -> FormatCandidate:
    """Return the first supported candidate, or ``fallback`` if none is."""
    candidates = tuple(candidates)
    for candidate in candidates:
        if is_supported(candidate):
            logger.info("Selected recording format: %s", candidate.label)
            return candidate
        logger.debug("Recording format not supported: %s", candidate.label)
    logger.warning(
        "No supported recording format among [%s], falling back to %s",
        " | ".join(candidate_labels(candidates)), fallback.label,
    )
    return fallback


def candidate_labels(candidates: Sequence[FormatCandidate]) -> list[str]:
    return [candidate.label for candidate in candidates]


__all__ = [
    "Range",
    "VideoConstraints",
    "AudioConstraints",
    "CaptureConstraints",
    "PLATFORM_VIDEO_HINTS",
    "select_capture_constraints",
    "FormatCandidate",
    "DEFAULT_FORMAT_CANDIDATES",
    "FALLBACK_FORMAT",
    "av_supports",
    "select_container_format",
    "candidate_labels",
]
