"""Device capture: constraint negotiation, recording and the capture session."""

from .artifact import Artifact
from .capture.device import CameraStream, DeviceProvider, DeviceStream, OpenCVDeviceProvider
from .config import CaptureConfig
from .constraints import (
    DEFAULT_FORMAT_CANDIDATES,
    FALLBACK_FORMAT,
    AudioConstraints,
    CaptureConstraints,
    FormatCandidate,
    VideoConstraints,
    av_supports,
    select_capture_constraints,
    select_container_format,
)
from .recording.recorder import AVRecorder, FragmentSink, Recorder
from .session import CaptureSession, SessionPhase

__all__ = [
    "Artifact",
    "AVRecorder",
    "AudioConstraints",
    "CameraStream",
    "CaptureConfig",
    "CaptureConstraints",
    "CaptureSession",
    "DEFAULT_FORMAT_CANDIDATES",
    "DeviceProvider",
    "DeviceStream",
    "FALLBACK_FORMAT",
    "FormatCandidate",
    "FragmentSink",
    "OpenCVDeviceProvider",
    "Recorder",
    "SessionPhase",
    "VideoConstraints",
    "av_supports",
    "select_capture_constraints",
    "select_container_format",
]
