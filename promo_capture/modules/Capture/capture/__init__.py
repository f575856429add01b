from .device import CameraStream, DeviceProvider, DeviceStream, OpenCVDeviceProvider
from .frame import AudioChunk, CapturedFrame
from .frame_buffer import AudioBuffer, FrameBuffer

__all__ = [
    "AudioBuffer",
    "AudioChunk",
    "CameraStream",
    "CapturedFrame",
    "DeviceProvider",
    "DeviceStream",
    "FrameBuffer",
    "OpenCVDeviceProvider",
]
