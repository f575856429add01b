"""Live camera/microphone stream and the provider that opens it."""

from __future__ import annotations

import asyncio
import os
import sys
import threading
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, AsyncIterator, Optional

import numpy as np

from promo_capture.core.errors import DeviceUnavailable
from promo_capture.core.logging_utils import get_module_logger

from ..constraints import CaptureConstraints
from .frame import AudioChunk, CapturedFrame
from .frame_buffer import AudioBuffer, FrameBuffer

if TYPE_CHECKING:
    import cv2
    import sounddevice as sd

logger = get_module_logger(__name__)


class DeviceStream(ABC):
    """Handle to an open audio/video source.

    Owned by exactly one capture session. ``release`` must be idempotent.
    """

    resolution: tuple[int, int] = (0, 0)
    fps: float = 0.0
    sample_rate: int = 0
    channels: int = 0

    @property
    @abstractmethod
    def released(self) -> bool:
        ...

    @property
    def has_audio(self) -> bool:
        return self.sample_rate > 0 and self.channels > 0

    @abstractmethod
    def frames(self) -> AsyncIterator[CapturedFrame]:
        ...

    @abstractmethod
    def audio_chunks(self) -> AsyncIterator[AudioChunk]:
        ...

    @abstractmethod
    def release(self) -> None:
        ...


class DeviceProvider(ABC):
    @abstractmethod
    async def acquire(self, constraints: CaptureConstraints) -> DeviceStream:
        """Open the device or raise DeviceUnavailable."""


class CameraStream(DeviceStream):
    """OpenCV camera plus optional sounddevice microphone."""

    def __init__(
        self,
        capture: "cv2.VideoCapture",
        audio_stream: Optional["sd.InputStream"],
        *,
        resolution: tuple[int, int],
        fps: float,
        sample_rate: int = 0,
        channels: int = 0,
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        self._cap = capture
        self._audio = audio_stream
        self.resolution = resolution
        self.fps = fps
        self.sample_rate = sample_rate if audio_stream is not None else 0
        self.channels = channels if audio_stream is not None else 0
        self._frames = FrameBuffer(capacity=8, loop=loop)
        self._chunks = AudioBuffer(capacity=32, loop=loop)
        self._frame_number = 0
        self._chunk_number = 0
        self._running = True
        self._released = False
        if self._audio is not None:
            self._audio.start()
        self._thread = threading.Thread(target=self._capture_loop, name="camera-capture", daemon=True)
        self._thread.start()

    @property
    def released(self) -> bool:
        return self._released

    def _capture_loop(self) -> None:
        while self._running and self._cap.isOpened():
            ok, data = self._cap.read()
            if not ok or data is None:
                time.sleep(0.001)
                continue
            self._frame_number += 1
            self._frames.put_overwrite(
                CapturedFrame(data=data, frame_number=self._frame_number, monotonic_ns=time.monotonic_ns())
            )

    def audio_callback(self, indata: np.ndarray, frames: int, time_info, status) -> None:
        if not self._running:
            return
        self._chunk_number += 1
        self._chunks.put_overwrite(
            AudioChunk(
                data=indata.copy(),
                chunk_number=self._chunk_number,
                monotonic_ns=time.monotonic_ns(),
                sample_rate=self.sample_rate,
                channels=self.channels,
            )
        )

    async def frames(self) -> AsyncIterator[CapturedFrame]:
        async for frame in self._frames.items():
            yield frame

    async def audio_chunks(self) -> AsyncIterator[AudioChunk]:
        async for chunk in self._chunks.items():
            yield chunk

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._running = False
        self._frames.stop()
        self._chunks.stop()
        if self._thread.is_alive():
            self._thread.join(timeout=2.0)
        self._cap.release()
        if self._audio is not None:
            import sounddevice as sd

            try:
                self._audio.stop()
                self._audio.close()
            except sd.PortAudioError as exc:
                logger.warning("Audio stream close failed: %s", exc)
        logger.info(
            "Camera and microphone released (%d frames, %d audio chunks dropped)",
            self._frames.drops,
            self._chunks.drops,
        )


def _video_device_path(device: int | str) -> Optional[str]:
    if isinstance(device, str):
        return device
    if sys.platform.startswith("linux"):
        return f"/dev/video{device}"
    return None


class OpenCVDeviceProvider(DeviceProvider):
    """Opens the camera with OpenCV and the microphone with sounddevice."""

    def __init__(
        self,
        device: int | str = 0,
        *,
        audio_enabled: bool = True,
        audio_device: Optional[int | str] = None,
    ) -> None:
        self._device = device
        self._audio_enabled = audio_enabled
        self._audio_device = audio_device

    def _open_camera(self, constraints: CaptureConstraints) -> tuple["cv2.VideoCapture", tuple[int, int], float]:
        import cv2

        path = _video_device_path(self._device)
        if path and os.path.exists(path) and not os.access(path, os.R_OK):
            raise DeviceUnavailable(f"Permission denied for camera {path}", permission_denied=True)

        cap = cv2.VideoCapture(self._device)
        if not cap.isOpened():
            cap.release()
            raise DeviceUnavailable(f"Camera {self._device} is not available")

        video = constraints.video
        width, height = video.ideal_resolution
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        cap.set(cv2.CAP_PROP_FPS, video.frame_rate.ideal)

        actual = (int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)), int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)))
        fps = float(cap.get(cv2.CAP_PROP_FPS) or video.frame_rate.ideal)
        if not (video.width.contains(actual[0]) and video.height.contains(actual[1])):
            logger.warning("Camera resolution %sx%s outside requested bounds", *actual)
        fps = video.frame_rate.clamp(fps)
        if video.aspect_ratio:
            logger.debug("Aspect ratio hint %.3f (%s)", video.aspect_ratio, video.resize_mode)
        return cap, actual, fps

    def _open_microphone(self, constraints: CaptureConstraints, callback) -> "sd.InputStream":
        import sounddevice as sd

        audio = constraints.audio
        try:
            return sd.InputStream(
                device=self._audio_device,
                samplerate=audio.sample_rate,
                channels=audio.channels,
                dtype=np.float32,
                callback=callback,
            )
        except sd.PortAudioError as exc:
            raise DeviceUnavailable(f"Microphone is not available: {exc}") from exc

    async def acquire(self, constraints: CaptureConstraints) -> DeviceStream:
        loop = asyncio.get_running_loop()
        cap, resolution, fps = await asyncio.to_thread(self._open_camera, constraints)

        audio_stream = None
        stream: Optional[CameraStream] = None
        try:
            if self._audio_enabled:
                # The callback needs the stream object; bind it after construction.
                holder: dict[str, CameraStream] = {}

                def _callback(indata, frames, time_info, status):
                    target = holder.get("stream")
                    if target is not None:
                        target.audio_callback(indata, frames, time_info, status)

                audio_stream = await asyncio.to_thread(self._open_microphone, constraints, _callback)
                stream = CameraStream(
                    cap,
                    audio_stream,
                    resolution=resolution,
                    fps=fps,
                    sample_rate=constraints.audio.sample_rate,
                    channels=constraints.audio.channels,
                    loop=loop,
                )
                holder["stream"] = stream
            else:
                stream = CameraStream(cap, None, resolution=resolution, fps=fps, loop=loop)
        except BaseException:
            if stream is not None:
                stream.release()
            else:
                cap.release()
                if audio_stream is not None:
                    audio_stream.close()
            raise

        logger.info(
            "Device acquired: camera=%s %sx%s@%.0f audio=%s",
            self._device, resolution[0], resolution[1], fps, "on" if stream.has_audio else "off",
        )
        return stream


__all__ = ["DeviceStream", "DeviceProvider", "CameraStream", "OpenCVDeviceProvider"]
