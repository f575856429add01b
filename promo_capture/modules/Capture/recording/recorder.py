"""Encodes a device stream into a container and emits it as timed fragments."""

from __future__ import annotations

import asyncio
import threading
from abc import ABC, abstractmethod
from fractions import Fraction
from typing import Callable, Optional

import av
import numpy as np

from promo_capture.core.logging_utils import get_module_logger

from ..capture.device import DeviceStream
from ..capture.frame import AudioChunk, CapturedFrame
from ..constraints import FormatCandidate

logger = get_module_logger(__name__)

DEFAULT_VIDEO_BITRATE = 2_500_000
DEFAULT_AUDIO_BITRATE = 128_000
DEFAULT_TIMESLICE_MS = 1000

# Sample rates some encoders insist on; PyAV resamples to these on encode.
ENCODER_SAMPLE_RATES = {"libopus": 48000, "opus": 48000}

# Container options that let the muxer write to a non-seekable sink.
STREAMING_OPTIONS = {
    "mp4": {"movflags": "frag_keyframe+empty_moov+default_base_moof"},
    "mov": {"movflags": "frag_keyframe+empty_moov+default_base_moof"},
}

FragmentCallback = Callable[[bytes], None]


class FragmentSink:
    """Write-only, non-seekable file object the muxer writes into.

    Bytes accumulate until ``drain`` hands them out as one fragment.
    """

    def __init__(self) -> None:
        self._pending = bytearray()
        self._lock = threading.Lock()
        self._total = 0

    def write(self, data) -> int:
        with self._lock:
            self._pending += data
            self._total += len(data)
        return len(data)

    def flush(self) -> None:
        pass

    def drain(self) -> bytes:
        with self._lock:
            data = bytes(self._pending)
            self._pending.clear()
        return data

    @property
    def total_bytes(self) -> int:
        return self._total


class Recorder(ABC):
    """Recording contract used by the capture session.

    ``start`` begins emitting fragments through ``on_data`` every timeslice,
    in temporal order. ``stop`` flushes the final fragment and returns the
    effective format label (empty if the runtime does not report one).
    """

    @abstractmethod
    async def start(self, stream: DeviceStream, fmt: FormatCandidate, on_data: FragmentCallback) -> None:
        ...

    @abstractmethod
    async def stop(self) -> str:
        ...


class AVRecorder(Recorder):
    def __init__(
        self,
        *,
        video_bitrate: int = DEFAULT_VIDEO_BITRATE,
        audio_bitrate: int = DEFAULT_AUDIO_BITRATE,
        timeslice_ms: int = DEFAULT_TIMESLICE_MS,
    ) -> None:
        self._video_bitrate = video_bitrate
        self._audio_bitrate = audio_bitrate
        self._timeslice_s = timeslice_ms / 1000.0
        self._sink = FragmentSink()
        self._container = None
        self._video_stream = None
        self._audio_stream = None
        self._lock = threading.Lock()
        self._tasks: list[asyncio.Task] = []
        self._on_data: Optional[FragmentCallback] = None
        self._format: Optional[FormatCandidate] = None
        self._frame_count = 0
        self._audio_samples = 0
        self._running = False
        self._stopped = False
        # Serializes start and stop when a stop arrives mid-start
        self._lifecycle = asyncio.Lock()

    @property
    def frame_count(self) -> int:
        return self._frame_count

    def _open(self, stream: DeviceStream, fmt: FormatCandidate) -> None:
        video_codec, audio_codec = fmt.codecs
        self._container = av.open(
            self._sink,
            mode="w",
            format=fmt.container,
            options=STREAMING_OPTIONS.get(fmt.container, {}),
        )
        fps = max(1, int(round(stream.fps or 30)))
        width, height = stream.resolution
        video = self._container.add_stream(video_codec, rate=fps)
        # H.264 and VP8/9 need even dimensions
        video.width, video.height = width - width % 2, height - height % 2
        video.pix_fmt = "yuv420p"
        video.bit_rate = self._video_bitrate
        video.time_base = Fraction(1, fps)
        self._video_stream = video

        if stream.has_audio:
            rate = ENCODER_SAMPLE_RATES.get(audio_codec, stream.sample_rate)
            audio = self._container.add_stream(audio_codec, rate=rate)
            audio.layout = "stereo" if stream.channels == 2 else "mono"
            audio.bit_rate = self._audio_bitrate
            self._audio_stream = audio

    async def start(self, stream: DeviceStream, fmt: FormatCandidate, on_data: FragmentCallback) -> None:
        async with self._lifecycle:
            await asyncio.to_thread(self._open, stream, fmt)
            self._format = fmt
            self._on_data = on_data
            self._frame_count = 0
            self._audio_samples = 0
            self._running = True
            self._stopped = False
            self._tasks = [asyncio.create_task(self._video_pump(stream), name="recorder-video")]
            if self._audio_stream is not None:
                self._tasks.append(asyncio.create_task(self._audio_pump(stream), name="recorder-audio"))
            self._tasks.append(asyncio.create_task(self._flush_loop(), name="recorder-flush"))
        logger.info(
            "Recording started: %s video=%d bps audio=%s",
            fmt.label, self._video_bitrate, self._audio_bitrate if self._audio_stream else "off",
        )

    # ------------------------------------------------------------------
    # Pumps

    def _encode_video(self, frame: CapturedFrame, pts: int) -> None:
        data = frame.data
        width, height = self._video_stream.width, self._video_stream.height
        if frame.width != width or frame.height != height:
            import cv2
            data = cv2.resize(data, (width, height), interpolation=cv2.INTER_LINEAR)
        av_frame = av.VideoFrame.from_ndarray(data, format="bgr24")
        av_frame.pts = pts
        with self._lock:
            for packet in self._video_stream.encode(av_frame):
                self._container.mux(packet)

    def _encode_audio(self, chunk: AudioChunk, pts: int) -> None:
        planar = np.ascontiguousarray(chunk.data.T, dtype=np.float32)
        layout = "stereo" if chunk.channels == 2 else "mono"
        av_frame = av.AudioFrame.from_ndarray(planar, format="fltp", layout=layout)
        av_frame.sample_rate = chunk.sample_rate
        av_frame.pts = pts
        av_frame.time_base = Fraction(1, chunk.sample_rate)
        with self._lock:
            for packet in self._audio_stream.encode(av_frame):
                self._container.mux(packet)

    async def _video_pump(self, stream: DeviceStream) -> None:
        async for frame in stream.frames():
            if not self._running:
                break
            await asyncio.to_thread(self._encode_video, frame, self._frame_count)
            self._frame_count += 1

    async def _audio_pump(self, stream: DeviceStream) -> None:
        async for chunk in stream.audio_chunks():
            if not self._running:
                break
            await asyncio.to_thread(self._encode_audio, chunk, self._audio_samples)
            self._audio_samples += chunk.samples

    def _emit(self) -> None:
        fragment = self._sink.drain()
        if self._on_data is not None:
            self._on_data(fragment)

    async def _flush_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._timeslice_s)
            self._emit()

    # ------------------------------------------------------------------
    # Finalization

    def _finalize(self) -> None:
        with self._lock:
            try:
                for packet in self._video_stream.encode():
                    self._container.mux(packet)
                if self._audio_stream is not None:
                    for packet in self._audio_stream.encode():
                        self._container.mux(packet)
            finally:
                self._container.close()

    async def stop(self) -> str:
        async with self._lifecycle:
            if not self._stopped:
                await self._shutdown()
        return self._format.label if self._format else ""

    async def _shutdown(self) -> None:
        self._running = False
        self._stopped = True
        for task in self._tasks:
            task.cancel()
        results = await asyncio.gather(*self._tasks, return_exceptions=True)
        for task, result in zip(self._tasks, results):
            if isinstance(result, Exception):
                logger.warning("%s ended with error: %s", task.get_name(), result)
        self._tasks = []
        try:
            if self._container is not None:
                await asyncio.to_thread(self._finalize)
        finally:
            self._container = None
            self._emit()
        logger.info("Recording finalized: %d frames, %d bytes", self._frame_count, self._sink.total_bytes)


__all__ = [
    "Recorder",
    "AVRecorder",
    "FragmentSink",
    "FragmentCallback",
    "DEFAULT_VIDEO_BITRATE",
    "DEFAULT_AUDIO_BITRATE",
    "DEFAULT_TIMESLICE_MS",
]
