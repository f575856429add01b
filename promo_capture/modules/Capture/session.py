"""Capture session: owns the device stream and the recording it produces.

States::

    IDLE --start--> ACQUIRING --granted--> RECORDING --stop--> READY
      ^                 |                                        |
      +----denied-------+                 IDLE <----retake-------+

    any --release--> RELEASED

The device is released on every path out of RECORDING, and by ``release``.
"""

from __future__ import annotations

import asyncio
import itertools
from functools import partial
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

import aiofiles

from promo_capture.core.errors import DeviceUnavailable, InvalidTransition, RecordingEmpty
from promo_capture.core.logging_utils import get_module_logger
from promo_capture.core.paths import PREVIEW_DIR
from promo_capture.core.platform_info import PlatformInfo

from .artifact import Artifact
from .capture.device import DeviceProvider, DeviceStream
from .constraints import (
    DEFAULT_FORMAT_CANDIDATES,
    FALLBACK_FORMAT,
    CaptureConstraints,
    FormatCandidate,
    av_supports,
    select_capture_constraints,
    select_container_format,
)
from .recording.recorder import AVRecorder, Recorder

logger = get_module_logger(__name__)

_preview_ids = itertools.count(1)

PREVIEW_EXTENSIONS = {"video/mp4": "mp4", "video/webm": "webm", "video/quicktime": "mov"}


class SessionPhase(Enum):
    IDLE = auto()
    ACQUIRING = auto()
    RECORDING = auto()
    READY = auto()
    RELEASED = auto()


class CaptureSession:
    def __init__(
        self,
        provider: DeviceProvider,
        recorder_factory: Optional[Callable[[], Recorder]] = None,
        *,
        platform_hint: Union[str, PlatformInfo, None] = None,
        constraints: Optional[CaptureConstraints] = None,
        format_candidates: Sequence[FormatCandidate] = DEFAULT_FORMAT_CANDIDATES,
        is_supported: Callable[[FormatCandidate], bool] = av_supports,
        fallback_format: FormatCandidate = FALLBACK_FORMAT,
        preview_dir: Path = PREVIEW_DIR,
    ) -> None:
        self._provider = provider
        self._recorder_factory = recorder_factory or AVRecorder
        self._constraints = select_capture_constraints(platform_hint, base=constraints)
        self._format_candidates = tuple(format_candidates)
        self._is_supported = is_supported
        self._fallback_format = fallback_format
        self._preview_dir = Path(preview_dir)

        self._phase = SessionPhase.IDLE
        self._device: Optional[DeviceStream] = None
        self._recorder: Optional[Recorder] = None
        self._format: Optional[FormatCandidate] = None
        self._chunks: list[bytes] = []
        self._skipped_fragments = 0
        self._artifact: Optional[Artifact] = None
        self._preview_path: Optional[Path] = None

    # ------------------------------------------------------------------
    # Introspection

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def constraints(self) -> CaptureConstraints:
        return self._constraints

    @property
    def selected_format(self) -> Optional[FormatCandidate]:
        return self._format

    @property
    def artifact(self) -> Optional[Artifact]:
        return self._artifact

    @property
    def chunk_count(self) -> int:
        return len(self._chunks)

    @property
    def skipped_fragments(self) -> int:
        return self._skipped_fragments

    @property
    def device_open(self) -> bool:
        return self._device is not None

    @property
    def preview_file(self) -> Optional[Path]:
        return self._preview_path

    def _set_phase(self, phase: SessionPhase) -> None:
        if phase is not self._phase:
            logger.debug("Capture session %s -> %s", self._phase.name, phase.name)
            self._phase = phase

    # ------------------------------------------------------------------
    # Resource helpers

    def _release_device(self) -> None:
        device, self._device = self._device, None
        if device is not None:
            device.release()

    def _discard_preview(self) -> None:
        path, self._preview_path = self._preview_path, None
        if path is not None:
            path.unlink(missing_ok=True)
            logger.debug("Preview %s removed", path)

    def _discard_artifact(self) -> None:
        self._artifact = None
        self._discard_preview()

    def _on_fragment(self, source: Recorder, data: bytes) -> None:
        # Late fragments from a recorder this session no longer owns
        if self._phase is not SessionPhase.RECORDING or source is not self._recorder:
            return
        if not data:
            self._skipped_fragments += 1
            return
        self._chunks.append(bytes(data))

    # ------------------------------------------------------------------
    # Transitions

    async def start(self) -> None:
        """Acquire the device and begin recording.

        Raises:
            DeviceUnavailable: device access was denied or failed. The
                session is back in IDLE and nothing is retried.
            InvalidTransition: already acquiring/recording, or released.
        """
        if self._phase is SessionPhase.READY:
            self.retake()
        if self._phase is not SessionPhase.IDLE:
            raise InvalidTransition(f"Cannot start recording while {self._phase.name}")

        self._discard_artifact()
        self._chunks = []
        self._skipped_fragments = 0
        self._set_phase(SessionPhase.ACQUIRING)

        fmt = select_container_format(
            self._format_candidates, self._is_supported, fallback=self._fallback_format
        )

        try:
            device = await self._provider.acquire(self._constraints)
        except DeviceUnavailable as exc:
            self._set_phase(SessionPhase.IDLE)
            logger.error("Device unavailable: %s", exc)
            raise
        except asyncio.CancelledError:
            self._set_phase(SessionPhase.IDLE)
            raise
        except Exception as exc:
            self._set_phase(SessionPhase.IDLE)
            logger.error("Device acquisition failed: %s", exc)
            raise DeviceUnavailable(str(exc)) from exc

        if self._phase is not SessionPhase.ACQUIRING:
            # Released while the device request was pending
            device.release()
            raise InvalidTransition("Session released during device acquisition")

        self._device = device
        self._format = fmt
        recorder = self._recorder_factory()
        self._recorder = recorder
        self._set_phase(SessionPhase.RECORDING)
        try:
            await recorder.start(device, fmt, partial(self._on_fragment, recorder))
        except BaseException as exc:
            if self._recorder is recorder:
                self._recorder = None
                self._release_device()
                self._set_phase(SessionPhase.IDLE)
            if isinstance(exc, Exception):
                logger.error("Recorder failed to start: %s", exc)
                raise DeviceUnavailable(f"Recorder failed to start: {exc}") from exc
            raise

        if self._recorder is not recorder:
            # Stopped or released while the recorder was starting
            await recorder.stop()
            raise InvalidTransition("Recording stopped before the recorder finished starting")

    async def stop(self) -> Artifact:
        """Finalize the recording into one artifact and release the device.

        Raises:
            RecordingEmpty: no bytes were recorded. The session returns to IDLE.
            InvalidTransition: not recording.
        """
        if self._phase is not SessionPhase.RECORDING:
            raise InvalidTransition(f"Cannot stop recording while {self._phase.name}")

        recorder = self._recorder
        effective_label = ""
        try:
            effective_label = await recorder.stop()
        except Exception as exc:
            # Keep whatever fragments already arrived
            logger.warning("Recorder finalization failed, keeping %d fragments: %s", len(self._chunks), exc)
        finally:
            if self._recorder is recorder:
                self._recorder = None
            self._release_device()

        if self._phase is not SessionPhase.RECORDING:
            raise InvalidTransition(f"Session {self._phase.name} while stopping")

        data = b"".join(self._chunks)
        if not data:
            self._set_phase(SessionPhase.IDLE)
            raise RecordingEmpty("Recording produced no data")

        label = effective_label or (self._format.label if self._format else self._fallback_format.label)
        self._artifact = Artifact(data, label)
        self._set_phase(SessionPhase.READY)
        logger.info(
            "Recording ready: %d bytes in %d fragments (%d empty skipped) as %s",
            self._artifact.size, len(self._chunks), self._skipped_fragments, label,
        )
        return self._artifact

    def retake(self) -> None:
        """Drop the artifact and its preview so a new recording can start."""
        if self._phase is SessionPhase.IDLE:
            return
        if self._phase is not SessionPhase.READY:
            raise InvalidTransition(f"Cannot retake while {self._phase.name}")
        self._discard_artifact()
        self._chunks = []
        self._set_phase(SessionPhase.IDLE)

    async def release(self) -> None:
        """Tear everything down. Idempotent and safe from any state."""
        if self._phase is SessionPhase.RELEASED:
            return
        recorder, self._recorder = self._recorder, None
        self._set_phase(SessionPhase.RELEASED)
        try:
            if recorder is not None:
                try:
                    await recorder.stop()
                except Exception as exc:
                    logger.warning("Recorder stop during teardown failed: %s", exc)
        finally:
            self._release_device()
            self._discard_artifact()
            self._chunks = []

    async def __aenter__(self) -> "CaptureSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.release()

    # ------------------------------------------------------------------
    # Preview

    async def render_preview(self) -> Path:
        """Write the artifact to a temporary file for playback."""
        if self._artifact is None:
            raise InvalidTransition("No recording to preview")
        if self._preview_path is not None:
            return self._preview_path
        mime = self._artifact.mime_type.split(";", 1)[0].strip()
        extension = PREVIEW_EXTENSIONS.get(mime, "mp4")
        await asyncio.to_thread(self._preview_dir.mkdir, parents=True, exist_ok=True)
        path = self._preview_dir / f"preview_{next(_preview_ids)}.{extension}"
        async with aiofiles.open(path, "wb") as fh:
            await fh.write(self._artifact.data)
        self._preview_path = path
        return path


__all__ = ["CaptureSession", "SessionPhase"]
