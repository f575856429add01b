"""Hardware tests: real camera and encoder.

Run with ``pytest --run-hardware`` on a machine with a camera attached.
"""

import asyncio

import pytest

from promo_capture.modules.Capture.config import CaptureConfig
from promo_capture.modules.Delivery.formats import normalize_artifact


@pytest.mark.hardware
@pytest.mark.slow
@pytest.mark.asyncio
async def test_short_recording_from_default_camera(tmp_path):
    config = CaptureConfig(audio_enabled=False, timeslice_ms=250, preview_dir=tmp_path)

    async with config.build_session() as session:
        await session.start()
        await asyncio.sleep(1.5)
        artifact = await session.stop()
        preview = await session.render_preview()

        assert artifact.size > 0
        assert session.chunk_count >= 2
        assert preview.read_bytes() == artifact.data
        _, fmt = normalize_artifact(artifact)
        assert fmt.extension in ("mp4", "webm", "mov")

    assert not preview.exists()


@pytest.mark.hardware
@pytest.mark.asyncio
async def test_camera_is_released_after_session(tmp_path):
    config = CaptureConfig(audio_enabled=False, preview_dir=tmp_path)

    for _ in range(2):
        async with config.build_session() as session:
            await session.start()
            await asyncio.sleep(0.3)
            await session.stop()
