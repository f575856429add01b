"""Unit tests for the command-line capture cycle."""

from __future__ import annotations

from pathlib import Path

import pytest
from aiohttp.test_utils import TestServer

from promo_capture.app.runner import (
    EXIT_CAPTURE_FAILED,
    EXIT_DELIVERY_FAILED,
    EXIT_OK,
    format_result,
    load_configs,
    parse_args,
    run_cycle,
)
from promo_capture.modules.Capture.config import CaptureConfig
from promo_capture.modules.Delivery.attempt import DeliveryResult, DeliveryStatus
from promo_capture.modules.Delivery.config import DeliveryConfig
from promo_capture.modules.Delivery.orchestrator import DeliveryMode
from promo_capture.modules.Delivery.routing import Destination
from promo_capture.modules.Location.config import LocationConfig
from tests.infrastructure.mocks.bot_api import FakeBotAPI
from tests.infrastructure.mocks.capture_mocks import MockDeviceProvider, MockRecorder, denied_provider

RECORD_ARGS = [
    "--parent-name", "Anna Petrova",
    "--child-name", "Misha",
    "--age", "7",
    "--phone", "+7 900 123-45-67",
    "--promoter", "Oleg",
]

CONFIG_TEXT = """\
# test config
capture.duration_s = 0.05
capture.camera_device = 2
location.enabled = false
delivery.mode = bot
delivery.outcome = accepted
delivery.fallback_to_local_save = true
destination.accepted.token = 111:file-token
destination.accepted.chat_id = -1001
"""


@pytest.fixture
def mock_recorder(monkeypatch) -> MockRecorder:
    recorder = MockRecorder([b"\x00\x00\x00\x18ftypisom", b"frames"])
    monkeypatch.setattr(CaptureConfig, "build_recorder", lambda self: recorder)
    return recorder


def configs(tmp_path: Path, api_base: str, **delivery):
    capture = CaptureConfig(duration_s=0.05, preview_dir=tmp_path / "previews")
    location = LocationConfig(enabled=False)
    delivery.setdefault("destinations", {"accepted": Destination("111:aaa", "-1001")})
    delivery.setdefault("downloads_dir", tmp_path / "downloads")
    delivery.setdefault("open_share_url", False)
    return {
        "capture_config": capture,
        "location_config": location,
        "delivery_config": DeliveryConfig(api_base=api_base, **delivery),
    }


class TestParseArgs:
    def test_complete_record(self):
        args = parse_args(RECORD_ARGS + ["--duration", "10", "--camera", "/dev/video1", "--mode", "share"])

        assert args.parent_name == "Anna Petrova"
        assert args.duration == 10.0
        assert args.camera == "/dev/video1"
        assert args.mode == "share"

    def test_incomplete_record_is_rejected(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            parse_args(["--parent-name", "Anna"])

        assert excinfo.value.code == 2
        assert "child_name" in capsys.readouterr().err

    def test_duration_must_be_positive(self):
        with pytest.raises(SystemExit):
            parse_args(RECORD_ARGS + ["--duration", "0"])


class TestLoadConfigs:
    def test_reads_file_and_applies_args(self, tmp_path):
        config_file = tmp_path / "config.txt"
        config_file.write_text(CONFIG_TEXT)
        args = parse_args(RECORD_ARGS + ["--config", str(config_file), "--no-audio", "--outcome", "declined"])

        capture, location, delivery = load_configs(args)

        assert capture.duration_s == 0.05
        assert capture.camera_device == 2
        assert not capture.audio_enabled
        assert not location.enabled
        assert delivery.mode is DeliveryMode.BOT
        assert delivery.outcome == "declined"
        assert delivery.fallback_to_local_save
        assert delivery.destinations["accepted"].token == "111:file-token"


class TestRunCycle:
    @pytest.mark.asyncio
    async def test_records_and_sends(self, tmp_path, mock_recorder, capsys):
        fake_bot = FakeBotAPI()
        async with TestServer(fake_bot.app()) as server:
            code = await run_cycle(
                parse_args(RECORD_ARGS),
                provider=MockDeviceProvider(),
                **configs(tmp_path, str(server.make_url(""))),
            )

        assert code == EXIT_OK
        assert "Sent via bot_media" in capsys.readouterr().out
        [request] = fake_bot.calls("sendVideo")
        assert request.fields["chat_id"] == "-1001"
        assert request.payload == b"\x00\x00\x00\x18ftypisomframes"
        assert "Not determined" in request.fields["caption"]
        assert request.filename.startswith("PROMO_Misha_")

    @pytest.mark.asyncio
    async def test_rejected_upload_falls_back_to_local_save(self, tmp_path, mock_recorder, capsys):
        fake_bot = FakeBotAPI(valid_tokens=set())
        async with TestServer(fake_bot.app()) as server:
            code = await run_cycle(
                parse_args(RECORD_ARGS),
                provider=MockDeviceProvider(),
                **configs(tmp_path, str(server.make_url("")), fallback_to_local_save=True),
            )

        assert code == EXIT_OK
        assert "Saved to" in capsys.readouterr().out
        assert len(list((tmp_path / "downloads").iterdir())) == 1

    @pytest.mark.asyncio
    async def test_rejected_upload_without_fallback_fails(self, tmp_path, mock_recorder):
        fake_bot = FakeBotAPI(valid_tokens=set())
        async with TestServer(fake_bot.app()) as server:
            code = await run_cycle(
                parse_args(RECORD_ARGS),
                provider=MockDeviceProvider(),
                **configs(tmp_path, str(server.make_url(""))),
            )

        assert code == EXIT_DELIVERY_FAILED

    @pytest.mark.asyncio
    async def test_unknown_outcome(self, tmp_path, mock_recorder):
        code = await run_cycle(
            parse_args(RECORD_ARGS),
            provider=MockDeviceProvider(),
            **configs(tmp_path, "http://127.0.0.1:9", outcome="maybe"),
        )
        assert code == EXIT_DELIVERY_FAILED

    @pytest.mark.asyncio
    async def test_share_mode_without_share_facility_saves_locally(self, tmp_path, mock_recorder):
        code = await run_cycle(
            parse_args(RECORD_ARGS),
            provider=MockDeviceProvider(),
            **configs(tmp_path, "http://127.0.0.1:9", mode=DeliveryMode.SHARE, destinations={}),
        )

        assert code == EXIT_OK
        assert len(list((tmp_path / "downloads").iterdir())) == 1

    @pytest.mark.asyncio
    async def test_denied_device(self, tmp_path, mock_recorder, capsys):
        code = await run_cycle(
            parse_args(RECORD_ARGS),
            provider=denied_provider(),
            **configs(tmp_path, "http://127.0.0.1:9"),
        )

        assert code == EXIT_CAPTURE_FAILED
        assert "Capture failed" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_empty_recording(self, tmp_path, monkeypatch):
        monkeypatch.setattr(CaptureConfig, "build_recorder", lambda self: MockRecorder([]))

        code = await run_cycle(
            parse_args(RECORD_ARGS),
            provider=MockDeviceProvider(),
            **configs(tmp_path, "http://127.0.0.1:9"),
        )

        assert code == EXIT_CAPTURE_FAILED


class TestFormatResult:
    def test_messages(self, tmp_path):
        assert format_result(DeliveryResult(DeliveryStatus.SENT, channel="bot_media")) == "Sent via bot_media"
        manual = format_result(DeliveryResult(DeliveryStatus.MANUAL, saved_path=tmp_path / "a.mp4"))
        assert str(tmp_path / "a.mp4") in manual
        assert format_result(DeliveryResult(DeliveryStatus.FAILED, error="boom")) == "Delivery failed: boom"
