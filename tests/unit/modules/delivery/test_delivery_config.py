"""Unit tests for DeliveryConfig."""

from argparse import Namespace
from pathlib import Path

import pytest

from promo_capture.modules.base.preferences import ModulePreferences
from promo_capture.modules.Delivery.channels import (
    BotDocumentChannel,
    BotMediaChannel,
    LocalSaveChannel,
    PlatformShareChannel,
)
from promo_capture.modules.Delivery.config import DeliveryConfig, destinations_from_preferences
from promo_capture.modules.Delivery.orchestrator import DeliveryMode

CONFIG = {
    "delivery.mode": "bot",
    "delivery.outcome": "declined",
    "delivery.api_base": "http://bot.local",
    "delivery.request_timeout_s": "15",
    "delivery.max_upload_mb": "20",
    "delivery.fallback_to_local_save": "true",
    "delivery.downloads_dir": "/tmp/promo-downloads",
    "delivery.caption_footer": "Kids Expo",
    "destination.accepted.token": "111:secret-token",
    "destination.accepted.chat_id": "-1001",
    "destination.declined.token": "222:other-token",
    "destination.declined.chat_id": "-1002",
}


@pytest.fixture
def prefs() -> ModulePreferences:
    return ModulePreferences.from_dict(CONFIG)


def load(prefs, args=None) -> DeliveryConfig:
    return DeliveryConfig.from_preferences(
        prefs.scope("delivery"), args, destination_prefs=prefs.scope("destination")
    )


class TestFromPreferences:
    def test_defaults(self):
        config = DeliveryConfig.from_preferences(ModulePreferences.from_dict({}))

        assert config.mode is DeliveryMode.BOT
        assert config.outcome == "accepted"
        assert config.api_base == "https://api.telegram.org"
        assert config.max_upload_mb == 50.0
        assert not config.fallback_to_local_save
        assert config.destinations == {}

    def test_values(self, prefs):
        config = load(prefs)

        assert config.outcome == "declined"
        assert config.api_base == "http://bot.local"
        assert config.request_timeout_s == 15.0
        assert config.max_upload_mb == 20.0
        assert config.fallback_to_local_save
        assert config.downloads_dir == Path("/tmp/promo-downloads")
        assert config.caption_footer == "Kids Expo"

    def test_destinations(self, prefs):
        destinations = destinations_from_preferences(prefs.scope("destination"))

        assert set(destinations) == {"accepted", "declined"}
        assert destinations["accepted"].chat_id == "-1001"
        assert destinations["declined"].token == "222:other-token"

    def test_invalid_mode(self):
        with pytest.raises(ValueError):
            DeliveryConfig.from_preferences(ModulePreferences.from_dict({"mode": "fax"}))

    def test_args_override(self, prefs, tmp_path):
        args = Namespace(mode="share", outcome="accepted", output_dir=str(tmp_path), no_open=True)

        config = load(prefs, args)

        assert config.mode is DeliveryMode.SHARE
        assert config.outcome == "accepted"
        assert config.downloads_dir == tmp_path
        assert not config.open_share_url

    def test_unset_args_keep_file_values(self, prefs):
        args = Namespace(mode=None, outcome=None, output_dir=None, no_open=False)

        config = load(prefs, args)

        assert config.mode is DeliveryMode.BOT
        assert config.outcome == "declined"
        assert config.open_share_url

    def test_to_dict_masks_tokens(self, prefs):
        data = load(prefs).to_dict()

        assert data["mode"] == "bot"
        assert data["destinations"]["accepted"]["chat_id"] == "-1001"
        assert "secret-token" not in str(data)
        assert "secret-token" not in repr(load(prefs))


class TestBuilders:
    def test_bot_chain_with_local_fallback(self, prefs):
        channels = load(prefs).build_channels()

        assert [type(c) for c in channels] == [BotMediaChannel, BotDocumentChannel, LocalSaveChannel]
        assert channels[0].api_base == "http://bot.local"
        assert channels[0].max_upload_mb == 20.0
        assert channels[1].timeout_s == 15.0

    def test_bot_chain_without_fallback(self):
        channels = DeliveryConfig().build_channels()
        assert [type(c) for c in channels] == [BotMediaChannel, BotDocumentChannel]

    def test_share_chain(self):
        channels = DeliveryConfig(mode=DeliveryMode.SHARE).build_channels()
        assert [type(c) for c in channels] == [PlatformShareChannel, LocalSaveChannel]

    def test_no_open_disables_browser(self):
        opener = lambda url: True  # noqa: E731
        config = DeliveryConfig(mode=DeliveryMode.SHARE, open_share_url=False)

        local = config.build_channels(open_url=opener)[-1]

        assert local._open_url is None

    def test_router_and_orchestrator(self, prefs):
        config = load(prefs)

        assert config.build_router().resolve("ACCEPTED").chat_id == "-1001"
        orchestrator = config.build_orchestrator()
        assert [c.name for c in orchestrator.channels] == ["bot_media", "bot_document", "local_save"]
