"""Unit test fixtures for isolated, fast test execution.

Everything here runs without a camera, microphone, GPS receiver or network
access: devices, recorders and the Bot API are replaced by the mocks in
``tests.infrastructure.mocks``.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from promo_capture.modules.Capture.artifact import Artifact
from promo_capture.modules.Delivery.record import ParticipantRecord
from tests.infrastructure.helpers import make_artifact, make_record
from tests.infrastructure.mocks.bot_api import FakeBotAPI
from tests.infrastructure.mocks.capture_mocks import MockDeviceProvider, MockRecorder


@pytest.fixture
def record() -> ParticipantRecord:
    return make_record()


@pytest.fixture
def artifact() -> Artifact:
    return make_artifact()


@pytest.fixture
def mock_provider() -> MockDeviceProvider:
    return MockDeviceProvider()


@pytest.fixture
def mock_recorder() -> MockRecorder:
    return MockRecorder()


@pytest.fixture
def fake_bot() -> FakeBotAPI:
    return FakeBotAPI()


@pytest.fixture
def downloads_dir(tmp_path: Path) -> Path:
    path = tmp_path / "downloads"
    path.mkdir()
    return path
