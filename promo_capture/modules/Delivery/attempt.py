"""Delivery attempt state and typed results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from promo_capture.core.errors import DeliveryError, DeliveryErrorKind
from promo_capture.modules.Capture.artifact import Artifact
from promo_capture.modules.Location.models import Location, LocationError

from .record import ParticipantRecord
from .routing import Destination


class SendState(Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    SENT = "sent"
    FAILED = "failed"


class ChannelStatus(Enum):
    SENT = "sent"
    MANUAL = "manual"
    FAILED = "failed"
    SKIPPED = "skipped"


class DeliveryStatus(Enum):
    SENT = "sent"
    MANUAL = "manual"
    FAILED = "failed"


@dataclass
class DeliveryAttempt:
    """One lead on its way out: record, video, outcome and optional location."""

    record: ParticipantRecord
    artifact: Artifact
    outcome: str = ""
    location: Optional[Location] = None
    location_error: Optional[LocationError] = None
    state: SendState = SendState.IDLE

    @property
    def in_flight(self) -> bool:
        return self.state is SendState.IN_FLIGHT


@dataclass(frozen=True)
class ChannelResult:
    channel: str
    status: ChannelStatus
    error: Optional[DeliveryError] = None
    saved_path: Optional[Path] = None
    share_url: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status in (ChannelStatus.SENT, ChannelStatus.MANUAL)

    @property
    def error_kind(self) -> Optional[DeliveryErrorKind]:
        return self.error.kind if self.error is not None else None

    @classmethod
    def sent(cls, channel: str) -> "ChannelResult":
        return cls(channel, ChannelStatus.SENT)

    @classmethod
    def failed(cls, channel: str, error: DeliveryError) -> "ChannelResult":
        return cls(channel, ChannelStatus.FAILED, error=error)

    @classmethod
    def skipped(cls, channel: str) -> "ChannelResult":
        return cls(channel, ChannelStatus.SKIPPED)


@dataclass
class DeliveryResult:
    status: DeliveryStatus
    channel: Optional[str] = None
    destination: Optional[Destination] = None
    attempts: list[ChannelResult] = field(default_factory=list)
    error: Optional[str] = None
    saved_path: Optional[Path] = None
    share_url: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is not DeliveryStatus.FAILED


__all__ = [
    "ChannelResult",
    "ChannelStatus",
    "DeliveryAttempt",
    "DeliveryResult",
    "DeliveryStatus",
    "SendState",
]
