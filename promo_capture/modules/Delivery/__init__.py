"""Lead delivery through messaging endpoints with ordered fallback."""

from .attempt import (
    ChannelResult,
    ChannelStatus,
    DeliveryAttempt,
    DeliveryResult,
    DeliveryStatus,
    SendState,
)
from .caption import CaptionStyle, build_caption
from .channels import (
    BotDocumentChannel,
    BotMediaChannel,
    DeliveryChannel,
    DeliveryContext,
    LocalSaveChannel,
    PlatformShareChannel,
    ShareFile,
    SharePayload,
    ShareTarget,
)
from .config import DeliveryConfig, destinations_from_preferences
from .formats import NormalizedFormat, normalize_artifact, normalize_format
from .orchestrator import DeliveryMode, DeliveryOrchestrator, artifact_filename
from .record import ParticipantRecord
from .routing import Destination, DestinationRouter

__all__ = [
    "BotDocumentChannel",
    "BotMediaChannel",
    "CaptionStyle",
    "ChannelResult",
    "ChannelStatus",
    "DeliveryAttempt",
    "DeliveryChannel",
    "DeliveryConfig",
    "DeliveryContext",
    "DeliveryMode",
    "DeliveryOrchestrator",
    "DeliveryResult",
    "DeliveryStatus",
    "Destination",
    "DestinationRouter",
    "LocalSaveChannel",
    "NormalizedFormat",
    "ParticipantRecord",
    "PlatformShareChannel",
    "SendState",
    "ShareFile",
    "SharePayload",
    "ShareTarget",
    "artifact_filename",
    "build_caption",
    "destinations_from_preferences",
    "normalize_artifact",
    "normalize_format",
]
