"""Delivery channels, tried in order by the orchestrator."""

from .base import DeliveryChannel, DeliveryContext
from .bot import BotDocumentChannel, BotMediaChannel, BotUploadChannel, classify_failure
from .local_save import LocalSaveChannel, build_share_url
from .share import PlatformShareChannel, ShareFile, SharePayload, ShareTarget

__all__ = [
    "BotDocumentChannel",
    "BotMediaChannel",
    "BotUploadChannel",
    "DeliveryChannel",
    "DeliveryContext",
    "LocalSaveChannel",
    "PlatformShareChannel",
    "ShareFile",
    "SharePayload",
    "ShareTarget",
    "build_share_url",
    "classify_failure",
]
