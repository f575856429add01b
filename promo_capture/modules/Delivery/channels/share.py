"""Platform share sheet channel."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable

from promo_capture.core.errors import DeliveryError, DeliveryErrorKind, PlatformShareUnsupported
from promo_capture.core.logging_utils import get_module_logger

from ..attempt import ChannelResult
from .base import DeliveryChannel, DeliveryContext

logger = get_module_logger(__name__)


@dataclass(frozen=True)
class ShareFile:
    filename: str
    mime_type: str
    data: bytes = field(repr=False)


@dataclass(frozen=True)
class SharePayload:
    title: str
    text: str
    files: tuple[ShareFile, ...] = ()


@runtime_checkable
class ShareTarget(Protocol):
    """Host integration that can hand a payload to the OS share facility."""

    def can_share(self, payload: SharePayload) -> bool:
        ...

    async def share(self, payload: SharePayload) -> None:
        ...


class PlatformShareChannel(DeliveryChannel):
    name = "platform_share"

    def __init__(self, target: Optional[ShareTarget] = None, *, include_file: bool = True) -> None:
        self._target = target
        self._include_file = include_file

    def build_payload(self, context: DeliveryContext) -> SharePayload:
        files: tuple[ShareFile, ...] = ()
        if self._include_file:
            files = (ShareFile(context.filename, context.fmt.mime_type, context.artifact.data),)
        return SharePayload(title=context.title, text=context.caption_plain, files=files)

    async def send(self, context: DeliveryContext) -> ChannelResult:
        if self._target is None:
            return ChannelResult.failed(self.name, PlatformShareUnsupported("No share facility on this platform"))

        payload = self.build_payload(context)
        if not self._target.can_share(payload):
            logger.info("Share target declined payload (%d file(s))", len(payload.files))
            return ChannelResult.failed(self.name, PlatformShareUnsupported("Share target cannot share this payload"))

        try:
            await self._target.share(payload)
        except DeliveryError as error:
            logger.warning("Share failed [%s]: %s", error.kind.value, error.description)
            return ChannelResult.failed(self.name, error)
        except OSError as exc:
            logger.warning("Share failed: %s", exc)
            return ChannelResult.failed(
                self.name, DeliveryError(f"Share failed: {exc}", kind=DeliveryErrorKind.GENERIC)
            )

        logger.info("Shared %s via platform share", context.filename)
        return ChannelResult.sent(self.name)


__all__ = ["PlatformShareChannel", "ShareFile", "SharePayload", "ShareTarget"]
