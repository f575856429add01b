"""Delivery channel contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from promo_capture.modules.Capture.artifact import Artifact

from ..attempt import ChannelResult, DeliveryAttempt
from ..formats import NormalizedFormat
from ..routing import Destination


@dataclass(frozen=True)
class DeliveryContext:
    """Everything a channel needs, prepared once per delivery."""

    attempt: DeliveryAttempt
    artifact: Artifact
    fmt: NormalizedFormat
    filename: str
    caption_html: str
    caption_plain: str
    title: str
    destination: Optional[Destination] = None
    previous: Optional[ChannelResult] = None

    def after(self, result: ChannelResult) -> "DeliveryContext":
        return DeliveryContext(
            attempt=self.attempt,
            artifact=self.artifact,
            fmt=self.fmt,
            filename=self.filename,
            caption_html=self.caption_html,
            caption_plain=self.caption_plain,
            title=self.title,
            destination=self.destination,
            previous=result,
        )


class DeliveryChannel(ABC):
    """One way of getting the lead out.

    ``send`` never raises for delivery problems; it returns a failed
    ``ChannelResult`` carrying a ``DeliveryError`` so the chain can move on.
    """

    name = "channel"
    requires_destination = False

    def applies(self, context: DeliveryContext) -> bool:
        return True

    @abstractmethod
    async def send(self, context: DeliveryContext) -> ChannelResult:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


__all__ = ["DeliveryChannel", "DeliveryContext"]
