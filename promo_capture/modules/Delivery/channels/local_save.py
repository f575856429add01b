"""Last-resort channel: save the file locally and open a text-only chat link."""

from __future__ import annotations

import asyncio
import webbrowser
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import quote

import aiofiles

from promo_capture.core.errors import DeliveryError, DeliveryErrorKind
from promo_capture.core.logging_utils import get_module_logger
from promo_capture.core.paths import DEFAULT_DOWNLOADS_DIR

from ..attempt import ChannelResult, ChannelStatus
from .base import DeliveryChannel, DeliveryContext

logger = get_module_logger(__name__)

DEFAULT_SHARE_URL_TEMPLATE = "https://wa.me/?text={text}"

UrlOpener = Callable[[str], bool]


def build_share_url(text: str, template: str = DEFAULT_SHARE_URL_TEMPLATE) -> str:
    return template.format(text=quote(text, safe=""))


class LocalSaveChannel(DeliveryChannel):
    """Writes the artifact to disk; the user attaches it by hand.

    Always ends ``MANUAL`` when the file was written, even if no browser
    could be opened for the share link.
    """

    name = "local_save"

    def __init__(
        self,
        downloads_dir: Path = DEFAULT_DOWNLOADS_DIR,
        *,
        share_url_template: str = DEFAULT_SHARE_URL_TEMPLATE,
        open_url: Optional[UrlOpener] = webbrowser.open,
    ) -> None:
        self.downloads_dir = Path(downloads_dir)
        self.share_url_template = share_url_template
        self._open_url = open_url

    async def send(self, context: DeliveryContext) -> ChannelResult:
        path = self.downloads_dir / context.filename
        try:
            await asyncio.to_thread(self.downloads_dir.mkdir, parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(context.artifact.data)
        except OSError as exc:
            logger.error("Could not save %s: %s", path, exc)
            return ChannelResult.failed(
                self.name, DeliveryError(f"Could not save video: {exc}", kind=DeliveryErrorKind.GENERIC)
            )

        logger.info("Saved %s (%.1fMB) for manual sharing", path, context.artifact.size_mb)

        share_url = build_share_url(context.caption_plain, self.share_url_template)
        if self._open_url is not None:
            try:
                opened = await asyncio.to_thread(self._open_url, share_url)
            except (OSError, webbrowser.Error) as exc:
                logger.warning("Could not open share link: %s", exc)
            else:
                if not opened:
                    logger.warning("No browser available to open share link")

        return ChannelResult(self.name, ChannelStatus.MANUAL, saved_path=path, share_url=share_url)


__all__ = ["DEFAULT_SHARE_URL_TEMPLATE", "LocalSaveChannel", "build_share_url"]
