"""Bot API upload channels (``sendVideo`` and ``sendDocument``)."""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import aiohttp

from promo_capture.core.errors import (
    DeliveryError,
    DeliveryErrorKind,
    NetworkTimeout,
    PayloadTooLarge,
    delivery_error_for,
)
from promo_capture.core.logging_utils import get_module_logger

from ..attempt import ChannelResult
from ..caption import truncate_caption
from .base import DeliveryChannel, DeliveryContext

logger = get_module_logger(__name__)

DEFAULT_API_BASE = "https://api.telegram.org"
DEFAULT_REQUEST_TIMEOUT_S = 60.0
DEFAULT_MAX_UPLOAD_MB = 50.0

_TOO_LARGE_MARKERS = ("too large", "too big", "entity too large", "file_too_big")
_CREDENTIAL_MARKERS = ("unauthorized", "invalid token", "bot token")
_DESTINATION_MARKERS = ("chat not found", "chat_id is empty", "bot was blocked", "user is deactivated", "forbidden")
_FORMAT_MARKERS = ("wrong file", "unsupported", "wrong type", "invalid file", "video_content_type_invalid")
_TIMEOUT_MARKERS = ("timeout", "timed out")


def classify_failure(status: Optional[int], description: str) -> DeliveryErrorKind:
    """Map an HTTP status and Bot API description to an error kind."""
    text = (description or "").lower()

    if status == 413 or any(m in text for m in _TOO_LARGE_MARKERS):
        return DeliveryErrorKind.PAYLOAD_TOO_LARGE
    if status == 401 or any(m in text for m in _CREDENTIAL_MARKERS):
        return DeliveryErrorKind.BAD_CREDENTIAL
    # The Bot API answers 404 for an unknown token path
    if status == 404:
        return DeliveryErrorKind.BAD_CREDENTIAL
    if status == 403 or any(m in text for m in _DESTINATION_MARKERS):
        return DeliveryErrorKind.DESTINATION_NOT_FOUND
    if any(m in text for m in _FORMAT_MARKERS):
        return DeliveryErrorKind.UNSUPPORTED_FORMAT
    if status in (408, 504) or any(m in text for m in _TIMEOUT_MARKERS):
        return DeliveryErrorKind.TIMEOUT
    return DeliveryErrorKind.GENERIC


class BotUploadChannel(DeliveryChannel):
    """Multipart upload of the artifact to one Bot API method."""

    name = "bot"
    method = "sendVideo"
    file_field = "video"
    requires_destination = True

    def __init__(
        self,
        *,
        api_base: str = DEFAULT_API_BASE,
        timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S,
        max_upload_mb: float = DEFAULT_MAX_UPLOAD_MB,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.timeout_s = timeout_s
        self.max_upload_mb = max_upload_mb
        self._session = session

    def _url(self, token: str) -> str:
        return f"{self.api_base}/bot{token}/{self.method}"

    def _form(self, context: DeliveryContext) -> aiohttp.FormData:
        form = aiohttp.FormData()
        form.add_field("chat_id", str(context.destination.chat_id))
        form.add_field(
            self.file_field,
            context.artifact.data,
            filename=context.filename,
            content_type=context.fmt.mime_type or "application/octet-stream",
        )
        form.add_field("caption", truncate_caption(context.caption_html))
        form.add_field("parse_mode", "HTML")
        return form

    async def send(self, context: DeliveryContext) -> ChannelResult:
        destination = context.destination
        if destination is None:
            return ChannelResult.failed(
                self.name,
                delivery_error_for(DeliveryErrorKind.DESTINATION_NOT_FOUND, "No destination resolved"),
            )

        size_mb = context.artifact.size_mb
        if size_mb > self.max_upload_mb:
            error = PayloadTooLarge(
                f"File too large ({size_mb:.1f}MB). Maximum {self.max_upload_mb:.0f}MB."
            )
            logger.warning("%s skipped upload: %s", self.name, error.description)
            return ChannelResult.failed(self.name, error)

        logger.info(
            "%s: uploading %s (%.1fMB, %s) to %s",
            self.name, context.filename, size_mb, context.fmt.mime_type, destination.describe(),
        )
        try:
            await self._post(destination.token, self._form(context))
        except DeliveryError as error:
            logger.warning("%s failed [%s]: %s", self.name, error.kind.value, error.description)
            return ChannelResult.failed(self.name, error)

        logger.info("%s: delivered to %s", self.name, destination.describe())
        return ChannelResult.sent(self.name)

    async def _post(self, token: str, form: aiohttp.FormData) -> dict[str, Any]:
        timeout = aiohttp.ClientTimeout(total=self.timeout_s)
        try:
            if self._session is not None:
                return await self._request(self._session, token, form, timeout)
            async with aiohttp.ClientSession() as session:
                return await self._request(session, token, form, timeout)
        except asyncio.TimeoutError as exc:
            raise NetworkTimeout(f"Request timed out after {self.timeout_s:.0f}s") from exc
        except aiohttp.ClientError as exc:
            description = f"Network error: {exc}".replace(token, "***")
            raise delivery_error_for(classify_failure(None, description), description) from exc

    async def _request(
        self,
        session: aiohttp.ClientSession,
        token: str,
        form: aiohttp.FormData,
        timeout: aiohttp.ClientTimeout,
    ) -> dict[str, Any]:
        async with session.post(self._url(token), data=form, timeout=timeout) as resp:
            try:
                body = await resp.json(content_type=None)
            except ValueError:
                body = {"ok": False, "description": (await resp.text())[:300]}
            if not isinstance(body, dict):
                body = {"ok": False, "description": str(body)[:300]}

            if resp.status < 400 and body.get("ok", False):
                return body

            description = str(body.get("description") or resp.reason or "Unknown error")
            kind = classify_failure(resp.status, description)
            raise delivery_error_for(kind, f"Bot API error: {description}", status=resp.status)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(api_base={self.api_base!r}, max_upload_mb={self.max_upload_mb})"


class BotMediaChannel(BotUploadChannel):
    name = "bot_media"
    method = "sendVideo"
    file_field = "video"


class BotDocumentChannel(BotUploadChannel):
    """Retries as a generic file when the media upload hit a size or format limit."""

    name = "bot_document"
    method = "sendDocument"
    file_field = "document"

    def applies(self, context: DeliveryContext) -> bool:
        kind = context.previous.error_kind if context.previous is not None else None
        return kind is not None and kind.retry_as_document


__all__ = [
    "BotDocumentChannel",
    "BotMediaChannel",
    "BotUploadChannel",
    "DEFAULT_API_BASE",
    "DEFAULT_MAX_UPLOAD_MB",
    "DEFAULT_REQUEST_TIMEOUT_S",
    "classify_failure",
]
