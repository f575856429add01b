"""Delivery orchestration: one pass over an ordered channel chain."""

from __future__ import annotations

import asyncio
import inspect
import re
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Sequence, Union

from promo_capture.core.errors import DeliveryErrorKind, DestinationRejected
from promo_capture.core.logging_utils import get_module_logger

from .attempt import (
    ChannelResult,
    ChannelStatus,
    DeliveryAttempt,
    DeliveryResult,
    DeliveryStatus,
    SendState,
)
from .caption import DEFAULT_TITLE, CaptionStyle, build_caption
from .channels.base import DeliveryChannel, DeliveryContext
from .formats import normalize_artifact
from .routing import Destination, DestinationRouter

logger = get_module_logger(__name__)

DEFAULT_RESET_DELAY_S = 2.0
DEFAULT_FILENAME_PREFIX = "PROMO"

Callback = Callable[..., Union[None, Awaitable[None]]]

_UNSAFE_FILENAME_CHARS = re.compile(r"[^\w\-]+")


class DeliveryMode(Enum):
    BOT = "bot"
    SHARE = "share"

    @classmethod
    def parse(cls, value: Union[str, "DeliveryMode"]) -> "DeliveryMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown delivery mode {value!r}; expected 'bot' or 'share'") from None


def artifact_filename(prefix: str, child_name: str, extension: str, epoch_ms: int) -> str:
    """``<prefix>_<child>_<epoch ms>.<ext>`` with path-unsafe characters replaced."""
    child = _UNSAFE_FILENAME_CHARS.sub("_", child_name.strip()).strip("_") or "lead"
    return f"{prefix}_{child}_{epoch_ms}.{extension}"


class DeliveryOrchestrator:
    """Sends one attempt through its channel chain until a channel succeeds.

    Channel failures never escape: each becomes a failed ``ChannelResult``
    and the next channel is tried. An unroutable outcome fails every channel
    that needs a destination without touching the network, so channels that
    do not need one still run. Only precondition violations (``ValueError``)
    are raised.
    """

    def __init__(
        self,
        channels: Sequence[DeliveryChannel],
        *,
        router: Optional[DestinationRouter] = None,
        on_sent: Optional[Callback] = None,
        on_complete: Optional[Callback] = None,
        reset_delay_s: float = DEFAULT_RESET_DELAY_S,
        filename_prefix: str = DEFAULT_FILENAME_PREFIX,
        caption_title: str = DEFAULT_TITLE,
        caption_footer: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not channels:
            raise ValueError("At least one delivery channel is required")
        self._channels = list(channels)
        self._router = router
        self._on_sent = on_sent
        self._on_complete = on_complete
        self._reset_delay_s = reset_delay_s
        self._filename_prefix = filename_prefix
        self._caption_title = caption_title
        self._caption_footer = caption_footer
        self._clock = clock
        self._pending: set[asyncio.Task] = set()

    @property
    def channels(self) -> list[DeliveryChannel]:
        return list(self._channels)

    @property
    def pending_callbacks(self) -> int:
        return len(self._pending)

    # ------------------------------------------------------------------
    # Public API

    async def deliver(self, attempt: DeliveryAttempt) -> Optional[DeliveryResult]:
        """Deliver ``attempt``; returns ``None`` if it is already in flight."""
        if attempt.in_flight:
            logger.info("Delivery already in progress; ignoring duplicate request")
            return None

        self._check_preconditions(attempt)
        attempt.state = SendState.IN_FLIGHT
        try:
            result = await self._run_chain(attempt)
        except BaseException:
            attempt.state = SendState.FAILED
            raise

        if result.ok:
            attempt.state = SendState.SENT
            logger.info(
                "Delivery %s via %s after %d attempt(s)",
                result.status.value, result.channel, len(result.attempts),
            )
            await self._run_callback(self._on_sent, "on_sent", result)
            self._schedule_complete(result)
        else:
            attempt.state = SendState.FAILED
            logger.error("Delivery failed after %d attempt(s): %s", len(result.attempts), result.error)
        return result

    async def wait_pending(self) -> None:
        """Wait for scheduled completion callbacks."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel completion callbacks that have not fired yet."""
        for task in list(self._pending):
            task.cancel()
        await asyncio.gather(*list(self._pending), return_exceptions=True)
        self._pending.clear()

    # ------------------------------------------------------------------
    # Internals

    @staticmethod
    def _check_preconditions(attempt: DeliveryAttempt) -> None:
        if not attempt.record.is_complete():
            missing = ", ".join(attempt.record.missing_fields())
            raise ValueError(f"Participant record incomplete (missing: {missing})")
        if attempt.artifact is None or attempt.artifact.size == 0:
            raise ValueError("Cannot deliver an empty recording")

    def _resolve_destination(self, outcome: str) -> Optional[Destination]:
        if not any(channel.requires_destination for channel in self._channels):
            return None
        if self._router is None:
            raise DestinationRejected(
                "No destinations configured", kind=DeliveryErrorKind.DESTINATION_NOT_FOUND
            )
        return self._router.resolve(outcome)

    def _build_context(self, attempt: DeliveryAttempt, destination: Optional[Destination]) -> DeliveryContext:
        artifact, fmt = normalize_artifact(attempt.artifact)
        if artifact.mime_type != attempt.artifact.mime_type:
            logger.debug("Relabeled %r as %s", attempt.artifact.mime_type, artifact.mime_type)

        caption_kwargs: dict[str, Any] = {"title": self._caption_title, "footer": self._caption_footer}
        return DeliveryContext(
            attempt=attempt,
            artifact=artifact,
            fmt=fmt,
            filename=artifact_filename(
                self._filename_prefix,
                attempt.record.child_name,
                fmt.extension,
                int(self._clock() * 1000),
            ),
            caption_html=build_caption(attempt.record, attempt.location, style=CaptionStyle.HTML, **caption_kwargs),
            caption_plain=build_caption(attempt.record, attempt.location, style=CaptionStyle.PLAIN, **caption_kwargs),
            title=self._caption_title,
            destination=destination,
        )

    async def _run_chain(self, attempt: DeliveryAttempt) -> DeliveryResult:
        routing_error: Optional[DestinationRejected] = None
        try:
            destination = self._resolve_destination(attempt.outcome)
        except DestinationRejected as error:
            logger.warning("Outcome %r not routable: %s", attempt.outcome, error.description)
            destination, routing_error = None, error
        context = self._build_context(attempt, destination)
        if attempt.location is None and attempt.location_error is not None:
            logger.info("Delivering without location: %s", attempt.location_error.describe())

        results: list[ChannelResult] = []
        total = len(self._channels)
        for index, channel in enumerate(self._channels, start=1):
            if not channel.applies(context):
                logger.debug("Skipping %s (not applicable)", channel.name)
                results.append(ChannelResult.skipped(channel.name))
                continue

            if channel.requires_destination and routing_error is not None:
                logger.info("Skipping %s: no destination", channel.name)
                result = ChannelResult.failed(channel.name, routing_error)
                results.append(result)
                context = context.after(result)
                continue

            logger.info("Trying %s (%d/%d)", channel.name, index, total)
            result = await channel.send(context)
            results.append(result)
            if result.ok:
                status = DeliveryStatus.MANUAL if result.status is ChannelStatus.MANUAL else DeliveryStatus.SENT
                return DeliveryResult(
                    status=status,
                    channel=channel.name,
                    destination=destination,
                    attempts=results,
                    saved_path=result.saved_path,
                    share_url=result.share_url,
                )
            context = context.after(result)

        last_error = next((r.error for r in reversed(results) if r.error is not None), None)
        return DeliveryResult(
            status=DeliveryStatus.FAILED,
            destination=destination,
            attempts=results,
            error=last_error.description if last_error is not None else "No delivery channel applied",
        )

    async def _run_callback(self, callback: Optional[Callback], stage: str, *args: Any) -> None:
        if callback is None:
            return
        try:
            result = callback(*args)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Delivery callback '%s' failed", stage)

    def _schedule_complete(self, result: DeliveryResult) -> None:
        if self._on_complete is None:
            return
        task = asyncio.create_task(self._complete_later(result), name="delivery-complete")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _complete_later(self, result: DeliveryResult) -> None:
        await asyncio.sleep(self._reset_delay_s)
        await self._run_callback(self._on_complete, "on_complete", result)


__all__ = [
    "DEFAULT_FILENAME_PREFIX",
    "DEFAULT_RESET_DELAY_S",
    "DeliveryMode",
    "DeliveryOrchestrator",
    "artifact_filename",
]
