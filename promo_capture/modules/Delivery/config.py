"""Typed configuration for the delivery module."""

from __future__ import annotations

import webbrowser
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

import aiohttp

from promo_capture.core.paths import DEFAULT_DOWNLOADS_DIR
from promo_capture.modules.base.typed_config import (
    PrefsLike,
    get_pref_bool,
    get_pref_float,
    get_pref_path,
    get_pref_str,
)

from .caption import DEFAULT_TITLE
from .channels import (
    BotDocumentChannel,
    BotMediaChannel,
    DeliveryChannel,
    LocalSaveChannel,
    PlatformShareChannel,
    ShareTarget,
)
from .channels.bot import DEFAULT_API_BASE, DEFAULT_MAX_UPLOAD_MB, DEFAULT_REQUEST_TIMEOUT_S
from .channels.local_save import DEFAULT_SHARE_URL_TEMPLATE, UrlOpener
from .orchestrator import (
    DEFAULT_FILENAME_PREFIX,
    DEFAULT_RESET_DELAY_S,
    Callback,
    DeliveryMode,
    DeliveryOrchestrator,
)
from .routing import Destination, DestinationRouter


def destinations_from_preferences(prefs: PrefsLike) -> dict[str, Destination]:
    """Collect ``<outcome>.token`` / ``<outcome>.chat_id`` pairs below ``prefs``."""
    destinations: dict[str, Destination] = {}
    for outcome in prefs.children():
        token = get_pref_str(prefs, f"{outcome}.token", "").strip()
        chat_id = get_pref_str(prefs, f"{outcome}.chat_id", "").strip()
        destinations[outcome] = Destination(token=token, chat_id=chat_id)
    return destinations


@dataclass(slots=True)
class DeliveryConfig:
    """Typed configuration for the delivery module."""

    mode: DeliveryMode = DeliveryMode.BOT
    outcome: str = "accepted"

    # Bot API
    api_base: str = DEFAULT_API_BASE
    request_timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S
    max_upload_mb: float = DEFAULT_MAX_UPLOAD_MB

    # Fallback
    fallback_to_local_save: bool = False
    downloads_dir: Path = field(default_factory=lambda: DEFAULT_DOWNLOADS_DIR)
    share_url_template: str = DEFAULT_SHARE_URL_TEMPLATE
    open_share_url: bool = True

    # Presentation
    filename_prefix: str = DEFAULT_FILENAME_PREFIX
    caption_title: str = DEFAULT_TITLE
    caption_footer: str = ""
    reset_delay_s: float = DEFAULT_RESET_DELAY_S

    destinations: dict[str, Destination] = field(default_factory=dict, repr=False)

    @classmethod
    def from_preferences(
        cls,
        prefs: PrefsLike,
        args: Any = None,
        *,
        destination_prefs: Optional[PrefsLike] = None,
    ) -> "DeliveryConfig":
        defaults = cls()
        config = cls(
            mode=DeliveryMode.parse(get_pref_str(prefs, "mode", defaults.mode.value)),
            outcome=get_pref_str(prefs, "outcome", defaults.outcome),
            api_base=get_pref_str(prefs, "api_base", defaults.api_base),
            request_timeout_s=get_pref_float(prefs, "request_timeout_s", defaults.request_timeout_s),
            max_upload_mb=get_pref_float(prefs, "max_upload_mb", defaults.max_upload_mb),
            fallback_to_local_save=get_pref_bool(prefs, "fallback_to_local_save", defaults.fallback_to_local_save),
            downloads_dir=get_pref_path(prefs, "downloads_dir", defaults.downloads_dir),
            share_url_template=get_pref_str(prefs, "share_url_template", defaults.share_url_template),
            open_share_url=get_pref_bool(prefs, "open_share_url", defaults.open_share_url),
            filename_prefix=get_pref_str(prefs, "filename_prefix", defaults.filename_prefix),
            caption_title=get_pref_str(prefs, "caption_title", defaults.caption_title),
            caption_footer=get_pref_str(prefs, "caption_footer", defaults.caption_footer),
            reset_delay_s=get_pref_float(prefs, "reset_delay_s", defaults.reset_delay_s),
            destinations=destinations_from_preferences(destination_prefs) if destination_prefs is not None else {},
        )

        if args is not None:
            config = config._apply_args_override(args)
        return config

    def _apply_args_override(self, args: Any) -> "DeliveryConfig":
        mode = getattr(args, "mode", None)
        if mode is not None:
            self.mode = DeliveryMode.parse(mode)
        outcome = getattr(args, "outcome", None)
        if outcome:
            self.outcome = outcome
        output_dir = getattr(args, "output_dir", None)
        if output_dir:
            self.downloads_dir = Path(output_dir).expanduser()
        if getattr(args, "no_open", False):
            self.open_share_url = False
        return self

    # ------------------------------------------------------------------
    # Builders

    def build_router(self) -> DestinationRouter:
        return DestinationRouter(self.destinations)

    def build_channels(
        self,
        *,
        share_target: Optional[ShareTarget] = None,
        session: Optional[aiohttp.ClientSession] = None,
        open_url: Optional[UrlOpener] = None,
    ) -> list[DeliveryChannel]:
        """Channel chain for the configured mode.

        ``bot``: media upload, then document upload, then (optionally) local save.
        ``share``: platform share, then local save.
        """
        if not self.open_share_url:
            open_url = None
        elif open_url is None:
            open_url = webbrowser.open
        local_save = LocalSaveChannel(
            self.downloads_dir,
            share_url_template=self.share_url_template,
            open_url=open_url,
        )

        if self.mode is DeliveryMode.SHARE:
            return [PlatformShareChannel(share_target), local_save]

        bot_kwargs = {
            "api_base": self.api_base,
            "timeout_s": self.request_timeout_s,
            "max_upload_mb": self.max_upload_mb,
            "session": session,
        }
        channels: list[DeliveryChannel] = [BotMediaChannel(**bot_kwargs), BotDocumentChannel(**bot_kwargs)]
        if self.fallback_to_local_save:
            channels.append(local_save)
        return channels

    def build_orchestrator(
        self,
        *,
        on_sent: Optional[Callback] = None,
        on_complete: Optional[Callback] = None,
        share_target: Optional[ShareTarget] = None,
        session: Optional[aiohttp.ClientSession] = None,
        open_url: Optional[UrlOpener] = None,
    ) -> DeliveryOrchestrator:
        return DeliveryOrchestrator(
            self.build_channels(share_target=share_target, session=session, open_url=open_url),
            router=self.build_router(),
            on_sent=on_sent,
            on_complete=on_complete,
            reset_delay_s=self.reset_delay_s,
            filename_prefix=self.filename_prefix,
            caption_title=self.caption_title,
            caption_footer=self.caption_footer or None,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["mode"] = self.mode.value
        data["destinations"] = {
            outcome: {"chat_id": dest.chat_id, "token": dest.masked_token}
            for outcome, dest in self.destinations.items()
        }
        return data
