"""One capture cycle from the command line: record, enrich, deliver."""

import argparse
import asyncio
from pathlib import Path
from typing import Optional

import aiohttp

from promo_capture.cli.common import (
    add_common_cli_arguments,
    device_spec,
    install_exception_handlers,
    install_signal_handlers,
    log_startup,
    positive_float,
)
from promo_capture.core.errors import DeviceUnavailable, InvalidTransition, RecordingEmpty
from promo_capture.core.logging_config import configure_logging
from promo_capture.core.logging_utils import get_module_logger
from promo_capture.core.paths import CONFIG_PATH, DEFAULT_LOG_FILE, ensure_directories
from promo_capture.modules.base import ModulePreferences, load_typed_config
from promo_capture.modules.Capture import Artifact, CaptureConfig, DeviceProvider
from promo_capture.modules.Delivery import (
    DeliveryAttempt,
    DeliveryConfig,
    DeliveryResult,
    DeliveryStatus,
    ParticipantRecord,
    ShareTarget,
)
from promo_capture.modules.Location import LocationConfig


logger = get_module_logger(__name__)

EXIT_OK = 0
EXIT_DELIVERY_FAILED = 1
EXIT_CAPTURE_FAILED = 2

RECORD_FIELDS = ("parent_name", "child_name", "age", "phone", "promoter")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="promo-capture",
        description="Record a short promo video and deliver it with the participant's details",
    )
    add_common_cli_arguments(parser)

    record = parser.add_argument_group("participant")
    for name in RECORD_FIELDS:
        record.add_argument(
            f"--{name.replace('_', '-')}",
            dest=name,
            default="",
            help=f"Participant {name.replace('_', ' ')}",
        )

    capture = parser.add_argument_group("capture")
    capture.add_argument("--duration", type=positive_float, default=None, help="Recording length in seconds")
    capture.add_argument("--camera", type=device_spec, default=None, help="Camera index or device path")
    capture.add_argument("--no-audio", action="store_true", help="Record video only")

    delivery = parser.add_argument_group("delivery")
    delivery.add_argument("--outcome", default=None, help="Lead outcome used to pick the destination")
    delivery.add_argument("--mode", choices=("bot", "share"), default=None, help="Delivery chain to use")
    delivery.add_argument("--no-location", action="store_true", help="Skip location lookup")
    delivery.add_argument("--no-open", action="store_true", help="Do not open the manual share link in a browser")
    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = build_parser()
    args = parser.parse_args(argv)
    record = record_from_args(args)
    if not record.is_complete():
        parser.error("missing participant fields: " + ", ".join(record.missing_fields()))
    return args


def record_from_args(args: argparse.Namespace) -> ParticipantRecord:
    return ParticipantRecord.from_mapping({name: getattr(args, name, "") for name in RECORD_FIELDS})


def load_configs(args: argparse.Namespace) -> tuple[CaptureConfig, LocationConfig, DeliveryConfig]:
    config_path = Path(args.config) if getattr(args, "config", None) else CONFIG_PATH
    prefs = ModulePreferences(config_path)
    return (
        load_typed_config(CaptureConfig, prefs.scope("capture"), args),
        load_typed_config(LocationConfig, prefs.scope("location"), args),
        DeliveryConfig.from_preferences(
            prefs.scope("delivery"), args, destination_prefs=prefs.scope("destination")
        ),
    )


def format_result(result: DeliveryResult) -> str:
    if result.status is DeliveryStatus.SENT:
        return f"Sent via {result.channel}"
    if result.status is DeliveryStatus.MANUAL:
        return f"Saved to {result.saved_path}; attach it manually in the chat that was opened"
    return f"Delivery failed: {result.error}"


async def record_artifact(
    capture_config: CaptureConfig,
    stop_event: asyncio.Event,
    provider: Optional[DeviceProvider] = None,
) -> Artifact:
    """Record for ``duration_s`` seconds (or until ``stop_event``) and return the artifact."""
    async with capture_config.build_session(provider) as session:
        await session.start()
        logger.info("Recording for %.1fs (format %s)", capture_config.duration_s, session.selected_format)
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=capture_config.duration_s)
            logger.info("Recording stopped early")
        except asyncio.TimeoutError:
            pass
        return await session.stop()


async def run_cycle(
    args: argparse.Namespace,
    *,
    capture_config: CaptureConfig,
    location_config: LocationConfig,
    delivery_config: DeliveryConfig,
    provider: Optional[DeviceProvider] = None,
    share_target: Optional[ShareTarget] = None,
    stop_event: Optional[asyncio.Event] = None,
) -> int:
    record = record_from_args(args)
    stop_event = stop_event or asyncio.Event()
    enricher = location_config.build_enricher()
    enricher.start()

    try:
        try:
            artifact = await record_artifact(capture_config, stop_event, provider)
        except DeviceUnavailable as exc:
            hint = " (permission denied)" if exc.permission_denied else ""
            logger.error("Camera or microphone unavailable%s: %s", hint, exc)
            print(f"Capture failed: {exc}")
            return EXIT_CAPTURE_FAILED
        except (RecordingEmpty, InvalidTransition) as exc:
            logger.error("Capture failed: %s", exc)
            print(f"Capture failed: {exc}")
            return EXIT_CAPTURE_FAILED

        attempt = DeliveryAttempt(
            record=record,
            artifact=artifact,
            outcome=delivery_config.outcome,
            location=enricher.current(),
            location_error=enricher.error,
        )

        async with aiohttp.ClientSession() as http:
            orchestrator = delivery_config.build_orchestrator(share_target=share_target, session=http)
            try:
                result = await orchestrator.deliver(attempt)
            except ValueError as exc:
                logger.error("Delivery not attempted: %s", exc)
                print(f"Delivery failed: {exc}")
                return EXIT_DELIVERY_FAILED
            finally:
                await orchestrator.aclose()

        if result is None:
            return EXIT_DELIVERY_FAILED
        print(format_result(result))
        return EXIT_OK if result.ok else EXIT_DELIVERY_FAILED
    finally:
        await enricher.close()


async def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)

    if args.log_file is None:
        ensure_directories()
        args.log_file = DEFAULT_LOG_FILE
    configure_logging(args.log_level, log_file=args.log_file)

    loop = asyncio.get_running_loop()
    install_exception_handlers(logger, loop)
    stop_event = asyncio.Event()
    install_signal_handlers(loop, stop_event.set)

    capture_config, location_config, delivery_config = load_configs(args)
    log_startup(
        logger,
        args,
        mode=delivery_config.mode.value,
        outcome=delivery_config.outcome,
        duration=f"{capture_config.duration_s:.1f}s",
        location="enabled" if location_config.enabled else "disabled",
    )

    return await run_cycle(
        args,
        capture_config=capture_config,
        location_config=location_config,
        delivery_config=delivery_config,
        stop_event=stop_event,
    )


__all__ = [
    "EXIT_CAPTURE_FAILED",
    "EXIT_DELIVERY_FAILED",
    "EXIT_OK",
    "build_parser",
    "format_result",
    "load_configs",
    "main",
    "parse_args",
    "record_artifact",
    "run_cycle",
]
