"""Test helpers for the promo_capture test suite.

Data Generators:
    generate_gga_sentence - Generate valid GGA sentences
    make_record - Build a complete ParticipantRecord
    make_artifact - Build a non-empty Artifact
    make_context - Build a DeliveryContext for one channel
    run_async - Run a coroutine on a fresh event loop

Usage:
    from tests.infrastructure.helpers import generate_gga_sentence, make_record

    nmea = generate_gga_sentence(lat=48.1173, lon=11.5167)
"""

from tests.infrastructure.helpers.generators import (
    generate_gga_sentence,
    make_artifact,
    make_context,
    make_record,
    nmea_checksum,
    run_async,
)

__all__ = [
    "generate_gga_sentence",
    "make_artifact",
    "make_context",
    "make_record",
    "nmea_checksum",
    "run_async",
]
