"""Unit tests for GGA sentence parsing."""

import pytest

from promo_capture.modules.Location.nmea import UERE_M, parse_gga, validate_checksum
from tests.infrastructure.helpers import generate_gga_sentence


class TestValidateChecksum:
    def test_valid_sentence(self):
        assert validate_checksum(generate_gga_sentence().strip())

    def test_corrupted_payload_fails(self):
        sentence = generate_gga_sentence().strip().replace("GGA", "GGB")
        assert not validate_checksum(sentence)

    def test_missing_checksum_fails(self):
        assert not validate_checksum(generate_gga_sentence(include_checksum=False).strip())

    def test_garbage_fails(self):
        assert not validate_checksum("hello*ZZ")
        assert not validate_checksum("$GPGGA,1,2*ZZ")


class TestParseGGA:
    def test_parses_position(self):
        fix = parse_gga(generate_gga_sentence(48.1173, 11.5167))

        assert fix is not None
        assert fix.latitude == pytest.approx(48.1173, abs=1e-4)
        assert fix.longitude == pytest.approx(11.5167, abs=1e-4)
        assert fix.fix_quality == 1
        assert fix.satellites == 8
        assert fix.hdop == pytest.approx(0.9)

    def test_southern_and_western_hemispheres_are_negative(self):
        fix = parse_gga(generate_gga_sentence(-33.8688, -151.2093))

        assert fix.latitude == pytest.approx(-33.8688, abs=1e-4)
        assert fix.longitude == pytest.approx(-151.2093, abs=1e-4)

    def test_other_talkers_accepted(self):
        assert parse_gga(generate_gga_sentence(talker="GN")) is not None

    def test_no_fix_returns_none(self):
        assert parse_gga(generate_gga_sentence(fix_quality=0)) is None

    def test_bad_checksum_returns_none(self):
        sentence = generate_gga_sentence().strip()
        tampered = sentence[:-2] + ("00" if sentence[-2:] != "00" else "11")
        assert parse_gga(tampered) is None

    def test_checksum_validation_can_be_skipped(self):
        assert parse_gga(generate_gga_sentence(include_checksum=False), validate=False) is not None

    def test_non_gga_sentence_returns_none(self):
        assert parse_gga("$GPRMC,123519,A,4807.038,N,01131.000,E,022.4,084.4,230394,003.1,W", validate=False) is None

    @pytest.mark.parametrize("line", ["", "not nmea", "$", "$GPGGA"])
    def test_malformed_input_returns_none(self, line):
        assert parse_gga(line, validate=False) is None


class TestAccuracy:
    def test_accuracy_scales_with_hdop(self):
        fix = parse_gga(generate_gga_sentence(hdop=2.0))
        assert fix.accuracy_m == pytest.approx(2.0 * UERE_M)

    def test_missing_hdop_assumes_coarse_fix(self):
        fix = parse_gga(generate_gga_sentence(hdop=None))
        assert fix.hdop is None
        assert fix.accuracy_m == pytest.approx(50.0)
