"""Unit tests for container label normalization."""

import pytest

from promo_capture.modules.Capture.artifact import Artifact
from promo_capture.modules.Delivery.formats import (
    MP4_MIME,
    normalize_artifact,
    normalize_format,
    sniff_container,
)
from tests.infrastructure.helpers.generators import MOV_HEADER, MP4_HEADER, WEBM_HEADER


class TestNormalizeFormat:
    @pytest.mark.parametrize(
        "declared, expected",
        [
            ('video/mp4; codecs="avc1.424028, mp4a.40.2"', ("video/mp4", "mp4")),
            ("video/mp4", ("video/mp4", "mp4")),
            ("video/quicktime", ("video/mp4", "mov")),
            ("video/mov", ("video/mp4", "mov")),
            ('video/webm; codecs="vp9, opus"', ('video/webm; codecs="vp9, opus"', "webm")),
            ("", ("video/mp4", "mp4")),
        ],
    )
    def test_declared_labels(self, declared, expected):
        fmt = normalize_format(declared)
        assert (fmt.mime_type, fmt.extension) == expected

    def test_matching_is_case_insensitive(self):
        assert normalize_format("VIDEO/QUICKTIME").extension == "mov"

    def test_webm_keeps_original_casing(self):
        assert normalize_format("Video/WebM").mime_type == "Video/WebM"

    def test_unknown_label_is_kept_with_mp4_extension(self):
        fmt = normalize_format("video/x-matroska")
        assert fmt.mime_type == "video/x-matroska"
        assert fmt.extension == "mp4"

    def test_suffix(self):
        assert normalize_format("video/webm").suffix == ".webm"


class TestSniffing:
    @pytest.mark.parametrize(
        "header, expected",
        [(MP4_HEADER, "mp4"), (MOV_HEADER, "mov"), (WEBM_HEADER, "webm"), (b"RIFF....AVI ", None), (b"", None)],
    )
    def test_sniff_container(self, header, expected):
        assert sniff_container(header) == expected

    def test_unrecognized_label_uses_magic_bytes(self):
        fmt = normalize_format("application/octet-stream", WEBM_HEADER)
        assert (fmt.mime_type, fmt.extension) == ("video/webm", "webm")

    def test_empty_label_uses_magic_bytes(self):
        assert normalize_format("", MOV_HEADER).extension == "mov"

    def test_recognized_label_wins_over_bytes(self):
        fmt = normalize_format("video/mp4", WEBM_HEADER)
        assert fmt.extension == "mp4"

    def test_unsniffable_bytes_fall_through(self):
        assert normalize_format("video/x-matroska", b"garbage-bytes").mime_type == "video/x-matroska"


class TestNormalizeArtifact:
    def test_relabels_without_touching_bytes(self):
        artifact = Artifact(MOV_HEADER + b"payload", "video/quicktime")

        normalized, fmt = normalize_artifact(artifact)

        assert normalized.data is artifact.data
        assert normalized.mime_type == MP4_MIME
        assert fmt.extension == "mov"

    def test_already_normal_artifact_is_returned_as_is(self):
        artifact = Artifact(MP4_HEADER, "video/mp4")
        normalized, _ = normalize_artifact(artifact)
        assert normalized is artifact
