"""Container label normalization before upload.

The recorder (or an external source) declares a MIME type. Messaging APIs
are picky about it, so the label is mapped to one of mp4, webm or mov by
substring match. Only the label changes; the bytes are never touched, so
a wrong guess uploads a mislabeled file.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from promo_capture.modules.Capture.artifact import Artifact

MP4_MIME = "video/mp4"
WEBM_MIME = "video/webm"

_EBML_MAGIC = b"\x1a\x45\xdf\xa3"


@dataclass(frozen=True)
class NormalizedFormat:
    mime_type: str
    extension: str

    @property
    def suffix(self) -> str:
        return f".{self.extension}"


def sniff_container(data: bytes) -> Optional[str]:
    """Guess ``mp4``, ``mov`` or ``webm`` from the leading bytes."""
    if data[:4] == _EBML_MAGIC:
        return "webm"
    if data[4:8] == b"ftyp":
        brand = data[8:12]
        return "mov" if brand == b"qt  " else "mp4"
    return None


def _is_recognized(declared: str) -> bool:
    return any(token in declared for token in ("webm", "mov", "quicktime", "mp4"))


def normalize_format(declared: str, data: bytes = b"") -> NormalizedFormat:
    """Map a declared MIME type to the label and extension used for upload.

    When the declared type is empty or names none of the known containers,
    the leading bytes are checked for an EBML or ``ftyp`` signature.
    """
    original = (declared or "").strip()
    declared = original.lower()

    if data and not _is_recognized(declared):
        sniffed = sniff_container(data)
        if sniffed == "webm":
            return NormalizedFormat(WEBM_MIME, "webm")
        if sniffed == "mov":
            return NormalizedFormat(MP4_MIME, "mov")
        if sniffed == "mp4":
            return NormalizedFormat(MP4_MIME, "mp4")

    if "webm" in declared:
        return NormalizedFormat(original, "webm")
    if "mov" in declared or "quicktime" in declared:
        return NormalizedFormat(MP4_MIME, "mov")
    if "mp4" in declared or not declared:
        return NormalizedFormat(MP4_MIME, "mp4")
    return NormalizedFormat(original, "mp4")


def normalize_artifact(artifact: Artifact) -> tuple[Artifact, NormalizedFormat]:
    fmt = normalize_format(artifact.mime_type, artifact.data)
    return artifact.relabel(fmt.mime_type), fmt


__all__ = [
    "MP4_MIME",
    "WEBM_MIME",
    "NormalizedFormat",
    "normalize_artifact",
    "normalize_format",
    "sniff_container",
]
