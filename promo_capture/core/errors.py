"""Error taxonomy shared by the capture, location and delivery modules."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class PromoCaptureError(Exception):
    """Base class for every error raised by promo_capture."""


class InvalidTransition(PromoCaptureError, RuntimeError):
    """A capture session operation was called from a state that forbids it."""


# ---------------------------------------------------------------------------
# Capture


class DeviceUnavailable(PromoCaptureError):
    """Camera or microphone could not be opened (denied or missing)."""

    def __init__(self, message: str, *, permission_denied: bool = False) -> None:
        super().__init__(message)
        self.permission_denied = permission_denied


class RecordingEmpty(PromoCaptureError):
    """Recording stopped without producing any bytes."""


# ---------------------------------------------------------------------------
# Location


class LocationUnresolved(PromoCaptureError):
    """Location lookup failed. Never fatal; the payload is degraded instead.

    ``reason`` carries a ``LocationErrorReason`` from the location module.
    """

    def __init__(self, message: str, *, reason=None) -> None:
        super().__init__(message)
        self.reason = reason


# ---------------------------------------------------------------------------
# Delivery


class DeliveryErrorKind(Enum):
    PAYLOAD_TOO_LARGE = "payload_too_large"
    BAD_CREDENTIAL = "bad_credential"
    DESTINATION_NOT_FOUND = "destination_not_found"
    UNSUPPORTED_FORMAT = "unsupported_format"
    TIMEOUT = "timeout"
    SHARE_UNSUPPORTED = "share_unsupported"
    GENERIC = "generic"

    @property
    def retry_as_document(self) -> bool:
        """True when a generic-file upload might succeed where media failed."""
        return self in (DeliveryErrorKind.PAYLOAD_TOO_LARGE, DeliveryErrorKind.UNSUPPORTED_FORMAT)


class DeliveryError(PromoCaptureError):
    """A single delivery channel failed."""

    kind = DeliveryErrorKind.GENERIC

    def __init__(
        self,
        description: str,
        *,
        kind: Optional[DeliveryErrorKind] = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(description)
        self.description = description
        if kind is not None:
            self.kind = kind
        self.status = status

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind.value}: {self.description!r})"


class NetworkTimeout(DeliveryError):
    kind = DeliveryErrorKind.TIMEOUT


class DestinationRejected(DeliveryError):
    """Bad credential or unknown destination."""

    kind = DeliveryErrorKind.BAD_CREDENTIAL


class PayloadTooLarge(DeliveryError):
    kind = DeliveryErrorKind.PAYLOAD_TOO_LARGE


class UnsupportedFormat(DeliveryError):
    kind = DeliveryErrorKind.UNSUPPORTED_FORMAT


class PlatformShareUnsupported(DeliveryError):
    kind = DeliveryErrorKind.SHARE_UNSUPPORTED


_KIND_TO_CLASS = {
    DeliveryErrorKind.PAYLOAD_TOO_LARGE: PayloadTooLarge,
    DeliveryErrorKind.BAD_CREDENTIAL: DestinationRejected,
    DeliveryErrorKind.DESTINATION_NOT_FOUND: DestinationRejected,
    DeliveryErrorKind.UNSUPPORTED_FORMAT: UnsupportedFormat,
    DeliveryErrorKind.TIMEOUT: NetworkTimeout,
    DeliveryErrorKind.SHARE_UNSUPPORTED: PlatformShareUnsupported,
}


def delivery_error_for(
    kind: DeliveryErrorKind,
    description: str,
    *,
    status: Optional[int] = None,
) -> DeliveryError:
    """Build the most specific DeliveryError subclass for ``kind``."""
    cls = _KIND_TO_CLASS.get(kind, DeliveryError)
    return cls(description, kind=kind, status=status)


__all__ = [
    "PromoCaptureError",
    "InvalidTransition",
    "DeviceUnavailable",
    "RecordingEmpty",
    "LocationUnresolved",
    "DeliveryErrorKind",
    "DeliveryError",
    "NetworkTimeout",
    "DestinationRejected",
    "PayloadTooLarge",
    "UnsupportedFormat",
    "PlatformShareUnsupported",
    "delivery_error_for",
]
