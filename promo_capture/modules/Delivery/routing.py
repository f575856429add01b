"""Outcome to destination routing."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from promo_capture.core.errors import DeliveryErrorKind, DestinationRejected
from promo_capture.core.logging_utils import mask_secret


@dataclass(frozen=True)
class Destination:
    """Bot credential plus chat. The token never appears in repr or logs."""

    token: str = field(repr=False)
    chat_id: str

    @property
    def masked_token(self) -> str:
        return mask_secret(self.token)

    def describe(self) -> str:
        return f"chat {self.chat_id} via bot {self.masked_token}"


class DestinationRouter:
    """Resolves a lead outcome (e.g. ``accepted``) to its destination."""

    def __init__(self, destinations: Mapping[str, Destination]) -> None:
        self._destinations = {key.strip().lower(): value for key, value in destinations.items()}

    @property
    def outcomes(self) -> Iterable[str]:
        return tuple(self._destinations)

    def resolve(self, outcome: str) -> Destination:
        key = (outcome or "").strip().lower()
        destination = self._destinations.get(key)
        if destination is None:
            raise DestinationRejected(
                f"No destination configured for outcome {outcome!r}",
                kind=DeliveryErrorKind.DESTINATION_NOT_FOUND,
            )
        if not destination.token or not destination.chat_id:
            raise DestinationRejected(
                f"Destination for outcome {outcome!r} is missing a token or chat id",
                kind=DeliveryErrorKind.BAD_CREDENTIAL,
            )
        return destination

    def __contains__(self, outcome: object) -> bool:
        return isinstance(outcome, str) and outcome.strip().lower() in self._destinations

    def __len__(self) -> int:
        return len(self._destinations)


__all__ = ["Destination", "DestinationRouter"]
