"""Participant record captured by the promoter alongside the video."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Mapping

_CAMEL_KEYS = {
    "parentName": "parent_name",
    "childName": "child_name",
}


@dataclass(frozen=True)
class ParticipantRecord:
    parent_name: str
    child_name: str
    age: str
    phone: str
    promoter: str

    def is_complete(self) -> bool:
        """Every field must be non-empty after trimming."""
        return all(str(getattr(self, f.name) or "").strip() for f in fields(self))

    def missing_fields(self) -> list[str]:
        return [f.name for f in fields(self) if not str(getattr(self, f.name) or "").strip()]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ParticipantRecord":
        """Build from form data; accepts ``parentName`` or ``parent_name`` style keys."""
        values: dict[str, str] = {}
        for key, value in data.items():
            name = _CAMEL_KEYS.get(key, key)
            values[name] = "" if value is None else str(value)
        return cls(**{f.name: values.get(f.name, "") for f in fields(cls)})

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


__all__ = ["ParticipantRecord"]
