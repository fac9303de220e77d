"""
Record Types
Snapshot records consumed by the scheduling and adherence core.

Callers hand the core plain mappings (JSON payloads), ORM rows or these
dataclasses; ``from_obj`` normalises all three.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, time
from typing import Any, Callable, Optional

from tools.date_helpers import parse_date, TIME_FORMAT


def _getter(obj: Any) -> Callable[[str], Any]:
    if isinstance(obj, Mapping):
        return obj.get
    return lambda name: getattr(obj, name, None)


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


def _time_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, time):
        return value.strftime(TIME_FORMAT)
    return str(value)


@dataclass(frozen=True)
class MedicationRecord:
    """A prescribed regimen"""
    id: str
    owner_id: str
    name: str
    dosage: str
    frequency: str
    scheduled_time: str
    created_at: date

    @classmethod
    def from_obj(cls, obj: Any) -> "MedicationRecord":
        if isinstance(obj, cls):
            return obj
        get = _getter(obj)
        owner = get("owner_id")
        if owner is None:
            owner = get("user_id")
        return cls(
            id=str(get("id")),
            owner_id=str(owner) if owner is not None else "",
            name=get("name") or "",
            dosage=get("dosage") or "",
            frequency=_enum_value(get("frequency")) or "",
            scheduled_time=_time_str(get("scheduled_time")) or "",
            created_at=parse_date(get("created_at")),
        )

    def is_active_on(self, day: date) -> bool:
        """Doses count toward a day only on or after the creation date"""
        return self.created_at <= day


@dataclass(frozen=True)
class DoseActivityRecord:
    """One confirmed (or explicitly missed) dose instance"""
    id: str
    medication_id: str
    owner_id: str
    date: date
    taken: bool
    taken_time: Optional[str] = None
    proof_image_url: Optional[str] = None

    @classmethod
    def from_obj(cls, obj: Any) -> "DoseActivityRecord":
        if isinstance(obj, cls):
            return obj
        get = _getter(obj)
        owner = get("owner_id")
        if owner is None:
            owner = get("user_id")
        taken = bool(get("taken"))
        return cls(
            id=str(get("id")),
            medication_id=str(get("medication_id")),
            owner_id=str(owner) if owner is not None else "",
            date=parse_date(get("date")),
            taken=taken,
            taken_time=_time_str(get("taken_time")) if taken else None,
            proof_image_url=get("proof_image_url"),
        )
