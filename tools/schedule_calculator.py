"""
Schedule Calculator
Required dose counts and next-dose timing per medication frequency
"""

import logging
from dataclasses import dataclass, field, asdict
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from tools.date_helpers import parse_date, parse_time, add_hours, TIME_FORMAT
from tools.errors import InvalidInputError
from tools.records import MedicationRecord, DoseActivityRecord


logger = logging.getLogger(__name__)


class Frequency(str, Enum):
    """Dosing cadence of a medication"""
    ONCE_DAILY = "once_daily"
    TWICE_DAILY = "twice_daily"
    THREE_TIMES_DAILY = "three_times_daily"
    FOUR_TIMES_DAILY = "four_times_daily"
    EVERY_OTHER_DAY = "every_other_day"
    WEEKLY = "weekly"
    AS_NEEDED = "as_needed"


# Hours after the scheduled anchor time for each dose of the day.
# The number of entries is the required dose count.
DOSE_OFFSETS_HOURS: Dict[Frequency, Tuple[int, ...]] = {
    Frequency.ONCE_DAILY: (0,),
    Frequency.TWICE_DAILY: (0, 12),
    Frequency.THREE_TIMES_DAILY: (0, 8, 16),
    Frequency.FOUR_TIMES_DAILY: (0, 6, 12, 18),
    Frequency.EVERY_OTHER_DAY: (0,),
    Frequency.WEEKLY: (0,),
    Frequency.AS_NEEDED: (0,),
}

# Unknown frequencies are treated as once daily
DEFAULT_OFFSETS_HOURS: Tuple[int, ...] = (0,)


def resolve_frequency(value: Any, strict: bool = False) -> Optional[Frequency]:
    """
    Map a raw frequency value to a Frequency member.

    Returns None for unrecognised values, or raises InvalidInputError
    when strict validation is requested.
    """
    try:
        return Frequency(value)
    except ValueError:
        if strict:
            raise InvalidInputError(f"Unknown frequency: {value!r}")
        logger.debug(f"Unknown frequency {value!r}, falling back to once daily")
        return None


def dose_offsets(frequency: Any, strict: bool = False) -> Tuple[int, ...]:
    """Hour offsets from the anchor time for every dose of the day"""
    resolved = resolve_frequency(frequency, strict=strict)
    if resolved is None:
        return DEFAULT_OFFSETS_HOURS
    return DOSE_OFFSETS_HOURS.get(resolved, DEFAULT_OFFSETS_HOURS)


def required_doses_per_day(frequency: Any, strict: bool = False) -> int:
    """
    Number of doses a frequency requires per calendar day.

    Total over every input: unrecognised values count as one dose unless
    ``strict`` is set.
    """
    return len(dose_offsets(frequency, strict=strict))


def next_dose_time(
    scheduled_time: Any,
    frequency: Any,
    taken_times: Optional[Sequence[Any]] = None,
) -> Optional[str]:
    """
    Compute the next expected dose time for today.

    Args:
        scheduled_time: Anchor time of the first dose, "HH:MM"
        frequency: Medication frequency
        taken_times: Confirmation times already recorded today; only the
            count is used

    Returns:
        "HH:MM" of the next dose, or None when the day is complete.
        Times past midnight wrap to the same clock without a date.

    Raises:
        InvalidInputError: if scheduled_time is malformed
    """
    base = parse_time(scheduled_time)
    taken_count = len(taken_times or ())
    offsets = dose_offsets(frequency)

    if taken_count >= len(offsets):
        return None

    return add_hours(base, offsets[taken_count]).strftime(TIME_FORMAT)


def is_day_complete(frequency: Any, taken_times: Optional[Sequence[Any]] = None) -> bool:
    """Whether every required dose of the day has been confirmed"""
    return len(taken_times or ()) >= required_doses_per_day(frequency)


def dose_times_for_day(scheduled_time: Any, frequency: Any) -> List[str]:
    """All expected dose times of a day in the order they are due"""
    base = parse_time(scheduled_time)
    return [
        add_hours(base, offset).strftime(TIME_FORMAT)
        for offset in dose_offsets(frequency)
    ]


@dataclass
class DailyMedicationStatus:
    """Progress of one medication on one day"""
    medication_id: str
    medication_name: str
    scheduled_time: str
    frequency: str
    dosage: str
    taken_today: bool
    taken_times: List[Optional[str]] = field(default_factory=list)
    next_dose_time: Optional[str] = None
    is_complete_for_day: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def build_daily_status(
    medications: Iterable[Any],
    activities: Iterable[Any],
    target_date: Any,
) -> List[DailyMedicationStatus]:
    """
    Daily view of every medication: what was taken and what is due next.

    Only ``taken`` records dated ``target_date`` count toward progress.
    """
    day: date = parse_date(target_date)

    taken_by_medication: Dict[str, List[Optional[str]]] = {}
    for raw in activities:
        activity = DoseActivityRecord.from_obj(raw)
        if activity.date != day or not activity.taken:
            continue
        taken_by_medication.setdefault(activity.medication_id, []).append(
            activity.taken_time
        )

    statuses = []
    for raw in medications:
        med = MedicationRecord.from_obj(raw)
        taken_times = taken_by_medication.get(med.id, [])
        complete = is_day_complete(med.frequency, taken_times)
        statuses.append(DailyMedicationStatus(
            medication_id=med.id,
            medication_name=med.name,
            scheduled_time=med.scheduled_time,
            frequency=med.frequency,
            dosage=med.dosage,
            taken_today=len(taken_times) > 0,
            taken_times=taken_times,
            next_dose_time=None if complete else next_dose_time(
                med.scheduled_time, med.frequency, taken_times
            ),
            is_complete_for_day=complete,
        ))

    return statuses
