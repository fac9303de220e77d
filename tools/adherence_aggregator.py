"""
Adherence Aggregator
Daily adherence rates, streaks, trends and missed-dose counts computed
from a patient's medications and dose activity history.

Every function here is pure: the reference day is always passed in, so
repeated calls with the same snapshot return the same result and metrics
for many patients can be computed side by side.
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from tools.date_helpers import parse_date, days_between, days_ago
from tools.records import MedicationRecord, DoseActivityRecord
from tools.schedule_calculator import required_doses_per_day


logger = logging.getLogger(__name__)


# A day is adherent when at least this percentage of required doses was taken
ADHERENT_DAY_THRESHOLD = 80

WEEKLY_TREND_DAYS = 7
MONTHLY_TREND_DAYS = 30
MISSED_WEEK_WINDOW_DAYS = 7
MISSED_MONTH_WINDOW_DAYS = 30
# Look-back of the record-level summary on the caretaker patient list
RECENT_ACTIVITY_DAYS = 30


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up"""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class DailyRate:
    """Adherence of one tracked day"""
    date: date
    rate: int
    required: int = 0
    taken: int = 0
    missed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date.isoformat(), "rate": self.rate}


@dataclass
class AdherenceMetrics:
    """Aggregate adherence statistics for one patient"""
    overall_rate: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    missed_doses_this_week: int = 0
    missed_doses_this_month: int = 0
    total_medications: int = 0
    days_tracked: int = 0
    weekly_trend: List[int] = field(default_factory=lambda: [0] * WEEKLY_TREND_DAYS)
    monthly_trend: List[DailyRate] = field(default_factory=list)
    inferred_missed_this_week: int = 0
    inferred_missed_this_month: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_rate": self.overall_rate,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "missed_doses_this_week": self.missed_doses_this_week,
            "missed_doses_this_month": self.missed_doses_this_month,
            "total_medications": self.total_medications,
            "days_tracked": self.days_tracked,
            "weekly_trend": list(self.weekly_trend),
            "monthly_trend": [d.to_dict() for d in self.monthly_trend],
            "inferred_missed_this_week": self.inferred_missed_this_week,
            "inferred_missed_this_month": self.inferred_missed_this_month,
        }


@dataclass
class PatientActivitySummary:
    """Record-level stats shown on a caretaker's patient list"""
    adherence_rate: int = 0
    current_streak: int = 0
    missed_doses: int = 0
    last_taken: Optional[date] = None
    total_medications: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "adherence_rate": self.adherence_rate,
            "current_streak": self.current_streak,
            "missed_doses": self.missed_doses,
            "last_taken": self.last_taken.isoformat() if self.last_taken else None,
            "total_medications": self.total_medications,
        }


def active_medications_on(day: Any, medications: Iterable[Any]) -> List[MedicationRecord]:
    """Medications created on or before the given day"""
    target = parse_date(day)
    records = (MedicationRecord.from_obj(m) for m in medications)
    return [m for m in records if m.is_active_on(target)]


def _tally_day(
    day: date,
    medications: Iterable[MedicationRecord],
    activities: Iterable[DoseActivityRecord],
) -> Tuple[int, int, int]:
    """Required, taken and per-medication shortfall for one day"""
    taken_per_med: Dict[str, int] = defaultdict(int)
    taken = 0
    for activity in activities:
        if activity.date == day and activity.taken:
            taken += 1
            taken_per_med[activity.medication_id] += 1

    required = 0
    missed = 0
    for med in medications:
        if not med.is_active_on(day):
            continue
        doses = required_doses_per_day(med.frequency)
        required += doses
        missed += max(doses - taken_per_med.get(med.id, 0), 0)

    return required, taken, missed


def _rate(taken: int, required: int) -> int:
    return min(round_half_up(taken / required * 100), 100)


def compute_daily_rate(
    day: Any,
    active_medications: Iterable[Any],
    activities_for_date: Iterable[Any],
) -> Optional[int]:
    """
    Percentage of required doses taken on one day.

    Args:
        day: The calendar day, "YYYY-MM-DD"
        active_medications: Medications to consider; any created after
            ``day`` are ignored
        activities_for_date: Dose activity records; only taken records
            dated ``day`` count

    Returns:
        Integer percentage in [0, 100], or None when no medication is
        active that day (the day is not tracked).

    Raises:
        ParseError: if a date cannot be parsed
    """
    target = parse_date(day)
    meds = [MedicationRecord.from_obj(m) for m in active_medications]
    acts = [DoseActivityRecord.from_obj(a) for a in activities_for_date]

    required, taken, _ = _tally_day(target, meds, acts)
    if required == 0:
        return None
    return _rate(taken, required)


def compute_streaks(
    rates: Sequence[int],
    threshold: int = ADHERENT_DAY_THRESHOLD,
) -> Tuple[int, int]:
    """
    Current and longest runs of adherent days.

    ``rates`` holds tracked days only, oldest first; untracked days are
    never part of the sequence so they cannot break a run.
    """
    current = 0
    for rate in reversed(rates):
        if rate < threshold:
            break
        current += 1

    longest = 0
    run = 0
    for rate in rates:
        if rate >= threshold:
            run += 1
            longest = max(longest, run)
        else:
            run = 0

    return current, longest


def build_daily_rates(
    medications: Sequence[MedicationRecord],
    activities: Sequence[DoseActivityRecord],
    today: date,
) -> List[DailyRate]:
    """Rate of every tracked day from the first medication up to today"""
    if not medications:
        return []

    start = min(m.created_at for m in medications)

    by_date: Dict[date, List[DoseActivityRecord]] = defaultdict(list)
    for activity in activities:
        by_date[activity.date].append(activity)

    daily_rates = []
    for day in days_between(start, today):
        required, taken, missed = _tally_day(day, medications, by_date.get(day, ()))
        if required == 0:
            logger.debug(f"No active medications on {day}, skipping")
            continue
        daily_rates.append(DailyRate(
            date=day,
            rate=_rate(taken, required),
            required=required,
            taken=taken,
            missed=missed,
        ))

    return daily_rates


def _count_false_records(
    activities: Iterable[DoseActivityRecord],
    since: date,
    today: date,
) -> int:
    return sum(
        1 for a in activities
        if not a.taken and since <= a.date <= today
    )


def _count_inferred_missed(
    daily_rates: Iterable[DailyRate],
    since: date,
    today: date,
) -> int:
    # Today's remaining doses may still be taken
    return sum(d.missed for d in daily_rates if since <= d.date < today)


def compute_adherence_metrics(
    medications: Iterable[Any],
    activities: Iterable[Any],
    today: Any,
    threshold: int = ADHERENT_DAY_THRESHOLD,
) -> AdherenceMetrics:
    """
    Compute adherence metrics over the lifetime of a patient's medications.

    The tracking window runs from the earliest medication creation date to
    ``today`` inclusive. Days without an active medication are skipped.

    Args:
        medications: The patient's medications
        activities: The patient's dose activity history
        today: Reference day closing the window, "YYYY-MM-DD"
        threshold: Minimum daily rate for an adherent day

    Returns:
        AdherenceMetrics; zeroed when there are no medications

    Raises:
        ParseError: if any date cannot be parsed
    """
    reference = parse_date(today)
    meds = [MedicationRecord.from_obj(m) for m in medications]
    acts = [DoseActivityRecord.from_obj(a) for a in activities]

    if not meds:
        return AdherenceMetrics()

    daily_rates = build_daily_rates(meds, acts, reference)
    rates = [d.rate for d in daily_rates]

    days_tracked = len(daily_rates)
    adherent_days = sum(1 for r in rates if r >= threshold)
    overall_rate = round_half_up(adherent_days / days_tracked * 100) if days_tracked else 0

    current_streak, longest_streak = compute_streaks(rates, threshold)

    weekly_trend = rates[-WEEKLY_TREND_DAYS:]
    weekly_trend = [0] * (WEEKLY_TREND_DAYS - len(weekly_trend)) + weekly_trend

    week_start = days_ago(reference, MISSED_WEEK_WINDOW_DAYS)
    month_start = days_ago(reference, MISSED_MONTH_WINDOW_DAYS)

    return AdherenceMetrics(
        overall_rate=overall_rate,
        current_streak=current_streak,
        longest_streak=longest_streak,
        missed_doses_this_week=_count_false_records(acts, week_start, reference),
        missed_doses_this_month=_count_false_records(acts, month_start, reference),
        total_medications=len(meds),
        days_tracked=days_tracked,
        weekly_trend=weekly_trend,
        monthly_trend=daily_rates[-MONTHLY_TREND_DAYS:],
        inferred_missed_this_week=_count_inferred_missed(daily_rates, week_start, reference),
        inferred_missed_this_month=_count_inferred_missed(daily_rates, month_start, reference),
    )


def summarize_recent_activity(
    medications: Iterable[Any],
    activities: Iterable[Any],
    today: Any,
    days: int = RECENT_ACTIVITY_DAYS,
) -> PatientActivitySummary:
    """
    Record-level summary of the last ``days`` days of activity.

    Unlike the daily metrics this looks only at stored records: the rate is
    taken records over all records, and the streak counts consecutive taken
    records from the newest backwards.
    """
    reference = parse_date(today)
    since = days_ago(reference, days)
    meds = list(medications)

    recent = [
        a for a in (DoseActivityRecord.from_obj(x) for x in activities)
        if since <= a.date <= reference
    ]
    if not recent:
        return PatientActivitySummary(total_medications=len(meds))

    taken = [a for a in recent if a.taken]

    streak = 0
    newest_first = sorted(
        recent, key=lambda a: (a.date, a.taken_time or ""), reverse=True
    )
    for activity in newest_first:
        if not activity.taken:
            break
        streak += 1

    return PatientActivitySummary(
        adherence_rate=round_half_up(len(taken) / len(recent) * 100),
        current_streak=streak,
        missed_doses=len(recent) - len(taken),
        last_taken=max((a.date for a in taken), default=None),
        total_medications=len(meds),
    )


def taken_dates(activities: Iterable[Any], since: Any = None) -> Set[date]:
    """Days with at least one taken dose, for calendar views"""
    start = parse_date(since) if since is not None else None
    dates = set()
    for raw in activities:
        activity = DoseActivityRecord.from_obj(raw)
        if activity.taken and (start is None or activity.date >= start):
            dates.add(activity.date)
    return dates
