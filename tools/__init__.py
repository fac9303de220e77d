"""
Tools Package
Dose scheduling and adherence computation core for DoseTrack
"""

from .errors import (
    DoseTrackError,
    InvalidInputError,
    ParseError,
    DoseLimitReachedError,
    NotFoundError,
)

from .date_helpers import (
    parse_date,
    parse_time,
    format_date,
    format_time,
)

from .records import (
    MedicationRecord,
    DoseActivityRecord,
)

from .schedule_calculator import (
    Frequency,
    DOSE_OFFSETS_HOURS,
    DailyMedicationStatus,
    resolve_frequency,
    required_doses_per_day,
    next_dose_time,
    is_day_complete,
    dose_times_for_day,
    build_daily_status,
)

from .adherence_aggregator import (
    ADHERENT_DAY_THRESHOLD,
    AdherenceMetrics,
    DailyRate,
    PatientActivitySummary,
    active_medications_on,
    compute_daily_rate,
    compute_streaks,
    compute_adherence_metrics,
    summarize_recent_activity,
    taken_dates,
)


__all__ = [
    # Errors
    "DoseTrackError",
    "InvalidInputError",
    "ParseError",
    "DoseLimitReachedError",
    "NotFoundError",
    # Dates
    "parse_date",
    "parse_time",
    "format_date",
    "format_time",
    # Records
    "MedicationRecord",
    "DoseActivityRecord",
    # Schedule calculator
    "Frequency",
    "DOSE_OFFSETS_HOURS",
    "DailyMedicationStatus",
    "resolve_frequency",
    "required_doses_per_day",
    "next_dose_time",
    "is_day_complete",
    "dose_times_for_day",
    "build_daily_status",
    # Adherence aggregator
    "ADHERENT_DAY_THRESHOLD",
    "AdherenceMetrics",
    "DailyRate",
    "PatientActivitySummary",
    "active_medications_on",
    "compute_daily_rate",
    "compute_streaks",
    "compute_adherence_metrics",
    "summarize_recent_activity",
    "taken_dates",
]
