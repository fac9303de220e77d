"""
Error Types
Typed errors raised by the scheduling and adherence core
"""


class DoseTrackError(Exception):
    """Base class for all DoseTrack errors"""


class InvalidInputError(DoseTrackError, ValueError):
    """Malformed time, unparseable date or an unknown frequency under strict validation"""


class ParseError(InvalidInputError):
    """A date or time string does not match its expected format"""

    def __init__(self, value, expected: str):
        self.value = value
        self.expected = expected
        super().__init__(f"Cannot parse {value!r}: expected {expected}")


class DoseLimitReachedError(DoseTrackError):
    """All required doses for the day are already recorded"""

    def __init__(self, medication_id: str, day: str, required: int):
        self.medication_id = medication_id
        self.day = day
        self.required = required
        super().__init__(
            f"Medication {medication_id} already has {required} "
            f"dose(s) recorded for {day}"
        )


class NotFoundError(DoseTrackError):
    """A referenced record does not exist in the store"""
