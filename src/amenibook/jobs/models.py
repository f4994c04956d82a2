"""
Booking job domain records.

Jobs and their booked slots are immutable dataclasses; the state machine
returns new records via dataclasses.replace() and the repository persists
them.
"""

import re
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Iterable, Optional


class BookingType(Enum):
    ONE_TIME = "one_time"
    RECURRING = "recurring"


class BookingStatus(Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"


class RecurrenceFrequency(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ALWAYS = "always"


TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.FAILED})

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class InvalidJobError(ValueError):
    """A job definition is missing or has malformed fields."""


def normalize_days(values: Optional[Iterable]) -> frozenset:
    """
    Coerce day-of-week values to a frozenset of ints (0=Sunday .. 6=Saturday).

    Accepts ints, numeric strings, or a comma-separated string as stored in
    the database.
    """
    if values is None:
        return frozenset()
    if isinstance(values, str):
        values = [part for part in values.split(",") if part.strip()]

    days = set()
    for value in values:
        try:
            day = int(str(value).strip())
        except ValueError:
            raise InvalidJobError(f"Invalid day of week: {value!r}")
        if not 0 <= day <= 6:
            raise InvalidJobError(f"Day of week must be between 0 and 6, got {day}")
        days.add(day)
    return frozenset(days)


def is_valid_time(value: Optional[str]) -> bool:
    return bool(value) and bool(_TIME_PATTERN.match(value))


@dataclass(frozen=True)
class BookedSlot:
    """A confirmed reservation secured for a job."""
    reservation_id: str
    access_code: str
    booked_date: str  # YYYY-MM-DD
    booked_time: str  # HH:MM
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class BookingJob:
    """A resident's standing booking intent."""
    user_email: str
    user_last_name: str
    user_unit_number: str
    amenity_id: str
    amenity_name: str
    booking_type: BookingType
    status: BookingStatus = BookingStatus.ACTIVE
    target_date: Optional[date] = None
    target_time: Optional[str] = None
    recurrence_frequency: Optional[RecurrenceFrequency] = None
    preferred_time: Optional[str] = None
    preferred_days_of_week: frozenset = frozenset()
    end_date: Optional[date] = None
    party_size: int = 1
    successful_bookings: int = 0
    failed_attempts: int = 0
    last_attempt: Optional[datetime] = None
    last_successful_booking: Optional[datetime] = None
    error_message: Optional[str] = None
    is_active: bool = True
    booked_slots: tuple = ()
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_eligible(self) -> bool:
        """Only ACTIVE jobs that are also switched on get processed."""
        return self.status is BookingStatus.ACTIVE and self.is_active

    def has_booked(self, booked_date: str, booked_time: Optional[str]) -> bool:
        return any(
            slot.booked_date == booked_date and slot.booked_time == booked_time
            for slot in self.booked_slots
        )


def validate_job(job: BookingJob) -> BookingJob:
    """
    Check a job definition before it is stored.

    Raises:
        InvalidJobError: On the first problem found
    """
    required = {
        "user_email": job.user_email,
        "user_last_name": job.user_last_name,
        "user_unit_number": job.user_unit_number,
        "amenity_id": job.amenity_id,
        "amenity_name": job.amenity_name,
    }
    missing = [name for name, value in required.items() if not value]
    if missing:
        raise InvalidJobError(f"Missing required fields: {', '.join(missing)}")

    if job.party_size < 1:
        raise InvalidJobError("Party size must be at least 1")

    if job.booking_type is BookingType.ONE_TIME:
        if not job.target_date or not job.target_time:
            raise InvalidJobError("One-time bookings require target_date and target_time")
        if not is_valid_time(job.target_time):
            raise InvalidJobError(f"Invalid target_time '{job.target_time}'. Use HH:MM.")
    elif job.booking_type is BookingType.RECURRING:
        if not job.recurrence_frequency or not job.preferred_time:
            raise InvalidJobError("Recurring bookings require recurrence_frequency and preferred_time")
        if not is_valid_time(job.preferred_time):
            raise InvalidJobError(f"Invalid preferred_time '{job.preferred_time}'. Use HH:MM.")
    else:
        raise InvalidJobError(f"Unknown booking type: {job.booking_type!r}")

    return job
