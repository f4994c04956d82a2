from .models import (
    BookedSlot,
    BookingJob,
    BookingStatus,
    BookingType,
    InvalidJobError,
    RecurrenceFrequency,
    normalize_days,
    validate_job,
)
from .recurrence import is_day_allowed, next_candidate_dates
from .availability import AvailabilityEvaluator
from .state_machine import BookingProcessor, DEFAULT_MAX_FAILED_ATTEMPTS
from .repository import JobRepository
from .service import BookingService, InvalidTransitionError, JobNotFoundError
