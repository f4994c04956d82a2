"""
Booking job lifecycle.

ACTIVE is the initial state. PAUSED is only entered and left through
explicit user action. COMPLETED (goal met or window elapsed) and FAILED
(circuit breaker tripped) are terminal for automatic processing.

The transition helpers are pure: each takes a job and returns a new one.
BookingProcessor does the remote calls, threads the job through the
helpers and saves the result once per pass.

Job dates and times are venue-local wall-clock values, so "now" is
taken in the venue timezone regardless of the host zone.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from ..api.base import (
    BookingClient,
    BookingRequest,
    ReservationFailed,
    ReservationOutcome,
    ReservationResult,
)
from .availability import AvailabilityEvaluator
from .models import BookedSlot, BookingJob, BookingStatus, BookingType, InvalidJobError
from .recurrence import next_candidate_dates

logger = logging.getLogger(__name__)

DEFAULT_MAX_FAILED_ATTEMPTS = 10
VENUE_TIMEZONE = "America/Los_Angeles"


def record_attempt(job: BookingJob, now: datetime) -> BookingJob:
    return replace(job, last_attempt=now)


def complete(job: BookingJob) -> BookingJob:
    return replace(job, status=BookingStatus.COMPLETED, is_active=False)


def record_booking(job: BookingJob, slot: BookedSlot, now: datetime, finished: bool = False) -> BookingJob:
    """Attach a newly secured slot; ``finished`` also completes the job."""
    job = replace(
        job,
        booked_slots=job.booked_slots + (slot,),
        successful_bookings=job.successful_bookings + 1,
        last_successful_booking=now,
        error_message=None,
    )
    return complete(job) if finished else job


def record_error(job: BookingJob, message: Optional[str]) -> BookingJob:
    return replace(job, error_message=message)


def record_failure(
    job: BookingJob,
    message: str,
    max_failed_attempts: int = DEFAULT_MAX_FAILED_ATTEMPTS,
) -> BookingJob:
    """Count a hard fault. Reaching the limit disables the job for good."""
    job = replace(job, failed_attempts=job.failed_attempts + 1, error_message=message)
    if job.failed_attempts >= max_failed_attempts:
        job = replace(job, status=BookingStatus.FAILED, is_active=False)
    return job


def _describe(error: Exception) -> str:
    return getattr(error, "message", None) or str(error) or error.__class__.__name__


def venue_now(timezone: str = VENUE_TIMEZONE) -> datetime:
    """Current naive wall-clock time at the venue."""
    return datetime.now(ZoneInfo(timezone)).replace(tzinfo=None)


class BookingProcessor:
    """Drives one eligible job through one processing step and persists it."""

    def __init__(
        self,
        client: BookingClient,
        repository,
        evaluator: Optional[AvailabilityEvaluator] = None,
        now: Optional[Callable[[], datetime]] = None,
        max_failed_attempts: int = DEFAULT_MAX_FAILED_ATTEMPTS,
        timezone: str = VENUE_TIMEZONE,
    ):
        self.client = client
        self.repository = repository
        self.evaluator = evaluator or AvailabilityEvaluator(client)
        self.timezone = timezone
        self._now = now or (lambda: venue_now(timezone))
        self.max_failed_attempts = max_failed_attempts

    def process(self, job: BookingJob) -> BookingJob:
        """
        Run one processing step for a job and save it.

        Hard faults (network, parsing, verification, rejected reservations on
        one-time jobs) are counted against the job instead of being raised.

        Returns:
            The job as saved; ineligible jobs are returned untouched
        """
        if not job.is_eligible:
            logger.debug(f"Skipping job {job.id}: status={job.status.value}, is_active={job.is_active}")
            return job

        now = self._venue_now()
        job = record_attempt(job, now)

        try:
            if job.booking_type is BookingType.ONE_TIME:
                job = self._process_one_time(job, now)
            elif job.booking_type is BookingType.RECURRING:
                job = self._process_recurring(job, now)
            else:
                raise InvalidJobError(f"Unknown booking type: {job.booking_type!r}")
        except Exception as e:
            logger.error(f"Failed to process booking job {job.id}: {e}", exc_info=True)
            job = record_failure(job, _describe(e), self.max_failed_attempts)
            if job.status is BookingStatus.FAILED:
                logger.warning(f"Disabled booking job {job.id} after {job.failed_attempts} failures")

        return self.repository.save(job)

    def _venue_now(self) -> datetime:
        now = self._now()
        if now.tzinfo is not None:
            now = now.astimezone(ZoneInfo(self.timezone)).replace(tzinfo=None)
        return now

    def _reserve(self, job: BookingJob, target_date: str, target_time: str) -> ReservationResult:
        amenity = self.client.get_amenity(job.amenity_id)
        terms_of_use = amenity.terms_of_use if amenity else ""

        resident_id = self.client.resolve_resident_id(job.user_last_name, job.user_unit_number)

        request = BookingRequest(
            amenity_id=job.amenity_id,
            email=job.user_email,
            last_name=job.user_last_name,
            unit_number=job.user_unit_number,
            target_date=target_date,
            target_time=target_time,
            party_size=job.party_size,
        )
        return self.client.reserve(request, resident_id, terms_of_use)

    @staticmethod
    def _slot_from(result: ReservationResult, booked_date: str, booked_time: str) -> BookedSlot:
        return BookedSlot(
            reservation_id=result.reservation_id or "",
            access_code=result.access_code or "",
            booked_date=booked_date,
            booked_time=booked_time,
        )

    def _process_one_time(self, job: BookingJob, now: datetime) -> BookingJob:
        if not job.target_date or not job.target_time:
            raise InvalidJobError("One-time booking requires target date and time")

        target_date = job.target_date.isoformat()

        if job.has_booked(target_date, job.target_time):
            logger.warning(f"Slot {target_date} {job.target_time} already booked for job {job.id}, marking complete")
            return complete(job)

        target = datetime.combine(job.target_date, datetime.strptime(job.target_time, "%H:%M").time())
        if target < now:
            logger.info(f"One-time booking job {job.id} expired - target date has passed")
            return complete(job)

        if not self.evaluator.is_available(job.amenity_id, target_date, job.user_unit_number):
            logger.debug(f"Amenity {job.amenity_id} not available for {target_date}")
            return job

        result = self._reserve(job, target_date, job.target_time)

        if result.success:
            logger.info(f"Booked {job.amenity_name} on {target_date} for job {job.id} (reservation {result.reservation_id})")
            return record_booking(job, self._slot_from(result, target_date, job.target_time), now, finished=True)

        if result.outcome is ReservationOutcome.NO_SLOT_AVAILABLE:
            logger.info(f"Slot for job {job.id} on {target_date} was taken before booking, retrying next pass")
            return job

        raise ReservationFailed(result.error_message or "Booking failed", platform=self.client.platform_name)

    def _process_recurring(self, job: BookingJob, now: datetime) -> BookingJob:
        if not job.recurrence_frequency or not job.preferred_time:
            raise InvalidJobError("Recurring booking requires recurrence frequency and preferred time")

        if job.end_date and now.date() > job.end_date:
            logger.info(f"Recurring booking job {job.id} completed - end date reached")
            return complete(job)

        candidates = next_candidate_dates(job, now.date())
        if not candidates:
            logger.warning(f"No candidate dates for recurring booking job {job.id}")
            return job

        for day in candidates:
            target_date = day.isoformat()

            if job.has_booked(target_date, job.preferred_time):
                logger.debug(f"Slot {target_date} {job.preferred_time} already booked for job {job.id}, skipping")
                continue

            if not self.evaluator.is_available(job.amenity_id, target_date, job.user_unit_number):
                logger.debug(f"Not available on {target_date}, trying next date")
                continue

            result = self._reserve(job, target_date, job.preferred_time)

            if result.success:
                logger.info(
                    f"Booked recurring {job.amenity_name} on {target_date} for job {job.id} "
                    f"(reservation {result.reservation_id})"
                )
                # One booking per pass; the job stays active for later occurrences
                return record_booking(job, self._slot_from(result, target_date, job.preferred_time), now)

            logger.warning(f"Booking failed for job {job.id} on {target_date}: {result.error_message}")
            if result.outcome is not ReservationOutcome.NO_SLOT_AVAILABLE:
                job = record_error(job, result.error_message)

        return job
