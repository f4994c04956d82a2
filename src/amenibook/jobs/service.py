"""
Booking job operations: create, read, update, pause/resume, delete, and
the full processing pass over every eligible job.
"""

import logging
from dataclasses import replace
from datetime import date
from typing import Optional

from .models import (
    BookingJob,
    BookingStatus,
    BookingType,
    RecurrenceFrequency,
    normalize_days,
    validate_job,
)
from .repository import JobRepository
from .state_machine import BookingProcessor

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({
    "target_date",
    "target_time",
    "recurrence_frequency",
    "preferred_time",
    "preferred_days_of_week",
    "end_date",
    "party_size",
})


class JobNotFoundError(LookupError):
    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Booking job not found: {job_id}")


class InvalidTransitionError(ValueError):
    """A pause, resume or edit was requested from a state that does not allow it."""


def _coerce_changes(changes: dict) -> dict:
    """Turn raw values (strings from the CLI or an API) into domain types."""
    coerced = dict(changes)
    if isinstance(coerced.get("recurrence_frequency"), str):
        coerced["recurrence_frequency"] = RecurrenceFrequency(coerced["recurrence_frequency"])
    for key in ("target_date", "end_date"):
        if isinstance(coerced.get(key), str):
            coerced[key] = date.fromisoformat(coerced[key])
    if "preferred_days_of_week" in coerced:
        coerced["preferred_days_of_week"] = normalize_days(coerced["preferred_days_of_week"])
    if "party_size" in coerced and coerced["party_size"] is not None:
        coerced["party_size"] = int(coerced["party_size"])
    return coerced


class BookingService:
    def __init__(self, repository: JobRepository, processor: BookingProcessor):
        self.repository = repository
        self.processor = processor

    def create_job(
        self,
        user_email: str,
        user_last_name: str,
        user_unit_number: str,
        amenity_id: str,
        amenity_name: str,
        booking_type,
        target_date: Optional[date] = None,
        target_time: Optional[str] = None,
        recurrence_frequency=None,
        preferred_time: Optional[str] = None,
        preferred_days_of_week=None,
        end_date: Optional[date] = None,
        party_size: Optional[int] = None,
    ) -> BookingJob:
        """
        Validate and store a new booking job. New jobs start ACTIVE.

        Raises:
            InvalidJobError: If required fields are missing or malformed
        """
        fields = _coerce_changes({
            "target_date": target_date,
            "end_date": end_date,
            "recurrence_frequency": recurrence_frequency,
            "preferred_days_of_week": preferred_days_of_week,
            "party_size": party_size or 1,
        })
        job = BookingJob(
            user_email=user_email,
            user_last_name=user_last_name,
            user_unit_number=user_unit_number,
            amenity_id=amenity_id,
            amenity_name=amenity_name,
            booking_type=BookingType(booking_type) if isinstance(booking_type, str) else booking_type,
            target_time=target_time,
            preferred_time=preferred_time,
            status=BookingStatus.ACTIVE,
            is_active=True,
            **fields,
        )
        saved = self.repository.add(validate_job(job))
        logger.info(f"Created booking job {saved.id} for {saved.amenity_name}")
        return saved

    def get_job(self, job_id: str) -> BookingJob:
        job = self.repository.find_by_id(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def list_jobs_for_user(self, user_email: str) -> list[BookingJob]:
        return self.repository.list_for_user(user_email)

    def update_job(self, job_id: str, **changes) -> BookingJob:
        """
        Apply edits to a job's editable fields and re-validate it.

        Status is not editable here; use pause_job/resume_job.

        Raises:
            JobNotFoundError: If there is no such job
            InvalidTransitionError: If the job is COMPLETED
            InvalidJobError: If the result is not a valid job
            ValueError: If a field is not editable
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        job = self.get_job(job_id)
        if job.status is BookingStatus.COMPLETED:
            raise InvalidTransitionError("Cannot update a completed job")

        job = replace(job, **_coerce_changes(changes))
        saved = self.repository.save(validate_job(job))
        logger.info(f"Updated booking job {job_id}")
        return saved

    def pause_job(self, job_id: str) -> BookingJob:
        job = self.get_job(job_id)
        if job.status not in (BookingStatus.ACTIVE, BookingStatus.PAUSED):
            raise InvalidTransitionError(f"Cannot pause a {job.status.value} job")

        saved = self.repository.save(replace(job, status=BookingStatus.PAUSED, is_active=False))
        logger.info(f"Paused booking job {job_id}")
        return saved

    def resume_job(self, job_id: str) -> BookingJob:
        """
        Put a paused or failed job back into automatic processing.

        Re-activating a FAILED job is the operator's explicit retry, so its
        failure count and last error are cleared.
        """
        job = self.get_job(job_id)
        if job.status is BookingStatus.COMPLETED:
            raise InvalidTransitionError("Cannot resume a completed job")

        if job.status is BookingStatus.FAILED:
            job = replace(job, failed_attempts=0, error_message=None)

        saved = self.repository.save(replace(job, status=BookingStatus.ACTIVE, is_active=True))
        logger.info(f"Resumed booking job {job_id}")
        return saved

    def delete_job(self, job_id: str) -> bool:
        deleted = self.repository.delete(job_id)
        if deleted:
            logger.info(f"Deleted booking job {job_id}")
        return deleted

    def delete_booked_slot(self, slot_id: str) -> bool:
        deleted = self.repository.delete_slot(slot_id)
        if deleted:
            logger.info(f"Deleted booked slot {slot_id}")
        return deleted

    def process_active_jobs(self) -> dict:
        """
        Process every eligible job once, one at a time.

        Returns:
            Summary counts: processed, booked (new slots) and failed (hard faults)
        """
        jobs = self.repository.list_active_eligible()
        summary = {"processed": 0, "booked": 0, "failed": 0}

        if not jobs:
            logger.info("No active booking jobs found")
            return summary

        logger.info(f"Processing {len(jobs)} active booking jobs")

        for job in jobs:
            logger.info(f"Processing job {job.id} for {job.amenity_name}")
            try:
                updated = self.processor.process(job)
            except Exception as e:
                logger.error(f"Unexpected error processing job {job.id}: {e}", exc_info=True)
                summary["failed"] += 1
                continue

            summary["processed"] += 1
            summary["booked"] += updated.successful_bookings - job.successful_bookings
            if updated.failed_attempts > job.failed_attempts:
                summary["failed"] += 1

        logger.info(
            f"Completed processing {summary['processed']} booking jobs "
            f"({summary['booked']} booked, {summary['failed']} failed)"
        )
        return summary
