"""
SQLAlchemy-backed storage for booking jobs.

Converts between ORM records and the immutable domain records. Booked
slots are loaded eagerly with their job. Saving a job only ever adds
slots; removing one is an explicit delete_slot() call.
"""

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from ..database import BookedSlotRecord, BookingJobRecord
from .models import (
    BookedSlot,
    BookingJob,
    BookingStatus,
    BookingType,
    RecurrenceFrequency,
    normalize_days,
)

logger = logging.getLogger(__name__)


def _to_domain(record: BookingJobRecord) -> BookingJob:
    return BookingJob(
        id=record.id,
        user_email=record.user_email,
        user_last_name=record.user_last_name,
        user_unit_number=record.user_unit_number,
        amenity_id=record.amenity_id,
        amenity_name=record.amenity_name,
        booking_type=BookingType(record.booking_type),
        status=BookingStatus(record.status),
        target_date=record.target_date,
        target_time=record.target_time,
        recurrence_frequency=RecurrenceFrequency(record.recurrence_frequency) if record.recurrence_frequency else None,
        preferred_time=record.preferred_time,
        # Stored as "1,4"; parsed to ints once, here
        preferred_days_of_week=normalize_days(record.preferred_days_of_week),
        end_date=record.end_date,
        party_size=record.party_size,
        successful_bookings=record.successful_bookings,
        failed_attempts=record.failed_attempts,
        last_attempt=record.last_attempt,
        last_successful_booking=record.last_successful_booking,
        error_message=record.error_message,
        is_active=record.is_active,
        booked_slots=tuple(
            BookedSlot(
                id=slot.id,
                reservation_id=slot.reservation_id,
                access_code=slot.access_code,
                booked_date=slot.booked_date,
                booked_time=slot.booked_time,
                created_at=slot.created_at,
            )
            for slot in record.booked_slots
        ),
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _apply(record: BookingJobRecord, job: BookingJob) -> None:
    record.user_email = job.user_email
    record.user_last_name = job.user_last_name
    record.user_unit_number = job.user_unit_number
    record.amenity_id = job.amenity_id
    record.amenity_name = job.amenity_name
    record.booking_type = job.booking_type.value
    record.status = job.status.value
    record.target_date = job.target_date
    record.target_time = job.target_time
    record.recurrence_frequency = job.recurrence_frequency.value if job.recurrence_frequency else None
    record.preferred_time = job.preferred_time
    record.preferred_days_of_week = ",".join(str(day) for day in sorted(job.preferred_days_of_week)) or None
    record.end_date = job.end_date
    record.party_size = job.party_size
    record.successful_bookings = job.successful_bookings
    record.failed_attempts = job.failed_attempts
    record.last_attempt = job.last_attempt
    record.last_successful_booking = job.last_successful_booking
    record.error_message = job.error_message
    record.is_active = job.is_active

    known = {slot.id for slot in record.booked_slots}
    for slot in job.booked_slots:
        if slot.id in known:
            continue
        record.booked_slots.append(BookedSlotRecord(
            id=slot.id,
            reservation_id=slot.reservation_id,
            access_code=slot.access_code,
            booked_date=slot.booked_date,
            booked_time=slot.booked_time,
            created_at=slot.created_at or datetime.now(),
        ))


class JobRepository:
    """Durable storage for booking jobs and their booked slots."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self):
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Database error, rolled back: {e}")
            raise
        finally:
            session.close()

    def add(self, job: BookingJob) -> BookingJob:
        with self._session() as session:
            record = BookingJobRecord(id=job.id or str(uuid.uuid4()))
            _apply(record, job)
            session.add(record)
            session.flush()
            return _to_domain(record)

    def save(self, job: BookingJob) -> BookingJob:
        """Write the job's full state in one transaction. Unknown ids are inserted."""
        if job.id is None:
            return self.add(job)

        with self._session() as session:
            record = session.get(BookingJobRecord, job.id)
            if record is None:
                record = BookingJobRecord(id=job.id)
                session.add(record)
            _apply(record, job)
            session.flush()
            return _to_domain(record)

    def find_by_id(self, job_id: str) -> Optional[BookingJob]:
        with self._session() as session:
            record = session.get(BookingJobRecord, job_id)
            return _to_domain(record) if record else None

    def list_active_eligible(self) -> list[BookingJob]:
        with self._session() as session:
            stmt = (
                select(BookingJobRecord)
                .where(BookingJobRecord.status == BookingStatus.ACTIVE.value)
                .where(BookingJobRecord.is_active.is_(True))
                .order_by(BookingJobRecord.created_at.asc(), BookingJobRecord.id.asc())
            )
            return [_to_domain(record) for record in session.execute(stmt).scalars().all()]

    def list_for_user(self, user_email: str) -> list[BookingJob]:
        with self._session() as session:
            stmt = (
                select(BookingJobRecord)
                .where(BookingJobRecord.user_email == user_email)
                .order_by(BookingJobRecord.created_at.desc(), BookingJobRecord.id.desc())
            )
            return [_to_domain(record) for record in session.execute(stmt).scalars().all()]

    def delete(self, job_id: str) -> bool:
        with self._session() as session:
            record = session.get(BookingJobRecord, job_id)
            if record is None:
                return False
            session.delete(record)
            return True

    def delete_slot(self, slot_id: str) -> bool:
        with self._session() as session:
            record = session.get(BookedSlotRecord, slot_id)
            if record is None:
                return False
            session.delete(record)
            return True
