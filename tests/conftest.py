from datetime import date, datetime
from unittest.mock import Mock

import pytest

from amenibook.api.base import Amenity, BookingClient
from amenibook.database import create_session_factory, init_database
from amenibook.jobs.models import BookingJob, BookingType, RecurrenceFrequency
from amenibook.jobs.repository import JobRepository

# A Monday
FIXED_NOW = datetime(2026, 6, 1, 9, 0)


@pytest.fixture
def session_factory():
    factory = create_session_factory("sqlite:///:memory:")
    init_database(factory)
    return factory


@pytest.fixture
def repository(session_factory):
    return JobRepository(session_factory)


@pytest.fixture
def mock_client():
    client = Mock(spec=BookingClient)
    client.platform_name = "respage"
    client.get_amenity.return_value = Amenity(id="pool-1", name="Pool", terms_of_use="Be nice.")
    client.resolve_resident_id.return_value = "resident-42"
    return client


@pytest.fixture
def one_time_job():
    return BookingJob(
        id="job-1",
        user_email="resident@example.com",
        user_last_name="Doe",
        user_unit_number="204",
        amenity_id="pool-1",
        amenity_name="Pool",
        booking_type=BookingType.ONE_TIME,
        target_date=date(2026, 6, 5),
        target_time="18:00",
    )


@pytest.fixture
def recurring_job():
    return BookingJob(
        id="job-2",
        user_email="resident@example.com",
        user_last_name="Doe",
        user_unit_number="204",
        amenity_id="pool-1",
        amenity_name="Pool",
        booking_type=BookingType.RECURRING,
        recurrence_frequency=RecurrenceFrequency.WEEKLY,
        preferred_time="18:00",
        preferred_days_of_week=frozenset({2}),
    )
