"""
Database Configuration and Management (SQLAlchemy)

ORM tables for booking jobs and their booked slots, plus engine and
session factory setup.
"""

import logging
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///amenibook.db"

Base = declarative_base()


class BookingJobRecord(Base):
    __tablename__ = "booking_jobs"

    id = Column(String(36), primary_key=True)
    user_email = Column(String, nullable=False, index=True)
    user_last_name = Column(String, nullable=False)
    user_unit_number = Column(String, nullable=False)
    amenity_id = Column(String, nullable=False)
    amenity_name = Column(String, nullable=False)
    booking_type = Column(String, nullable=False)
    status = Column(String, nullable=False, default="active")

    # One-time bookings
    target_date = Column(Date)
    target_time = Column(String)  # HH:MM

    # Recurring bookings
    recurrence_frequency = Column(String)
    preferred_time = Column(String)  # HH:MM
    preferred_days_of_week = Column(String)  # comma-separated, 0=Sunday
    end_date = Column(Date)

    party_size = Column(Integer, nullable=False, default=1)
    successful_bookings = Column(Integer, nullable=False, default=0)
    failed_attempts = Column(Integer, nullable=False, default=0)
    last_attempt = Column(DateTime)
    last_successful_booking = Column(DateTime)
    error_message = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    booked_slots = relationship(
        "BookedSlotRecord",
        back_populates="booking_job",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="BookedSlotRecord.created_at",
    )


class BookedSlotRecord(Base):
    __tablename__ = "booked_slots"
    __table_args__ = (
        UniqueConstraint("booking_job_id", "booked_date", "booked_time", name="uq_booked_slot_job_date_time"),
    )

    id = Column(String(36), primary_key=True)
    booking_job_id = Column(String(36), ForeignKey("booking_jobs.id", ondelete="CASCADE"), nullable=False)
    reservation_id = Column(String, nullable=False)
    access_code = Column(String, nullable=False, default="")
    booked_date = Column(String, nullable=False)  # YYYY-MM-DD
    booked_time = Column(String, nullable=False)  # HH:MM
    created_at = Column(DateTime, default=datetime.now)

    booking_job = relationship("BookingJobRecord", back_populates="booked_slots")


def create_session_factory(database_url: str = DEFAULT_DATABASE_URL) -> sessionmaker:
    """
    Create an engine for ``database_url`` and return a session factory bound to it.

    In-memory SQLite shares a single connection so every session (and the
    scheduler thread) sees the same database.
    """
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    elif database_url.startswith("sqlite"):
        engine = create_engine(database_url, connect_args={"check_same_thread": False})
    else:
        engine = create_engine(database_url, pool_pre_ping=True)

    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_database(session_factory: sessionmaker) -> None:
    """Create all tables that do not exist yet."""
    logger.info("Initializing database...")
    Base.metadata.create_all(bind=session_factory.kw["bind"])
    logger.info("Database initialized successfully")
