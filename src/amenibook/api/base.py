"""
Shared booking client interface and data types.

The platform client implements the BookingClient ABC so the job state
machine, the scheduler and the CLI can work against one interface and be
tested with a stand-in client.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from enum import Enum
from typing import Optional


class RequestIdentity(Enum):
    """Whose identity a remote call carries.

    REAL is reserved for resident verification, the blacklist lookup, checks
    the user runs themselves and the final pre-reservation slot fetch.
    Everything else (background polling) goes out as PLACEHOLDER.
    """
    REAL = "real"
    PLACEHOLDER = "placeholder"


class ReservationOutcome(Enum):
    BOOKED = "booked"
    BLACKLISTED = "blacklisted"
    NO_SLOT_AVAILABLE = "no_slot_available"
    FAILED = "failed"


@dataclass
class Amenity:
    """A bookable resource as listed by the platform. Read-only."""
    id: str
    name: str
    scheduling_increment: int = 0
    available_hours: list = field(default_factory=list)
    max_party_size: int = 1
    max_capacity: int = 1
    timezone: str = ""
    per_day_limit: int = 0
    per_week_limit: int = 0
    terms_of_use: str = ""
    terms_of_use_agreement_required: bool = False
    waitlist_enabled: bool = False
    disabled_dates: list = field(default_factory=list)
    image: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict) -> "Amenity":
        return cls(
            id=data["_id"],
            name=data.get("name", ""),
            scheduling_increment=data.get("scheduling_increment") or 0,
            available_hours=data.get("available_hours") or [],
            max_party_size=data.get("max_party_size") or 1,
            max_capacity=data.get("max_capacity") or 1,
            timezone=data.get("timezone") or "",
            per_day_limit=data.get("per_day_limit") or 0,
            per_week_limit=data.get("per_week_limit") or 0,
            terms_of_use=data.get("terms_of_use") or "",
            terms_of_use_agreement_required=bool(data.get("terms_of_use_agreement_required")),
            waitlist_enabled=bool(data.get("waitlist_enabled")),
            disabled_dates=data.get("disabled_dates") or [],
            image=data.get("image"),
        )


@dataclass
class TimeSlot:
    """A single time slot offered for one amenity on one date."""
    timeslot: str  # ISO-8601 start time as returned by the platform
    available_capacity: int = 0

    def starts_at(self, tz: tzinfo) -> datetime:
        """Start time as an aware datetime in ``tz``.

        Naive timestamps are taken to already be venue-local.
        """
        raw = self.timeslot.replace("Z", "+00:00")
        start = datetime.fromisoformat(raw)
        if start.tzinfo is None:
            return start.replace(tzinfo=tz)
        return start.astimezone(tz)


@dataclass
class AvailabilityInfo:
    has_available_slots: bool
    has_waitlist: bool
    time_slots: list[TimeSlot] = field(default_factory=list)


@dataclass
class BookingRequest:
    """Everything needed to place one reservation, with the real identity."""
    amenity_id: str
    email: str
    last_name: str
    unit_number: str
    target_date: str  # YYYY-MM-DD
    target_time: str  # HH:MM
    party_size: int = 1


@dataclass
class ReservationResult:
    """Structured outcome of a reservation attempt. Never an exception."""
    outcome: ReservationOutcome
    reservation_id: Optional[str] = None
    access_code: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome is ReservationOutcome.BOOKED

    @classmethod
    def booked(cls, reservation_id: str, access_code: str) -> "ReservationResult":
        return cls(ReservationOutcome.BOOKED, reservation_id=reservation_id, access_code=access_code)

    @classmethod
    def failed(cls, message: str, outcome: ReservationOutcome = ReservationOutcome.FAILED) -> "ReservationResult":
        return cls(outcome, error_message=message)


class BookingClientError(Exception):
    """Base exception for booking client errors."""

    def __init__(self, message: str, platform: str = "unknown"):
        self.platform = platform
        self.message = message
        super().__init__(f"[{platform}] {message}")


class UpstreamUnavailable(BookingClientError):
    """The platform could not be reached or answered with something unusable."""


class ResidentNotVerified(BookingClientError):
    """Last name and unit number did not match a resident."""


class Blacklisted(BookingClientError):
    """The resident is barred from booking the amenity."""


class NoSlotAvailable(BookingClientError):
    """Nothing bookable for the requested date. A normal outcome, not a fault."""


class ReservationFailed(BookingClientError):
    """A reservation attempt came back unsuccessful."""


class BookingClient(ABC):
    """Abstract base class for amenity booking platform clients."""

    @property
    @abstractmethod
    def platform_name(self) -> str:
        ...

    @abstractmethod
    def list_amenities(self) -> list[Amenity]:
        """
        List the amenities offered by the platform.

        Returns:
            Amenities in the order the platform returns them

        Raises:
            UpstreamUnavailable: If the listing cannot be fetched
        """
        ...

    def get_amenity(self, amenity_id: str) -> Optional[Amenity]:
        for amenity in self.list_amenities():
            if amenity.id == amenity_id:
                return amenity
        return None

    @abstractmethod
    def resolve_resident_id(self, last_name: str, unit_number: str) -> str:
        ...

    @abstractmethod
    def is_blacklisted(self, email: str, amenity_id: str) -> bool:
        ...

    @abstractmethod
    def get_time_slots(
        self,
        amenity_id: str,
        date: str,
        party_size: int,
        unit_number: str,
        identity: RequestIdentity,
    ) -> list[TimeSlot]:
        """
        List time slots that still have capacity.

        Args:
            amenity_id: Platform amenity identifier
            date: Date in YYYY-MM-DD format
            party_size: Number of people
            unit_number: The resident's real unit number
            identity: Whether the real unit number is sent or the placeholder

        Returns:
            Time slots with available_capacity > 0, in platform order
        """
        ...

    @abstractmethod
    def get_availability_info(
        self,
        amenity_id: str,
        date: str,
        party_size: int,
        unit_number: str,
        identity: RequestIdentity,
    ) -> AvailabilityInfo:
        ...

    @abstractmethod
    def reserve(self, request: BookingRequest, resident_id: str, terms_of_use: str) -> ReservationResult:
        """
        Place a reservation for the slot closest to the requested time.

        Returns:
            ReservationResult; transport and platform errors are reported
            through it rather than raised
        """
        ...
