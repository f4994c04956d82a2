from .base import (
    Amenity,
    AvailabilityInfo,
    Blacklisted,
    BookingClient,
    BookingClientError,
    BookingRequest,
    NoSlotAvailable,
    RequestIdentity,
    ReservationFailed,
    ReservationOutcome,
    ReservationResult,
    ResidentNotVerified,
    TimeSlot,
    UpstreamUnavailable,
)
from .client_factory import create_client, load_client_from_config
from .slot_selection import find_best_time_slot
from .respage_client import ResPageClient
