"""
Availability checks for booking jobs.

Background checks go out with the placeholder identity. The user-facing
check sends the real unit number so the answer matches what the resident
would see.
"""

import logging

from ..api.base import AvailabilityInfo, BookingClient, RequestIdentity, UpstreamUnavailable

logger = logging.getLogger(__name__)


class AvailabilityEvaluator:
    def __init__(self, client: BookingClient):
        self.client = client

    def is_available(self, amenity_id: str, date: str, unit_number: str) -> bool:
        """Whether any slot has capacity on ``date``. Used by background processing only."""
        try:
            slots = self.client.get_time_slots(
                amenity_id, date, 1, unit_number, RequestIdentity.PLACEHOLDER
            )
        except UpstreamUnavailable as e:
            logger.warning(f"Availability check for {amenity_id} on {date} failed, treating as unavailable: {e}")
            return False

        logger.debug(f"Availability for {amenity_id} on {date}: {len(slots)} open slots")
        return bool(slots)

    def check_for_user(self, amenity_id: str, date: str, party_size: int, unit_number: str) -> AvailabilityInfo:
        """Availability and waitlist status for a check the resident runs themselves."""
        return self.client.get_availability_info(
            amenity_id, date, party_size, unit_number, RequestIdentity.REAL
        )
