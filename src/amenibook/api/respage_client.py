"""
ResPage API client for amenity reservations via direct API calls.

Request-volume and privacy policy:
- The amenity listing is cached for five minutes per campaign.
- Background availability checks and date filters go out with a placeholder
  identity so the platform cannot trace a resident's polling pattern.
- The real identity is only sent for resident verification, the blacklist
  lookup, user-initiated checks and the slot fetch right before booking.
"""

import logging
import time
from datetime import datetime, timedelta
from typing import Any, Callable, Optional
from zoneinfo import ZoneInfo

import requests

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
from .cache import TTLCache
from .slot_selection import find_best_time_slot

logger = logging.getLogger(__name__)

PLATFORM = "respage"
BASE_URL = "https://app.respage.com/public"
CAMPAIGN_ID = "42dba40a50910a23a43548b2302f86ce"
VENUE_TIMEZONE = "America/Los_Angeles"
DEFAULT_TIMEOUT = 30

AMENITY_CACHE_TTL = 5 * 60
RESERVATION_LENGTH = timedelta(hours=1)

# Decoy identity for non-authoritative requests
PLACEHOLDER_EMAIL = "placeholder@tempmail.org"
PLACEHOLDER_UNIT_NUMBER = "999"
PLACEHOLDER_LAST_NAME = "Smith"

BLACKLISTED_MESSAGE = "User is blacklisted for this amenity"
NO_SLOT_MESSAGE = "No available time slots found for the requested date and time"


class ResPageClient(BookingClient):
    """Client for the ResPage public reservation API."""

    def __init__(
        self,
        campaign_id: str = CAMPAIGN_ID,
        base_url: str = BASE_URL,
        timezone: str = VENUE_TIMEZONE,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.campaign_id = campaign_id
        self.base_url = base_url.rstrip("/")
        self.timezone = timezone
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(self._headers())
        self._amenity_cache = TTLCache(AMENITY_CACHE_TTL, clock=clock)

    @property
    def platform_name(self) -> str:
        return PLATFORM

    def _headers(self) -> dict:
        """Build headers matching the platform's own booking widget."""
        return {
            "accept": "application/json, text/plain, */*",
            "cache-control": "no-cache",
            "content-type": "application/json; charset=utf-8",
            "origin": "https://rp-webchat-client.netlify.app",
            "pragma": "no-cache",
            "referer": "https://rp-webchat-client.netlify.app/",
            "user-agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/137.0.0.0 Safari/537.36",
        }

    @staticmethod
    def _unit_for(identity: RequestIdentity, unit_number: str) -> str:
        if not isinstance(identity, RequestIdentity):
            raise TypeError(f"identity must be a RequestIdentity, got {identity!r}")
        if identity is RequestIdentity.REAL:
            return unit_number
        return PLACEHOLDER_UNIT_NUMBER

    def _get(self, path: str, params: dict, what: str) -> Any:
        """GET a platform endpoint and unwrap its {"data": ...} envelope."""
        url = f"{self.base_url}{path}"
        logger.debug(f"GET {url}")

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamUnavailable(f"{what} failed: {e}", platform=PLATFORM)

        if response.status_code != 200:
            raise UpstreamUnavailable(
                f"{what} failed: {response.status_code} {response.text}", platform=PLATFORM
            )

        try:
            return response.json()["data"]
        except (ValueError, KeyError, TypeError) as e:
            raise UpstreamUnavailable(f"{what} returned an unexpected response: {e}", platform=PLATFORM)

    def _post(self, path: str, payload: dict, what: str) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug(f"POST {url}")

        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamUnavailable(f"{what} failed: {e}", platform=PLATFORM)

        if response.status_code not in (200, 201):
            raise ReservationFailed(self._error_detail(response, what), platform=PLATFORM)

        try:
            return response.json()["data"]
        except (ValueError, KeyError, TypeError) as e:
            raise ReservationFailed(f"{what} returned an unexpected response: {e}", platform=PLATFORM)

    @staticmethod
    def _error_detail(response: requests.Response, what: str) -> str:
        """Prefer the platform's own error text over the bare status code."""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return f"{what} failed: {response.status_code} {response.text}"

    def list_amenities(self) -> list[Amenity]:
        cached = self._amenity_cache.get(self.campaign_id)
        if cached is not None:
            logger.info(f"Retrieved {len(cached)} amenities from cache")
            return list(cached)

        data = self._get("/reservation-resources", {"campaign_id": self.campaign_id}, "Amenity listing")
        try:
            amenities = [Amenity.from_api(item) for item in data]
        except (KeyError, TypeError) as e:
            raise UpstreamUnavailable(f"Failed to parse amenity listing: {e}", platform=PLATFORM)

        self._amenity_cache.set(self.campaign_id, amenities)
        logger.info(f"Retrieved {len(amenities)} amenities from API")
        return list(amenities)

    def get_date_filters(self, amenity_id: str, start_date: str) -> Any:
        """Date filters (blocked/bookable days) for an amenity. Placeholder email only."""
        return self._get(
            f"/reservation-resources/{amenity_id}/date-filters",
            {"start_date": start_date, "email": PLACEHOLDER_EMAIL},
            "Date filter lookup",
        )

    def resolve_resident_id(self, last_name: str, unit_number: str) -> str:
        data = self._get(
            "/residents/name-unit-match",
            {"campaign_id": self.campaign_id, "last_name": last_name, "unit_number": unit_number},
            "Resident lookup",
        )
        if not data:
            raise ResidentNotVerified("No resident matches the given last name and unit number", platform=PLATFORM)

        logger.debug(f"Found resident ID: {data}")
        return str(data)

    def is_blacklisted(self, email: str, amenity_id: str) -> bool:
        data = self._get(
            "/reservation-resources/blacklist",
            {"email": email, "resource_id": amenity_id},
            "Blacklist check",
        )
        blacklisted = bool(data)
        if blacklisted:
            logger.warning(f"Resident is blacklisted for amenity {amenity_id}")
        return blacklisted

    def _fetch_time_slots(
        self,
        amenity_id: str,
        date: str,
        party_size: int,
        unit_number: str,
        identity: RequestIdentity,
    ) -> list[TimeSlot]:
        """All slots defined for the date, including ones already full."""
        params = {
            "date": date,
            "party_size": str(party_size),
            "unit_number": self._unit_for(identity, unit_number),
        }
        data = self._get(f"/reservation-resources/{amenity_id}/time-slots", params, "Time slot lookup")

        try:
            raw_slots = (data or {}).get("availableTimeSlots") or []
            return [
                TimeSlot(
                    timeslot=item["timeslot"],
                    available_capacity=int(item.get("available_capacity") or 0),
                )
                for item in raw_slots
            ]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise UpstreamUnavailable(f"Failed to parse time slots: {e}", platform=PLATFORM)

    def get_time_slots(
        self,
        amenity_id: str,
        date: str,
        party_size: int,
        unit_number: str,
        identity: RequestIdentity,
    ) -> list[TimeSlot]:
        slots = self._fetch_time_slots(amenity_id, date, party_size, unit_number, identity)
        available = [slot for slot in slots if slot.available_capacity > 0]
        logger.debug(f"Found {len(available)} open time slots for {amenity_id} on {date}")
        return available

    def get_availability_info(
        self,
        amenity_id: str,
        date: str,
        party_size: int,
        unit_number: str,
        identity: RequestIdentity,
    ) -> AvailabilityInfo:
        all_slots = self._fetch_time_slots(amenity_id, date, party_size, unit_number, identity)
        available = [slot for slot in all_slots if slot.available_capacity > 0]

        amenity = self.get_amenity(amenity_id)
        waitlist_enabled = bool(amenity and amenity.waitlist_enabled)

        # Fully booked, as opposed to not operating at all that day
        has_waitlist = waitlist_enabled and not available and bool(all_slots)

        return AvailabilityInfo(
            has_available_slots=bool(available),
            has_waitlist=has_waitlist,
            time_slots=all_slots,
        )

    def _reservation_payload(
        self,
        request: BookingRequest,
        resident_id: str,
        terms_of_use: str,
        slot: TimeSlot,
    ) -> dict:
        start = slot.starts_at(ZoneInfo(self.timezone))
        end = start + RESERVATION_LENGTH

        return {
            "data": {
                "reservation": {
                    "campaign_id": self.campaign_id,
                    "name": request.last_name,
                    "party_size": request.party_size,
                    "resource_id": request.amenity_id,
                    "resident_id": resident_id,
                    "unit_number": request.unit_number,
                    "email": request.email,
                    "start_time": start.strftime("%Y-%m-%dT%H:%M:%S"),
                    "end_time": end.strftime("%Y-%m-%dT%H:%M:%S"),
                    "source": "amenity_booking_widget",
                },
                "agreement": {
                    "agreement_text": terms_of_use,
                    "agreement_type": "explicit",
                    "agreed_to_terms": True,
                },
            },
            "timezone": self.timezone,
        }

    def reserve(self, request: BookingRequest, resident_id: str, terms_of_use: str) -> ReservationResult:
        """
        Book the open slot closest to the requested date and time.

        Steps: blacklist check, real-identity slot fetch, closest-slot pick,
        then the reservation POST with the terms-of-use agreement attached.

        Returns:
            ReservationResult with the platform's reservation id and access code
            on success, or the outcome and error message otherwise
        """
        try:
            if self.is_blacklisted(request.email, request.amenity_id):
                raise Blacklisted(BLACKLISTED_MESSAGE, platform=PLATFORM)

            time_slots = self.get_time_slots(
                request.amenity_id,
                request.target_date,
                request.party_size,
                request.unit_number,
                RequestIdentity.REAL,
            )

            target = datetime.strptime(f"{request.target_date} {request.target_time}", "%Y-%m-%d %H:%M")
            slot = find_best_time_slot(time_slots, target, self.timezone)
            if slot is None:
                raise NoSlotAvailable(NO_SLOT_MESSAGE, platform=PLATFORM)

            logger.debug(f"Selected slot {slot.timeslot} for requested {request.target_date} {request.target_time}")
            payload = self._reservation_payload(request, resident_id, terms_of_use, slot)
            data = self._post("/reservations", payload, "Reservation")

            reservation_id = str(data["_id"])
            access_code = str(data.get("access_code") or "")

        except Blacklisted as e:
            return ReservationResult.failed(e.message, ReservationOutcome.BLACKLISTED)
        except NoSlotAvailable as e:
            return ReservationResult.failed(e.message, ReservationOutcome.NO_SLOT_AVAILABLE)
        except BookingClientError as e:
            logger.error(f"Failed to make reservation for amenity {request.amenity_id}: {e}")
            return ReservationResult.failed(e.message)
        except (requests.RequestException, KeyError, TypeError, ValueError) as e:
            logger.error(f"Failed to make reservation for amenity {request.amenity_id}: {e}")
            return ReservationResult.failed(str(e) or "Failed to create reservation")

        logger.info(f"Successfully created reservation: {reservation_id}")
        return ReservationResult.booked(reservation_id, access_code)
