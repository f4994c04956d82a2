"""
Slot selection for reservation attempts.

Picks the offered time slot nearest to the time the resident asked for.
"""

from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from .base import TimeSlot


def find_best_time_slot(
    time_slots: list[TimeSlot],
    target: datetime,
    timezone: str = "America/Los_Angeles",
) -> Optional[TimeSlot]:
    """
    Select the slot whose start is closest to the target time.

    Args:
        time_slots: Slots from get_time_slots(), ascending by start time
        target: Requested start; naive values are read as venue-local
        timezone: Venue timezone name

    Returns:
        The closest TimeSlot (earlier slot wins a tie), or None if there are no slots
    """
    if not time_slots:
        return None

    tz = ZoneInfo(timezone)
    if target.tzinfo is None:
        target = target.replace(tzinfo=tz)

    # min() keeps the first of equally distant slots, so upstream order breaks ties
    return min(time_slots, key=lambda slot: abs((slot.starts_at(tz) - target).total_seconds()))
