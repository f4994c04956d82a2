"""
In-process time-to-live cache for platform listings.

Owned by a client instance rather than kept at module level, with the clock
injected so expiry can be driven from tests.
"""

import logging
import time
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class TTLCache:
    """Best-effort TTL cache. A racing refresh costs one extra fetch, nothing more."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            logger.debug(f"Cache MISS: {key}")
            return None

        stored_at, value = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            logger.debug(f"Cache EXPIRED: {key}")
            return None

        logger.debug(f"Cache HIT: {key}")
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (self._clock(), value)

    def invalidate(self, key: Optional[str] = None) -> None:
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)
