"""In-memory TTL cache for provider schedules and staff rosters.

One instance is built by the composition root (app.main lifespan) and passed
to the repository; there is no module-level singleton. Entries are advisory:
conflict detection never reads from here.
"""

import logging
import time
from typing import Any, Callable, Optional
from uuid import UUID
from cachetools import TTLCache

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60
DEFAULT_MAXSIZE = 10_000


def schedule_key(provider_id: UUID, day_of_week: int) -> str:
    return f"schedule:{provider_id}:{day_of_week}"


def staff_key(provider_id: UUID) -> str:
    return f"staff:{provider_id}"


class ScheduleCache:
    """Per-key TTL cache. No negative caching: a miss always re-queries."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        maxsize: int = DEFAULT_MAXSIZE,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._entries = TTLCache(maxsize=maxsize, ttl=ttl_seconds, timer=clock)

    def get(self, key: str) -> Optional[Any]:
        value = self._entries.get(key)
        if value is None:
            logger.debug("Cache MISS: %s", key)
            return None

        logger.debug("Cache HIT: %s", key)
        return value

    def set(self, key: str, value: Any) -> None:
        if value is None:
            return
        self._entries[key] = value

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def invalidate_provider(self, provider_id: UUID) -> None:
        """Drop every weekday schedule and the staff roster of one provider."""
        for day in range(7):
            self.delete(schedule_key(provider_id, day))
        self.delete(staff_key(provider_id))
        logger.info("Cache invalidated for provider %s", provider_id)

    def clear(self) -> None:
        self._entries.clear()

    def cleanup(self) -> int:
        """Remove expired entries; returns how many were dropped."""
        return len(self._entries.expire())

    def size(self) -> int:
        self._entries.expire()
        return len(self._entries)
