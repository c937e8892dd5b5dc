"""In-memory TTL cache shared by every reader and writer.

One instance is built by the composition root and injected everywhere, so a
writer always invalidates the same entry its paired reader serves from.
Entries live until they expire or are invalidated; the key space is bounded
by the fixed set of tables, so there is no other eviction.

The reserved ``_globalLastWrite`` entry records when the last write committed
anywhere in the process. It is informational (a status endpoint polls it) and
survives ``invalidate``.
"""
import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, Iterable, NamedTuple, Optional

logger = logging.getLogger(__name__)

GLOBAL_LAST_WRITE = "_globalLastWrite"


class CacheKey(str, Enum):
    COMPANY_LIST = "companyList"
    CONTACTS = "contacts"
    CONTACT_LIST = "contactList"
    OPP_CONTACT_LINKS = "oppContactLinks"
    OPPORTUNITIES = "opportunities"
    INTERACTIONS = "interactions"
    MARKET_PRODUCTS = "marketProducts"
    SYSTEM_CONFIG = "systemConfig"
    USERS = "users"


class CacheEntry(NamedTuple):
    data: Any
    timestamp: float


class TtlCache:
    def __init__(self, duration: float = 300.0, clock: Callable[[], float] = time.time):
        self.duration = duration
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def now(self) -> float:
        return self._clock()

    def is_fresh(self, entry: CacheEntry, now: Optional[float] = None) -> bool:
        now = self.now() if now is None else now
        return now - entry.timestamp < self.duration

    def get(self, key: CacheKey) -> Optional[Any]:
        """Cached value for ``key`` if present and fresh, else None."""
        entry = self._entries.get(key.value)
        if entry is None or not self.is_fresh(entry):
            return None
        return entry.data

    def peek(self, key: CacheKey) -> Optional[Any]:
        """Cached value regardless of age (used when the store is unreachable)."""
        entry = self._entries.get(key.value)
        return entry.data if entry is not None else None

    def set(self, key: CacheKey, value: Any, now: Optional[float] = None) -> None:
        self._entries[key.value] = CacheEntry(value, self.now() if now is None else now)

    def invalidate(self, key: Optional[CacheKey] = None) -> None:
        """Drop one table entry, or every table entry when ``key`` is None."""
        if key is None:
            last_write = self._entries.get(GLOBAL_LAST_WRITE)
            self._entries.clear()
            if last_write is not None:
                self._entries[GLOBAL_LAST_WRITE] = last_write
            logger.info("Cache cleared (all tables)")
            return
        if self._entries.pop(key.value, None) is not None:
            logger.debug("Cache invalidated: %s", key.value)

    def invalidate_many(self, keys: Iterable[CacheKey]) -> None:
        for key in keys:
            self.invalidate(key)

    def mark_write(self, now: Optional[float] = None) -> None:
        stamp = self.now() if now is None else now
        self._entries[GLOBAL_LAST_WRITE] = CacheEntry(stamp, stamp)

    @property
    def last_write_at(self) -> float:
        """Epoch seconds of the last committed write (0 if none yet)."""
        entry = self._entries.get(GLOBAL_LAST_WRITE)
        return entry.data if entry is not None else 0
