"""Process-wide cooldown cache that suppresses repeated CNPJ lookups."""

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

DEDUP_COOLDOWN = timedelta(hours=2)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DedupCache:
    """Maps a CNPJ to the time of its last successful lookup."""

    def __init__(
        self,
        cooldown: timedelta = DEDUP_COOLDOWN,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.cooldown = cooldown
        self._clock = clock
        self._entries: Dict[str, datetime] = {}
        self._lock = threading.Lock()

    def should_skip(self, cnpj: str) -> bool:
        with self._lock:
            last_processed = self._entries.get(cnpj)
            if last_processed is None:
                return False
            return self._clock() - last_processed < self.cooldown

    def mark_processed(self, cnpj: str) -> None:
        with self._lock:
            now = self._clock()
            expired = [key for key, seen in self._entries.items() if now - seen >= self.cooldown]
            for key in expired:
                del self._entries[key]
            if expired:
                logger.debug("Dropped %d expired dedup entries", len(expired))
            self._entries[cnpj] = now

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


_cache: Optional[DedupCache] = None
_cache_lock = threading.Lock()


def init_cache() -> DedupCache:
    """Initialise and return the shared dedup cache."""
    global _cache
    with _cache_lock:
        if _cache is None:
            _cache = DedupCache()
            logger.info("Dedup cache initialised with cooldown=%s", DEDUP_COOLDOWN)
        return _cache
