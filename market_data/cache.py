"""In-memory TTL cache shared by the catalog and ticker fetches."""
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class TTLCache:
    """
    Key/value store whose entries expire ``ttl`` seconds after being written.

    Expiry is checked lazily on ``get``; there is no background sweep.
    An entry is valid strictly while ``clock() - cached_at < ttl``.

    Args:
        ttl: Time-to-live in seconds
        clock: Callable returning the current time in seconds (injectable for tests)
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.time):
        self.ttl = ttl
        self.clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            cached_at, value = entry
            age = self.clock() - cached_at
            if age < self.ttl:
                logger.debug(f"[Cache] hit {key} (age {age:.1f}s)")
                return value
            logger.debug(f"[Cache] expired {key} (age {age:.1f}s >= {self.ttl}s)")
            return None

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = (self.clock(), value)

    def invalidate(self, key: Optional[str] = None) -> None:
        """Drop one key, or everything when key is None."""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)
