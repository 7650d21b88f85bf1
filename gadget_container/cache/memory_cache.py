"""
Memory Cache

Thread-safe in-process cache shared by concurrent rendering requests.
"""

import threading
import time
from typing import Any, Dict, Optional
import logging

from gadget_container.logging_config import get_logger


class MemoryCache:
    """In-memory key/value cache with optional per-read max age and a size bound."""

    def __init__(
        self,
        max_size: Optional[int] = 1000,
        cleanup_interval: float = 300.0,
        logger: Optional[logging.Logger] = None
    ) -> None:
        """
        Initialize the memory cache.

        Args:
            max_size: Maximum number of entries kept after cleanup; None never trims
            cleanup_interval: Minimum seconds between non-forced cleanups
            logger: Optional logger instance
        """
        self.logger = logger or get_logger(__name__)
        self._max_size = max_size
        self._cleanup_interval = cleanup_interval
        self._data: Dict[str, Any] = {}
        self._timestamps: Dict[str, float] = {}
        self._last_cleanup = time.time()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str, max_age: Optional[float] = None) -> Optional[Any]:
        """
        Get a cached value.

        Args:
            key: Cache key
            max_age: Maximum age in seconds; None means the entry never expires

        Returns:
            The cached value, or None on a miss or an expired entry
        """
        with self._lock:
            if key not in self._data:
                self._misses += 1
                return None
            if max_age is not None and time.time() - self._timestamps.get(key, 0) > max_age:
                self._misses += 1
                return None
            self._hits += 1
            return self._data[key]

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value
            self._timestamps[key] = time.time()
        self._maybe_cleanup()

    def add(self, key: str, value: Any) -> Any:
        """
        Store ``value`` unless the key is already present.

        Returns:
            The value held by the cache after the call (first writer wins)
        """
        with self._lock:
            if key in self._data:
                return self._data[key]
            self._data[key] = value
            self._timestamps[key] = time.time()
        self._maybe_cleanup()
        return value

    def clear(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._data.clear()
                self._timestamps.clear()
            else:
                self._data.pop(key, None)
                self._timestamps.pop(key, None)

    def _maybe_cleanup(self) -> None:
        if self._max_size is not None and len(self._data) > self._max_size:
            self.cleanup(force=True)
        elif time.time() - self._last_cleanup > self._cleanup_interval:
            self.cleanup()

    def cleanup(self, force: bool = False, max_age: Optional[float] = None) -> int:
        """
        Drop expired entries and trim to ``max_size``, oldest first.

        Args:
            force: Run even if the cleanup interval has not elapsed
            max_age: Entries older than this are dropped; None keeps them

        Returns:
            Number of entries removed
        """
        now = time.time()
        with self._lock:
            if not force and now - self._last_cleanup < self._cleanup_interval:
                return 0
            removed = 0
            if max_age is not None:
                for key in [k for k, ts in self._timestamps.items() if now - ts > max_age]:
                    self._data.pop(key, None)
                    self._timestamps.pop(key, None)
                    removed += 1
            overflow = 0 if self._max_size is None else len(self._data) - self._max_size
            if overflow > 0:
                oldest = sorted(self._timestamps, key=self._timestamps.get)[:overflow]
                for key in oldest:
                    self._data.pop(key, None)
                    self._timestamps.pop(key, None)
                    removed += 1
            self._last_cleanup = now
        if removed:
            self.logger.debug("Memory cache cleanup removed %d entries", removed)
        return removed

    def size(self) -> int:
        with self._lock:
            return len(self._data)

    def max_size(self) -> Optional[int]:
        return self._max_size

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'size': len(self._data),
                'max_size': self._max_size,
                'hits': self._hits,
                'misses': self._misses,
            }
