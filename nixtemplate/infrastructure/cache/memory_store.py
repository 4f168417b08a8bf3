"""In-memory implementation of the Store interface.

Used when rendering without a lock file, and as a test double.
Nothing is ever written to disk.
"""

import logging
import threading
from typing import Dict, Mapping, Optional, Tuple

from nixtemplate.domain.interfaces.cache import Store
from nixtemplate.domain.models.common import CacheKey

logger = logging.getLogger(__name__)

class InMemoryStore(Store):
    """Flat mapping from full cache keys to values."""

    def __init__(self, entries: Optional[Mapping[Tuple[str, ...], str]] = None):
        self._entries: Dict[Tuple[str, ...], str] = {
            tuple(k): v for k, v in (entries or {}).items()
        }
        self._lock = threading.Lock()

    def lookup(self, key: CacheKey) -> Optional[str]:
        logger.debug(f"cache access: {list(key)}")
        with self._lock:
            return self._entries.get(tuple(key))

    def store(self, key: CacheKey, value: str) -> None:
        logger.debug(f"cache put: {list(key)} = {value}")
        with self._lock:
            self._entries[tuple(key)] = value

    def snapshot(self) -> Dict[Tuple[str, ...], str]:
        """Returns a copy of all stored entries."""
        with self._lock:
            return dict(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
