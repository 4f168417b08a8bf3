"""Interface for cache stores.

Defines the contract for looking up and storing memoized string values
addressed by a hierarchical cache key. Implementations own the underlying
document and its concurrency control.
"""

import abc
from typing import Optional

# Import relevant domain models
from nixtemplate.domain.models.common import CacheKey

class Store(abc.ABC):
    """Abstract Base Class for cache stores."""

    @abc.abstractmethod
    def lookup(self, key: CacheKey) -> Optional[str]:
        """Retrieves the value cached at a key.

        Must not modify the store.

        Args:
            key: The cache key to look up.

        Returns:
            The cached string if present, otherwise None.
        """
        pass

    @abc.abstractmethod
    def store(self, key: CacheKey, value: str) -> None:
        """Stores a value at a key, overwriting any previous value.

        Args:
            key: The cache key to store the value under.
            value: The string to store.
        """
        pass
