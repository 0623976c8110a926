"""Interface for caching mechanisms.

Defines the contract for storing, retrieving, and expiring cached catalog
data. Implementations treat expired entries as absent.
"""

import abc
from typing import Any, Optional

# Import relevant domain models
from ..models.common import CacheKey

class CacheService(abc.ABC):
    """Abstract Base Class for caching operations."""

    @abc.abstractmethod
    async def get(self, key: CacheKey) -> Optional[Any]:
        """Retrieves an item from the cache asynchronously.

        Args:
            key: The cache key to retrieve.

        Returns:
            The cached item if found and not expired, otherwise None.
        """
        pass

    @abc.abstractmethod
    async def set(self, key: CacheKey, value: Any) -> None:
        """Stores an item in the cache asynchronously.

        Args:
            key: The cache key to store the item under.
            value: The item to store.
        """
        pass

    @abc.abstractmethod
    async def delete(self, key: CacheKey) -> None:
        """Deletes an item from the cache asynchronously. Missing keys are ignored."""
        pass

    @abc.abstractmethod
    async def clear(self) -> None:
        """Removes every item from the cache asynchronously."""
        pass
