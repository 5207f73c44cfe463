"""Base class for marketplace source adapters."""

from abc import ABC, abstractmethod
from typing import Dict, List


class SourceAdapter(ABC):
    """Abstract base for all marketplace data sources.

    ``search`` returns provider-shaped records; the engine normalizes them
    into listings. Any exception raised from ``search`` is treated as a
    failure of this source only.
    """

    #: Allow-list key used in the ``sources`` request parameter.
    key: str = ""

    #: Display label stamped on every listing from this source.
    label: str = ""

    @property
    @abstractmethod
    def configured(self) -> bool:
        """Whether this adapter has the credentials it needs."""
        ...

    @abstractmethod
    async def search(self, query: str, limit: int) -> List[Dict]:
        """
        Search the marketplace.

        Args:
            query: Free-text search term
            limit: Maximum number of records wanted

        Returns:
            Provider-shaped records convertible to Listing
        """
        ...
