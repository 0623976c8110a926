"""Interface for fetching raw payloads from the upstream catalog.

Hides the HTTP library and the retry policy from the core services, which
only deal in request descriptors and decoded JSON.
"""

import abc
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..models.common import Endpoint


@dataclass(frozen=True)
class CatalogRequest:
    """Descriptor of one outbound GET against the catalog."""
    endpoint: Endpoint  # Relative path ('pokemon/25') or an absolute URL returned by the catalog
    params: Optional[Dict[str, Any]] = field(default=None, hash=False)

    def describe(self) -> str:
        if not self.params:
            return str(self.endpoint)
        query = "&".join(f"{k}={v}" for k, v in sorted(self.params.items()))
        return f"{self.endpoint}?{query}"


class Transport(abc.ABC):
    """Abstract Base Class for sending a catalog request."""

    @abc.abstractmethod
    async def send(self, request: CatalogRequest) -> Any:
        """Performs the request and returns the decoded JSON body.

        Raises:
            RetryExhaustedError: If the request could not be completed.
        """
        pass

    async def aclose(self) -> None:
        """Releases network resources. No-op unless overridden."""
        return None
