"""HTTP adapter for the upstream catalog.

Performs exactly one GET per call using httpx and translates failures into
the domain taxonomy: transport problems and undecodable bodies become
NetworkError, non-2xx responses become HttpError. Retrying is not done here.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from dexcatalog.domain.errors import HttpError, NetworkError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://pokeapi.co/api/v2"


class CatalogHttpClient:
    """Thin async JSON client bound to the catalog base URL."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout_s: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initializes the HTTP client.

        Args:
            base_url: Root of the catalog API; relative endpoints are joined to it.
            timeout_s: Per-request timeout. None disables timeouts entirely.
            client: Pre-built httpx client (e.g. one using MockTransport in tests).
        """
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout_s,
            headers={"Accept": "application/json"},
            follow_redirects=True,
        )
        logger.info(f"CatalogHttpClient initialized for {self.base_url} (timeout={timeout_s})")

    def build_url(self, endpoint: str) -> str:
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    async def get_json(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Fetches and decodes one JSON document.

        Raises:
            NetworkError: On connection-level failures or an undecodable body.
            HttpError: On a non-2xx status code.
        """
        url = self.build_url(endpoint)
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as e:
            raise NetworkError(f"Request to {url} failed: {type(e).__name__}: {e}", url=url) from e

        if not response.is_success:
            raise HttpError(response.status_code, url, response.reason_phrase)

        try:
            return response.json()
        except ValueError as e:
            raise NetworkError(f"Invalid JSON body from {url}: {e}", url=url) from e

    async def aclose(self) -> None:
        """Closes the underlying connection pool if this object created it."""
        if self._owns_client:
            await self._client.aclose()
            logger.debug("CatalogHttpClient closed.")
