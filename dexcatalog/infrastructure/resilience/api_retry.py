"""Transport that executes catalog calls with automatic retries.

Implements exponential backoff for transient failures. Network-level errors
and non-2xx responses are retried identically, with no distinction by status
code. Runs inside a queued task, so rate limiting is the queue's concern.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

# Domain Layer Imports
from dexcatalog.domain.errors import HttpError, NetworkError, RetryExhaustedError
from dexcatalog.domain.events.api_events import (
    ApiCallFailed, ApiCallInitiated, ApiCallSucceeded, EventHandler,
    RetryScheduled, dispatch_event,
)
from dexcatalog.domain.interfaces.transport import CatalogRequest, Transport
from dexcatalog.domain.models.common import BackoffPolicy

# Infrastructure Layer Imports
from dexcatalog.infrastructure.http.catalog_http_client import CatalogHttpClient

logger = logging.getLogger(__name__)

RETRYABLE_EXCEPTIONS = (NetworkError, HttpError)

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY_SECONDS = 1.0
DEFAULT_BACKOFF_FACTOR = 2.0

# --- Retrying Transport ---

class RetryingTransport(Transport):
    """Sends catalog requests through the HTTP client, retrying with backoff."""

    def __init__(
        self,
        http_client: CatalogHttpClient,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay_s: float = DEFAULT_BASE_DELAY_SECONDS,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        event_handler: Optional[EventHandler] = None,
    ):
        """Initializes the RetryingTransport.

        Args:
            http_client: Adapter performing a single GET per call.
            max_retries: Retries after the first attempt (3 means up to 4 attempts).
            base_delay_s: Delay before the first retry.
            backoff_factor: Multiplier applied per retry (2 for exponential).
            sleep: Awaitable sleep function, injectable for tests.
            event_handler: Optional receiver for call and retry events.
        """
        if max_retries < 0:
            raise ValueError("max_retries must be non-negative.")
        self.http_client = http_client
        self.max_retries = max_retries
        self.base_delay_s = base_delay_s
        self.backoff_factor = backoff_factor
        self._sleep = sleep
        self._event_handler = event_handler

        logger.info(
            f"RetryingTransport initialized: max_retries={max_retries}, "
            f"base_delay={base_delay_s}s, factor={backoff_factor}"
        )

    @classmethod
    def from_policy(cls, http_client: CatalogHttpClient, policy: BackoffPolicy, **kwargs: Any) -> "RetryingTransport":
        return cls(
            http_client,
            max_retries=policy["max_retries"],
            base_delay_s=policy["base_delay"],
            backoff_factor=policy["factor"],
            **kwargs,
        )

    def delay_for(self, attempt_index: int) -> float:
        """Wait before the retry following attempt `attempt_index` (0-based)."""
        return self.base_delay_s * (self.backoff_factor ** attempt_index)

    async def send(self, request: CatalogRequest) -> Any:
        """Performs the request, retrying transient failures.

        Returns:
            The decoded JSON body.

        Raises:
            RetryExhaustedError: After max_retries + 1 failed attempts; carries the last cause.
        """
        endpoint = request.describe()
        total_attempts = self.max_retries + 1
        last_exception: Exception = RuntimeError(f"No attempt made for {endpoint}")

        for attempt in range(total_attempts):
            dispatch_event(self._event_handler, ApiCallInitiated(endpoint=endpoint, attempt_number=attempt + 1))
            start_time = time.perf_counter()
            try:
                payload = await self.http_client.get_json(request.endpoint, request.params)
            except RETRYABLE_EXCEPTIONS as e:
                last_exception = e
                if attempt + 1 >= total_attempts:
                    break
                delay = self.delay_for(attempt)
                logger.warning(
                    f"Retryable error calling {endpoint} on attempt {attempt + 1}/{total_attempts}: "
                    f"{type(e).__name__}: {e}. Waiting {delay:.2f}s..."
                )
                dispatch_event(self._event_handler, RetryScheduled(
                    endpoint=endpoint, attempt_number=attempt + 1,
                    delay_seconds=delay, error_type=type(e).__name__,
                ))
                await self._sleep(delay)
                continue

            latency_ms = (time.perf_counter() - start_time) * 1000
            dispatch_event(self._event_handler, ApiCallSucceeded(
                endpoint=endpoint, latency_ms=latency_ms, attempt_number=attempt + 1,
            ))
            return payload

        # --- Loop finished without returning: attempts exhausted ---
        logger.error(f"Max retries ({self.max_retries}) reached for {endpoint}. Last error: {last_exception}")
        dispatch_event(self._event_handler, ApiCallFailed(
            endpoint=endpoint, error_type=type(last_exception).__name__,
            error_message=str(last_exception), attempts=total_attempts,
        ))
        raise RetryExhaustedError(endpoint, last_exception, total_attempts) from last_exception

    async def aclose(self) -> None:
        await self.http_client.aclose()
