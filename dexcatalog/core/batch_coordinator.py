"""Core service fanning out entity fetches and tolerating partial failure.

Member fetches are launched concurrently; each still goes through the
client's cache, queue, retry and validation path. A failing member is logged
and dropped, never failing the batch.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, List, Optional, Sequence

from dexcatalog.domain.errors import ValidationError
from dexcatalog.domain.events.api_events import BatchItemFailed, EventHandler, dispatch_event
from dexcatalog.domain.models.common import EntityRef
from dexcatalog.domain.models.creature import Creature

logger = logging.getLogger(__name__)

MAX_RANDOM_SAMPLE = 50

FetchOne = Callable[[EntityRef], Awaitable[Creature]]


class BatchCoordinator:
    """Runs many single-entity fetches at once and keeps the successes."""

    def __init__(
        self,
        fetch_one: FetchOne,
        rng: Optional[random.Random] = None,
        event_handler: Optional[EventHandler] = None,
    ):
        """Initializes the coordinator.

        Args:
            fetch_one: Coroutine function fetching one entity by id or name.
            rng: Random source for sampling; a fresh random.Random when omitted.
            event_handler: Optional receiver for BatchItemFailed events.
        """
        self._fetch_one = fetch_one
        self._rng = rng or random.Random()
        self._event_handler = event_handler

    async def fetch_many(self, identifiers: Sequence[EntityRef]) -> List[Creature]:
        """Fetches every identifier concurrently.

        Returns:
            The successfully fetched entities, in the order of their identifiers.

        Raises:
            ValidationError: If `identifiers` is a string or empty.
        """
        if isinstance(identifiers, (str, bytes)):
            raise ValidationError("identifiers must be a sequence of ids or names, not a string", field="identifiers")
        if not identifiers:
            raise ValidationError("identifiers must be a non-empty sequence", field="identifiers")

        results = await asyncio.gather(
            *(self._fetch_one(identifier) for identifier in identifiers),
            return_exceptions=True,
        )

        entities: List[Creature] = []
        for identifier, result in zip(identifiers, results):
            if isinstance(result, Exception):
                logger.warning(f"Failed to fetch entity {identifier!r}: {type(result).__name__}: {result}")
                dispatch_event(self._event_handler, BatchItemFailed(
                    identifier=identifier, error_type=type(result).__name__, error_message=str(result),
                ))
                continue
            if isinstance(result, BaseException):
                raise result
            entities.append(result)

        logger.debug(f"Batch fetched {len(entities)}/{len(identifiers)} entities")
        return entities

    def draw_unique_ids(self, count: int, domain_size: int) -> List[int]:
        """Draws `count` distinct ids in [1, domain_size] by rejection sampling.

        Raises:
            ValidationError: Unless 1 <= count <= min(domain_size, MAX_RANDOM_SAMPLE).
        """
        if domain_size < 1:
            raise ValidationError("domain_size must be positive", field="domain_size")
        if count < 1 or count > MAX_RANDOM_SAMPLE:
            raise ValidationError(f"count must be between 1 and {MAX_RANDOM_SAMPLE}", field="count")
        if count > domain_size:
            raise ValidationError(
                f"Cannot draw {count} distinct ids from a catalog of {domain_size}", field="count"
            )

        chosen: List[int] = []
        seen = set()
        while len(chosen) < count:
            candidate = self._rng.randint(1, domain_size)
            if candidate in seen:
                continue
            seen.add(candidate)
            chosen.append(candidate)
        return chosen

    async def sample_random(self, count: int, domain_size: int) -> List[Creature]:
        """Fetches `count` distinct random entities (fewer if some fetches fail)."""
        ids = self.draw_unique_ids(count, domain_size)
        logger.debug(f"Sampling random entities: {ids}")
        return await self.fetch_many(ids)
