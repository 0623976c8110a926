"""Catalog Client: the facade the UI talks to.

Composes the cache, the rate-limited request queue, the retrying transport
and the entity factory into cache-aware read operations, and exposes the
batch and query services built on top of them. Each client owns its own
cache and queue; nothing is shared between instances.
"""

import asyncio
import logging
import random
from typing import Any, Callable, FrozenSet, List, Mapping, Optional, Sequence, TypeVar, Union

# Core Services Imports
from dexcatalog.core.batch_coordinator import BatchCoordinator
from dexcatalog.core.entity_factory import EntityFactory
from dexcatalog.core.query_pipeline import DEFAULT_SEARCH_LIMIT, QueryPipeline

# Domain Layer Imports
from dexcatalog.domain.errors import CatalogError, ValidationError
from dexcatalog.domain.events.api_events import EventHandler
from dexcatalog.domain.interfaces.cache import CacheService
from dexcatalog.domain.interfaces.transport import CatalogRequest, Transport
from dexcatalog.domain.models.catalog import (
    CatalogPage, CategoryMembers, EntityFilter, EvolutionNode,
)
from dexcatalog.domain.models.common import Endpoint, EntityRef, make_cache_key
from dexcatalog.domain.models.creature import Creature

# Infrastructure Layer Imports (defaults when nothing is injected)
from dexcatalog.infrastructure.cache.caching_service import InMemoryCacheService
from dexcatalog.infrastructure.resilience.request_queue import RequestQueue

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ENTITY_ID = 1010
MAX_LIST_LIMIT = 1000
CORPUS_SIZE = 1000
DEFAULT_LANGUAGE = "en"


def _identity(payload: Any) -> Any:
    return payload


def _localized_name(payload: Any, language: str) -> Optional[str]:
    """Picks the name in `language` from an ability payload, else its raw name."""
    if not isinstance(payload, dict):
        return None
    for entry in payload.get("names") or []:
        if not isinstance(entry, dict):
            continue
        entry_language = entry.get("language")
        if isinstance(entry_language, dict) and entry_language.get("name") == language:
            name = entry.get("name")
            if isinstance(name, str) and name:
                return name
    name = payload.get("name")
    return name if isinstance(name, str) and name else None


def _ability_key(source: Any) -> Optional[str]:
    """Accepts 'overgrow', an ability URL, or an {'ability': {'name', 'url'}} record."""
    if isinstance(source, str):
        return source.strip() or None
    if isinstance(source, Mapping):
        ability = source.get("ability")
        if isinstance(ability, Mapping):
            return ability.get("name") or ability.get("url") or None
    return None


def _readable(source: Any) -> str:
    if isinstance(source, str):
        name = source
    elif isinstance(source, Mapping) and isinstance(source.get("ability"), Mapping):
        name = source["ability"].get("name") or ""
    else:
        name = ""
    return name.replace("-", " ")


class CatalogClient:
    """Cache-aware, rate-limited, retrying read access to the creature catalog."""

    def __init__(
        self,
        transport: Transport,
        cache_service: Optional[CacheService] = None,
        request_queue: Optional[RequestQueue] = None,
        entity_factory: Optional[EntityFactory] = None,
        rng: Optional[random.Random] = None,
        max_entity_id: int = DEFAULT_MAX_ENTITY_ID,
        language: str = DEFAULT_LANGUAGE,
        event_handler: Optional[EventHandler] = None,
    ):
        """Initializes the CatalogClient with its collaborators.

        Args:
            transport: Retrying transport performing the actual requests.
            cache_service: TTL cache; a private InMemoryCacheService when omitted.
            request_queue: FIFO rate-limited queue; a private one when omitted.
            entity_factory: Payload validator; a default EntityFactory when omitted.
            rng: Random source for sampling.
            max_entity_id: Size of the id domain used by sample_random.
            language: Default language for ability labels.
            event_handler: Optional receiver for batch events.
        """
        self.transport = transport
        self.cache_service = cache_service or InMemoryCacheService()
        self.request_queue = request_queue or RequestQueue()
        self.entity_factory = entity_factory or EntityFactory()
        self.max_entity_id = max_entity_id
        self.language = language
        self.batch = BatchCoordinator(self.get_entity, rng=rng, event_handler=event_handler)
        self.pipeline = QueryPipeline(
            lookup=self.get_entity,
            corpus_loader=self._load_corpus,
            fetch_many=self.batch.fetch_many,
            membership_loader=self._member_names,
        )
        logger.info(f"CatalogClient initialized (max_entity_id={max_entity_id}, language={language})")

    async def __aenter__(self) -> "CatalogClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Tears down the transport's network resources."""
        await self.transport.aclose()

    async def clear_cache(self) -> None:
        await self.cache_service.clear()

    # --- Cache / queue plumbing ---

    async def _cached_fetch(
        self,
        endpoint: str,
        parse: Callable[[Any], T],
        params: Optional[dict] = None,
    ) -> T:
        """Cache lookup, then a queued, retried request whose parsed result is cached."""
        key = make_cache_key(endpoint, params)
        cached = await self.cache_service.get(key)
        if cached is not None:
            return cached

        async def task() -> T:
            # An earlier queued task may have filled the cache meanwhile.
            again = await self.cache_service.get(key)
            if again is not None:
                return again
            payload = await self.transport.send(CatalogRequest(Endpoint(endpoint), params))
            value = parse(payload)
            await self.cache_service.set(key, value)
            return value

        return await self.request_queue.enqueue(task)

    @staticmethod
    def _normalize_ref(id_or_name: EntityRef) -> str:
        if isinstance(id_or_name, bool):
            raise ValidationError("Invalid entity id provided", field="id_or_name")
        if isinstance(id_or_name, int):
            if id_or_name <= 0:
                raise ValidationError("Entity id must be positive", field="id_or_name")
            return str(id_or_name)
        if isinstance(id_or_name, str) and id_or_name.strip():
            ref = id_or_name.strip().lower()
            if ref.isdigit():
                if int(ref) <= 0:
                    raise ValidationError("Entity id must be positive", field="id_or_name")
                return str(int(ref))
            return ref
        raise ValidationError("Invalid entity id or name provided", field="id_or_name")

    # --- Single entities ---

    async def get_entity(self, id_or_name: EntityRef) -> Creature:
        """Fetches one entity by id or name.

        Raises:
            ValidationError: For an invalid reference or a malformed payload.
            RetryExhaustedError: When the catalog could not be reached or has no such entity.
        """
        ref = self._normalize_ref(id_or_name)
        endpoint = f"pokemon/{ref}"
        creature = await self._cached_fetch(endpoint, self.entity_factory.build)
        # Alias under id and name so later lookups by either hit the cache.
        for alias in {f"pokemon/{creature.id}", f"pokemon/{creature.name.lower()}"} - {endpoint}:
            alias_key = make_cache_key(alias)
            if await self.cache_service.get(alias_key) is None:
                await self.cache_service.set(alias_key, creature)
        return creature

    async def get_entity_by_name(self, name: str) -> Creature:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Invalid entity name provided", field="name")
        return await self.get_entity(name)

    # --- Listings ---

    async def list_entities(self, limit: int = 20, offset: int = 0) -> CatalogPage:
        """Fetches one page of the entity listing.

        Raises:
            ValidationError: Unless 1 <= limit <= 1000 and offset >= 0.
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= MAX_LIST_LIMIT:
            raise ValidationError(f"Limit must be between 1 and {MAX_LIST_LIMIT}", field="limit")
        if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
            raise ValidationError("Offset must be non-negative", field="offset")
        return await self._cached_fetch("pokemon", CatalogPage.from_payload, {"limit": limit, "offset": offset})

    async def _load_corpus(self) -> CatalogPage:
        return await self.list_entities(limit=CORPUS_SIZE, offset=0)

    async def list_categories(self) -> CatalogPage:
        return await self._cached_fetch("type", CatalogPage.from_payload)

    async def get_category_members(self, category: str) -> CategoryMembers:
        if not isinstance(category, str) or not category.strip():
            raise ValidationError("Category must be a non-empty string", field="category")
        return await self._cached_fetch(f"type/{category.strip().lower()}", CategoryMembers.from_payload)

    async def _member_names(self, category: str) -> FrozenSet[str]:
        return (await self.get_category_members(category)).member_names

    # --- Batch ---

    async def fetch_many(self, identifiers: Sequence[EntityRef]) -> List[Creature]:
        return await self.batch.fetch_many(identifiers)

    async def sample_random(self, count: int = 1, domain_size: Optional[int] = None) -> List[Creature]:
        return await self.batch.sample_random(
            count, self.max_entity_id if domain_size is None else domain_size,
        )

    # --- Query ---

    async def search(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> List[Creature]:
        return await self.pipeline.search(query, limit)

    async def filter_by_category(
        self,
        category: str,
        entries: Optional[Sequence[Creature]] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Creature]:
        """Filters `entries` by category, or resolves a slice of the category's members."""
        if entries is not None:
            return await self.pipeline.filter_by_category(category, entries)
        members = await self.get_category_members(category)
        names = [entry.name for entry in members.members[offset:offset + limit]]
        if not names:
            return []
        return await self.batch.fetch_many(names)

    def sort(self, entries: Sequence[Creature], key: str = "id", order: str = "asc") -> List[Creature]:
        return self.pipeline.sort(entries, key, order)

    async def filter_entities(self, criteria: EntityFilter) -> List[Creature]:
        """Advanced filter: categories (or a listing page), stat total bounds, then sort."""
        results: List[Creature] = []
        if criteria.categories:
            for category in criteria.categories:
                results.extend(await self.filter_by_category(
                    category, limit=criteria.limit, offset=criteria.offset,
                ))
            results = self.pipeline.deduplicate(results)
        else:
            page = await self.list_entities(criteria.limit, criteria.offset)
            if page.names:
                results = await self.batch.fetch_many(page.names)

        results = self.pipeline.filter_by_stat_total(results, criteria.min_stat_total, criteria.max_stat_total)
        return self.pipeline.sort(results, criteria.sort_by, criteria.order)

    # --- Evolution data ---

    async def get_evolution_chain(self, chain_id: int) -> Optional[EvolutionNode]:
        """Fetches an evolution tree by chain id; None if it cannot be fetched."""
        if isinstance(chain_id, bool) or not isinstance(chain_id, int) or chain_id <= 0:
            raise ValidationError("Evolution chain id must be a positive integer", field="chain_id")
        try:
            return await self._cached_fetch(f"evolution-chain/{chain_id}", EvolutionNode.from_payload)
        except CatalogError as e:
            logger.error(f"Failed to fetch evolution chain {chain_id}: {e}")
            return None

    async def get_evolution_chain_for(self, id_or_name: EntityRef) -> Optional[EvolutionNode]:
        """Resolves an entity's species, then its evolution tree; None on failure."""
        ref = self._normalize_ref(id_or_name)
        try:
            species = await self._cached_fetch(f"pokemon-species/{ref}", _identity)
            chain = species.get("evolution_chain") if isinstance(species, dict) else None
            url = chain.get("url") if isinstance(chain, dict) else None
            if not isinstance(url, str) or not url:
                logger.warning(f"Species {ref} has no evolution chain reference")
                return None
            return await self._cached_fetch(url, EvolutionNode.from_payload)
        except CatalogError as e:
            logger.error(f"Failed to fetch evolution chain for {ref}: {e}")
            return None

    # --- Ability labels ---

    async def get_ability_label(self, name_or_url: Any, language: Optional[str] = None) -> Optional[str]:
        """Human-readable ability name in `language`; None if it cannot be resolved."""
        key = _ability_key(name_or_url)
        if key is None:
            return None
        endpoint = key if key.startswith(("http://", "https://")) else f"ability/{key.lower()}"
        try:
            payload = await self._cached_fetch(endpoint, _identity)
        except CatalogError as e:
            logger.warning(f"Could not resolve ability label for {key!r}: {e}")
            return None
        return _localized_name(payload, language or self.language)

    async def get_ability_labels(
        self,
        source: Union[Creature, Sequence[Any]],
        language: Optional[str] = None,
    ) -> List[str]:
        """Labels for every ability, falling back to the raw identifier per item."""
        abilities = list(source.abilities) if isinstance(source, Creature) else list(source)
        labels = await asyncio.gather(
            *(self.get_ability_label(ability, language) for ability in abilities),
            return_exceptions=True,
        )
        return [
            label if isinstance(label, str) and label else _readable(ability)
            for ability, label in zip(abilities, labels)
        ]
