"""Core service for searching, filtering and sorting entity collections.

Search tries an exact id-or-name lookup first and only falls back to a
substring scan of the full listing when that lookup fails. Filtering and
sorting operate on already-resolved entities.
"""

import logging
from collections import Counter
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence

from dexcatalog.domain.errors import CatalogError, ValidationError
from dexcatalog.domain.models.catalog import CatalogPage, CatalogSummary
from dexcatalog.domain.models.common import EntityRef
from dexcatalog.domain.models.creature import Creature

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 20

Lookup = Callable[[EntityRef], Awaitable[Creature]]
CorpusLoader = Callable[[], Awaitable[CatalogPage]]
FetchMany = Callable[[Sequence[EntityRef]], Awaitable[List[Creature]]]
MembershipLoader = Callable[[str], Awaitable[FrozenSet[str]]]

SORT_KEYS: Dict[str, Callable[[Creature], Any]] = {
    "id": lambda c: c.id,
    "name": lambda c: c.name.lower(),
    "stat_total": lambda c: c.stat_total,
    "primary_type": lambda c: c.primary_type,
}
SORT_KEY_ALIASES = {
    "statTotal": "stat_total",
    "stats": "stat_total",
    "primaryType": "primary_type",
    "type": "primary_type",
}
SORT_ORDERS = ("asc", "desc")


class QueryPipeline:
    """Search, filter and sort logic over catalog entities."""

    def __init__(
        self,
        lookup: Lookup,
        corpus_loader: CorpusLoader,
        fetch_many: FetchMany,
        membership_loader: MembershipLoader,
    ):
        """Initializes the pipeline with its data sources.

        Args:
            lookup: Exact id-or-name fetch of one entity.
            corpus_loader: Loads the full listing snapshot (cache-aware).
            fetch_many: Partial-failure tolerant batch fetch.
            membership_loader: Resolves the member names of a category.
        """
        self._lookup = lookup
        self._corpus_loader = corpus_loader
        self._fetch_many = fetch_many
        self._membership_loader = membership_loader

    async def search(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> List[Creature]:
        """Finds entities by exact id/name, else by case-insensitive name substring.

        Returns:
            A single-element list for an exact match, up to `limit` substring
            matches otherwise, or an empty list when nothing matches.
        """
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("Search query must be a non-empty string", field="query")
        if limit < 1:
            raise ValidationError("limit must be positive", field="limit")
        needle = query.strip().lower()

        try:
            exact = await self._lookup(needle)
            logger.debug(f"Exact match for '{needle}': #{exact.id}")
            return [exact]
        except CatalogError as e:
            logger.debug(f"No exact match for '{needle}' ({type(e).__name__}); scanning listing")

        corpus = await self._corpus_loader()
        names = [entry.name for entry in corpus.results if needle in entry.name.lower()][:limit]
        if not names:
            logger.info(f"Search for '{needle}' found nothing")
            return []
        return await self._fetch_many(names)

    async def filter_by_category(self, category: str, entries: Iterable[Creature]) -> List[Creature]:
        """Keeps the entries that the category's membership listing includes."""
        if not isinstance(category, str) or not category.strip():
            raise ValidationError("Category must be a non-empty string", field="category")
        members = await self._membership_loader(category.strip().lower())
        return [entry for entry in entries if entry.name in members]

    @staticmethod
    def filter_by_stat_total(
        entries: Iterable[Creature],
        min_total: Optional[int] = None,
        max_total: Optional[int] = None,
    ) -> List[Creature]:
        """Keeps entries whose stat total lies within the inclusive bounds."""
        kept = []
        for entry in entries:
            if min_total is not None and entry.stat_total < min_total:
                continue
            if max_total is not None and entry.stat_total > max_total:
                continue
            kept.append(entry)
        return kept

    @staticmethod
    def sort(entries: Iterable[Creature], key: str = "id", order: str = "asc") -> List[Creature]:
        """Stable sort by id, name, stat_total or primary_type.

        Entries comparing equal keep their original relative order in both directions.
        """
        resolved = SORT_KEY_ALIASES.get(key, key)
        if resolved not in SORT_KEYS:
            raise ValidationError(f"Unsupported sort key: {key}", field="key")
        if order not in SORT_ORDERS:
            raise ValidationError(f"Sort order must be one of {SORT_ORDERS}", field="order")
        # sorted() stays stable with reverse=True
        return sorted(entries, key=SORT_KEYS[resolved], reverse=(order == "desc"))

    @staticmethod
    def deduplicate(entries: Iterable[Creature]) -> List[Creature]:
        """Drops repeated ids, keeping the first occurrence."""
        seen = set()
        unique = []
        for entry in entries:
            if entry.id in seen:
                continue
            seen.add(entry.id)
            unique.append(entry)
        return unique

    @staticmethod
    def summarize(entries: Sequence[Creature]) -> Optional[CatalogSummary]:
        """Aggregate statistics over a result set; None for an empty set."""
        if not entries:
            return None
        distribution: Counter = Counter()
        strongest = None
        total_stats = 0
        for entry in entries:
            distribution.update(entry.type_names)
            total_stats += entry.stat_total
            # Strictly greater: the first of equally strong entries wins
            if strongest is None or entry.stat_total > strongest.stat_total:
                strongest = entry
        return CatalogSummary(
            total=len(entries),
            average_stat_total=total_stats / len(entries),
            strongest=strongest,
            type_distribution=dict(distribution),
        )
