"""Domain models for catalog listings, category membership and evolution data.

Each model parses its own upstream envelope through a from_payload()
classmethod that raises ValidationError on a malformed shape.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, Sequence, Tuple

from dexcatalog.domain.errors import ValidationError
from dexcatalog.domain.models.creature import Creature


def _require_mapping(payload: Any, what: str) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValidationError(f"{what} payload must be an object", field=what)
    return payload


def _require_list(payload: Dict[str, Any], key: str) -> List[Any]:
    value = payload.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"'{key}' must be a list", field=key)
    return value


@dataclass(frozen=True)
class ListingEntry:
    """A {name, url} reference as found in listing envelopes."""
    name: str
    url: str = ""

    @classmethod
    def from_payload(cls, payload: Any) -> "ListingEntry":
        entry = _require_mapping(payload, "results")
        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Listing entry requires a non-empty 'name'", field="name")
        url = entry.get("url")
        return cls(name=name.strip(), url=url if isinstance(url, str) else "")


@dataclass(frozen=True)
class CatalogPage:
    """One page of the pagination envelope returned by listing endpoints."""
    count: int
    results: Tuple[ListingEntry, ...]
    next: Optional[str] = None
    previous: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "CatalogPage":
        data = _require_mapping(payload, "page")
        results = tuple(ListingEntry.from_payload(item) for item in _require_list(data, "results"))
        count = data.get("count")
        if not isinstance(count, int) or isinstance(count, bool):
            count = len(results)
        return cls(
            count=count,
            results=results,
            next=data.get("next") if isinstance(data.get("next"), str) else None,
            previous=data.get("previous") if isinstance(data.get("previous"), str) else None,
        )

    @property
    def names(self) -> List[str]:
        return [entry.name for entry in self.results]


@dataclass(frozen=True)
class CategoryMembers:
    """Membership of an elemental category (a 'type' upstream)."""
    name: str
    members: Tuple[ListingEntry, ...]

    @classmethod
    def from_payload(cls, payload: Any) -> "CategoryMembers":
        data = _require_mapping(payload, "category")
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Category requires a non-empty 'name'", field="name")
        members = []
        for slot in _require_list(data, "pokemon"):
            if not isinstance(slot, dict):
                raise ValidationError("Category member must be an object", field="pokemon")
            members.append(ListingEntry.from_payload(slot.get("pokemon")))
        return cls(name=name.strip(), members=tuple(members))

    @property
    def member_names(self) -> FrozenSet[str]:
        return frozenset(entry.name for entry in self.members)


@dataclass(frozen=True)
class EvolutionNode:
    """A species in an evolution tree together with the species it evolves into."""
    species_name: str
    species_url: str = ""
    evolves_to: Tuple["EvolutionNode", ...] = ()

    @classmethod
    def from_payload(cls, payload: Any) -> "EvolutionNode":
        """Parses an evolution-chain payload ({'chain': {...}}) or a bare chain link."""
        data = _require_mapping(payload, "chain")
        link = data.get("chain", data)
        return cls._from_link(link)

    @classmethod
    def _from_link(cls, link: Any) -> "EvolutionNode":
        data = _require_mapping(link, "chain")
        species = ListingEntry.from_payload(data.get("species"))
        children = tuple(cls._from_link(child) for child in _require_list(data, "evolves_to"))
        return cls(species_name=species.name, species_url=species.url, evolves_to=children)

    def flatten(self) -> List[str]:
        """Species names depth-first, base form first."""
        return list(self._walk())

    def _walk(self) -> Iterator[str]:
        yield self.species_name
        for child in self.evolves_to:
            yield from child._walk()


@dataclass(frozen=True)
class CatalogSummary:
    """Aggregate statistics over a result set."""
    total: int
    average_stat_total: float
    strongest: Optional[Creature]
    type_distribution: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class EntityFilter:
    """Parameters of the advanced filter: categories or a listing page, stat bounds, sort."""
    categories: Sequence[str] = ()
    min_stat_total: Optional[int] = None
    max_stat_total: Optional[int] = None
    sort_by: str = "id"
    order: str = "asc"
    limit: int = 20
    offset: int = 0
