"""Domain entity for a single catalog creature.

A Creature is immutable: nested payload records are deep-frozen on
construction and every derived attribute is computed exactly once in
__post_init__.
"""

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple

# --- Derived attribute tables ---

PLACEHOLDER_IMAGE_URL = "/placeholder-pokemon.png"
CRY_FALLBACK_URL = "https://raw.githubusercontent.com/PokeAPI/cries/main/cries/pokemon/latest/{id}.ogg"
UNKNOWN_TYPE = "unknown"

TYPE_COLORS: Mapping[str, str] = MappingProxyType({
    "normal": "#A8A878",
    "fire": "#F08030",
    "water": "#6890F0",
    "electric": "#F8D030",
    "grass": "#78C850",
    "ice": "#98D8D8",
    "fighting": "#C03028",
    "poison": "#A040A0",
    "ground": "#E0C068",
    "flying": "#A890F0",
    "psychic": "#F85888",
    "bug": "#A8B820",
    "rock": "#B8A038",
    "ghost": "#705898",
    "dragon": "#7038F8",
    "dark": "#705848",
    "steel": "#B8B8D0",
    "fairy": "#EE99AC",
})
DEFAULT_TYPE_COLOR = "#68A090"

# Lower bounds, checked from the top down.
RARITY_THRESHOLDS: Tuple[Tuple[int, str], ...] = (
    (600, "legendary"),
    (500, "rare"),
    (400, "uncommon"),
)
DEFAULT_RARITY = "common"


def freeze(value: Any) -> Any:
    """Recursively converts dicts to read-only mappings and lists to tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    return value


def thaw(value: Any) -> Any:
    """Inverse of freeze(), producing plain JSON-ready containers."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    return value


def rarity_for(stat_total: int) -> str:
    for threshold, tier in RARITY_THRESHOLDS:
        if stat_total >= threshold:
            return tier
    return DEFAULT_RARITY


def color_for(type_name: str) -> str:
    return TYPE_COLORS.get(type_name, DEFAULT_TYPE_COLOR)


def _nested(mapping: Mapping[str, Any], *path: str) -> Any:
    current: Any = mapping
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _is_finite_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _record_name(record: Any, key: str) -> Any:
    # Records look like {'type': {'name': 'fire'}}; bare strings are tolerated.
    if isinstance(record, Mapping):
        return _nested(record, key, "name")
    return record


@dataclass(frozen=True)
class Creature:
    """Entity representing one validated catalog record with derived display attributes."""
    id: int
    name: str
    height: float = 0
    weight: float = 0
    base_experience: float = 0
    types: Tuple[Any, ...] = ()
    abilities: Tuple[Any, ...] = ()
    stats: Tuple[Any, ...] = ()
    sprites: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    cries: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    # Derived, computed once in __post_init__
    image_url: str = field(init=False)
    cry_url: str = field(init=False)
    type_names: Tuple[str, ...] = field(init=False)
    ability_names: Tuple[str, ...] = field(init=False)
    primary_type: str = field(init=False)
    stat_total: int = field(init=False)
    rarity_tier: str = field(init=False)
    type_color: str = field(init=False)

    def __post_init__(self) -> None:
        # Frozen dataclass: bypass __setattr__ for normalization and derived fields.
        set_ = object.__setattr__
        set_(self, "types", freeze(tuple(self.types)))
        set_(self, "abilities", freeze(tuple(self.abilities)))
        set_(self, "stats", freeze(tuple(self.stats)))
        set_(self, "sprites", freeze(dict(self.sprites)))
        set_(self, "cries", freeze(dict(self.cries)))

        set_(self, "image_url", self._resolve_image_url())
        set_(self, "cry_url", self._resolve_cry_url())
        set_(self, "type_names", tuple(
            n for n in (_record_name(t, "type") for t in self.types) if isinstance(n, str) and n
        ))
        set_(self, "ability_names", tuple(
            n for n in (_record_name(a, "ability") for a in self.abilities) if isinstance(n, str) and n
        ))
        set_(self, "primary_type", self.type_names[0] if self.type_names else UNKNOWN_TYPE)
        set_(self, "stat_total", self._sum_stats())
        set_(self, "rarity_tier", rarity_for(self.stat_total))
        set_(self, "type_color", color_for(self.primary_type))

    def __hash__(self) -> int:
        return hash((self.id, self.name))

    def _resolve_image_url(self) -> str:
        candidates = (
            _nested(self.sprites, "other", "official-artwork", "front_default"),
            _nested(self.sprites, "other", "dream_world", "front_default"),
            self.sprites.get("front_default"),
        )
        for candidate in candidates:
            if isinstance(candidate, str) and candidate:
                return candidate
        return PLACEHOLDER_IMAGE_URL

    def _resolve_cry_url(self) -> str:
        for key in ("latest", "legacy"):
            candidate = self.cries.get(key)
            if isinstance(candidate, str) and candidate:
                return candidate
        return CRY_FALLBACK_URL.format(id=self.id)

    def _sum_stats(self) -> int:
        # Non-numeric and non-finite base values (NaN, inf) count as 0.
        total = 0
        for stat in self.stats:
            value = stat.get("base_stat") if isinstance(stat, Mapping) else None
            if _is_finite_number(value):
                total += value
        return int(total)

    def stat_by_name(self, stat_name: str) -> int:
        """Returns the base value of the named stat (e.g. 'speed'), or 0."""
        for stat in self.stats:
            if isinstance(stat, Mapping) and _nested(stat, "stat", "name") == stat_name:
                value = stat.get("base_stat")
                return int(value) if _is_finite_number(value) else 0
        return 0

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict view including derived attributes."""
        return {
            "id": self.id,
            "name": self.name,
            "height": self.height,
            "weight": self.weight,
            "base_experience": self.base_experience,
            "types": thaw(self.types),
            "abilities": thaw(self.abilities),
            "stats": thaw(self.stats),
            "sprites": thaw(self.sprites),
            "cries": thaw(self.cries),
            "image_url": self.image_url,
            "cry_url": self.cry_url,
            "type_names": list(self.type_names),
            "ability_names": list(self.ability_names),
            "primary_type": self.primary_type,
            "stat_total": self.stat_total,
            "rarity_tier": self.rarity_tier,
            "type_color": self.type_color,
        }
