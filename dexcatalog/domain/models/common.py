"""Defines common Value Objects used across the catalog layer.

These objects represent simple values such as cache keys, endpoints and
entity references, ensuring consistency and type safety.
"""

import json
from typing import Any, Dict, NewType, Optional, TypedDict, Union

# === Core Value Objects ===

# Using NewType for semantic clarity, although they are plain values at runtime.
Endpoint = NewType("Endpoint", str)          # Path relative to the catalog base URL, e.g. 'pokemon/25'
EntityName = NewType("EntityName", str)      # Lower-cased catalog name, e.g. 'pikachu'
EntityId = NewType("EntityId", int)          # Positive catalog id
EntityRef = Union[int, str]                  # Anything accepted by an id-or-name lookup

# === Caching Context ===
CacheKey = NewType("CacheKey", str)          # Unique key for a cache entry

# === Raw upstream data ===
RawPayload = Dict[str, Any]                  # Untrusted decoded JSON object


def make_cache_key(endpoint: str, params: Optional[Dict[str, Any]] = None) -> CacheKey:
    """Builds a deterministic cache key from an endpoint and its query parameters.

    Two calls to the same endpoint with different parameter sets never collide.
    """
    serialized = json.dumps(params or {}, sort_keys=True, separators=(",", ":"))
    return CacheKey(f"{endpoint}_{serialized}")


# --- Structured Data ---

class BackoffPolicy(TypedDict):
    """Value Object representing retry backoff configuration."""
    max_retries: int
    base_delay: float
    factor: float
