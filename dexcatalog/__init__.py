"""dexcatalog: resilient, cache-aware read access to the creature catalog."""

__version__ = "0.1.0"
