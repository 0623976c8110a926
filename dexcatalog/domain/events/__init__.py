"""Domain Event definitions.

Represents significant occurrences (queued requests, retries, dropped batch
members) that observers of the catalog client might react to.
"""
