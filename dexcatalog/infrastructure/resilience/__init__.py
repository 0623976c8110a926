"""Catalog Resilience Implementations.

Contains the rate-limited FIFO request queue and the retrying transport
with exponential backoff.
Bounded Context: API Resilience
"""
