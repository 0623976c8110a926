"""Caching Service Implementation.

Provides the in-memory, time-to-live implementation of the CacheService
interface used by the catalog client.
Bounded Context: Cache Management
"""
