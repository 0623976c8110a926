"""Composition root for the dexcatalog package.

Loads configuration, sets up logging and wires a CatalogClient with its
cache, request queue, retrying transport and HTTP adapter. Callers own the
returned client and must close it (or use it as an async context manager).
"""

import logging
import random
from pathlib import Path
from typing import Optional

import httpx

# --- Core Layer ---
from dexcatalog.core.catalog_client import CatalogClient

# --- Domain Layer ---
from dexcatalog.domain.events.api_events import EventHandler

# --- Infrastructure Layer ---
# Config
from dexcatalog.infrastructure.config.settings import (
    DEFAULT_CONFIG_FILE, get_backoff_policy, get_base_url, get_cache_max_items,
    get_cache_ttl_seconds, get_config, get_language, get_max_entity_id,
    get_queue_interval_seconds, get_timeout_seconds, load_configuration,
)
# Cache
from dexcatalog.infrastructure.cache.caching_service import InMemoryCacheService
# HTTP
from dexcatalog.infrastructure.http.catalog_http_client import CatalogHttpClient
# Resilience
from dexcatalog.infrastructure.resilience.api_retry import RetryingTransport
from dexcatalog.infrastructure.resilience.request_queue import RequestQueue
# Monitoring
from dexcatalog.infrastructure.monitoring.logger_setup import setup_logging

logger = logging.getLogger(__name__)


def configure_logging_from_settings() -> None:
    log_level_name = str(get_config('logging.level', 'INFO')).upper()
    log_level = getattr(logging, log_level_name, logging.INFO)
    setup_logging(
        log_level=log_level,
        log_file=get_config('logging.file'),
        log_format=get_config('logging.format'),
    )


def create_catalog_client(
    config_file: Path = DEFAULT_CONFIG_FILE,
    env_file: Optional[Path] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    rng: Optional[random.Random] = None,
    event_handler: Optional[EventHandler] = None,
    configure_logging: bool = True,
) -> CatalogClient:
    """Creates and wires up a CatalogClient from configuration.

    Args:
        config_file: YAML configuration file (optional on disk).
        env_file: .env file; searched upwards from cwd when None.
        http_client: Pre-built httpx client, e.g. with a MockTransport.
        rng: Random source for sampling.
        event_handler: Receiver for domain events; events are only logged when None.
        configure_logging: Whether to (re)configure the root logger.
    """
    load_configuration(config_file=config_file, env_file=env_file)
    if configure_logging:
        configure_logging_from_settings()
    logger.info("Initializing catalog client dependencies...")

    catalog_http = CatalogHttpClient(
        base_url=get_base_url(),
        timeout_s=get_timeout_seconds(),
        client=http_client,
    )
    transport = RetryingTransport.from_policy(
        catalog_http, get_backoff_policy(), event_handler=event_handler,
    )
    cache_service = InMemoryCacheService(
        ttl_seconds=get_cache_ttl_seconds(),
        max_items=get_cache_max_items(),
    )
    request_queue = RequestQueue(
        min_interval_s=get_queue_interval_seconds(),
        event_handler=event_handler,
    )

    client = CatalogClient(
        transport=transport,
        cache_service=cache_service,
        request_queue=request_queue,
        rng=rng,
        max_entity_id=get_max_entity_id(),
        language=get_language(),
        event_handler=event_handler,
    )
    logger.info("Catalog client initialized successfully.")
    return client
