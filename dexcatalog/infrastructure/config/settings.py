"""Provides functions for loading and accessing configuration settings.

Supports loading from a YAML configuration file (~/.dexcatalog/config.yaml),
a .env file and environment variables. Keys are dotted paths such as
'cache.ttl_seconds'; nested YAML sections are resolved along the path.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from dexcatalog.domain.models.common import BackoffPolicy

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".dexcatalog"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "DEXCATALOG_"

DEFAULTS: Dict[str, Any] = {
    "catalog.base_url": "https://pokeapi.co/api/v2",
    "catalog.timeout_seconds": None,
    "catalog.max_entity_id": 1010,
    "catalog.language": "en",
    "cache.ttl_seconds": 300,
    "cache.max_items": None,
    "queue.min_interval_seconds": 0.1,
    "retry.max_retries": 3,
    "retry.base_delay_seconds": 1.0,
    "retry.backoff_factor": 2.0,
    "logging.level": "INFO",
    "logging.file": None,
    "logging.format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}

# --- Global Configuration Store (Simple Approach) ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False

def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Test overrides (set_config_for_testing)
    2. Environment Variables (DEXCATALOG_CACHE_TTL_SECONDS, ...)
    3. .env file
    4. YAML configuration file
    5. DEFAULTS

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
    """
    global _config, _loaded
    if _loaded:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. Load from YAML file (Lowest priority)
    if config_file.exists():
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(yaml_config)
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a mapping.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. Load from .env file (Medium priority); override=False so real env vars win
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path and load_dotenv(dotenv_path=dotenv_path, override=False):
        logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("Skipping .env file loading (path not found or empty).")

    # 3. Environment Variables (Highest priority) are read lazily in get_config
    _loaded = True
    logger.info("Configuration loading process completed.")

def reset_configuration() -> None:
    """Forgets loaded configuration so the next load_configuration() re-reads sources."""
    global _config, _loaded
    _config = {}
    _loaded = False

def _env_name(key: str) -> str:
    return ENV_PREFIX + key.upper().replace('.', '_')

def _coerce(value: str) -> Any:
    """Converts an environment string to bool, None, int or float where it looks like one."""
    lowered = value.strip().lower()
    if lowered == 'true':
        return True
    if lowered == 'false':
        return False
    if lowered in ('none', 'null', ''):
        return None
    try:
        return float(value) if '.' in value else int(value)
    except ValueError:
        return value

def _lookup(config: Dict[str, Any], key: str) -> Any:
    """Looks a dotted key up either literally or as a nested path."""
    if key in config:
        return config[key]
    current: Any = config
    for part in key.split('.'):
        if not isinstance(current, dict) or part not in current:
            raise KeyError(key)
        current = current[part]
    return current

def get_config(key: str, default: Any = None) -> Any:
    """Get a configuration value by dotted key.

    Falls back to DEFAULTS, then to `default`.
    """
    if key in _test_config:
        return _test_config[key]

    env_key = _env_name(key)
    if env_key in os.environ:
        return _coerce(os.environ[env_key])

    try:
        return _lookup(_config, key)
    except KeyError:
        pass

    if key in DEFAULTS:
        return DEFAULTS[key]
    logger.debug(f"Config key '{key}' not found. Returning default: {default}")
    return default

def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None

# --- Convenience Functions ---

def get_base_url() -> str:
    return str(get_config('catalog.base_url'))

def get_timeout_seconds() -> Optional[float]:
    value = get_config('catalog.timeout_seconds')
    return float(value) if value is not None else None

def get_max_entity_id() -> int:
    return int(get_config('catalog.max_entity_id'))

def get_language() -> str:
    return str(get_config('catalog.language'))

def get_cache_ttl_seconds() -> float:
    return float(get_config('cache.ttl_seconds'))

def get_cache_max_items() -> Optional[int]:
    value = get_config('cache.max_items')
    return int(value) if value is not None else None

def get_queue_interval_seconds() -> float:
    return float(get_config('queue.min_interval_seconds'))

def get_backoff_policy() -> BackoffPolicy:
    """Gets the retry policy as a BackoffPolicy value object."""
    return BackoffPolicy(
        max_retries=int(get_config('retry.max_retries')),
        base_delay=float(get_config('retry.base_delay_seconds')),
        factor=float(get_config('retry.backoff_factor')),
    )

def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values will override any existing configuration.

    Args:
        config_dict: Dictionary of configuration values to set
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")

def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")
