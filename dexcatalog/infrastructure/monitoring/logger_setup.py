"""Logging configuration for dexcatalog.

The catalog modules only ever log through `logging.getLogger(__name__)`;
this module decides where those records go. It also mutes the per-request
INFO lines that httpx and httpcore emit, which would otherwise drown the
catalog's own cache and retry messages.
"""

import logging
import sys
from typing import Iterable, List, Optional

DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Loggers of the HTTP stack underneath CatalogHttpClient.
NOISY_LOGGERS = ("httpx", "httpcore")


def _build_handlers(log_level: int, formatter: logging.Formatter, log_file: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file, encoding='utf-8'))
        except OSError as e:
            logging.error(f"Failed to open catalog log file {log_file}: {e}", exc_info=True)
    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
    return handlers


def quiet_third_party_loggers(log_level: int, names: Iterable[str] = NOISY_LOGGERS) -> None:
    """Raises the given loggers to WARNING unless `log_level` is already stricter."""
    threshold = max(log_level, logging.WARNING)
    for name in names:
        logging.getLogger(name).setLevel(threshold)


def setup_logging(
    log_level: int = DEFAULT_LOG_LEVEL,
    log_format: Optional[str] = None,
    log_file: Optional[str] = None,
    quiet_loggers: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """Routes catalog log records to stdout and, optionally, a UTF-8 file.

    Replaces any handlers already on the root logger, so calling it twice
    does not duplicate output.

    Args:
        log_level: Minimum level for the root logger and its handlers.
        log_format: Format string; DEFAULT_LOG_FORMAT when None.
        log_file: Optional file receiving the same records as stdout.
        quiet_loggers: HTTP-stack loggers held at WARNING or above.
    """
    quiet_loggers = tuple(quiet_loggers)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(log_format or DEFAULT_LOG_FORMAT)
    for handler in _build_handlers(log_level, formatter, log_file):
        root_logger.addHandler(handler)

    quiet_third_party_loggers(log_level, quiet_loggers)
    logging.info(
        f"Catalog logging ready: level={logging.getLevelName(log_level)}, "
        f"file={log_file or 'none'}, quieted={', '.join(quiet_loggers) or 'none'}"
    )
