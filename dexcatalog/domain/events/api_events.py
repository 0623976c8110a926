"""Domain Events related to catalog calls and resilience.

Examples include events for when requests are queued, retried, fail, or
succeed, and when a batch member is dropped.
"""

from dataclasses import dataclass, field
import logging
import time
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass

# --- Specific API Events ---

@dataclass
class RequestQueued(DomainEvent):
    """Event triggered when a task joins the request queue."""
    queue_depth: int
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallInitiated(DomainEvent):
    """Event triggered when an HTTP attempt is about to be made."""
    endpoint: str
    attempt_number: int
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallSucceeded(DomainEvent):
    """Event triggered when a catalog call succeeds."""
    endpoint: str
    latency_ms: float
    attempt_number: int
    timestamp: float = field(default_factory=time.time)

@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a retry is scheduled for a failed call."""
    endpoint: str
    attempt_number: int
    delay_seconds: float
    error_type: str
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallFailed(DomainEvent):
    """Event triggered when a call fails definitively (after retries)."""
    endpoint: str
    error_type: str
    error_message: str
    attempts: int
    timestamp: float = field(default_factory=time.time)

@dataclass
class BatchItemFailed(DomainEvent):
    """Event triggered when one member of a batch fetch is dropped."""
    identifier: Any
    error_type: str
    error_message: str
    timestamp: float = field(default_factory=time.time)


EventHandler = Callable[[DomainEvent], None]


def log_event(event: DomainEvent) -> None:
    """Default handler: events are only logged."""
    logger.debug(f"EVENT: {event}")


def dispatch_event(handler: Optional[EventHandler], event: DomainEvent) -> None:
    """Delivers an event, never letting a faulty handler break the caller."""
    try:
        (handler or log_event)(event)
    except Exception as e:
        logger.error(f"Event handler failed for {type(event).__name__}: {e}", exc_info=True)
