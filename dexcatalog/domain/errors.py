"""Error taxonomy for the catalog data-access layer.

Every error raised by the package derives from CatalogError so callers can
catch the whole family in one place. There is no NotFound error: an
empty search or filter is an empty result, not an exception.
"""

from typing import Any, Dict, Optional


class CatalogError(Exception):
    """Base exception for the catalog data-access layer."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serializable view for UI error displays."""
        return {"code": self.code, "message": self.message, "details": self.details}


class ValidationError(CatalogError):
    """Malformed or missing input or payload field. Never retried."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.field = field
        merged = dict(details or {})
        if field is not None:
            merged.setdefault("field", field)
        super().__init__("VALIDATION_ERROR", message, merged)


class NetworkError(CatalogError):
    """Transport-level failure: connection refused, reset, unreadable body."""

    def __init__(self, message: str, url: Optional[str] = None):
        self.url = url
        super().__init__("NETWORK_ERROR", message, {"url": url} if url else None)


class HttpError(CatalogError):
    """Upstream answered with a non-2xx status."""

    def __init__(self, status_code: int, url: str, reason: str = ""):
        self.status_code = status_code
        self.url = url
        self.reason = reason
        message = f"HTTP {status_code}: {reason}" if reason else f"HTTP {status_code}"
        super().__init__("HTTP_ERROR", message, {"status_code": status_code, "url": url})


class RetryExhaustedError(CatalogError):
    """Raised when all retry attempts failed. Wraps the last underlying cause."""

    def __init__(self, endpoint: str, cause: Exception, attempts: int):
        self.endpoint = endpoint
        self.cause = cause
        self.attempts = attempts
        super().__init__(
            "RETRY_EXHAUSTED",
            f"Failed to fetch {endpoint} after {attempts} attempts: {cause}",
            {"endpoint": endpoint, "attempts": attempts, "cause": type(cause).__name__},
        )
