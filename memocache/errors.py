"""
Error types for memocache.

Only ConfigurationError is ever raised by the adapter. Every other error
is returned inside a CacheResult and reported to the log sink.
"""

from enum import Enum
from typing import Dict, Any, Optional
from pydantic import BaseModel, Field

from opentelemetry import trace


class CacheErrorKind(str, Enum):
    """Failure kinds returned by cache operations."""
    READ_TIMEOUT = "READ_TIMEOUT"
    READ_ERROR = "READ_ERROR"
    READ_KEY_NOT_FOUND = "READ_KEY_NOT_FOUND"
    JSON_PARSING_FAILED = "JSON_PARSING_FAILED"
    WRITE_ERROR = "WRITE_ERROR"
    WRITE_FAILED = "WRITE_FAILED"
    JSON_STRINGIFY_FAILED = "JSON_STRINGIFY_FAILED"


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class CacheLayerException(Exception):
    """Base exception for memocache."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        trace_id = None
        current_span = trace.get_current_span()
        if current_span and current_span.is_recording():
            span_context = current_span.get_span_context()
            if span_context.trace_id != 0:
                trace_id = f"{span_context.trace_id:032x}"

        return ErrorResponse(
            trace_id=trace_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class ConfigurationError(CacheLayerException):
    """Invalid adapter configuration. Raised at construction time."""

    def __init__(self, message: str = "Invalid cache configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class CacheError(CacheLayerException):
    """Base class for failures returned from get/set."""

    kind: CacheErrorKind
    default_message = "Cache operation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(self.kind.value, message or self.default_message, details)
        self.cause = cause


class ReadTimeoutError(CacheError):
    """Read deadline elapsed before the transport answered."""
    kind = CacheErrorKind.READ_TIMEOUT
    default_message = "Cache read timed out"


class ReadError(CacheError):
    """Transport failed while reading."""
    kind = CacheErrorKind.READ_ERROR
    default_message = "Cache read failed"


class KeyNotFoundError(CacheError):
    """Key absent from the cache (a miss)."""
    kind = CacheErrorKind.READ_KEY_NOT_FOUND
    default_message = "Cache key not found"


class DeserializationError(CacheError):
    """Cached payload could not be decoded."""
    kind = CacheErrorKind.JSON_PARSING_FAILED
    default_message = "Cached payload could not be parsed"


class SerializationError(CacheError):
    """Value could not be encoded for storage."""
    kind = CacheErrorKind.JSON_STRINGIFY_FAILED
    default_message = "Value could not be serialized"


class WriteError(CacheError):
    """Transport failed while writing."""
    kind = CacheErrorKind.WRITE_ERROR
    default_message = "Cache write failed"


class WriteNotAcknowledgedError(CacheError):
    """Transport completed without confirming the write."""
    kind = CacheErrorKind.WRITE_FAILED
    default_message = "Cache write was not acknowledged"
