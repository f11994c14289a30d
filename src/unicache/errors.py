"""
unicache — Core Error Types

Defines the exception hierarchy shared by every cache driver.
All exceptions inherit from UnicacheError for consistent error handling.

Callers branch on the exception class, never on the message:
- KeyNotFoundError: key absent (or present but already expired)
- PatternMatchingNotSupportedError: driver cannot scan keys by pattern
- InvalidTTLError: negative or non-numeric TTL
- UnsupportedValueTypeError: value has no supported serialization capability
- SerializationError: the value's own serialization capability failed
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Stable error codes, exposed through UnicacheError.to_dict()."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    NO_CACHE = "NO_CACHE"
    KEY_NOT_FOUND = "KEY_NOT_FOUND"
    PATTERN_MATCHING_NOT_SUPPORTED = "PATTERN_MATCHING_NOT_SUPPORTED"
    INVALID_TTL = "INVALID_TTL"
    UNSUPPORTED_VALUE_TYPE = "UNSUPPORTED_VALUE_TYPE"
    SERIALIZATION_ERROR = "SERIALIZATION_ERROR"
    CACHE_FAILURE = "CACHE_FAILURE"


class UnicacheError(Exception):
    """Base exception for all unicache errors."""

    code: ErrorCode = ErrorCode.CACHE_FAILURE

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a plain dictionary (for logs and API responses)."""
        return {
            "error": self.__class__.__name__,
            "error_code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(UnicacheError):
    """Raised when configuration is invalid or missing."""

    code = ErrorCode.CONFIGURATION_ERROR


class CacheError(UnicacheError):
    """
    Base exception for cache operation errors.

    The driver scheme, when known, is rendered in front of the message:
    ``unicache/ramcache: key not found: user:1``.
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        scheme: str | None = None,
    ):
        super().__init__(message, details)
        self.scheme = scheme
        if scheme:
            self.details.setdefault("scheme", scheme)

    def __str__(self) -> str:
        if self.scheme:
            return f"unicache/{self.scheme}: {self.message}"
        return f"unicache: {self.message}"


class NoCacheError(CacheError):
    """Raised when no cache implementation is registered for a URL scheme."""

    code = ErrorCode.NO_CACHE

    def __init__(self, scheme: str, details: dict[str, Any] | None = None):
        super().__init__(f"no cache implementation available for scheme: {scheme!r}", details)
        self.details.setdefault("requested_scheme", scheme)


class KeyNotFoundError(CacheError, KeyError):
    """Raised when a key is absent from the cache."""

    code = ErrorCode.KEY_NOT_FOUND

    def __init__(self, key: str, scheme: str | None = None):
        super().__init__(f"key not found: {key}", {"key": key}, scheme=scheme)
        self.key = key


class PatternMatchingNotSupportedError(CacheError):
    """Raised by drivers that cannot scan keys by pattern (Count / DelKeys)."""

    code = ErrorCode.PATTERN_MATCHING_NOT_SUPPORTED

    def __init__(self, operation: str, scheme: str | None = None):
        super().__init__(
            f"{operation} not supported: pattern matching not supported",
            {"operation": operation},
            scheme=scheme,
        )
        self.operation = operation


class InvalidTTLError(CacheError, ValueError):
    """Raised when a TTL is negative or not a duration."""

    code = ErrorCode.INVALID_TTL

    def __init__(self, ttl: Any, scheme: str | None = None):
        super().__init__(f"invalid TTL: {ttl!r}", {"ttl": repr(ttl)}, scheme=scheme)
        self.ttl = ttl


class UnsupportedValueTypeError(CacheError, TypeError):
    """Raised when a value matches none of the supported serialization capabilities."""

    code = ErrorCode.UNSUPPORTED_VALUE_TYPE

    def __init__(self, value_type: type, scheme: str | None = None):
        super().__init__(
            f"unsupported value type: {value_type.__qualname__}",
            {"value_type": value_type.__qualname__},
            scheme=scheme,
        )
        self.value_type = value_type


class SerializationError(CacheError):
    """Raised when a value's own serialization capability fails (see __cause__)."""

    code = ErrorCode.SERIALIZATION_ERROR

    def __init__(self, value_type: type, capability: str, scheme: str | None = None):
        super().__init__(
            f"failed to serialize {value_type.__qualname__} via {capability}",
            {"value_type": value_type.__qualname__, "capability": capability},
            scheme=scheme,
        )
        self.value_type = value_type
        self.capability = capability


class CacheOperationError(CacheError):
    """Raised when an external cache backend reports a failure."""

    pass


def extract_error_code(error: Exception) -> ErrorCode:
    """
    Extract the ErrorCode for an exception.

    Args:
        error: Exception to categorize

    Returns:
        The exception's ErrorCode, or CACHE_FAILURE for foreign exceptions
    """
    if isinstance(error, UnicacheError):
        return error.code
    return ErrorCode.CACHE_FAILURE
