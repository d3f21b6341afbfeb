"""Domain exceptions for cache-hooks.

Two families: programmer errors (raised immediately, never converted to a
miss) and backend failures (always swallowed at the controller boundary).
"""

from typing import Any


class CacheHooksException(Exception):
    """Base exception for all cache-hooks errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. key, field).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class CacheProgrammingError(CacheHooksException):
    """Misuse of the API. Propagates through the controller unchanged."""


class ReservedFieldException(CacheProgrammingError):
    """Raised when a request names the reserved completeness field as a member id."""

    def __init__(self, field: str) -> None:
        super().__init__(
            f"Cannot use sub id [{field}] as it is a reserved keyword",
            "RESERVED_FIELD",
            {"field": field},
        )


class DuplicateIdException(CacheProgrammingError):
    """Raised when the same member id is requested twice in one request."""

    def __init__(self, ids: list[Any], owner: Any = None) -> None:
        details: dict[str, Any] = {"ids": ids}
        if owner is not None:
            details["owner"] = owner
        super().__init__(
            f"Duplicate sub ids in request: {ids}", "DUPLICATE_ID", details
        )


class StorageShapeException(CacheProgrammingError):
    """Raised when a scalar key is accessed as a hash or vice versa."""

    def __init__(self, key: str, expected: str) -> None:
        """Initialize with the offending key and the shape the operation needed.

        Args:
            key: Namespaced key that holds the other shape.
            expected: "scalar" or "hash".
        """
        super().__init__(
            f"Key {key!r} does not hold a {expected} value",
            "WRONG_SHAPE",
            {"key": key, "expected": expected},
        )


class CacheUnavailableException(CacheHooksException):
    """Raised by a storage client whose backend is not connected."""

    def __init__(self, backend: str, reason: str | None = None) -> None:
        message = f"Cache backend {backend} unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, "CACHE_UNAVAILABLE", {"backend": backend})
