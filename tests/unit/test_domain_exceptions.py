"""Tests for domain exceptions (error_code, message, details)."""

import pytest

from cache_hooks.domain.exceptions import (
    CacheHooksException,
    CacheProgrammingError,
    CacheUnavailableException,
    DuplicateIdException,
    ReservedFieldException,
    StorageShapeException,
)


def test_cache_hooks_exception_default_error_code() -> None:
    """Base CacheHooksException uses class name as error_code when not provided."""
    exc = CacheHooksException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "CacheHooksException"
    assert exc.details == {}


def test_cache_hooks_exception_custom_error_code_and_details() -> None:
    exc = CacheHooksException("Oops", error_code="CUSTOM", details={"key": "value"})
    assert exc.error_code == "CUSTOM"
    assert exc.details == {"key": "value"}
    assert str(exc) == "Oops"


def test_reserved_field_exception() -> None:
    exc = ReservedFieldException("$")
    assert exc.error_code == "RESERVED_FIELD"
    assert exc.details == {"field": "$"}
    assert "[$]" in exc.message


def test_duplicate_id_exception_with_and_without_owner() -> None:
    exc = DuplicateIdException(["a"])
    assert exc.error_code == "DUPLICATE_ID"
    assert exc.details == {"ids": ["a"]}
    assert DuplicateIdException([1], owner=9).details == {"ids": [1], "owner": 9}


def test_storage_shape_exception() -> None:
    exc = StorageShapeException("UserId:1", "hash")
    assert exc.error_code == "WRONG_SHAPE"
    assert exc.details == {"key": "UserId:1", "expected": "hash"}


def test_cache_unavailable_exception() -> None:
    """CacheUnavailableException includes the optional reason in the message."""
    assert CacheUnavailableException("redis").message == "Cache backend redis unavailable"
    exc = CacheUnavailableException("redis", "disconnected")
    assert exc.message == "Cache backend redis unavailable: disconnected"
    assert exc.details == {"backend": "redis"}


@pytest.mark.parametrize(
    "exc",
    [
        ReservedFieldException("$"),
        DuplicateIdException(["a"]),
        StorageShapeException("k", "scalar"),
    ],
)
def test_programming_errors_share_base(exc: CacheHooksException) -> None:
    """Every API-misuse error is a CacheProgrammingError."""
    assert isinstance(exc, CacheProgrammingError)
    assert isinstance(exc, CacheHooksException)


def test_unavailable_is_not_programming_error() -> None:
    assert not isinstance(CacheUnavailableException("redis"), CacheProgrammingError)
