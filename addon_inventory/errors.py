"""
Error Definitions and Classification for addon-inventory

This module defines the project exception hierarchy and the classifier that
sorts remote AWS errors into the three policies the pipeline applies:
ignorable (resource vanished), fatal (authorization or configuration) and
everything else (surfaced unchanged).
"""

from typing import Any, Dict, FrozenSet, Iterable, Optional

from botocore.exceptions import (
    ClientError,
    NoCredentialsError,
    NoRegionError,
    PartialCredentialsError,
)

DEFAULT_IGNORABLE_ERROR_CODES = (
    "ResourceNotFoundException",
    "InvalidParameterException",
    "InvalidParameter",
)

DEFAULT_FATAL_ERROR_CODES = (
    "AccessDeniedException",
    "AccessDenied",
    "UnauthorizedOperation",
    "UnrecognizedClientException",
    "InvalidClientTokenId",
    "ExpiredTokenException",
    "ExpiredToken",
    "AuthFailure",
    "SignatureDoesNotMatch",
)

# Raised by botocore before any request is sent
_CREDENTIAL_ERRORS = (NoCredentialsError, PartialCredentialsError, NoRegionError)


class InventoryError(Exception):
    """Base exception class for all addon-inventory errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigurationError(InventoryError):
    """Raised when configuration is invalid or inconsistent."""

    def __init__(self, field: str, value: Any, expected: str, **details):
        message = f"Invalid configuration for {field}: got {value}, expected {expected}"

        super().__init__(message, {"field": field, "value": value, "expected": expected, **details})
        self.field = field
        self.value = value
        self.expected = expected


class QueryError(InventoryError):
    """Raised when a query cannot be evaluated as written."""

    def __init__(self, reason: str, **details):
        super().__init__(f"Invalid query: {reason}", {"reason": reason, **details})
        self.reason = reason


class HydrationMismatchError(InventoryError):
    """Raised when a detail call returns a record for a different key."""

    def __init__(self, expected: Any, actual: Any, **details):
        message = f"Detail call for {expected} returned a record for {actual}"

        super().__init__(message, {"expected": expected, "actual": actual, **details})
        self.expected = expected
        self.actual = actual


def error_code(exc: BaseException) -> Optional[str]:
    """Return the AWS error code carried by *exc*, or ``None``."""
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    return None


def operation_name(exc: BaseException) -> Optional[str]:
    """Return the name of the remote operation that raised *exc*."""
    return getattr(exc, "operation_name", None)


class ErrorClassifier:
    """Sorts remote errors by error code.

    Both code sets come from configuration so the provider contract can be
    revised without touching the pipeline.
    """

    def __init__(
        self,
        ignorable_codes: Iterable[str] = DEFAULT_IGNORABLE_ERROR_CODES,
        fatal_codes: Iterable[str] = DEFAULT_FATAL_ERROR_CODES,
    ):
        self.ignorable_codes: FrozenSet[str] = frozenset(ignorable_codes)
        self.fatal_codes: FrozenSet[str] = frozenset(fatal_codes)

    @classmethod
    def from_config(cls, config) -> "ErrorClassifier":
        return cls(config.ignorable_error_codes, config.fatal_error_codes)

    def is_ignorable(self, exc: BaseException) -> bool:
        """True when *exc* means the resource is gone (NotFound / InvalidIdentifier)."""
        return error_code(exc) in self.ignorable_codes

    def is_fatal(self, exc: BaseException) -> bool:
        """True for authorization and configuration failures."""
        if isinstance(exc, _CREDENTIAL_ERRORS):
            return True
        return error_code(exc) in self.fatal_codes
