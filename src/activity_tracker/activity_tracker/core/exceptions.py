from __future__ import annotations

from enum import Enum
from typing import Sequence


class ErrorKind(str, Enum):
    MISSING_FIELD = "missing_field"
    SUM_MISMATCH = "sum_mismatch"
    INVALID_VALUE = "invalid_value"


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules.

    ``mismatches`` lists every ``(weekday, actual_sum)`` pair that broke the
    allocation-sum rule, so callers can report all of them at once.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind = ErrorKind.INVALID_VALUE,
        mismatches: Sequence[tuple] = (),
    ):
        super().__init__(message)
        self.kind = kind
        self.mismatches = tuple(mismatches)


class StoreUnavailableError(DomainError):
    """Raised when the monthly data store cannot be read or written."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid or no user is logged in."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""
