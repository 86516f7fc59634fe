"""Shared domain error messages and error types."""

from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class InvalidDateRange(ValidationError):
    """Start of a date range is not strictly before its end."""

    def __init__(self, start, end):
        super().__init__(
            f"Invalid date range: start {start} must be before end {end}",
            field="date_range",
        )
        self.start = start
        self.end = end


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class DatabaseError(DomainError):
    """Underlying storage failure (I/O, constraint violation, corruption)."""


class ConversionError(DomainError):
    """Exchange rate could not be obtained or applied.

    ``transient`` is True for failures worth retrying (network errors,
    timeouts, server errors) and False when retrying cannot help
    (unsupported currency pair, malformed payload).
    """

    def __init__(
        self,
        message: str,
        from_code: Optional[str] = None,
        to_code: Optional[str] = None,
        transient: bool = False,
    ):
        super().__init__(message)
        self.from_code = from_code
        self.to_code = to_code
        self.transient = transient


class CurrencyMismatchError(DomainError):
    """Amounts in different currencies were about to be summed unconverted."""


def entry_not_found(entry_id) -> str:
    """Return message for missing entry."""
    return f"Entry {entry_id} not found"


def invalid_ledger_path(path, suffix: str) -> str:
    """Return message for a ledger path without the reserved suffix."""
    return f"Ledger file '{path}' must have {suffix} extension"


def rate_unavailable(from_code: str, to_code: str) -> str:
    """Return message for a currency pair the rate source does not know."""
    return f"Exchange rate not available for {from_code} to {to_code}"


def mixed_currencies(codes) -> str:
    """Return message when a sum would mix currencies."""
    joined = ", ".join(sorted(codes))
    return (
        f"Cannot sum amounts in different currencies ({joined}) "
        "without a target currency"
    )
