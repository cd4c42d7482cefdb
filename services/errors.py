"""Error types for the pricing engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for pricing issues."""

    CONFIGURATION_MISSING = "configuration_missing"
    STORE_READ_FAILURE = "store_read_failure"
    VALIDATION = "validation"
    DUPLICATE_PAYMENT = "duplicate_payment"


@dataclass(frozen=True, slots=True)
class PricingIssue:
    """
    A recoverable problem met while reading collaborator data.

    Carried by ``Failure`` results; components answer it with their
    documented fallback value and surface ``message`` as a warning.

    Attributes:
        code: Error code identifying the kind of issue.
        message: Human-readable description.
        source: Name of the store or lookup that produced it.
        details: Additional details (optional).
    """

    code: ErrorCode
    message: str
    source: str
    details: str | None = None

    def __str__(self) -> str:
        """Return string representation of the issue."""
        return f"[{self.source}] {self.code.value}: {self.message}"

    @property
    def is_store_failure(self) -> bool:
        """Check if the issue came from a failing store rather than missing data."""
        return self.code == ErrorCode.STORE_READ_FAILURE


def ConfigurationMissing(
    source: str,
    message: str = "No configuration found",
    details: str | None = None,
) -> PricingIssue:
    """Create a configuration-missing issue."""
    return PricingIssue(
        code=ErrorCode.CONFIGURATION_MISSING,
        message=message,
        source=source,
        details=details,
    )


def StoreReadFailure(
    source: str,
    message: str = "Store read failed",
    details: str | None = None,
) -> PricingIssue:
    """Create a store-read-failure issue."""
    return PricingIssue(
        code=ErrorCode.STORE_READ_FAILURE,
        message=message,
        source=source,
        details=details,
    )


class PricingValidationError(ValueError):
    """Invalid input rejected before the pricing pipeline runs."""

    def __init__(self, field: str, message: str) -> None:
        """
        Initialize with the offending field and a message.

        Args:
            field: Name of the invalid input field.
            message: Description of the problem.
        """
        self.field = field
        self.message = message
        self.code = ErrorCode.VALIDATION
        super().__init__(f"{field}: {message}")


class DuplicatePaymentError(PricingValidationError):
    """A payment with the same reference is already on the quote's ledger."""

    def __init__(self, field: str, reference: str, existing_id: str | None = None) -> None:
        """
        Initialize with the reference that was seen before.

        Args:
            field: 'reference_number' or 'gateway_transaction_id'.
            reference: The repeated reference.
            existing_id: Id of the entry already recorded (if known).
        """
        super().__init__(field, f"payment {reference} is already recorded")
        self.code = ErrorCode.DUPLICATE_PAYMENT
        self.existing_id = existing_id
