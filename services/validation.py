"""Input guards applied before any pricing computation."""

from __future__ import annotations

import re
from decimal import Decimal

from services.errors import PricingValidationError

COUNTRY_CODE_RE = re.compile(r"^[A-Z]{2,3}$")
CURRENCY_CODE_RE = re.compile(r"^[A-Z]{3}$")


def require_amount(field: str, value: Decimal) -> Decimal:
    """
    Reject NaN, infinite and negative amounts.

    Args:
        field: Input name used in the error.
        value: Amount to check.

    Returns:
        The value unchanged.

    Raises:
        PricingValidationError: If the amount is not a finite, non-negative number.
    """
    if not isinstance(value, Decimal):
        raise PricingValidationError(field, "must be a Decimal")
    if not value.is_finite():
        raise PricingValidationError(field, "must be a finite number")
    if value < 0:
        raise PricingValidationError(field, "cannot be negative")
    return value


def require_quantity(field: str, value: int) -> int:
    """Reject quantities below one."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise PricingValidationError(field, "must be an integer")
    if value < 1:
        raise PricingValidationError(field, "must be at least 1")
    return value


def normalize_country(field: str, value: str) -> str:
    """Upper-case a country code and check its shape."""
    code = (value or "").upper().strip()
    if not COUNTRY_CODE_RE.match(code):
        raise PricingValidationError(field, f"invalid country code {value!r}")
    return code


def normalize_currency(field: str, value: str | None) -> str | None:
    """Upper-case an optional currency code and check its shape."""
    if value is None:
        return None
    code = value.upper().strip()
    if not CURRENCY_CODE_RE.match(code):
        raise PricingValidationError(field, f"invalid currency code {value!r}")
    return code
