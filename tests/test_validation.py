"""Tests for input validation and pricing errors."""

from __future__ import annotations

from decimal import Decimal

import pytest

from services.errors import (
    ConfigurationMissing,
    ErrorCode,
    PricingValidationError,
    StoreReadFailure,
)
from services.validation import (
    normalize_country,
    normalize_currency,
    require_amount,
    require_quantity,
)


class TestRequireAmount:
    """Tests for require_amount."""

    def test_accepts_zero_and_positive(self) -> None:
        """Zero and positive amounts should pass through unchanged."""
        assert require_amount("price", Decimal("0")) == Decimal("0")
        assert require_amount("price", Decimal("12.50")) == Decimal("12.50")

    @pytest.mark.parametrize("value", [Decimal("-0.01"), Decimal("NaN"), Decimal("Infinity")])
    def test_rejects_negative_and_non_finite(self, value: Decimal) -> None:
        """Negative, NaN and infinite amounts should be rejected."""
        with pytest.raises(PricingValidationError) as exc_info:
            require_amount("price", value)

        assert exc_info.value.field == "price"
        assert exc_info.value.code == ErrorCode.VALIDATION

    def test_rejects_floats(self) -> None:
        """Binary floats should not be accepted as money."""
        with pytest.raises(PricingValidationError, match="must be a Decimal"):
            require_amount("price", 1.5)  # type: ignore[arg-type]


class TestRequireQuantity:
    """Tests for require_quantity."""

    def test_accepts_positive(self) -> None:
        """Positive integers should pass."""
        assert require_quantity("quantity", 3) == 3

    @pytest.mark.parametrize("value", [0, -1, True, 1.0])
    def test_rejects_invalid(self, value: object) -> None:
        """Zero, negatives, booleans and floats should be rejected."""
        with pytest.raises(PricingValidationError):
            require_quantity("quantity", value)  # type: ignore[arg-type]


class TestNormalizeCodes:
    """Tests for country and currency normalization."""

    def test_country_is_upper_cased(self) -> None:
        """Country codes should be upper-cased and stripped."""
        assert normalize_country("origin_country", " np ") == "NP"

    @pytest.mark.parametrize("value", ["", "N", "N1", "NEPAL"])
    def test_bad_country_rejected(self, value: str) -> None:
        """Malformed country codes should be rejected."""
        with pytest.raises(PricingValidationError) as exc_info:
            normalize_country("origin_country", value)

        assert exc_info.value.field == "origin_country"

    def test_currency_none_passes(self) -> None:
        """An absent currency should stay absent."""
        assert normalize_currency("currency", None) is None

    def test_currency_is_upper_cased(self) -> None:
        """Currency codes should be upper-cased."""
        assert normalize_currency("currency", "npr") == "NPR"

    def test_bad_currency_rejected(self) -> None:
        """Currency codes must be three letters."""
        with pytest.raises(PricingValidationError, match="invalid currency code"):
            normalize_currency("currency", "RS")


class TestPricingIssues:
    """Tests for the issue factories."""

    def test_configuration_missing(self) -> None:
        """ConfigurationMissing should not count as a store failure."""
        issue = ConfigurationMissing(source="country settings")

        assert issue.code == ErrorCode.CONFIGURATION_MISSING
        assert issue.is_store_failure is False
        assert str(issue) == "[country settings] configuration_missing: No configuration found"

    def test_store_read_failure(self) -> None:
        """StoreReadFailure should carry the underlying error."""
        issue = StoreReadFailure(source="payment ledger", details="timeout")

        assert issue.is_store_failure is True
        assert issue.details == "timeout"

    def test_validation_error_message(self) -> None:
        """PricingValidationError should prefix the field."""
        error = PricingValidationError("discount", "cannot be negative")

        assert str(error) == "discount: cannot be negative"
        assert isinstance(error, ValueError)
