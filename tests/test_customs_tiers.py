"""Tests for customs tier matching."""

from __future__ import annotations

from decimal import Decimal

import pytest

from services.customs.service import CustomsTierCalculator
from services.customs.types import CustomsTier, LogicType
from services.errors import PricingValidationError
from services.stores.memory import InMemoryCustomsTierStore
from tests.fakes import FailingStore


def _tier(name: str, priority: int, customs: str, **bounds: object) -> CustomsTier:
    return CustomsTier(
        origin_country="US",
        destination_country="NP",
        rule_name=name,
        customs_percentage=Decimal(customs),
        vat_percentage=Decimal("13"),
        priority_order=priority,
        **bounds,
    )


class TestCustomsTier:
    """Tests for CustomsTier conditions."""

    def test_unset_bounds_always_match(self) -> None:
        """A tier without bounds should apply to anything."""
        tier = _tier("Catch all", 1, "10")

        assert tier.applies_to(Decimal("0"), Decimal("0")) is True
        assert tier.applies_to(Decimal("99999"), Decimal("500")) is True

    def test_and_requires_both(self) -> None:
        """AND tiers should need the price and weight conditions."""
        tier = _tier(
            "Small parcel", 1, "5", price_max=Decimal("100"), weight_max=Decimal("2")
        )

        assert tier.applies_to(Decimal("50"), Decimal("1")) is True
        assert tier.applies_to(Decimal("50"), Decimal("3")) is False

    def test_or_requires_either(self) -> None:
        """OR tiers should apply when one condition holds."""
        tier = _tier(
            "Heavy or expensive",
            1,
            "20",
            logic_type=LogicType.OR,
            price_min=Decimal("500"),
            weight_min=Decimal("10"),
        )

        assert tier.applies_to(Decimal("50"), Decimal("12")) is True
        assert tier.applies_to(Decimal("600"), Decimal("1")) is True
        assert tier.applies_to(Decimal("50"), Decimal("1")) is False

    def test_logic_type_parsed_from_string(self) -> None:
        """Lower-case logic strings should be accepted."""
        tier = _tier("Parsed", 1, "5", logic_type="or")

        assert tier.logic_type == LogicType.OR

    def test_unknown_logic_type_rejected(self) -> None:
        """Logic types other than AND/OR should be rejected."""
        with pytest.raises(PricingValidationError) as exc_info:
            _tier("Broken", 1, "5", logic_type="XOR")

        assert exc_info.value.field == "logic_type"

    def test_inverted_price_range_rejected(self) -> None:
        """price_min above price_max should be rejected."""
        with pytest.raises(PricingValidationError) as exc_info:
            _tier("Broken", 1, "5", price_min=Decimal("100"), price_max=Decimal("50"))

        assert exc_info.value.field == "price_min"


class TestCalculateCustomsTier:
    """Tests for CustomsTierCalculator.calculate_customs_tier."""

    def test_lowest_priority_number_wins(self) -> None:
        """The first matching tier by priority should decide."""
        store = InMemoryCustomsTierStore(
            [
                _tier("Broad", 2, "15", price_max=Decimal("1000")),
                _tier("Cheap", 1, "5", price_max=Decimal("100")),
            ]
        )
        calculator = CustomsTierCalculator(store)

        result = calculator.calculate_customs_tier("US", "NP", Decimal("80"), Decimal("1"))

        assert result.customs_percentage == Decimal("5")
        assert result.vat_percentage == Decimal("13")
        assert result.applied_tier is not None
        assert result.applied_tier.rule_name == "Cheap"
        assert result.fallback_used is False
        assert result.route == "US→NP"

    def test_and_tier_failing_on_weight_falls_through(self) -> None:
        """An AND tier missing on weight should yield to the next tier."""
        store = InMemoryCustomsTierStore(
            [
                _tier(
                    "Expensive and heavy",
                    1,
                    "10",
                    price_min=Decimal("100"),
                    weight_min=Decimal("5"),
                ),
                _tier("Everything else", 2, "5", logic_type=LogicType.OR),
            ]
        )

        result = CustomsTierCalculator(store).calculate_customs_tier(
            "US", "NP", Decimal("150"), Decimal("3")
        )

        assert result.customs_percentage == Decimal("5")

    def test_later_tier_used_when_first_misses(self) -> None:
        """A non-matching high-priority tier should be skipped."""
        store = InMemoryCustomsTierStore(
            [
                _tier("Cheap", 1, "5", price_max=Decimal("100")),
                _tier("Broad", 2, "15", price_max=Decimal("1000")),
            ]
        )

        result = CustomsTierCalculator(store).calculate_customs_tier(
            "US", "NP", Decimal("300"), Decimal("1")
        )

        assert result.customs_percentage == Decimal("15")

    def test_inactive_tiers_are_skipped(self) -> None:
        """Inactive tiers should not be evaluated."""
        store = InMemoryCustomsTierStore([_tier("Retired", 1, "50", is_active=False)])

        result = CustomsTierCalculator(store).calculate_customs_tier(
            "US", "NP", Decimal("80"), Decimal("1")
        )

        assert result.fallback_used is True

    def test_no_tiers_uses_caller_fallback(self) -> None:
        """Without tiers, the route-level percentages should be used."""
        calculator = CustomsTierCalculator(InMemoryCustomsTierStore())

        result = calculator.calculate_customs_tier(
            "US",
            "NP",
            Decimal("80"),
            Decimal("1"),
            fallback_customs_percentage=Decimal("10"),
            fallback_vat_percentage=Decimal("13"),
        )

        assert result.customs_percentage == Decimal("10")
        assert result.vat_percentage == Decimal("13")
        assert result.applied_tier is None
        assert result.fallback_used is True
        assert "No customs tiers configured" in result.warning

    def test_no_match_defaults_to_zero(self) -> None:
        """An unmatched item without caller fallback should get 0%."""
        store = InMemoryCustomsTierStore([_tier("Cheap", 1, "5", price_max=Decimal("100"))])

        result = CustomsTierCalculator(store).calculate_customs_tier(
            "US", "NP", Decimal("300"), Decimal("1")
        )

        assert result.customs_percentage == Decimal("0")
        assert result.vat_percentage == Decimal("0")
        assert "No customs tier matched" in result.warning

    def test_store_failure_uses_fallback(self) -> None:
        """A failing tier store should not raise."""
        result = CustomsTierCalculator(FailingStore()).calculate_customs_tier(
            "US", "NP", Decimal("80"), Decimal("1"), fallback_customs_percentage=Decimal("10")
        )

        assert result.fallback_used is True
        assert result.customs_percentage == Decimal("10")
        assert "unavailable" in result.warning

    def test_negative_price_rejected(self) -> None:
        """Negative prices should be a validation error."""
        calculator = CustomsTierCalculator(InMemoryCustomsTierStore())

        with pytest.raises(PricingValidationError):
            calculator.calculate_customs_tier("US", "NP", Decimal("-1"), Decimal("1"))

    def test_as_dict_names_the_tier(self) -> None:
        """as_dict should expose the tier name."""
        store = InMemoryCustomsTierStore([_tier("Catch all", 1, "10")])

        data = (
            CustomsTierCalculator(store)
            .calculate_customs_tier("US", "NP", Decimal("80"), Decimal("1"))
            .as_dict()
        )

        assert data["applied_tier"] == "Catch all"
        assert data["customs_percentage"] == "10"
        assert data["fallback_used"] is False
