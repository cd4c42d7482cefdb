"""Types for customs duty and VAT tier matching."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from services.errors import PricingValidationError


class LogicType(str, Enum):
    """How a tier combines its price and weight conditions."""

    AND = "AND"
    OR = "OR"


@dataclass(frozen=True, slots=True)
class CustomsTier:
    """
    A priority-ordered customs/VAT rule for a route.

    Unset bounds always match. Prices are in origin currency, weights in kg.

    Attributes:
        origin_country: Origin country code.
        destination_country: Destination country code.
        rule_name: Display name of the rule.
        customs_percentage: Customs duty percentage when the tier applies.
        vat_percentage: VAT percentage when the tier applies.
        logic_type: Whether both (AND) or either (OR) condition must hold.
        priority_order: Lower values are evaluated first.
        price_min: Inclusive lower price bound.
        price_max: Inclusive upper price bound.
        weight_min: Inclusive lower weight bound.
        weight_max: Inclusive upper weight bound.
        is_active: Whether the tier is in use.
    """

    origin_country: str
    destination_country: str
    rule_name: str
    customs_percentage: Decimal
    vat_percentage: Decimal
    logic_type: LogicType = LogicType.AND
    priority_order: int = 1
    price_min: Decimal | None = None
    price_max: Decimal | None = None
    weight_min: Decimal | None = None
    weight_max: Decimal | None = None
    is_active: bool = True

    def __post_init__(self) -> None:
        """Validate logic type and ranges."""
        if not isinstance(self.logic_type, LogicType):
            try:
                object.__setattr__(self, "logic_type", LogicType(str(self.logic_type).upper()))
            except ValueError as e:
                raise PricingValidationError("logic_type", "must be 'AND' or 'OR'") from e
        for field, low, high in (
            ("price", self.price_min, self.price_max),
            ("weight", self.weight_min, self.weight_max),
        ):
            if low is not None and high is not None and low > high:
                raise PricingValidationError(f"{field}_min", f"cannot exceed {field}_max")

    def price_matches(self, price: Decimal) -> bool:
        """Check the price condition."""
        return (self.price_min is None or price >= self.price_min) and (
            self.price_max is None or price <= self.price_max
        )

    def weight_matches(self, weight: Decimal) -> bool:
        """Check the weight condition."""
        return (self.weight_min is None or weight >= self.weight_min) and (
            self.weight_max is None or weight <= self.weight_max
        )

    def applies_to(self, price: Decimal, weight: Decimal) -> bool:
        """Combine both conditions under the tier's logic type."""
        if self.logic_type == LogicType.AND:
            return self.price_matches(price) and self.weight_matches(weight)
        return self.price_matches(price) or self.weight_matches(weight)


@dataclass(frozen=True, slots=True)
class CustomsTierResult:
    """
    Outcome of customs tier matching.

    Attributes:
        customs_percentage: Customs duty percentage to apply.
        vat_percentage: VAT percentage to apply.
        applied_tier: The winning tier, or None on fallback.
        fallback_used: True when no tier decided the percentages.
        route: Route label, e.g. 'US→NP'.
        warning: Why the fallback was used.
    """

    customs_percentage: Decimal
    vat_percentage: Decimal
    applied_tier: CustomsTier | None
    fallback_used: bool
    route: str
    warning: str | None = None

    def as_dict(self) -> dict[str, str | bool | None]:
        """Serialise for persistence or API output."""
        return {
            "customs_percentage": str(self.customs_percentage),
            "vat_percentage": str(self.vat_percentage),
            "applied_tier": self.applied_tier.rule_name if self.applied_tier else None,
            "fallback_used": self.fallback_used,
            "route": self.route,
            "warning": self.warning,
        }
