"""Types for international shipping cost calculation."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

KG_TO_LB = Decimal("2.20462")


class WeightUnit(str, Enum):
    """Weight unit a route's tiers and per-unit costs are expressed in."""

    KG = "kg"
    LB = "lb"

    @classmethod
    def parse(cls, value: str | None) -> WeightUnit:
        """Parse a stored unit, accepting 'lbs' and defaulting to kg."""
        normalized = (value or "kg").lower().strip()
        if normalized in {"lb", "lbs"}:
            return cls.LB
        return cls.KG

    def from_kg(self, weight_kg: Decimal) -> Decimal:
        """Convert a weight in kilograms into this unit."""
        if self == WeightUnit.LB:
            return weight_kg * KG_TO_LB
        return weight_kg


class ShippingMethod(str, Enum):
    """How a shipping cost was obtained."""

    ROUTE_SPECIFIC = "route_specific"
    COUNTRY_SETTINGS = "country_settings"
    DEFAULT = "default"


@dataclass(frozen=True, slots=True)
class WeightTier:
    """
    A weight band with a cost floor.

    Attributes:
        min: Inclusive lower bound, in the route's weight unit.
        max: Inclusive upper bound; None means unbounded.
        cost: Minimum shipping cost for weights in the band.
    """

    min: Decimal
    max: Decimal | None
    cost: Decimal

    def __post_init__(self) -> None:
        """Validate the band."""
        if self.max is not None and self.min > self.max:
            msg = "weight tier min cannot be greater than max"
            raise ValueError(msg)

    def contains(self, weight: Decimal) -> bool:
        """Check if a weight falls inside the band."""
        return weight >= self.min and (self.max is None or weight <= self.max)


@dataclass(frozen=True, slots=True)
class Carrier:
    """A carrier offered on a route."""

    name: str
    days: str


@dataclass(frozen=True, slots=True)
class ShippingRoute:
    """
    Route-specific shipping configuration between two countries.

    Costs are denominated in the origin currency.

    Attributes:
        origin_country: Origin country code.
        destination_country: Destination country code.
        base_shipping_cost: Fixed cost per shipment.
        cost_per_kg: Cost per unit of weight (in ``weight_unit``).
        cost_percentage: Percentage of item price added on top.
        weight_tiers: Weight bands checked in order.
        carriers: Carriers offered; the first one is quoted.
        weight_unit: Unit of tiers and ``cost_per_kg``.
        exchange_rate: Origin-to-destination rate configured on the route.
        is_active: Whether the route may be used for quoting.
        id: Identifier in the route store.
    """

    origin_country: str
    destination_country: str
    base_shipping_cost: Decimal
    cost_per_kg: Decimal
    cost_percentage: Decimal = Decimal("0")
    weight_tiers: tuple[WeightTier, ...] = ()
    carriers: tuple[Carrier, ...] = ()
    weight_unit: WeightUnit = WeightUnit.KG
    exchange_rate: Decimal | None = None
    is_active: bool = True
    id: int | None = None


@dataclass(frozen=True, slots=True)
class ShippingCost:
    """
    International shipping cost for a quote, in origin currency.

    Attributes:
        cost: Shipping cost rounded to cents.
        carrier: Carrier quoted.
        delivery_days: Delivery window, e.g. '7-14'.
        method: Whether the route, the generic formula or the default was used.
        route_id: Route used, for route-specific costs.
        weight_in_route_unit: Weight the route rules were evaluated at.
        warning: Explanation when a fallback was used.
    """

    cost: Decimal
    carrier: str
    delivery_days: str
    method: ShippingMethod
    route_id: int | None = None
    weight_in_route_unit: Decimal | None = None
    warning: str | None = None

    @property
    def is_fallback(self) -> bool:
        """Check if the cost did not come from a configured route."""
        return self.method != ShippingMethod.ROUTE_SPECIFIC

    def as_dict(self) -> dict[str, str | None]:
        """Serialise for persistence or API output."""
        return {
            "cost": str(self.cost),
            "carrier": self.carrier,
            "delivery_days": self.delivery_days,
            "method": self.method.value,
            "route_id": str(self.route_id) if self.route_id is not None else None,
            "warning": self.warning,
        }
