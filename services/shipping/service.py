"""International shipping cost calculation."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from core.config import get_settings
from core.logging import get_logger
from core.result import Failure
from services.currency.rounding import convert, convert_back, round2
from services.shipping.types import ShippingCost, ShippingMethod, WeightUnit
from services.stores.base import read_store
from services.validation import require_amount

if TYPE_CHECKING:
    from services.shipping.types import ShippingRoute
    from services.stores.base import CountrySettings, CountrySettingsStore, RouteStore

logger = get_logger(__name__)

ONE = Decimal("1")
HUNDRED = Decimal("100")


class ShippingCostEngine:
    """
    Computes international shipping cost for a route.

    A configured route is priced from its base cost, per-weight cost, weight
    tiers and price percentage. Without a route, the destination country's
    generic formula is used. If neither can be read, a hard default keeps
    quote creation moving.

    Example:
        >>> engine = ShippingCostEngine(routes, countries)
        >>> engine.get_shipping_cost("US", "NP", Decimal("2"), Decimal("100")).cost
        Decimal('17.00')
    """

    def __init__(self, route_store: RouteStore, settings_store: CountrySettingsStore) -> None:
        """
        Initialize the engine.

        Args:
            route_store: Source of shipping routes.
            settings_store: Source of country settings.
        """
        self._routes = route_store
        self._countries = settings_store

    def get_shipping_cost(
        self,
        origin: str,
        destination: str,
        weight_kg: Decimal,
        price: Decimal,
        exchange_rate: Decimal = ONE,
    ) -> ShippingCost:
        """
        Calculate shipping cost in origin currency.

        Args:
            origin: Origin country code.
            destination: Destination country code.
            weight_kg: Total shipment weight in kilograms.
            price: Total item price in origin currency.
            exchange_rate: Origin-to-destination rate of the quote being priced,
                used by the generic formula whose settings are in destination currency.

        Returns:
            The shipping cost with carrier and method.
        """
        require_amount("weight_kg", weight_kg)
        require_amount("price", price)

        route = read_store("shipping route", self._routes.find_active_route, origin, destination)
        if isinstance(route, Failure):
            if route.error.is_store_failure:
                return self._default(str(route.error))
            logger.info(
                "No active route, using generic formula", origin=origin, destination=destination
            )
            return self._from_country_settings(destination, weight_kg, price, exchange_rate)

        return self.calculate_route_cost(route.value, weight_kg, price)

    def calculate_route_cost(
        self,
        route: ShippingRoute,
        weight_kg: Decimal,
        price: Decimal,
    ) -> ShippingCost:
        """
        Price a shipment on a specific route.

        The weight is converted into the route's unit. A matching weight tier
        acts as a floor on the weight-based cost; the price percentage is
        added on top. Tiers are checked in their stored order and the first
        match wins.

        Args:
            route: The route configuration.
            weight_kg: Shipment weight in kilograms.
            price: Item price in origin currency.

        Returns:
            Route-specific shipping cost.
        """
        weight = route.weight_unit.from_kg(weight_kg)
        base_cost = route.base_shipping_cost + weight * route.cost_per_kg

        for tier in route.weight_tiers:
            if tier.contains(weight):
                base_cost = max(base_cost, tier.cost)
                break

        percentage_cost = price * route.cost_percentage / HUNDRED
        carrier = route.carriers[0] if route.carriers else None
        settings = get_settings().pricing

        cost = round2(base_cost + percentage_cost)
        logger.debug(
            "Route shipping calculated",
            route_id=route.id,
            weight=weight,
            unit=route.weight_unit,
            cost=cost,
        )
        return ShippingCost(
            cost=cost,
            carrier=carrier.name if carrier else settings.default_carrier,
            delivery_days=carrier.days if carrier else settings.default_delivery_days,
            method=ShippingMethod.ROUTE_SPECIFIC,
            route_id=route.id,
            weight_in_route_unit=weight,
        )

    def _from_country_settings(
        self,
        destination: str,
        weight_kg: Decimal,
        price: Decimal,
        exchange_rate: Decimal,
    ) -> ShippingCost:
        settings = read_store(
            "country settings", self._countries.get_country_settings, destination
        )
        if isinstance(settings, Failure):
            return self._default(str(settings.error))
        return self.calculate_formula_cost(settings.value, weight_kg, price, exchange_rate)

    def calculate_formula_cost(
        self,
        settings: CountrySettings,
        weight_kg: Decimal,
        price: Decimal,
        exchange_rate: Decimal = ONE,
    ) -> ShippingCost:
        """
        Price a shipment with the generic per-country formula.

        ``min_shipping + price * additional_shipping% + (weight - 1) * additional_weight``,
        with the weight term only above the first unit. The formula runs in
        the destination currency and the result is converted back.

        Args:
            settings: Destination country settings.
            weight_kg: Shipment weight in kilograms.
            price: Item price in origin currency.
            exchange_rate: Origin-to-destination rate.

        Returns:
            Formula-based shipping cost in origin currency.
        """
        weight = WeightUnit.parse(settings.weight_unit).from_kg(weight_kg)
        local_price = convert(price, exchange_rate)

        local_cost = settings.min_shipping + local_price * settings.additional_shipping / HUNDRED
        if weight > ONE:
            local_cost += (weight - ONE) * settings.additional_weight

        pricing = get_settings().pricing
        return ShippingCost(
            cost=round2(convert_back(local_cost, exchange_rate)),
            carrier=pricing.default_carrier,
            delivery_days=pricing.default_delivery_days,
            method=ShippingMethod.COUNTRY_SETTINGS,
            weight_in_route_unit=weight,
            warning=f"No shipping route configured; generic {settings.code} formula used",
        )

    def _default(self, reason: str) -> ShippingCost:
        pricing = get_settings().pricing
        logger.warning("Using default shipping cost", reason=reason)
        return ShippingCost(
            cost=round2(pricing.default_shipping_cost),
            carrier=pricing.default_carrier,
            delivery_days=pricing.default_delivery_days,
            method=ShippingMethod.DEFAULT,
            warning=f"Shipping configuration unavailable ({reason}); default cost used",
        )
