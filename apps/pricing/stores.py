"""Database-backed implementations of the pricing store contracts."""

from __future__ import annotations

from typing import TYPE_CHECKING

from apps.pricing.models import CountrySettings, CustomsTier, ShippingRoute

if TYPE_CHECKING:
    from services.customs.types import CustomsTier as CustomsTierRecord
    from services.shipping.types import ShippingRoute as ShippingRouteRecord
    from services.stores.base import CountrySettings as CountrySettingsRecord


class OrmRouteStore:
    """Reads shipping routes from the ``shipping_routes`` table."""

    def find_active_route(self, origin: str, destination: str) -> ShippingRouteRecord | None:
        """Return the active route between two countries, if any."""
        route = ShippingRoute.objects.filter(
            origin_country=origin,
            destination_country=destination,
            is_active=True,
        ).first()
        return route.to_record() if route else None


class OrmCountrySettingsStore:
    """Reads per-country settings from the ``country_settings`` table."""

    def get_country_settings(self, code: str) -> CountrySettingsRecord | None:
        """Return the settings for a country, if configured."""
        settings = CountrySettings.objects.filter(code=code).first()
        return settings.to_record() if settings else None


class OrmCustomsTierStore:
    """Reads customs tiers from the ``customs_tiers`` table."""

    def list_active_tiers(self, origin: str, destination: str) -> list[CustomsTierRecord]:
        """Return active tiers for a route ordered by ``priority_order``."""
        tiers = CustomsTier.objects.filter(
            origin_country=origin,
            destination_country=destination,
            is_active=True,
        ).order_by("priority_order", "pk")
        return [tier.to_record() for tier in tiers]
