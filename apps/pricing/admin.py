"""Admin configuration for pricing app."""

from __future__ import annotations

from typing import Any

from django.contrib import admin

from apps.api.dependencies import get_exchange_rate_resolver
from core.logging import get_logger

from .models import CountrySettings, CustomsTier, ShippingRoute

logger = get_logger(__name__)


@admin.register(ShippingRoute)
class ShippingRouteAdmin(admin.ModelAdmin):
    """Admin configuration for ShippingRoute model."""

    list_display = (
        "origin_country",
        "destination_country",
        "base_shipping_cost",
        "cost_per_kg",
        "cost_percentage",
        "weight_unit",
        "exchange_rate",
        "is_active",
    )
    list_filter = ("is_active", "weight_unit", "origin_country")
    search_fields = ("origin_country", "destination_country")
    readonly_fields = ("updated_at",)

    def save_model(self, request: Any, obj: ShippingRoute, form: Any, change: bool) -> None:
        """Save the route and drop its cached exchange rate."""
        super().save_model(request, obj, form, change)
        get_exchange_rate_resolver().invalidate(obj.origin_country, obj.destination_country)
        logger.info("Route rate cache invalidated", route=str(obj))


@admin.register(CountrySettings)
class CountrySettingsAdmin(admin.ModelAdmin):
    """Admin configuration for CountrySettings model."""

    list_display = (
        "code",
        "name",
        "currency",
        "rate_from_usd",
        "sales_tax",
        "vat",
        "customs_percent",
    )
    search_fields = ("code", "name", "currency")
    readonly_fields = ("updated_at",)
    ordering = ("code",)

    def save_model(self, request: Any, obj: CountrySettings, form: Any, change: bool) -> None:
        """Save the settings; a USD rate feeds every cross-rate, so the whole cache goes."""
        super().save_model(request, obj, form, change)
        get_exchange_rate_resolver().clear_cache()
        logger.info("Exchange rate cache cleared", country=obj.code)


@admin.register(CustomsTier)
class CustomsTierAdmin(admin.ModelAdmin):
    """Admin configuration for CustomsTier model."""

    list_display = (
        "rule_name",
        "origin_country",
        "destination_country",
        "priority_order",
        "logic_type",
        "customs_percentage",
        "vat_percentage",
        "is_active",
    )
    list_filter = ("is_active", "logic_type", "destination_country")
    search_fields = ("rule_name", "origin_country", "destination_country")
    ordering = ("origin_country", "destination_country", "priority_order")
