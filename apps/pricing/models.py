"""Models for the pricing application."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from services.customs.types import CustomsTier as CustomsTierRecord
from services.shipping.types import Carrier, WeightTier, WeightUnit
from services.shipping.types import ShippingRoute as ShippingRouteRecord
from services.stores.base import CountrySettings as CountrySettingsRecord

PERCENT_VALIDATORS = [MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))]


def _decimal(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    return Decimal(str(value))


class ShippingRoute(models.Model):
    """
    Route-specific shipping rules between two countries.

    Amounts are in the origin country's currency. ``weight_tiers`` holds a
    list of ``{"min", "max", "cost"}`` bands (``max`` may be null) and
    ``carriers`` a list of ``{"name", "days"}`` objects.
    """

    class WeightUnitChoice(models.TextChoices):
        """Unit of the route's weight rules."""

        KG = "kg", "Kilograms"
        LB = "lb", "Pounds"

    origin_country = models.CharField(max_length=3, help_text="ISO origin country code")
    destination_country = models.CharField(
        max_length=3, help_text="ISO destination country code"
    )
    base_shipping_cost = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
    )
    cost_per_kg = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
        help_text="Cost per unit of weight, in the route's weight unit",
    )
    cost_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0"),
        validators=PERCENT_VALIDATORS,
        help_text="Percentage of item price added to shipping",
    )
    weight_tiers = models.JSONField(default=list, blank=True)
    carriers = models.JSONField(default=list, blank=True)
    weight_unit = models.CharField(
        max_length=2,
        choices=WeightUnitChoice.choices,
        default=WeightUnitChoice.KG,
    )
    exchange_rate = models.DecimalField(
        max_digits=18,
        decimal_places=8,
        null=True,
        blank=True,
        help_text="Configured origin-to-destination rate (optional)",
    )
    is_active = models.BooleanField(default=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Meta options for ShippingRoute model."""

        db_table = "shipping_routes"
        ordering = ["origin_country", "destination_country"]
        verbose_name = "Shipping Route"
        verbose_name_plural = "Shipping Routes"
        constraints = [
            models.UniqueConstraint(
                fields=["origin_country", "destination_country"],
                condition=models.Q(is_active=True),
                name="unique_active_route",
            )
        ]

    def __str__(self) -> str:
        """Return string representation."""
        return f"{self.origin_country}→{self.destination_country}"

    def to_record(self) -> ShippingRouteRecord:
        """Convert to the engine's route record."""
        return ShippingRouteRecord(
            id=self.pk,
            origin_country=self.origin_country,
            destination_country=self.destination_country,
            base_shipping_cost=self.base_shipping_cost,
            cost_per_kg=self.cost_per_kg,
            cost_percentage=self.cost_percentage,
            weight_tiers=tuple(
                WeightTier(
                    min=_decimal(tier.get("min")) or Decimal("0"),
                    max=_decimal(tier.get("max")),
                    cost=_decimal(tier.get("cost")) or Decimal("0"),
                )
                for tier in self.weight_tiers or []
            ),
            carriers=tuple(
                Carrier(name=str(c.get("name", "")), days=str(c.get("days", "")))
                for c in self.carriers or []
            ),
            weight_unit=WeightUnit.parse(self.weight_unit),
            exchange_rate=self.exchange_rate,
            is_active=self.is_active,
        )


class CountrySettings(models.Model):
    """
    Per-country rates, taxes and shipping formula parameters.

    Amounts are in the country's own currency; percentages are plain numbers.
    """

    code = models.CharField(max_length=3, unique=True, help_text="ISO country code")
    name = models.CharField(max_length=100, blank=True, default="")
    currency = models.CharField(max_length=3, blank=True, default="", help_text="ISO 4217 code")
    rate_from_usd = models.DecimalField(
        max_digits=18,
        decimal_places=8,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
        help_text="Units of local currency per USD",
    )
    sales_tax = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0"), validators=PERCENT_VALIDATORS
    )
    vat = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0"), validators=PERCENT_VALIDATORS
    )
    vat_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=PERCENT_VALIDATORS,
        help_text="Import VAT override; falls back to vat",
    )
    customs_percent = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0"), validators=PERCENT_VALIDATORS
    )
    min_shipping = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    additional_shipping = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0"),
        validators=PERCENT_VALIDATORS,
        help_text="Percentage of item price added to shipping",
    )
    additional_weight = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0"),
        help_text="Cost per unit of weight above the first",
    )
    weight_unit = models.CharField(max_length=3, default="kg")
    payment_gateway_fixed_fee = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0")
    )
    payment_gateway_percent_fee = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0"), validators=PERCENT_VALIDATORS
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Meta options for CountrySettings model."""

        db_table = "country_settings"
        ordering = ["code"]
        verbose_name = "Country Settings"
        verbose_name_plural = "Country Settings"

    def __str__(self) -> str:
        """Return string representation."""
        return f"{self.name} ({self.code})" if self.name else self.code

    def to_record(self) -> CountrySettingsRecord:
        """Convert to the engine's settings record."""
        return CountrySettingsRecord(
            code=self.code,
            rate_from_usd=self.rate_from_usd,
            currency=self.currency or None,
            sales_tax=self.sales_tax,
            vat=self.vat,
            min_shipping=self.min_shipping,
            additional_shipping=self.additional_shipping,
            additional_weight=self.additional_weight,
            customs_percent=self.customs_percent,
            vat_percent=self.vat_percent,
            weight_unit=self.weight_unit,
            payment_gateway_fixed_fee=self.payment_gateway_fixed_fee,
            payment_gateway_percent_fee=self.payment_gateway_percent_fee,
        )


class CustomsTier(models.Model):
    """
    A priority-ordered customs and VAT rule for a route.

    Lower ``priority_order`` values are evaluated first; the first tier whose
    price/weight conditions hold decides the percentages.
    """

    class Logic(models.TextChoices):
        """How the price and weight conditions combine."""

        AND = "AND", "Both conditions"
        OR = "OR", "Either condition"

    origin_country = models.CharField(max_length=3)
    destination_country = models.CharField(max_length=3)
    rule_name = models.CharField(max_length=100)
    price_min = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    price_max = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    weight_min = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    weight_max = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    logic_type = models.CharField(max_length=3, choices=Logic.choices, default=Logic.AND)
    customs_percentage = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0"), validators=PERCENT_VALIDATORS
    )
    vat_percentage = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0"), validators=PERCENT_VALIDATORS
    )
    priority_order = models.PositiveIntegerField(default=1)
    is_active = models.BooleanField(default=True)

    class Meta:
        """Meta options for CustomsTier model."""

        db_table = "customs_tiers"
        ordering = ["origin_country", "destination_country", "priority_order"]
        verbose_name = "Customs Tier"
        verbose_name_plural = "Customs Tiers"

    def __str__(self) -> str:
        """Return string representation."""
        return f"{self.rule_name} ({self.origin_country}→{self.destination_country})"

    def to_record(self) -> CustomsTierRecord:
        """Convert to the engine's tier record."""
        return CustomsTierRecord(
            origin_country=self.origin_country,
            destination_country=self.destination_country,
            rule_name=self.rule_name,
            customs_percentage=self.customs_percentage,
            vat_percentage=self.vat_percentage,
            logic_type=self.logic_type,
            priority_order=self.priority_order,
            price_min=self.price_min,
            price_max=self.price_max,
            weight_min=self.weight_min,
            weight_max=self.weight_max,
            is_active=self.is_active,
        )
