"""Types for quote total assembly."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from services.currency.types import ExchangeRateResult
    from services.customs.types import CustomsTierResult
    from services.quotes.customers import Customer, CustomerDisplay
    from services.shipping.types import ShippingCost
    from services.stores.base import CountrySettings

ZERO = Decimal("0")


def _first_set(override: Decimal | None, default: Decimal) -> Decimal:
    return override if override is not None else default


@dataclass(frozen=True, slots=True)
class QuoteItem:
    """
    A line item priced in origin currency.

    Attributes:
        price: Unit price.
        weight_kg: Unit weight in kilograms.
        quantity: Number of units.
        name: Optional description.
    """

    price: Decimal
    weight_kg: Decimal
    quantity: int = 1
    name: str = ""

    @property
    def total_price(self) -> Decimal:
        """Return price times quantity."""
        return self.price * self.quantity

    @property
    def total_weight(self) -> Decimal:
        """Return weight times quantity."""
        return self.weight_kg * self.quantity


@dataclass(frozen=True, slots=True)
class QuoteCharges:
    """
    Caller-supplied charges, all in origin currency.

    Attributes:
        merchant_shipping: Shipping charged by the merchant.
        domestic_shipping: Last-mile delivery in the destination country.
        handling_charge: Handling fee.
        insurance_amount: Insurance premium.
        discount: Discount subtracted before fees.
        sales_tax_percent: Overrides the origin country's sales tax.
        customs_percent: Overrides the matched customs percentage.
        vat_percent: Overrides the matched VAT percentage.
    """

    merchant_shipping: Decimal = ZERO
    domestic_shipping: Decimal = ZERO
    handling_charge: Decimal = ZERO
    insurance_amount: Decimal = ZERO
    discount: Decimal = ZERO
    sales_tax_percent: Decimal | None = None
    customs_percent: Decimal | None = None
    vat_percent: Decimal | None = None


@dataclass(frozen=True, slots=True)
class TaxRates:
    """
    Percentages and fees applied by the assembler.

    Attributes:
        sales_tax_percent: Sales tax on the item total.
        customs_percent: Customs duty percentage.
        vat_percent: VAT percentage on the subtotal.
        gateway_fixed_fee: Fixed payment-gateway fee, origin currency.
        gateway_percent_fee: Payment-gateway fee percentage.
    """

    sales_tax_percent: Decimal = ZERO
    customs_percent: Decimal = ZERO
    vat_percent: Decimal = ZERO
    gateway_fixed_fee: Decimal = ZERO
    gateway_percent_fee: Decimal = ZERO

    @classmethod
    def from_settings(
        cls,
        origin_settings: CountrySettings | None,
        customs: CustomsTierResult,
        charges: QuoteCharges | None = None,
    ) -> TaxRates:
        """
        Collect rates from the origin country's settings and the customs result.

        Sales tax and gateway fees belong to the purchase country; customs
        and VAT come from tier matching (or its route-level fallback).
        Percentages set explicitly on ``charges`` win over both.
        """
        charges = charges or QuoteCharges()
        sales_tax = origin_settings.sales_tax if origin_settings else ZERO
        return cls(
            sales_tax_percent=_first_set(charges.sales_tax_percent, sales_tax),
            customs_percent=_first_set(charges.customs_percent, customs.customs_percentage),
            vat_percent=_first_set(charges.vat_percent, customs.vat_percentage),
            gateway_fixed_fee=(
                origin_settings.payment_gateway_fixed_fee if origin_settings else ZERO
            ),
            gateway_percent_fee=(
                origin_settings.payment_gateway_percent_fee if origin_settings else ZERO
            ),
        )


@dataclass(frozen=True, slots=True)
class QuoteBreakdown:
    """
    Every cost component of a quote, in origin currency.

    ``final_total == round2(sub_total + vat)``; ``sub_total`` already
    includes the payment gateway fee and is net of the discount.
    """

    currency: str
    item_price: Decimal
    total_weight_kg: Decimal
    sales_tax: Decimal
    merchant_shipping: Decimal
    domestic_shipping: Decimal
    international_shipping: Decimal
    customs_duty: Decimal
    vat: Decimal
    handling_charge: Decimal
    insurance_amount: Decimal
    discount: Decimal
    payment_gateway_fee: Decimal
    sub_total: Decimal
    final_total: Decimal

    def as_dict(self) -> dict[str, str]:
        """Serialise for persistence; amounts become strings."""
        return {
            "currency": self.currency,
            "item_price": str(self.item_price),
            "total_weight_kg": str(self.total_weight_kg),
            "sales_tax": str(self.sales_tax),
            "merchant_shipping": str(self.merchant_shipping),
            "domestic_shipping": str(self.domestic_shipping),
            "international_shipping": str(self.international_shipping),
            "customs_duty": str(self.customs_duty),
            "vat": str(self.vat),
            "handling_charge": str(self.handling_charge),
            "insurance_amount": str(self.insurance_amount),
            "discount": str(self.discount),
            "payment_gateway_fee": str(self.payment_gateway_fee),
            "sub_total": str(self.sub_total),
            "final_total": str(self.final_total),
        }


@dataclass(frozen=True, slots=True)
class QuoteRequest:
    """
    Everything needed to price a quote.

    Attributes:
        origin_country: Purchase country code.
        destination_country: Delivery country code.
        items: Line items.
        charges: Additional charges.
        origin_currency: Purchase currency (resolved from settings if omitted).
        destination_currency: Delivery currency (resolved from settings if omitted).
        quote_id: Identifier bound to log events.
        customer: Who the quote is for, if known.
    """

    origin_country: str
    destination_country: str
    items: tuple[QuoteItem, ...]
    charges: QuoteCharges = field(default_factory=QuoteCharges)
    origin_currency: str | None = None
    destination_currency: str | None = None
    quote_id: str | None = None
    customer: Customer | None = None


@dataclass(frozen=True, slots=True)
class QuoteResult:
    """
    A priced quote with everything a caller needs to persist or display it.

    Attributes:
        breakdown: Cost breakdown in origin currency.
        exchange_rate: The single rate used for the whole computation.
        shipping: International shipping result.
        customs: Customs tier result.
        destination_currency: Currency of the delivery country.
        final_total_destination: Final total in destination currency.
        final_total_usd: Final total in USD.
        warnings: Fallback and confidence warnings for operators.
        customer: Display data for the quote's customer, if one was given.
    """

    breakdown: QuoteBreakdown
    exchange_rate: ExchangeRateResult
    shipping: ShippingCost
    customs: CustomsTierResult
    destination_currency: str
    final_total_destination: Decimal
    final_total_usd: Decimal
    warnings: tuple[str, ...] = ()
    customer: CustomerDisplay | None = None

    @property
    def fallback_used(self) -> bool:
        """Check if any part of the price is best-guess rather than configured."""
        return (
            self.customs.fallback_used
            or self.shipping.is_fallback
            or self.exchange_rate.is_fallback
        )
