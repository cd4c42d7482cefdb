"""Quote total assembly and the end-to-end quote calculation pipeline."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from core.logging import bind_context, clear_context, get_logger
from services.currency.rounding import (
    convert,
    convert_back,
    currency_for_country,
    round2,
    round_amount,
)
from services.currency.service import ExchangeRateResolver
from services.customs.service import CustomsTierCalculator
from services.errors import PricingValidationError
from services.quotes.customers import describe_customer
from services.quotes.types import QuoteBreakdown, QuoteResult, TaxRates
from services.shipping.service import ShippingCostEngine
from services.stores.base import read_store
from services.validation import (
    normalize_country,
    normalize_currency,
    require_amount,
    require_quantity,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from services.quotes.types import QuoteCharges, QuoteItem, QuoteRequest
    from services.shipping.types import ShippingCost
    from services.stores.base import (
        CountrySettings,
        CountrySettingsStore,
        CustomsTierStore,
        RouteStore,
    )

logger = get_logger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def _percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    return amount * percent / HUNDRED


class QuoteTotalAssembler:
    """
    Combines every cost component into a final payable total.

    The assembler is a pure function of its inputs: the same items, charges,
    shipping, rates and exchange rate always give the same breakdown. The
    order of the steps matters because later steps are percentages of
    earlier sums.
    """

    def calculate_quote(
        self,
        items: Sequence[QuoteItem],
        charges: QuoteCharges,
        shipping: ShippingCost,
        rates: TaxRates,
        exchange_rate: Decimal,
        currency: str,
    ) -> QuoteBreakdown:
        """
        Assemble a quote breakdown in origin currency.

        Customs and VAT are percentages defined by the destination country,
        so their bases are converted into destination currency with
        ``exchange_rate``, taxed, and converted back. The same rate is used
        for every step.

        Args:
            items: Line items.
            charges: Additional charges.
            shipping: International shipping for the whole shipment.
            rates: Tax percentages and gateway fees.
            exchange_rate: Origin-to-destination rate for this computation.
            currency: Origin currency, used for output rounding.

        Returns:
            The rounded breakdown.

        Raises:
            PricingValidationError: If the discount exceeds the other charges.
        """
        item_price = sum((item.total_price for item in items), ZERO)
        total_weight = sum((item.total_weight for item in items), ZERO)
        international_shipping = shipping.cost

        sales_tax = _percent_of(item_price, rates.sales_tax_percent)

        # VAT is not part of the customs base
        customs_base = item_price + sales_tax + charges.merchant_shipping + international_shipping
        customs_duty = convert_back(
            _percent_of(convert(customs_base, exchange_rate), rates.customs_percent),
            exchange_rate,
        )

        sub_total_before_fees = (
            item_price
            + sales_tax
            + charges.merchant_shipping
            + international_shipping
            + customs_duty
            + charges.domestic_shipping
            + charges.handling_charge
            + charges.insurance_amount
            - charges.discount
        )
        if sub_total_before_fees < ZERO:
            raise PricingValidationError(
                "discount",
                f"must not exceed the other charges ({round2(charges.discount)} > "
                f"{round2(sub_total_before_fees + charges.discount)})",
            )
        payment_gateway_fee = rates.gateway_fixed_fee + _percent_of(
            sub_total_before_fees, rates.gateway_percent_fee
        )
        sub_total = sub_total_before_fees + payment_gateway_fee

        local_vat = _percent_of(convert(sub_total, exchange_rate), rates.vat_percent)
        vat = round2(convert_back(local_vat, exchange_rate))

        # final total is the sum of the parts as they are displayed
        rounded_sub_total = round_amount(sub_total, currency)
        rounded_vat = round_amount(vat, currency)
        final_total = rounded_sub_total + rounded_vat

        logger.debug(
            "Quote assembled",
            item_price=item_price,
            shipping=international_shipping,
            customs=customs_duty,
            sub_total=sub_total,
            vat=vat,
            final_total=final_total,
        )

        return QuoteBreakdown(
            currency=currency,
            item_price=round_amount(item_price, currency),
            total_weight_kg=total_weight,
            sales_tax=round_amount(sales_tax, currency),
            merchant_shipping=round_amount(charges.merchant_shipping, currency),
            domestic_shipping=round_amount(charges.domestic_shipping, currency),
            international_shipping=round_amount(international_shipping, currency),
            customs_duty=round_amount(customs_duty, currency),
            vat=rounded_vat,
            handling_charge=round_amount(charges.handling_charge, currency),
            insurance_amount=round_amount(charges.insurance_amount, currency),
            discount=round_amount(charges.discount, currency),
            payment_gateway_fee=round_amount(payment_gateway_fee, currency),
            sub_total=rounded_sub_total,
            final_total=final_total,
        )


class QuoteCalculationService:
    """
    Prices a quote from request to result.

    Validates the request, resolves the exchange rate once, and threads that
    rate through shipping, customs and assembly so every step agrees. Any
    edit to a quote re-runs the whole pipeline; nothing is incremental.

    Example:
        >>> service = QuoteCalculationService(routes, countries, tiers)
        >>> result = service.calculate(request)
        >>> result.breakdown.final_total
        Decimal('145.43')
    """

    def __init__(
        self,
        route_store: RouteStore,
        settings_store: CountrySettingsStore,
        tier_store: CustomsTierStore,
        resolver: ExchangeRateResolver | None = None,
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            route_store: Source of shipping routes.
            settings_store: Source of country settings.
            tier_store: Source of customs tiers.
            resolver: Exchange-rate resolver (built from the stores by default).
        """
        self._countries = settings_store
        self._resolver = resolver or ExchangeRateResolver(route_store, settings_store)
        self._shipping = ShippingCostEngine(route_store, settings_store)
        self._customs = CustomsTierCalculator(tier_store)
        self._assembler = QuoteTotalAssembler()

    @property
    def resolver(self) -> ExchangeRateResolver:
        """Return the exchange-rate resolver used by this pipeline."""
        return self._resolver

    def calculate(self, request: QuoteRequest) -> QuoteResult:
        """
        Price a quote.

        Args:
            request: The quote to price.

        Returns:
            The breakdown plus rate, shipping, customs and warnings.

        Raises:
            PricingValidationError: If the request contains invalid input.
        """
        origin, destination = self._validate(request)
        if request.quote_id:
            bind_context(quote_id=request.quote_id)
        try:
            return self._calculate(request, origin, destination)
        finally:
            if request.quote_id:
                clear_context()

    def _calculate(self, request: QuoteRequest, origin: str, destination: str) -> QuoteResult:
        origin_settings = self._settings_of(origin)
        destination_settings = self._settings_of(destination)

        origin_currency = self._currency(request.origin_currency, origin, origin_settings)
        destination_currency = self._currency(
            request.destination_currency, destination, destination_settings
        )

        rate_result = self._resolver.get_exchange_rate(
            origin, destination, origin_currency, destination_currency
        )
        rate = rate_result.rate

        item_price = sum((item.total_price for item in request.items), ZERO)
        total_weight = sum((item.total_weight for item in request.items), ZERO)

        shipping = self._shipping.get_shipping_cost(
            origin, destination, total_weight, item_price, rate
        )
        customs = self._customs.calculate_customs_tier(
            origin,
            destination,
            item_price,
            total_weight,
            fallback_customs_percentage=(
                destination_settings.customs_percent if destination_settings else ZERO
            ),
            fallback_vat_percentage=(
                destination_settings.effective_vat_percent if destination_settings else ZERO
            ),
        )
        rates = TaxRates.from_settings(origin_settings, customs, request.charges)

        breakdown = self._assembler.calculate_quote(
            request.items, request.charges, shipping, rates, rate, origin_currency
        )

        final_total_usd = self._to_usd(breakdown.final_total, origin, origin_currency)
        warnings = tuple(
            w for w in (rate_result.warning, shipping.warning, customs.warning) if w
        )
        if final_total_usd is None:
            warnings = (*warnings, f"No USD rate for {origin}; USD total assumes 1:1")
            final_total_usd = round2(breakdown.final_total)

        logger.info(
            "Quote calculated",
            origin=origin,
            destination=destination,
            final_total=breakdown.final_total,
            currency=origin_currency,
            rate_source=rate_result.source,
            fallback=bool(warnings),
            customer_kind=request.customer.kind if request.customer else None,
        )
        return QuoteResult(
            breakdown=breakdown,
            exchange_rate=rate_result,
            shipping=shipping,
            customs=customs,
            destination_currency=destination_currency,
            final_total_destination=round_amount(
                convert(breakdown.final_total, rate), destination_currency
            ),
            final_total_usd=final_total_usd,
            warnings=warnings,
            customer=describe_customer(request.customer) if request.customer else None,
        )

    def _validate(self, request: QuoteRequest) -> tuple[str, str]:
        origin = normalize_country("origin_country", request.origin_country)
        destination = normalize_country("destination_country", request.destination_country)
        normalize_currency("origin_currency", request.origin_currency)
        normalize_currency("destination_currency", request.destination_currency)

        if not request.items:
            raise PricingValidationError("items", "at least one item is required")
        for index, item in enumerate(request.items):
            require_amount(f"items[{index}].price", item.price)
            require_amount(f"items[{index}].weight_kg", item.weight_kg)
            require_quantity(f"items[{index}].quantity", item.quantity)

        charges = request.charges
        for name in (
            "merchant_shipping",
            "domestic_shipping",
            "handling_charge",
            "insurance_amount",
            "discount",
        ):
            require_amount(name, getattr(charges, name))
        for name in ("sales_tax_percent", "customs_percent", "vat_percent"):
            if getattr(charges, name) is not None:
                require_amount(name, getattr(charges, name))
        return origin, destination

    def _settings_of(self, code: str) -> CountrySettings | None:
        return read_store("country settings", self._countries.get_country_settings, code).unwrap_or(
            None
        )

    @staticmethod
    def _currency(explicit: str | None, country: str, settings: CountrySettings | None) -> str:
        if explicit:
            return explicit.upper().strip()
        if settings is not None and settings.currency:
            return settings.currency
        return currency_for_country(country) or "USD"

    def _to_usd(self, amount: Decimal, origin: str, currency: str) -> Decimal | None:
        usd_rate = self._resolver.get_usd_rate(origin, currency)
        if usd_rate is None:
            return None
        return round2(amount / usd_rate)
