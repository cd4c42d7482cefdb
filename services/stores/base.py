"""Collaborator store contracts and the uniform store-read combinator."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from core.logging import get_logger
from core.result import Failure, Success, attempt
from services.errors import ConfigurationMissing, StoreReadFailure

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from core.result import Result
    from services.customs.types import CustomsTier
    from services.errors import PricingIssue
    from services.payments.types import PaymentLedgerEntry
    from services.shipping.types import ShippingRoute

logger = get_logger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True, slots=True)
class CountrySettings:
    """
    Per-country pricing configuration.

    Amounts (``min_shipping``, ``additional_weight``, gateway fixed fee) are
    denominated in the country's own currency; percentages are plain numbers
    (13 means 13%).

    Attributes:
        code: ISO 3166-1 alpha-2 country code.
        rate_from_usd: Units of local currency per USD.
        currency: ISO 4217 code of the local currency (optional).
        sales_tax: Sales tax percentage charged at purchase.
        vat: VAT percentage charged on import.
        min_shipping: Base cost of the generic shipping formula.
        additional_shipping: Percentage of item price added to shipping.
        additional_weight: Cost per unit of weight above the first.
        customs_percent: Flat customs percentage used when no tier matches.
        vat_percent: Explicit import VAT override (falls back to ``vat``).
        weight_unit: 'kg' or 'lb'.
        payment_gateway_fixed_fee: Fixed gateway fee per payment.
        payment_gateway_percent_fee: Gateway fee percentage.
    """

    code: str
    rate_from_usd: Decimal
    currency: str | None = None
    sales_tax: Decimal = ZERO
    vat: Decimal = ZERO
    min_shipping: Decimal = ZERO
    additional_shipping: Decimal = ZERO
    additional_weight: Decimal = ZERO
    customs_percent: Decimal = ZERO
    vat_percent: Decimal | None = None
    weight_unit: str = "kg"
    payment_gateway_fixed_fee: Decimal = ZERO
    payment_gateway_percent_fee: Decimal = ZERO

    @property
    def effective_vat_percent(self) -> Decimal:
        """Return the import VAT percentage."""
        return self.vat_percent if self.vat_percent is not None else self.vat


@runtime_checkable
class RouteStore(Protocol):
    """Read access to configured shipping routes."""

    def find_active_route(self, origin: str, destination: str) -> ShippingRoute | None:
        """Return the active route between two countries, if any."""
        ...


@runtime_checkable
class CountrySettingsStore(Protocol):
    """Read access to per-country settings."""

    def get_country_settings(self, code: str) -> CountrySettings | None:
        """Return the settings for a country, if configured."""
        ...


@runtime_checkable
class CustomsTierStore(Protocol):
    """Read access to route customs tiers."""

    def list_active_tiers(self, origin: str, destination: str) -> Sequence[CustomsTier]:
        """Return active tiers for a route ordered by ``priority_order``."""
        ...


@runtime_checkable
class PaymentLedgerStore(Protocol):
    """Access to a quote's append-only payment ledger."""

    def list_ledger_entries(self, quote_id: str) -> Sequence[PaymentLedgerEntry]:
        """Return every ledger entry recorded for a quote."""
        ...

    def append(self, quote_id: str, entry: PaymentLedgerEntry) -> PaymentLedgerEntry:
        """Record a new entry and return it as stored."""
        ...


def read_store[T](
    source: str,
    func: Callable[..., T | None],
    *args: object,
) -> Result[T, PricingIssue]:
    """
    Read from a collaborator store without letting failures escape.

    Every component reads its collaborators through this function, so the
    "fallback on any failure" policy lives in one place: exceptions become
    ``StoreReadFailure`` and ``None`` becomes ``ConfigurationMissing``.

    Args:
        source: Name of the lookup, used in the issue and in logs.
        func: Store method to call.
        *args: Arguments for the store method.

    Returns:
        Success with the record, or Failure with a PricingIssue.
    """
    result = attempt(func, *args)
    if isinstance(result, Failure):
        logger.warning(
            "Store read failed, using fallback",
            source=source,
            args=[str(a) for a in args],
            error=str(result.error),
        )
        return Failure(
            StoreReadFailure(
                source=source,
                message=f"{source} unavailable",
                details=str(result.error),
            )
        )

    if result.value is None:
        return Failure(
            ConfigurationMissing(
                source=source,
                message=f"No {source} configured for {', '.join(str(a) for a in args)}",
            )
        )
    return Success(result.value)
