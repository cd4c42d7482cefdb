"""Wiring of the pricing services to the database-backed stores."""

from __future__ import annotations

from functools import lru_cache

from apps.payments.stores import OrmPaymentLedgerStore
from apps.pricing.stores import OrmCountrySettingsStore, OrmCustomsTierStore, OrmRouteStore
from services.currency.service import ExchangeRateResolver
from services.payments.service import PaymentReconciliationLedger
from services.quotes.service import QuoteCalculationService


@lru_cache
def get_quote_service() -> QuoteCalculationService:
    """
    Get the process-wide quote service.

    The service owns the exchange-rate resolver and its cache, so rates
    stay cached across requests for the configured TTL.

    Returns:
        Configured QuoteCalculationService instance.
    """
    routes = OrmRouteStore()
    countries = OrmCountrySettingsStore()
    return QuoteCalculationService(
        route_store=routes,
        settings_store=countries,
        tier_store=OrmCustomsTierStore(),
        resolver=ExchangeRateResolver(routes, countries),
    )


def get_exchange_rate_resolver() -> ExchangeRateResolver:
    """Get the resolver shared with the quote service."""
    return get_quote_service().resolver


def get_payment_ledger() -> PaymentReconciliationLedger:
    """Get a payment ledger over the database, stamping USD with the shared resolver."""
    return PaymentReconciliationLedger(
        OrmPaymentLedgerStore(), resolver=get_exchange_rate_resolver()
    )
