"""Store contracts consumed by the pricing engine."""

from services.stores.base import (
    CountrySettings,
    CountrySettingsStore,
    CustomsTierStore,
    PaymentLedgerStore,
    RouteStore,
    read_store,
)
from services.stores.memory import (
    InMemoryCountrySettingsStore,
    InMemoryCustomsTierStore,
    InMemoryPaymentLedgerStore,
    InMemoryRouteStore,
)

__all__ = [
    "CountrySettings",
    "CountrySettingsStore",
    "CustomsTierStore",
    "InMemoryCountrySettingsStore",
    "InMemoryCustomsTierStore",
    "InMemoryPaymentLedgerStore",
    "InMemoryRouteStore",
    "PaymentLedgerStore",
    "RouteStore",
    "read_store",
]
