"""Dictionary-backed stores for embedding the engine without a database."""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from services.customs.types import CustomsTier
    from services.payments.types import PaymentLedgerEntry
    from services.shipping.types import ShippingRoute
    from services.stores.base import CountrySettings


class InMemoryRouteStore:
    """Routes keyed by ``(origin, destination)``."""

    def __init__(self, routes: Iterable[ShippingRoute] = ()) -> None:
        """Initialize with optional routes."""
        self._routes: dict[tuple[str, str], ShippingRoute] = {}
        for route in routes:
            self.add(route)

    def add(self, route: ShippingRoute) -> None:
        """Add or replace a route."""
        self._routes[(route.origin_country, route.destination_country)] = route

    def find_active_route(self, origin: str, destination: str) -> ShippingRoute | None:
        """Return the active route between two countries, if any."""
        route = self._routes.get((origin, destination))
        if route is None or not route.is_active:
            return None
        return route


class InMemoryCountrySettingsStore:
    """Country settings keyed by country code."""

    def __init__(self, settings: Iterable[CountrySettings] = ()) -> None:
        """Initialize with optional settings."""
        self._settings = {s.code: s for s in settings}

    def add(self, settings: CountrySettings) -> None:
        """Add or replace a country's settings."""
        self._settings[settings.code] = settings

    def get_country_settings(self, code: str) -> CountrySettings | None:
        """Return the settings for a country, if configured."""
        return self._settings.get(code)


class InMemoryCustomsTierStore:
    """Customs tiers, filtered and ordered on read."""

    def __init__(self, tiers: Iterable[CustomsTier] = ()) -> None:
        """Initialize with optional tiers."""
        self._tiers: list[CustomsTier] = list(tiers)

    def add(self, tier: CustomsTier) -> None:
        """Add a tier."""
        self._tiers.append(tier)

    def list_active_tiers(self, origin: str, destination: str) -> list[CustomsTier]:
        """Return active tiers for a route ordered by ``priority_order``."""
        matching = [
            t
            for t in self._tiers
            if t.origin_country == origin and t.destination_country == destination and t.is_active
        ]
        return sorted(matching, key=lambda t: t.priority_order)


class InMemoryPaymentLedgerStore:
    """Append-only ledger keyed by quote id."""

    def __init__(self) -> None:
        """Initialize an empty ledger."""
        self._entries: dict[str, list[PaymentLedgerEntry]] = {}

    def append(self, quote_id: str, entry: PaymentLedgerEntry) -> PaymentLedgerEntry:
        """Append an entry to a quote's ledger, stamping its id and time."""
        stored = replace(
            entry,
            id=entry.id or str(uuid.uuid4()),
            created_at=entry.created_at or datetime.now(UTC),
        )
        self._entries.setdefault(quote_id, []).append(stored)
        return stored

    def list_ledger_entries(self, quote_id: str) -> list[PaymentLedgerEntry]:
        """Return a snapshot of a quote's ledger."""
        return list(self._entries.get(quote_id, ()))
