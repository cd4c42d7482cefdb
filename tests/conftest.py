"""
Pytest configuration and fixtures for the test suite.

This module contains shared fixtures used across all tests.
"""

from __future__ import annotations

from collections.abc import Iterator
from decimal import Decimal

import pytest
from django.test import Client
from rest_framework.test import APIClient

from core.config import get_settings
from services.stores.base import CountrySettings
from services.stores.memory import (
    InMemoryCountrySettingsStore,
    InMemoryCustomsTierStore,
    InMemoryPaymentLedgerStore,
    InMemoryRouteStore,
)
from tests.fakes import FailingStore, FakeClock


@pytest.fixture(autouse=True)
def _fresh_services() -> Iterator[None]:
    """Drop cached settings, the shared quote service and cached rates between tests."""
    from django.core.cache import cache

    from apps.api.dependencies import get_quote_service

    get_settings.cache_clear()
    get_quote_service.cache_clear()
    cache.clear()
    yield
    get_quote_service.cache_clear()
    cache.clear()


@pytest.fixture()
def test_client() -> Client:
    """Return a Django test client."""
    return Client()


@pytest.fixture()
def api_client() -> APIClient:
    """Return a DRF API client."""
    return APIClient()


@pytest.fixture()
def clock() -> FakeClock:
    """Return a fake clock starting at zero."""
    return FakeClock()


@pytest.fixture()
def failing_store() -> FailingStore:
    """Return a store that raises on every read."""
    return FailingStore()


@pytest.fixture()
def nepal_settings() -> CountrySettings:
    """Return Nepal's settings as used by the reference quote."""
    return CountrySettings(
        code="NP",
        rate_from_usd=Decimal("134.5"),
        currency="NPR",
        vat=Decimal("13"),
        min_shipping=Decimal("10"),
        additional_shipping=Decimal("5"),
        additional_weight=Decimal("2"),
        customs_percent=Decimal("10"),
    )


@pytest.fixture()
def route_store() -> InMemoryRouteStore:
    """Return an empty route store."""
    return InMemoryRouteStore()


@pytest.fixture()
def settings_store() -> InMemoryCountrySettingsStore:
    """Return an empty country settings store."""
    return InMemoryCountrySettingsStore()


@pytest.fixture()
def tier_store() -> InMemoryCustomsTierStore:
    """Return an empty customs tier store."""
    return InMemoryCustomsTierStore()


@pytest.fixture()
def ledger_store() -> InMemoryPaymentLedgerStore:
    """Return an empty payment ledger store."""
    return InMemoryPaymentLedgerStore()
