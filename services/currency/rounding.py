"""Currency-correct rounding and conversion helpers."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from core.config import get_settings

CENT = Decimal("0.01")
UNIT = Decimal("1")
ZERO = Decimal("0")

NO_DECIMAL_CURRENCIES: frozenset[str] = frozenset({"NPR", "INR", "JPY", "KRW", "VND", "IDR"})

# Used only when neither the caller nor country settings name a currency
COUNTRY_CURRENCIES: dict[str, str] = {
    "US": "USD",
    "IN": "INR",
    "NP": "NPR",
    "CA": "CAD",
    "AU": "AUD",
    "GB": "GBP",
    "JP": "JPY",
    "CN": "CNY",
    "SG": "SGD",
    "AE": "AED",
    "SA": "SAR",
    "ID": "IDR",
    "MY": "MYR",
    "PH": "PHP",
    "TH": "THB",
    "VN": "VND",
    "KR": "KRW",
    "DE": "EUR",
    "FR": "EUR",
}


def _no_decimal_currencies() -> frozenset[str]:
    configured = get_settings().pricing.no_decimal_currencies
    return frozenset(configured) if configured else NO_DECIMAL_CURRENCIES


def currency_decimal_places(currency: str) -> int:
    """Return 0 for whole-unit currencies, 2 otherwise."""
    return 0 if currency.upper() in _no_decimal_currencies() else 2


def round2(amount: Decimal) -> Decimal:
    """Round to two decimal places, halves away from zero."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def round_amount(amount: Decimal, currency: str) -> Decimal:
    """
    Round an amount for display or persistence in ``currency``.

    Args:
        amount: Amount to round.
        currency: ISO 4217 code of the amount.

    Returns:
        Whole units for no-decimal currencies, cents for all others.
    """
    exponent = UNIT if currency_decimal_places(currency) == 0 else CENT
    return amount.quantize(exponent, rounding=ROUND_HALF_UP)


def currency_for_country(country_code: str) -> str | None:
    """Look up the fallback currency of a country."""
    return COUNTRY_CURRENCIES.get(country_code.upper().strip())


def convert(amount: Decimal, rate: Decimal) -> Decimal:
    """Convert an origin-currency amount into destination currency."""
    return amount * rate


def convert_back(amount: Decimal, rate: Decimal) -> Decimal:
    """Convert a destination-currency amount back into origin currency."""
    if rate == ZERO:
        return amount
    return amount / rate
