"""Exchange-rate resolution and currency rounding package."""

from services.currency.rounding import (
    NO_DECIMAL_CURRENCIES,
    currency_decimal_places,
    currency_for_country,
    round2,
    round_amount,
)
from services.currency.service import ExchangeRateResolver
from services.currency.types import ExchangeRateResult, RateConfidence, RateSource

__all__ = [
    "NO_DECIMAL_CURRENCIES",
    "ExchangeRateResolver",
    "ExchangeRateResult",
    "RateConfidence",
    "RateSource",
    "currency_decimal_places",
    "currency_for_country",
    "round2",
    "round_amount",
]
