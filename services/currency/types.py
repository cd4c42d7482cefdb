"""Types for exchange-rate resolution."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class RateSource(str, Enum):
    """Where a resolved exchange rate came from."""

    SHIPPING_ROUTE = "shipping_route"
    COUNTRY_SETTINGS = "country_settings"
    FALLBACK = "fallback"


class RateConfidence(str, Enum):
    """Qualitative reliability of a resolved rate."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True, slots=True)
class ExchangeRateResult:
    """
    A resolved exchange rate between two countries.

    ``rate`` converts one unit of origin currency into destination currency.

    Attributes:
        rate: Multiplier from origin to destination currency.
        source: Which tier of the fallback chain produced the rate.
        confidence: Reliability of the rate.
        warning: Explanation shown to operators when confidence is not high.
    """

    rate: Decimal
    source: RateSource
    confidence: RateConfidence
    warning: str | None = None

    def __post_init__(self) -> None:
        """Enforce the source/confidence pairing."""
        if self.source == RateSource.SHIPPING_ROUTE and self.confidence != RateConfidence.HIGH:
            msg = "shipping_route rates must have high confidence"
            raise ValueError(msg)
        if self.source == RateSource.FALLBACK and (
            self.rate != Decimal("1") or self.confidence != RateConfidence.LOW
        ):
            msg = "fallback rates must be 1 with low confidence"
            raise ValueError(msg)

    @classmethod
    def identity(cls) -> ExchangeRateResult:
        """Rate for two identical currencies."""
        return cls(
            rate=Decimal("1"),
            source=RateSource.SHIPPING_ROUTE,
            confidence=RateConfidence.HIGH,
        )

    @classmethod
    def fallback(cls, warning: str) -> ExchangeRateResult:
        """Low-confidence 1:1 rate used when nothing else resolves."""
        return cls(
            rate=Decimal("1"),
            source=RateSource.FALLBACK,
            confidence=RateConfidence.LOW,
            warning=warning,
        )

    @property
    def is_fallback(self) -> bool:
        """Check if the rate is the last-resort 1:1 fallback."""
        return self.source == RateSource.FALLBACK

    def as_dict(self) -> dict[str, str | None]:
        """Serialise for persistence or API output."""
        return {
            "rate": str(self.rate),
            "source": self.source.value,
            "confidence": self.confidence.value,
            "warning": self.warning,
        }
