"""Customs duty and VAT tier matching."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from core.logging import get_logger
from core.result import Failure
from services.customs.types import CustomsTierResult
from services.stores.base import read_store
from services.validation import require_amount

if TYPE_CHECKING:
    from services.customs.types import CustomsTier
    from services.stores.base import CustomsTierStore

logger = get_logger(__name__)

ZERO = Decimal("0")


class CustomsTierCalculator:
    """
    Picks customs and VAT percentages for a route.

    Tiers are evaluated in ascending ``priority_order`` and the first one
    whose conditions hold wins. When no tier applies, the flat route-level
    percentages passed by the caller are used (0% by default) and the result
    is flagged with ``fallback_used`` so operators can tell best-guess
    pricing apart.
    """

    def __init__(self, tier_store: CustomsTierStore) -> None:
        """
        Initialize the calculator.

        Args:
            tier_store: Source of route customs tiers.
        """
        self._tiers = tier_store

    def calculate_customs_tier(
        self,
        origin: str,
        destination: str,
        item_price: Decimal,
        item_weight: Decimal,
        fallback_customs_percentage: Decimal = ZERO,
        fallback_vat_percentage: Decimal = ZERO,
    ) -> CustomsTierResult:
        """
        Match the item against the route's customs tiers.

        Args:
            origin: Origin country code.
            destination: Destination country code.
            item_price: Item price in origin currency.
            item_weight: Item weight in kilograms.
            fallback_customs_percentage: Flat customs percentage when no tier applies.
            fallback_vat_percentage: Flat VAT percentage when no tier applies.

        Returns:
            The percentages to apply and how they were chosen.
        """
        require_amount("item_price", item_price)
        require_amount("item_weight", item_weight)
        route = f"{origin}→{destination}"
        fallback = (fallback_customs_percentage, fallback_vat_percentage)

        tiers = read_store("customs tiers", self._tiers.list_active_tiers, origin, destination)
        if isinstance(tiers, Failure):
            reason = f"Customs tiers unavailable for {route}: {tiers.error.message}"
            return self._fallback(route, reason, *fallback)

        ordered = sorted(tiers.value, key=lambda t: t.priority_order)
        if not ordered:
            reason = f"No customs tiers configured for {route}"
            return self._fallback(route, reason, *fallback)

        tier = self.match_tier(ordered, item_price, item_weight)
        if tier is None:
            reason = (
                f"No customs tier matched {route} at price {item_price}, weight {item_weight}kg"
            )
            return self._fallback(route, reason, *fallback)

        logger.debug(
            "Customs tier matched",
            route=route,
            tier=tier.rule_name,
            customs=tier.customs_percentage,
            vat=tier.vat_percentage,
        )
        return CustomsTierResult(
            customs_percentage=tier.customs_percentage,
            vat_percentage=tier.vat_percentage,
            applied_tier=tier,
            fallback_used=False,
            route=route,
        )

    @staticmethod
    def match_tier(
        tiers: list[CustomsTier],
        item_price: Decimal,
        item_weight: Decimal,
    ) -> CustomsTier | None:
        """Return the first tier, in the given order, that applies."""
        for tier in tiers:
            if tier.applies_to(item_price, item_weight):
                return tier
        return None

    @staticmethod
    def _fallback(
        route: str,
        reason: str,
        customs_percentage: Decimal,
        vat_percentage: Decimal,
    ) -> CustomsTierResult:
        logger.info(
            "Customs fallback used",
            route=route,
            reason=reason,
            customs=customs_percentage,
            vat=vat_percentage,
        )
        return CustomsTierResult(
            customs_percentage=customs_percentage,
            vat_percentage=vat_percentage,
            applied_tier=None,
            fallback_used=True,
            route=route,
            warning=reason,
        )
