"""International shipping cost package."""

from services.shipping.service import ShippingCostEngine
from services.shipping.types import (
    Carrier,
    ShippingCost,
    ShippingMethod,
    ShippingRoute,
    WeightTier,
    WeightUnit,
)

__all__ = [
    "Carrier",
    "ShippingCost",
    "ShippingCostEngine",
    "ShippingMethod",
    "ShippingRoute",
    "WeightTier",
    "WeightUnit",
]
