"""Customs duty and VAT tier package."""

from services.customs.service import CustomsTierCalculator
from services.customs.types import CustomsTier, CustomsTierResult, LogicType

__all__ = ["CustomsTier", "CustomsTierCalculator", "CustomsTierResult", "LogicType"]
