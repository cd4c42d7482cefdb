"""Payment reconciliation package."""

from services.payments.service import PaymentReconciliationLedger
from services.payments.types import (
    DueAmountNotice,
    PaymentLedgerEntry,
    PaymentStatus,
    PaymentSummary,
    TransactionType,
)

__all__ = [
    "DueAmountNotice",
    "PaymentLedgerEntry",
    "PaymentReconciliationLedger",
    "PaymentStatus",
    "PaymentSummary",
    "TransactionType",
]
