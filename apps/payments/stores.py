"""Database-backed payment ledger store."""

from __future__ import annotations

from typing import TYPE_CHECKING

from apps.payments.models import PaymentLedgerRecord
from core.logging import get_logger

if TYPE_CHECKING:
    from services.payments.types import PaymentLedgerEntry

logger = get_logger(__name__)


class OrmPaymentLedgerStore:
    """Reads and appends rows of the ``payment_ledger`` table."""

    def list_ledger_entries(self, quote_id: str) -> list[PaymentLedgerEntry]:
        """Return every ledger entry recorded for a quote."""
        records = PaymentLedgerRecord.objects.filter(quote_id=quote_id).order_by("created_at")
        return [record.to_entry() for record in records]

    def append(self, quote_id: str, entry: PaymentLedgerEntry) -> PaymentLedgerEntry:
        """
        Record a new ledger entry for a quote.

        Args:
            quote_id: Quote the entry belongs to.
            entry: Entry to record.

        Returns:
            The stored entry, with its id and timestamp.
        """
        record = PaymentLedgerRecord.from_entry(quote_id, entry)
        record.save()
        logger.info(
            "Ledger entry recorded",
            quote_id=quote_id,
            entry_id=str(record.id),
            transaction_type=record.transaction_type,
            amount=record.amount,
            currency=record.currency,
        )
        return record.to_entry()
