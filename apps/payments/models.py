"""Models for the payments application."""

from __future__ import annotations

import uuid
from typing import Any

from django.db import models

from services.payments.types import PaymentLedgerEntry, TransactionType


class PaymentLedgerRecord(models.Model):
    """
    One row of a quote's append-only payment ledger.

    Rows are written once by payment and refund handlers and never edited;
    corrections are recorded as new refund rows.
    """

    class Kind(models.TextChoices):
        """Transaction type."""

        PAYMENT = "payment", "Payment"
        CUSTOMER_PAYMENT = "customer_payment", "Customer payment"
        REFUND = "refund", "Refund"
        PARTIAL_REFUND = "partial_refund", "Partial refund"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    quote_id = models.CharField(max_length=64, db_index=True)
    amount = models.DecimalField(
        max_digits=14,
        decimal_places=4,
        help_text="Amount in currency; refunds are negative",
    )
    currency = models.CharField(max_length=3)
    transaction_type = models.CharField(
        max_length=20,
        choices=Kind.choices,
        blank=True,
        default="",
    )
    status = models.CharField(max_length=20, default="completed")
    usd_equivalent = models.DecimalField(
        max_digits=14,
        decimal_places=6,
        null=True,
        blank=True,
        help_text="USD value stamped when the entry was recorded",
    )
    exchange_rate_at_payment = models.DecimalField(
        max_digits=18,
        decimal_places=8,
        null=True,
        blank=True,
        help_text="Units of currency per USD at payment time",
    )
    payment_method = models.CharField(max_length=50, blank=True, default="")
    reference_number = models.CharField(max_length=100, blank=True, default="", db_index=True)
    gateway_transaction_id = models.CharField(
        max_length=100, blank=True, default="", db_index=True
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        """Meta options for PaymentLedgerRecord model."""

        db_table = "payment_ledger"
        ordering = ["created_at"]
        verbose_name = "Payment Ledger Entry"
        verbose_name_plural = "Payment Ledger Entries"

    def __str__(self) -> str:
        """Return string representation."""
        kind = self.transaction_type or "entry"
        return f"{kind} {self.amount} {self.currency} ({self.quote_id})"

    def save(self, *args: Any, **kwargs: Any) -> None:
        """Insert the row; existing rows cannot be changed."""
        if not self._state.adding:
            raise ValueError("Payment ledger entries are append-only")
        super().save(*args, **kwargs)

    def delete(self, *args: Any, **kwargs: Any) -> tuple[int, dict[str, int]]:
        """Refuse to delete ledger rows."""
        raise ValueError("Payment ledger entries are append-only")

    def to_entry(self) -> PaymentLedgerEntry:
        """Convert to the engine's ledger entry."""
        return PaymentLedgerEntry(
            id=str(self.id),
            amount=self.amount,
            currency=self.currency,
            transaction_type=(
                TransactionType(self.transaction_type) if self.transaction_type else None
            ),
            status=self.status or None,
            usd_equivalent=self.usd_equivalent,
            exchange_rate_at_payment=self.exchange_rate_at_payment,
            payment_method=self.payment_method,
            created_at=self.created_at,
            reference_number=self.reference_number,
            gateway_transaction_id=self.gateway_transaction_id,
        )

    @classmethod
    def from_entry(cls, quote_id: str, entry: PaymentLedgerEntry) -> PaymentLedgerRecord:
        """Build an unsaved row from a ledger entry."""
        return cls(
            quote_id=quote_id,
            amount=entry.amount,
            currency=entry.currency,
            transaction_type=entry.transaction_type.value if entry.transaction_type else "",
            status=entry.status or "",
            usd_equivalent=entry.usd_equivalent,
            exchange_rate_at_payment=entry.exchange_rate_at_payment,
            payment_method=entry.payment_method,
            reference_number=entry.reference_number,
            gateway_transaction_id=entry.gateway_transaction_id,
        )
