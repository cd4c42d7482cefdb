"""Types for payment reconciliation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from services.errors import PricingValidationError

ZERO = Decimal("0")


class TransactionType(str, Enum):
    """Kind of ledger entry."""

    PAYMENT = "payment"
    CUSTOMER_PAYMENT = "customer_payment"
    REFUND = "refund"
    PARTIAL_REFUND = "partial_refund"

    @property
    def is_refund(self) -> bool:
        """Check if the entry gives money back."""
        return self in {TransactionType.REFUND, TransactionType.PARTIAL_REFUND}


class PaymentStatus(str, Enum):
    """Payment state of a quote, decided on USD amounts."""

    PAID = "paid"
    PARTIAL = "partial"
    UNPAID = "unpaid"


@dataclass(frozen=True, slots=True)
class PaymentLedgerEntry:
    """
    One settled payment or refund recorded against a quote.

    Entries are append-only. Refunds are stored with a negative amount.

    Attributes:
        amount: Amount in ``currency``.
        currency: ISO 4217 code of the amount.
        transaction_type: Payment or refund kind (None on legacy rows).
        status: Gateway status, e.g. 'completed'.
        usd_equivalent: USD value stamped when the entry was written.
        exchange_rate_at_payment: Units of ``currency`` per USD at payment time.
        payment_method: Gateway or method name.
        created_at: When the entry was recorded.
        id: Identifier in the ledger store.
        reference_number: Bank or receipt reference, used to spot duplicates.
        gateway_transaction_id: Payment gateway's transaction id, used to spot duplicates.
    """

    amount: Decimal
    currency: str
    transaction_type: TransactionType | None = TransactionType.PAYMENT
    status: str | None = "completed"
    usd_equivalent: Decimal | None = None
    exchange_rate_at_payment: Decimal | None = None
    payment_method: str = ""
    created_at: datetime | None = None
    id: str | None = None
    reference_number: str = ""
    gateway_transaction_id: str = ""

    @classmethod
    def create_payment(
        cls,
        amount: Decimal,
        currency: str,
        exchange_rate_at_payment: Decimal,
        payment_method: str = "",
        transaction_type: TransactionType = TransactionType.CUSTOMER_PAYMENT,
        created_at: datetime | None = None,
        reference_number: str = "",
        gateway_transaction_id: str = "",
    ) -> PaymentLedgerEntry:
        """
        Build a payment entry with its USD equivalent stamped.

        Args:
            amount: Positive amount received, in ``currency``.
            currency: Currency of the payment.
            exchange_rate_at_payment: Units of ``currency`` per USD right now.
            payment_method: Gateway or method name.
            transaction_type: 'payment' or 'customer_payment'.
            created_at: Recording time.
            reference_number: Bank or receipt reference.
            gateway_transaction_id: Gateway transaction id.

        Returns:
            The new entry.

        Raises:
            PricingValidationError: If the amount or rate is not positive.
        """
        if amount <= 0:
            raise PricingValidationError("amount", "payment amount must be positive")
        if exchange_rate_at_payment <= 0:
            raise PricingValidationError("exchange_rate_at_payment", "must be positive")
        return cls(
            amount=amount,
            currency=currency,
            transaction_type=transaction_type,
            status="completed",
            usd_equivalent=amount / exchange_rate_at_payment,
            exchange_rate_at_payment=exchange_rate_at_payment,
            payment_method=payment_method,
            created_at=created_at,
            reference_number=reference_number,
            gateway_transaction_id=gateway_transaction_id,
        )

    def as_dict(self) -> dict[str, str | None]:
        """Serialise for API output."""

        def _text(value: object | None) -> str | None:
            return None if value is None else str(value)

        return {
            "id": self.id,
            "amount": str(self.amount),
            "currency": self.currency,
            "transaction_type": self.transaction_type.value if self.transaction_type else None,
            "status": self.status,
            "usd_equivalent": _text(self.usd_equivalent),
            "exchange_rate_at_payment": _text(self.exchange_rate_at_payment),
            "payment_method": self.payment_method,
            "reference_number": self.reference_number,
            "gateway_transaction_id": self.gateway_transaction_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def create_refund(
        cls,
        amount: Decimal,
        currency: str,
        exchange_rate_at_payment: Decimal,
        payment_method: str = "",
        partial: bool = False,
        created_at: datetime | None = None,
    ) -> PaymentLedgerEntry:
        """Build a refund entry; the stored amount is negative."""
        if amount <= 0:
            raise PricingValidationError("amount", "refund amount must be positive")
        if exchange_rate_at_payment <= 0:
            raise PricingValidationError("exchange_rate_at_payment", "must be positive")
        return cls(
            amount=-amount,
            currency=currency,
            transaction_type=(
                TransactionType.PARTIAL_REFUND if partial else TransactionType.REFUND
            ),
            status="completed",
            usd_equivalent=-(amount / exchange_rate_at_payment),
            exchange_rate_at_payment=exchange_rate_at_payment,
            payment_method=payment_method,
            created_at=created_at,
        )


@dataclass(frozen=True, slots=True)
class PaymentSummary:
    """
    Derived payment state of a quote; never persisted.

    ``status`` and ``is_overpaid`` come from the USD fields only, so a later
    exchange-rate change cannot reclassify a quote.
    """

    final_total: Decimal
    final_total_usd: Decimal
    total_paid: Decimal
    total_paid_usd: Decimal
    remaining: Decimal
    remaining_usd: Decimal
    overpaid_amount: Decimal
    overpaid_amount_usd: Decimal
    status: PaymentStatus
    is_overpaid: bool
    percentage_paid: Decimal
    currency: str
    exchange_rate: Decimal
    payment_count: int = 0
    refund_count: int = 0
    total_refunded: Decimal = ZERO
    last_payment_at: datetime | None = None

    def as_dict(self) -> dict[str, str | bool | int | None]:
        """Serialise for API output."""
        return {
            "final_total": str(self.final_total),
            "final_total_usd": str(self.final_total_usd),
            "total_paid": str(self.total_paid),
            "total_paid_usd": str(self.total_paid_usd),
            "remaining": str(self.remaining),
            "remaining_usd": str(self.remaining_usd),
            "overpaid_amount": str(self.overpaid_amount),
            "overpaid_amount_usd": str(self.overpaid_amount_usd),
            "status": self.status.value,
            "is_overpaid": self.is_overpaid,
            "percentage_paid": str(self.percentage_paid),
            "currency": self.currency,
            "exchange_rate": str(self.exchange_rate),
            "payment_count": self.payment_count,
            "refund_count": self.refund_count,
            "total_refunded": str(self.total_refunded),
            "last_payment_at": self.last_payment_at.isoformat() if self.last_payment_at else None,
        }


@dataclass(frozen=True, slots=True)
class DueAmountNotice:
    """
    Amount a customer still owes on a quote.

    Attributes:
        amount_due: Remaining amount in local currency, rounded for display.
        amount_due_usd: Remaining amount in USD.
        currency: Local currency.
        status: Payment status the notice was built from.
        message: Customer-facing text.
        quote_id: Quote the notice refers to (optional).
    """

    amount_due: Decimal
    amount_due_usd: Decimal
    currency: str
    status: PaymentStatus
    message: str
    quote_id: str | None = None
