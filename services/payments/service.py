"""USD-anchored payment reconciliation against a quote's final total."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from core.config import get_settings
from core.logging import get_logger
from core.result import Failure
from services.currency.rounding import round2, round_amount
from services.errors import DuplicatePaymentError, PricingValidationError
from services.payments.types import (
    DueAmountNotice,
    PaymentLedgerEntry,
    PaymentStatus,
    PaymentSummary,
    TransactionType,
)
from services.stores.base import read_store
from services.validation import normalize_country, normalize_currency, require_amount

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from services.currency.service import ExchangeRateResolver
    from services.stores.base import PaymentLedgerStore

logger = get_logger(__name__)

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")

# Entries in these states never moved money
IGNORED_STATUSES = frozenset({"failed", "pending", "cancelled", "voided"})

# Legacy rows without a transaction type count only when settled
SETTLED_STATUSES = frozenset({"completed", "success"})

PAYMENT_TYPES = frozenset({TransactionType.PAYMENT, TransactionType.CUSTOMER_PAYMENT})


class PaymentReconciliationLedger:
    """
    Folds a quote's payment ledger into a payment summary and records new
    payments on it.

    Totals are tracked in both the quote's local currency and USD, but the
    paid/partial/unpaid decision and the overpayment flag use USD only.
    Each entry carries the USD value stamped when it was written, so a later
    exchange-rate change cannot flip a settled quote back to partial.

    Example:
        >>> ledger = PaymentReconciliationLedger(store)
        >>> summary = ledger.summarize_quote("q-1", Decimal("145"), Decimal("1.09"), "NPR")
        >>> summary.status
        <PaymentStatus.PARTIAL: 'partial'>
    """

    def __init__(
        self,
        ledger_store: PaymentLedgerStore | None = None,
        tolerance_usd: Decimal | None = None,
        resolver: ExchangeRateResolver | None = None,
    ) -> None:
        """
        Initialize the ledger.

        Args:
            ledger_store: Ledger to read and append to (needed by summarize_quote
                and record_payment).
            tolerance_usd: USD tolerance for status decisions (from settings by default).
            resolver: Source of USD rates for stamping new payments.
        """
        self._store = ledger_store
        self._resolver = resolver
        self._tolerance = (
            tolerance_usd
            if tolerance_usd is not None
            else get_settings().pricing.payment_tolerance_usd
        )

    def calculate_payment_summary(
        self,
        entries: Iterable[PaymentLedgerEntry],
        final_total_local: Decimal,
        final_total_usd: Decimal,
        currency: str,
    ) -> PaymentSummary:
        """
        Compute the payment state of a quote from its ledger.

        The result does not depend on the order of ``entries``.

        Args:
            entries: Ledger entries for the quote.
            final_total_local: Quote total in ``currency``.
            final_total_usd: Quote total in USD.
            currency: Local currency of the quote.

        Returns:
            The derived summary.
        """
        quote_rate = final_total_local / final_total_usd if final_total_usd > ZERO else ONE

        total_paid = ZERO
        total_paid_usd = ZERO
        total_refunded = ZERO
        payment_count = 0
        refund_count = 0
        last_payment_at = None

        for entry in entries:
            kind = self._classify(entry)
            if kind is None:
                continue

            usd = self._usd_equivalent(entry, quote_rate)
            if kind == "refund":
                total_paid -= abs(entry.amount)
                total_paid_usd -= abs(usd)
                total_refunded += abs(entry.amount)
                refund_count += 1
                continue

            total_paid += entry.amount
            total_paid_usd += usd
            payment_count += 1
            if entry.created_at and (last_payment_at is None or entry.created_at > last_payment_at):
                last_payment_at = entry.created_at

        remaining = max(ZERO, final_total_local - total_paid)
        remaining_usd = max(ZERO, final_total_usd - total_paid_usd)
        overpaid = max(ZERO, total_paid - final_total_local)
        overpaid_usd = max(ZERO, total_paid_usd - final_total_usd)

        if remaining_usd <= self._tolerance:
            status = PaymentStatus.PAID
        elif total_paid_usd > self._tolerance:
            status = PaymentStatus.PARTIAL
        else:
            status = PaymentStatus.UNPAID
        is_overpaid = total_paid_usd > final_total_usd + self._tolerance

        if final_total_usd > ZERO:
            percentage_paid = round2(total_paid_usd / final_total_usd * HUNDRED)
        else:
            percentage_paid = HUNDRED

        logger.debug(
            "Payment summary computed",
            currency=currency,
            status=status,
            total_paid_usd=total_paid_usd,
            final_total_usd=final_total_usd,
            payments=payment_count,
            refunds=refund_count,
        )

        return PaymentSummary(
            final_total=round_amount(final_total_local, currency),
            final_total_usd=round2(final_total_usd),
            total_paid=round_amount(total_paid, currency),
            total_paid_usd=round2(total_paid_usd),
            remaining=round_amount(remaining, currency),
            remaining_usd=round2(remaining_usd),
            overpaid_amount=round_amount(overpaid, currency),
            overpaid_amount_usd=round2(overpaid_usd),
            status=status,
            is_overpaid=is_overpaid,
            percentage_paid=percentage_paid,
            currency=currency,
            exchange_rate=quote_rate,
            payment_count=payment_count,
            refund_count=refund_count,
            total_refunded=round_amount(total_refunded, currency),
            last_payment_at=last_payment_at,
        )

    def summarize_quote(
        self,
        quote_id: str,
        final_total_local: Decimal,
        final_total_usd: Decimal,
        currency: str,
    ) -> PaymentSummary:
        """
        Read a quote's ledger and summarize it.

        A ledger that cannot be read is treated as empty, so payment status
        always renders; the failure is logged.

        Args:
            quote_id: Quote whose ledger to read.
            final_total_local: Quote total in ``currency``.
            final_total_usd: Quote total in USD.
            currency: Local currency of the quote.

        Returns:
            The derived summary (zero payments when the ledger is unavailable).

        Raises:
            RuntimeError: If the ledger was built without a store.
        """
        if self._store is None:
            raise RuntimeError("summarize_quote requires a ledger store")

        result = read_store("payment ledger", self._store.list_ledger_entries, quote_id)
        if isinstance(result, Failure):
            if result.error.is_store_failure:
                logger.warning(
                    "Payment ledger unavailable, showing zero payments",
                    quote_id=quote_id,
                    error=str(result.error),
                )
            entries: Iterable[PaymentLedgerEntry] = ()
        else:
            entries = result.value

        return self.calculate_payment_summary(entries, final_total_local, final_total_usd, currency)

    def record_payment(
        self,
        quote_id: str,
        amount: Decimal,
        currency: str,
        payment_method: str,
        country: str | None = None,
        exchange_rate_at_payment: Decimal | None = None,
        reference_number: str = "",
        gateway_transaction_id: str = "",
        created_at: datetime | None = None,
    ) -> PaymentLedgerEntry:
        """
        Append a customer payment to a quote's ledger.

        The entry is stamped with its USD value at today's rate, so later
        rate changes never move it. A payment repeating the amount and
        reference of one already on the ledger is rejected.

        Args:
            quote_id: Quote the payment settles.
            amount: Positive amount received, in ``currency``.
            currency: Currency the customer paid in.
            payment_method: Gateway or method name.
            country: Country whose ``rate_from_usd`` prices ``currency``.
            exchange_rate_at_payment: Units of ``currency`` per USD; looked up
                through the resolver when omitted.
            reference_number: Bank or receipt reference.
            gateway_transaction_id: Gateway transaction id.
            created_at: Recording time (the store's clock by default).

        Returns:
            The entry as stored.

        Raises:
            PricingValidationError: If the input is invalid or no USD rate is known.
            DuplicatePaymentError: If the payment is already on the ledger.
            RuntimeError: If the ledger was built without a store.
        """
        if self._store is None:
            raise RuntimeError("record_payment requires a ledger store")
        if not quote_id or not quote_id.strip():
            raise PricingValidationError("quote_id", "is required")
        if not payment_method or not payment_method.strip():
            raise PricingValidationError("payment_method", "is required")
        require_amount("amount", amount)
        code = normalize_currency("currency", currency)
        if code is None:
            raise PricingValidationError("currency", "is required")

        rate = (
            exchange_rate_at_payment
            if exchange_rate_at_payment is not None
            else self._usd_rate(code, country)
        )
        self._reject_duplicate(
            self._store, quote_id, amount, reference_number, gateway_transaction_id
        )

        entry = PaymentLedgerEntry.create_payment(
            amount,
            code,
            rate,
            payment_method=payment_method.strip(),
            created_at=created_at,
            reference_number=reference_number,
            gateway_transaction_id=gateway_transaction_id,
        )
        stored = self._store.append(quote_id, entry)
        logger.info(
            "Payment recorded",
            quote_id=quote_id,
            amount=amount,
            currency=code,
            usd_equivalent=round2(stored.usd_equivalent or ZERO),
            payment_method=stored.payment_method,
        )
        return stored

    def _usd_rate(self, currency: str, country: str | None) -> Decimal:
        if currency == "USD":
            return ONE
        if self._resolver is not None and country:
            rate = self._resolver.get_usd_rate(normalize_country("country", country), currency)
            if rate is not None:
                return rate
        raise PricingValidationError(
            "exchange_rate_at_payment", f"no USD rate known for {currency}"
        )

    @staticmethod
    def _reject_duplicate(
        store: PaymentLedgerStore,
        quote_id: str,
        amount: Decimal,
        reference_number: str,
        gateway_transaction_id: str,
    ) -> None:
        if not reference_number and not gateway_transaction_id:
            return

        result = read_store("payment ledger", store.list_ledger_entries, quote_id)
        if isinstance(result, Failure):
            # an unreadable ledger does not block the payment
            return
        for entry in result.value:
            if entry.amount != amount:
                continue
            if reference_number and entry.reference_number != reference_number:
                continue
            if gateway_transaction_id and entry.gateway_transaction_id != gateway_transaction_id:
                continue
            field, reference = (
                ("gateway_transaction_id", gateway_transaction_id)
                if gateway_transaction_id
                else ("reference_number", reference_number)
            )
            logger.warning(
                "Duplicate payment rejected",
                quote_id=quote_id,
                reference=reference,
                existing_id=entry.id,
            )
            raise DuplicatePaymentError(field, reference, existing_id=entry.id)

    @staticmethod
    def build_due_notice(
        summary: PaymentSummary,
        quote_id: str | None = None,
    ) -> DueAmountNotice | None:
        """
        Describe what the customer still owes.

        Args:
            summary: Summary to describe.
            quote_id: Quote the notice refers to.

        Returns:
            A notice, or None when the quote is fully paid.
        """
        if summary.status == PaymentStatus.PAID:
            return None

        amount = f"{summary.remaining} {summary.currency}"
        if summary.status == PaymentStatus.PARTIAL:
            message = f"{amount} remaining ({summary.percentage_paid}% paid)"
        else:
            message = f"{amount} due"

        return DueAmountNotice(
            amount_due=summary.remaining,
            amount_due_usd=summary.remaining_usd,
            currency=summary.currency,
            status=summary.status,
            message=message,
            quote_id=quote_id,
        )

    @staticmethod
    def _classify(entry: PaymentLedgerEntry) -> str | None:
        status = (entry.status or "").lower()
        if status in IGNORED_STATUSES:
            return None
        if entry.transaction_type is None:
            return "payment" if status in SETTLED_STATUSES else None
        if entry.transaction_type.is_refund:
            return "refund"
        if entry.transaction_type in PAYMENT_TYPES:
            return "payment"
        return None

    @staticmethod
    def _usd_equivalent(entry: PaymentLedgerEntry, quote_rate: Decimal) -> Decimal:
        if entry.usd_equivalent is not None:
            return entry.usd_equivalent
        if entry.exchange_rate_at_payment and entry.exchange_rate_at_payment > ZERO:
            return entry.amount / entry.exchange_rate_at_payment
        if entry.currency.upper() == "USD":
            return entry.amount
        logger.warning(
            "Ledger entry has no USD value, using quote rate",
            entry_id=entry.id,
            currency=entry.currency,
        )
        return entry.amount / quote_rate
