"""Tests for USD-anchored payment reconciliation."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from services.currency.service import ExchangeRateResolver
from services.errors import DuplicatePaymentError, ErrorCode, PricingValidationError
from services.payments.service import PaymentReconciliationLedger
from services.payments.types import (
    PaymentLedgerEntry,
    PaymentStatus,
    TransactionType,
)
from services.stores.base import CountrySettings
from services.stores.memory import (
    InMemoryCountrySettingsStore,
    InMemoryPaymentLedgerStore,
    InMemoryRouteStore,
)
from tests.fakes import FailingStore

NPR_TOTAL = Decimal("13450")
USD_TOTAL = Decimal("100")


def _usd(amount: str, **kwargs: object) -> PaymentLedgerEntry:
    return PaymentLedgerEntry(
        amount=Decimal(amount), currency="USD", usd_equivalent=Decimal(amount), **kwargs
    )


@pytest.fixture()
def ledger() -> PaymentReconciliationLedger:
    """Create a ledger with the default one-cent tolerance."""
    return PaymentReconciliationLedger(tolerance_usd=Decimal("0.01"))


class TestLedgerEntryFactories:
    """Tests for PaymentLedgerEntry.create_payment and create_refund."""

    def test_payment_stamps_usd_equivalent(self) -> None:
        """The USD value should be fixed at the rate of the day."""
        entry = PaymentLedgerEntry.create_payment(
            Decimal("6725"), "NPR", Decimal("134.5"), payment_method="esewa"
        )

        assert entry.usd_equivalent == Decimal("50")
        assert entry.transaction_type == TransactionType.CUSTOMER_PAYMENT
        assert entry.status == "completed"

    def test_refund_is_negative(self) -> None:
        """Refund entries should store negative amounts."""
        entry = PaymentLedgerEntry.create_refund(
            Decimal("1345"), "NPR", Decimal("134.5"), partial=True
        )

        assert entry.amount == Decimal("-1345")
        assert entry.usd_equivalent == Decimal("-10")
        assert entry.transaction_type == TransactionType.PARTIAL_REFUND

    @pytest.mark.parametrize(
        ("amount", "rate", "field"),
        [
            ("0", "134.5", "amount"),
            ("-5", "134.5", "amount"),
            ("100", "0", "exchange_rate_at_payment"),
        ],
    )
    def test_non_positive_values_rejected(self, amount: str, rate: str, field: str) -> None:
        """Zero or negative amounts and rates should be rejected."""
        with pytest.raises(PricingValidationError) as exc_info:
            PaymentLedgerEntry.create_payment(Decimal(amount), "NPR", Decimal(rate))

        assert exc_info.value.field == field


class TestCalculatePaymentSummary:
    """Tests for PaymentReconciliationLedger.calculate_payment_summary."""

    def test_no_entries_is_unpaid(self, ledger: PaymentReconciliationLedger) -> None:
        """An empty ledger should be unpaid with the whole total remaining."""
        summary = ledger.calculate_payment_summary([], NPR_TOTAL, USD_TOTAL, "NPR")

        assert summary.status == PaymentStatus.UNPAID
        assert summary.remaining == Decimal("13450")
        assert summary.remaining_usd == Decimal("100.00")
        assert summary.percentage_paid == Decimal("0.00")
        assert summary.exchange_rate == Decimal("134.5")

    def test_half_paid_is_partial(self, ledger: PaymentReconciliationLedger) -> None:
        """Half the USD total paid should be partial at 50%."""
        entries = [PaymentLedgerEntry.create_payment(Decimal("6725"), "NPR", Decimal("134.5"))]

        summary = ledger.calculate_payment_summary(entries, NPR_TOTAL, USD_TOTAL, "NPR")

        assert summary.status == PaymentStatus.PARTIAL
        assert summary.percentage_paid == Decimal("50.00")
        assert summary.remaining == Decimal("6725")
        assert summary.remaining_usd == Decimal("50.00")
        assert summary.payment_count == 1

    def test_rate_drift_does_not_settle_quote(self, ledger: PaymentReconciliationLedger) -> None:
        """Paying the local total at a worse rate should still be partial."""
        entries = [
            PaymentLedgerEntry.create_payment(Decimal("6725"), "NPR", Decimal("134.5")),
            PaymentLedgerEntry.create_payment(Decimal("6725"), "NPR", Decimal("140")),
        ]

        summary = ledger.calculate_payment_summary(entries, NPR_TOTAL, USD_TOTAL, "NPR")

        assert summary.remaining == Decimal("0")
        assert summary.status == PaymentStatus.PARTIAL
        assert summary.remaining_usd == Decimal("1.96")

    def test_within_tolerance_is_paid_not_overpaid(
        self, ledger: PaymentReconciliationLedger
    ) -> None:
        """Half a cent over should be paid but not overpaid."""
        summary = ledger.calculate_payment_summary(
            [_usd("100.005")], USD_TOTAL, USD_TOTAL, "USD"
        )

        assert summary.status == PaymentStatus.PAID
        assert summary.is_overpaid is False

    def test_double_payment_is_overpaid(self, ledger: PaymentReconciliationLedger) -> None:
        """Paying twice should flag overpayment in both currencies."""
        summary = ledger.calculate_payment_summary(
            [_usd("100.005"), _usd("100.005")], USD_TOTAL, USD_TOTAL, "USD"
        )

        assert summary.status == PaymentStatus.PAID
        assert summary.is_overpaid is True
        assert summary.overpaid_amount_usd == Decimal("100.01")
        assert summary.overpaid_amount == Decimal("100.01")
        assert summary.remaining_usd == Decimal("0.00")
        assert summary.percentage_paid == Decimal("200.01")

    def test_one_cent_short_is_paid(self, ledger: PaymentReconciliationLedger) -> None:
        """A shortfall within tolerance should count as paid."""
        summary = ledger.calculate_payment_summary([_usd("99.99")], USD_TOTAL, USD_TOTAL, "USD")

        assert summary.status == PaymentStatus.PAID

    def test_refunds_reduce_paid(self, ledger: PaymentReconciliationLedger) -> None:
        """Refunds should be subtracted by absolute value."""
        entries = [
            _usd("100", created_at=datetime(2026, 3, 1, tzinfo=UTC)),
            PaymentLedgerEntry(
                amount=Decimal("30"),
                currency="USD",
                transaction_type=TransactionType.REFUND,
                usd_equivalent=Decimal("30"),
            ),
        ]

        summary = ledger.calculate_payment_summary(entries, USD_TOTAL, USD_TOTAL, "USD")

        assert summary.total_paid == Decimal("70.00")
        assert summary.total_paid_usd == Decimal("70.00")
        assert summary.total_refunded == Decimal("30.00")
        assert summary.refund_count == 1
        assert summary.status == PaymentStatus.PARTIAL

    @pytest.mark.parametrize("status", ["failed", "pending", "cancelled", "voided", "FAILED"])
    def test_unsettled_entries_ignored(
        self, ledger: PaymentReconciliationLedger, status: str
    ) -> None:
        """Entries that never moved money should not count."""
        summary = ledger.calculate_payment_summary(
            [_usd("100", status=status)], USD_TOTAL, USD_TOTAL, "USD"
        )

        assert summary.status == PaymentStatus.UNPAID
        assert summary.payment_count == 0

    def test_untyped_entries_need_completed_status(
        self, ledger: PaymentReconciliationLedger
    ) -> None:
        """Legacy entries without a type should only count when completed."""
        entries = [
            _usd("40", transaction_type=None, status="completed"),
            _usd("40", transaction_type=None, status=None),
        ]

        summary = ledger.calculate_payment_summary(entries, USD_TOTAL, USD_TOTAL, "USD")

        assert summary.total_paid_usd == Decimal("40.00")

    @pytest.mark.parametrize("status", ["success", "SUCCESS"])
    def test_untyped_gateway_success_counts(
        self, ledger: PaymentReconciliationLedger, status: str
    ) -> None:
        """Gateways that report 'success' instead of 'completed' should still count."""
        entries = [
            _usd("40", transaction_type=None, status="completed"),
            _usd("60", transaction_type=None, status=status),
        ]

        summary = ledger.calculate_payment_summary(entries, USD_TOTAL, USD_TOTAL, "USD")

        assert summary.payment_count == 2
        assert summary.status == PaymentStatus.PAID

    def test_usd_value_from_payment_rate(self, ledger: PaymentReconciliationLedger) -> None:
        """Without a stamped USD value, the rate at payment should be used."""
        entry = PaymentLedgerEntry(
            amount=Decimal("2690"), currency="NPR", exchange_rate_at_payment=Decimal("134.5")
        )

        summary = ledger.calculate_payment_summary([entry], NPR_TOTAL, USD_TOTAL, "NPR")

        assert summary.total_paid_usd == Decimal("20.00")

    def test_usd_value_from_quote_rate(self, ledger: PaymentReconciliationLedger) -> None:
        """Entries with no rate at all should use the quote's own rate."""
        entry = PaymentLedgerEntry(amount=Decimal("1345"), currency="NPR")

        summary = ledger.calculate_payment_summary([entry], NPR_TOTAL, USD_TOTAL, "NPR")

        assert summary.total_paid_usd == Decimal("10.00")

    def test_order_does_not_matter(self, ledger: PaymentReconciliationLedger) -> None:
        """The summary should be the same for any entry order."""
        entries = [
            _usd("10", created_at=datetime(2026, 1, 1, tzinfo=UTC)),
            _usd("25", created_at=datetime(2026, 2, 1, tzinfo=UTC)),
            PaymentLedgerEntry(
                amount=Decimal("-5"),
                currency="USD",
                transaction_type=TransactionType.PARTIAL_REFUND,
                usd_equivalent=Decimal("-5"),
            ),
        ]

        forward = ledger.calculate_payment_summary(entries, USD_TOTAL, USD_TOTAL, "USD")
        backward = ledger.calculate_payment_summary(entries[::-1], USD_TOTAL, USD_TOTAL, "USD")

        assert forward == backward
        assert forward.last_payment_at == datetime(2026, 2, 1, tzinfo=UTC)

    def test_zero_total_is_fully_paid(self, ledger: PaymentReconciliationLedger) -> None:
        """A free quote should be paid at 100%."""
        summary = ledger.calculate_payment_summary([], Decimal("0"), Decimal("0"), "USD")

        assert summary.status == PaymentStatus.PAID
        assert summary.percentage_paid == Decimal("100")
        assert summary.exchange_rate == Decimal("1")

    def test_tolerance_from_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """The default tolerance should come from PRICING_PAYMENT_TOLERANCE_USD."""
        monkeypatch.setenv("PRICING_PAYMENT_TOLERANCE_USD", "1.00")

        summary = PaymentReconciliationLedger().calculate_payment_summary(
            [_usd("99.50")], USD_TOTAL, USD_TOTAL, "USD"
        )

        assert summary.status == PaymentStatus.PAID

    def test_as_dict(self, ledger: PaymentReconciliationLedger) -> None:
        """as_dict should expose the status value and string amounts."""
        data = ledger.calculate_payment_summary([], USD_TOTAL, USD_TOTAL, "USD").as_dict()

        assert data["status"] == "unpaid"
        assert data["remaining_usd"] == "100.00"
        assert data["last_payment_at"] is None


class TestSummarizeQuote:
    """Tests for PaymentReconciliationLedger.summarize_quote."""

    def test_reads_quote_ledger(self, ledger_store: InMemoryPaymentLedgerStore) -> None:
        """Only the quote's own entries should be summarized."""
        ledger_store.append("Q-1", _usd("60"))
        ledger_store.append("Q-2", _usd("40"))
        ledger = PaymentReconciliationLedger(ledger_store)

        summary = ledger.summarize_quote("Q-1", USD_TOTAL, USD_TOTAL, "USD")

        assert summary.total_paid_usd == Decimal("60.00")

    def test_unknown_quote_is_unpaid(self, ledger_store: InMemoryPaymentLedgerStore) -> None:
        """A quote with no entries should be unpaid."""
        summary = PaymentReconciliationLedger(ledger_store).summarize_quote(
            "Q-404", USD_TOTAL, USD_TOTAL, "USD"
        )

        assert summary.status == PaymentStatus.UNPAID

    def test_store_failure_shows_zero_payments(self) -> None:
        """An unreadable ledger should render as unpaid instead of raising."""
        summary = PaymentReconciliationLedger(FailingStore()).summarize_quote(
            "Q-1", NPR_TOTAL, USD_TOTAL, "NPR"
        )

        assert summary.status == PaymentStatus.UNPAID
        assert summary.total_paid == Decimal("0")

    def test_requires_store(self, ledger: PaymentReconciliationLedger) -> None:
        """summarize_quote should refuse to run without a store."""
        with pytest.raises(RuntimeError):
            ledger.summarize_quote("Q-1", USD_TOTAL, USD_TOTAL, "USD")


class TestBuildDueNotice:
    """Tests for PaymentReconciliationLedger.build_due_notice."""

    def test_paid_quote_has_no_notice(self, ledger: PaymentReconciliationLedger) -> None:
        """Nothing is due on a paid quote."""
        summary = ledger.calculate_payment_summary([_usd("100")], USD_TOTAL, USD_TOTAL, "USD")

        assert PaymentReconciliationLedger.build_due_notice(summary) is None

    def test_partial_notice_reports_progress(self, ledger: PaymentReconciliationLedger) -> None:
        """Partial notices should mention the percentage paid."""
        entries = [PaymentLedgerEntry.create_payment(Decimal("6725"), "NPR", Decimal("134.5"))]
        summary = ledger.calculate_payment_summary(entries, NPR_TOTAL, USD_TOTAL, "NPR")

        notice = PaymentReconciliationLedger.build_due_notice(summary, quote_id="Q-1")

        assert notice is not None
        assert notice.amount_due == Decimal("6725")
        assert notice.amount_due_usd == Decimal("50.00")
        assert notice.message == "6725 NPR remaining (50.00% paid)"
        assert notice.quote_id == "Q-1"

    def test_unpaid_notice(self, ledger: PaymentReconciliationLedger) -> None:
        """Unpaid notices should ask for the whole amount."""
        summary = ledger.calculate_payment_summary([], NPR_TOTAL, USD_TOTAL, "NPR")

        notice = PaymentReconciliationLedger.build_due_notice(summary)

        assert notice is not None
        assert notice.status == PaymentStatus.UNPAID
        assert notice.message == "13450 NPR due"


class TestRecordPayment:
    """Tests for PaymentReconciliationLedger.record_payment."""

    @pytest.fixture()
    def resolver(self) -> ExchangeRateResolver:
        """Create a resolver that knows Nepal's USD rate."""
        countries = InMemoryCountrySettingsStore(
            [CountrySettings(code="NP", rate_from_usd=Decimal("134.5"), currency="NPR")]
        )
        return ExchangeRateResolver(InMemoryRouteStore(), countries)

    @pytest.fixture()
    def recorder(
        self, ledger_store: InMemoryPaymentLedgerStore, resolver: ExchangeRateResolver
    ) -> PaymentReconciliationLedger:
        """Create a ledger that can record payments."""
        return PaymentReconciliationLedger(
            ledger_store, tolerance_usd=Decimal("0.01"), resolver=resolver
        )

    def test_stamps_usd_from_country_rate(
        self, recorder: PaymentReconciliationLedger, ledger_store: InMemoryPaymentLedgerStore
    ) -> None:
        """The USD value should be fixed at the country's current rate."""
        entry = recorder.record_payment("Q-1", Decimal("6725"), "npr", "esewa", country="np")

        assert entry.currency == "NPR"
        assert entry.usd_equivalent == Decimal("50")
        assert entry.exchange_rate_at_payment == Decimal("134.5")
        assert entry.transaction_type == TransactionType.CUSTOMER_PAYMENT
        assert entry.id is not None
        assert ledger_store.list_ledger_entries("Q-1") == [entry]

    def test_recorded_payment_shows_in_summary(
        self, recorder: PaymentReconciliationLedger
    ) -> None:
        """A recorded payment should move the quote to partial."""
        recorder.record_payment("Q-1", Decimal("6725"), "NPR", "esewa", country="NP")

        summary = recorder.summarize_quote("Q-1", NPR_TOTAL, USD_TOTAL, "NPR")

        assert summary.status == PaymentStatus.PARTIAL
        assert summary.percentage_paid == Decimal("50.00")

    def test_usd_needs_no_rate(self, ledger_store: InMemoryPaymentLedgerStore) -> None:
        """USD payments should be worth their face value without a resolver."""
        entry = PaymentReconciliationLedger(ledger_store).record_payment(
            "Q-1", Decimal("25"), "USD", "card"
        )

        assert entry.usd_equivalent == Decimal("25")

    def test_explicit_rate_wins(self, recorder: PaymentReconciliationLedger) -> None:
        """A rate given by the caller should be stamped as is."""
        entry = recorder.record_payment(
            "Q-1",
            Decimal("6800"),
            "NPR",
            "bank_transfer",
            exchange_rate_at_payment=Decimal("136"),
        )

        assert entry.usd_equivalent == Decimal("50")

    def test_unknown_rate_rejected(
        self, recorder: PaymentReconciliationLedger, ledger_store: InMemoryPaymentLedgerStore
    ) -> None:
        """A payment that cannot be valued in USD should not be written."""
        with pytest.raises(PricingValidationError) as exc_info:
            recorder.record_payment("Q-1", Decimal("100"), "INR", "upi", country="IN")

        assert exc_info.value.field == "exchange_rate_at_payment"
        assert ledger_store.list_ledger_entries("Q-1") == []

    @pytest.mark.parametrize(
        ("kwargs", "field"),
        [
            ({"quote_id": " "}, "quote_id"),
            ({"amount": Decimal("0")}, "amount"),
            ({"amount": Decimal("-5")}, "amount"),
            ({"currency": "U$D"}, "currency"),
            ({"payment_method": ""}, "payment_method"),
        ],
    )
    def test_invalid_input(
        self, recorder: PaymentReconciliationLedger, kwargs: dict[str, object], field: str
    ) -> None:
        """Invalid payments should be rejected naming the field."""
        values: dict[str, object] = {
            "quote_id": "Q-1",
            "amount": Decimal("10"),
            "currency": "USD",
            "payment_method": "card",
        }
        values.update(kwargs)

        with pytest.raises(PricingValidationError) as exc_info:
            recorder.record_payment(**values)  # type: ignore[arg-type]

        assert exc_info.value.field == field

    def test_duplicate_reference_rejected(
        self, recorder: PaymentReconciliationLedger, ledger_store: InMemoryPaymentLedgerStore
    ) -> None:
        """Submitting the same receipt twice should not double-count it."""
        first = recorder.record_payment(
            "Q-1", Decimal("25"), "USD", "bank_transfer", reference_number="RCPT-7"
        )

        with pytest.raises(DuplicatePaymentError) as exc_info:
            recorder.record_payment(
                "Q-1", Decimal("25"), "USD", "bank_transfer", reference_number="RCPT-7"
            )

        assert exc_info.value.field == "reference_number"
        assert exc_info.value.existing_id == first.id
        assert exc_info.value.code == ErrorCode.DUPLICATE_PAYMENT
        assert len(ledger_store.list_ledger_entries("Q-1")) == 1

    def test_duplicate_gateway_transaction_rejected(
        self, recorder: PaymentReconciliationLedger
    ) -> None:
        """A replayed gateway callback should be refused."""
        recorder.record_payment(
            "Q-1", Decimal("25"), "USD", "stripe", gateway_transaction_id="pi_123"
        )

        with pytest.raises(DuplicatePaymentError) as exc_info:
            recorder.record_payment(
                "Q-1", Decimal("25"), "USD", "stripe", gateway_transaction_id="pi_123"
            )

        assert exc_info.value.field == "gateway_transaction_id"

    def test_same_reference_other_amount_or_quote_allowed(
        self, recorder: PaymentReconciliationLedger, ledger_store: InMemoryPaymentLedgerStore
    ) -> None:
        """Only the same amount on the same quote counts as a repeat."""
        recorder.record_payment("Q-1", Decimal("25"), "USD", "bank", reference_number="R-1")
        recorder.record_payment("Q-1", Decimal("30"), "USD", "bank", reference_number="R-1")
        recorder.record_payment("Q-2", Decimal("25"), "USD", "bank", reference_number="R-1")

        assert len(ledger_store.list_ledger_entries("Q-1")) == 2
        assert len(ledger_store.list_ledger_entries("Q-2")) == 1

    def test_payments_without_reference_are_not_deduplicated(
        self, recorder: PaymentReconciliationLedger, ledger_store: InMemoryPaymentLedgerStore
    ) -> None:
        """Two cash payments of the same amount are both kept."""
        recorder.record_payment("Q-1", Decimal("25"), "USD", "cash")
        recorder.record_payment("Q-1", Decimal("25"), "USD", "cash")

        assert len(ledger_store.list_ledger_entries("Q-1")) == 2

    def test_store_failure_propagates(self) -> None:
        """A ledger that cannot be written should raise, not lose the payment silently."""
        ledger = PaymentReconciliationLedger(FailingStore())

        with pytest.raises(ConnectionError):
            ledger.record_payment("Q-1", Decimal("25"), "USD", "card", reference_number="R-1")

    def test_requires_store(self, ledger: PaymentReconciliationLedger) -> None:
        """record_payment should refuse to run without a store."""
        with pytest.raises(RuntimeError):
            ledger.record_payment("Q-1", Decimal("25"), "USD", "card")
