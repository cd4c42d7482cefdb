"""Admin configuration for payments app."""

from django.contrib import admin

from .models import PaymentLedgerRecord


@admin.register(PaymentLedgerRecord)
class PaymentLedgerRecordAdmin(admin.ModelAdmin):
    """Read-only admin for the payment ledger."""

    list_display = (
        "quote_id",
        "transaction_type",
        "status",
        "amount",
        "currency",
        "usd_equivalent",
        "reference_number",
        "created_at",
    )
    list_filter = ("transaction_type", "status", "currency")
    search_fields = ("quote_id", "reference_number", "gateway_transaction_id")
    ordering = ("-created_at",)

    def has_change_permission(self, request, obj=None) -> bool:
        """Ledger rows are never edited."""
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        """Ledger rows are never deleted."""
        return False
