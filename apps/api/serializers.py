"""API serializers for quote pricing and payment reconciliation."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from rest_framework import serializers

from services.errors import PricingValidationError
from services.quotes.customers import (
    AdminCreatedCustomer,
    Customer,
    CustomerKind,
    GuestCustomer,
    RegisteredCustomer,
)
from services.quotes.types import QuoteCharges, QuoteItem, QuoteRequest

ZERO = Decimal("0")


def _amount_field(**kwargs: Any) -> serializers.DecimalField:
    return serializers.DecimalField(max_digits=14, decimal_places=4, min_value=ZERO, **kwargs)


def _percent_field() -> serializers.DecimalField:
    return serializers.DecimalField(
        max_digits=7,
        decimal_places=4,
        min_value=ZERO,
        required=False,
        allow_null=True,
        default=None,
    )


class ExchangeRateQuerySerializer(serializers.Serializer):
    """Query parameters for the exchange-rate endpoint.

    ``from`` is a Python keyword, so the country fields are added in
    ``get_fields`` rather than declared on the class.
    """

    from_currency = serializers.CharField(max_length=3, required=False, allow_blank=True)
    to_currency = serializers.CharField(max_length=3, required=False, allow_blank=True)

    def get_fields(self) -> dict[str, serializers.Field]:
        """Add the ``from`` and ``to`` country fields."""
        fields = super().get_fields()
        fields["from"] = serializers.CharField(max_length=3, help_text="Origin country code")
        fields["to"] = serializers.CharField(max_length=3, help_text="Destination country code")
        return fields


class ExchangeRateSerializer(serializers.Serializer):
    """Serializer for a resolved exchange rate."""

    rate = serializers.CharField()
    source = serializers.CharField()
    confidence = serializers.CharField()
    warning = serializers.CharField(allow_null=True)


class QuoteItemSerializer(serializers.Serializer):
    """Serializer for a quote line item."""

    price = _amount_field()
    weight_kg = serializers.DecimalField(max_digits=10, decimal_places=4, min_value=ZERO)
    quantity = serializers.IntegerField(min_value=1, default=1)
    name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class CustomerSerializer(serializers.Serializer):
    """Serializer for the customer a quote belongs to.

    ``type`` selects the customer kind; ``user_id`` is required for
    registered customers, ``email`` for guests and ``created_by`` for
    customers an operator created.
    """

    type = serializers.ChoiceField(choices=[kind.value for kind in CustomerKind])
    user_id = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    created_by = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    email = serializers.EmailField(max_length=254, required=False, allow_blank=True, default="")
    name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")

    def validate(self, attrs: dict[str, Any]) -> Customer:
        """Build the matching customer variant."""
        contact = {"email": attrs["email"], "name": attrs["name"], "phone": attrs["phone"]}
        try:
            kind = CustomerKind(attrs["type"])
            if kind == CustomerKind.REGISTERED:
                return RegisteredCustomer(user_id=attrs["user_id"], **contact)
            if kind == CustomerKind.GUEST:
                return GuestCustomer(**contact)
            return AdminCreatedCustomer(created_by=attrs["created_by"], **contact)
        except PricingValidationError as e:
            raise serializers.ValidationError({e.field: [e.message]}) from e


class CustomerDisplaySerializer(serializers.Serializer):
    """Serializer for customer display data."""

    kind = serializers.CharField()
    name = serializers.CharField()
    email = serializers.CharField(allow_blank=True)
    phone = serializers.CharField(allow_blank=True)
    is_guest = serializers.BooleanField()


class QuoteCalculateSerializer(serializers.Serializer):
    """Serializer for quote calculation input.

    Charges are flat fields in origin currency; percentage overrides are
    optional and fall back to country settings and customs tiers.
    """

    origin_country = serializers.CharField(max_length=3)
    destination_country = serializers.CharField(max_length=3)
    origin_currency = serializers.CharField(max_length=3, required=False, allow_null=True)
    destination_currency = serializers.CharField(max_length=3, required=False, allow_null=True)
    quote_id = serializers.CharField(max_length=64, required=False, allow_null=True)
    items = QuoteItemSerializer(many=True, allow_empty=False)
    customer = CustomerSerializer(required=False, allow_null=True)

    merchant_shipping = _amount_field(default=ZERO)
    domestic_shipping = _amount_field(default=ZERO)
    handling_charge = _amount_field(default=ZERO)
    insurance_amount = _amount_field(default=ZERO)
    discount = _amount_field(default=ZERO)
    sales_tax_percent = _percent_field()
    customs_percent = _percent_field()
    vat_percent = _percent_field()

    def to_request(self) -> QuoteRequest:
        """Build the engine's quote request from validated data."""
        data = self.validated_data
        return QuoteRequest(
            origin_country=data["origin_country"],
            destination_country=data["destination_country"],
            origin_currency=data.get("origin_currency") or None,
            destination_currency=data.get("destination_currency") or None,
            quote_id=data.get("quote_id") or None,
            customer=data.get("customer"),
            items=tuple(
                QuoteItem(
                    price=item["price"],
                    weight_kg=item["weight_kg"],
                    quantity=item["quantity"],
                    name=item.get("name", ""),
                )
                for item in data["items"]
            ),
            charges=QuoteCharges(
                merchant_shipping=data["merchant_shipping"],
                domestic_shipping=data["domestic_shipping"],
                handling_charge=data["handling_charge"],
                insurance_amount=data["insurance_amount"],
                discount=data["discount"],
                sales_tax_percent=data.get("sales_tax_percent"),
                customs_percent=data.get("customs_percent"),
                vat_percent=data.get("vat_percent"),
            ),
        )


class ShippingCostSerializer(serializers.Serializer):
    """Serializer for the shipping part of a quote."""

    cost = serializers.CharField()
    carrier = serializers.CharField()
    delivery_days = serializers.CharField()
    method = serializers.CharField()
    route_id = serializers.CharField(allow_null=True)
    warning = serializers.CharField(allow_null=True)


class CustomsTierResultSerializer(serializers.Serializer):
    """Serializer for the customs part of a quote."""

    customs_percentage = serializers.CharField()
    vat_percentage = serializers.CharField()
    applied_tier = serializers.CharField(allow_null=True)
    fallback_used = serializers.BooleanField()
    route = serializers.CharField()
    warning = serializers.CharField(allow_null=True)


class QuoteResultSerializer(serializers.Serializer):
    """Serializer for a priced quote."""

    breakdown = serializers.DictField(child=serializers.CharField())
    exchange_rate = ExchangeRateSerializer()
    shipping = ShippingCostSerializer()
    customs = CustomsTierResultSerializer()
    destination_currency = serializers.CharField()
    final_total_destination = serializers.CharField()
    final_total_usd = serializers.CharField()
    fallback_used = serializers.BooleanField()
    warnings = serializers.ListField(child=serializers.CharField())
    customer = CustomerDisplaySerializer(allow_null=True)


class PaymentSummaryInputSerializer(serializers.Serializer):
    """Serializer for payment summary input."""

    final_total = _amount_field()
    final_total_usd = _amount_field()
    currency = serializers.CharField(min_length=3, max_length=3)


class RecordPaymentSerializer(serializers.Serializer):
    """Serializer for a payment to record against a quote.

    ``country`` names whose USD rate prices ``currency`` when no
    ``exchange_rate_at_payment`` is given; USD payments need neither.
    """

    amount = serializers.DecimalField(max_digits=14, decimal_places=4, min_value=Decimal("0.0001"))
    currency = serializers.CharField(min_length=3, max_length=3)
    payment_method = serializers.CharField(max_length=50)
    country = serializers.CharField(max_length=3, required=False, allow_blank=True, default="")
    exchange_rate_at_payment = serializers.DecimalField(
        max_digits=18,
        decimal_places=8,
        min_value=Decimal("0.00000001"),
        required=False,
        allow_null=True,
        default=None,
    )
    reference_number = serializers.CharField(
        max_length=100, required=False, allow_blank=True, default=""
    )
    gateway_transaction_id = serializers.CharField(
        max_length=100, required=False, allow_blank=True, default=""
    )


class LedgerEntrySerializer(serializers.Serializer):
    """Serializer for a recorded ledger entry."""

    id = serializers.CharField(allow_null=True)
    amount = serializers.CharField()
    currency = serializers.CharField()
    transaction_type = serializers.CharField(allow_null=True)
    status = serializers.CharField(allow_null=True)
    usd_equivalent = serializers.CharField(allow_null=True)
    exchange_rate_at_payment = serializers.CharField(allow_null=True)
    payment_method = serializers.CharField(allow_blank=True)
    reference_number = serializers.CharField(allow_blank=True)
    gateway_transaction_id = serializers.CharField(allow_blank=True)
    created_at = serializers.CharField(allow_null=True)


class DueAmountNoticeSerializer(serializers.Serializer):
    """Serializer for an amount-due notice."""

    amount_due = serializers.CharField()
    amount_due_usd = serializers.CharField()
    currency = serializers.CharField()
    status = serializers.CharField()
    message = serializers.CharField()


class PaymentSummarySerializer(serializers.Serializer):
    """Serializer for a quote's payment summary."""

    final_total = serializers.CharField()
    final_total_usd = serializers.CharField()
    total_paid = serializers.CharField()
    total_paid_usd = serializers.CharField()
    remaining = serializers.CharField()
    remaining_usd = serializers.CharField()
    overpaid_amount = serializers.CharField()
    overpaid_amount_usd = serializers.CharField()
    status = serializers.CharField()
    is_overpaid = serializers.BooleanField()
    percentage_paid = serializers.CharField()
    currency = serializers.CharField()
    exchange_rate = serializers.CharField()
    payment_count = serializers.IntegerField()
    refund_count = serializers.IntegerField()
    total_refunded = serializers.CharField()
    last_payment_at = serializers.CharField(allow_null=True)
    due_notice = DueAmountNoticeSerializer(allow_null=True)
