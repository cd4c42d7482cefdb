"""API views for quote pricing and payment reconciliation."""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.api.dependencies import (
    get_exchange_rate_resolver,
    get_payment_ledger,
    get_quote_service,
)
from apps.api.serializers import (
    ExchangeRateQuerySerializer,
    ExchangeRateSerializer,
    LedgerEntrySerializer,
    PaymentSummaryInputSerializer,
    PaymentSummarySerializer,
    QuoteCalculateSerializer,
    QuoteResultSerializer,
    RecordPaymentSerializer,
)
from core.logging import get_logger
from services.errors import DuplicatePaymentError, PricingValidationError
from services.validation import normalize_country, normalize_currency

logger = get_logger(__name__)


def _validation_error(
    error: PricingValidationError, status_code: int = status.HTTP_400_BAD_REQUEST
) -> Response:
    return Response(
        {"error": error.message, "field": error.field, "code": error.code.value},
        status=status_code,
    )


class ExchangeRateView(APIView):
    """
    API endpoint resolving the exchange rate between two countries.

    Never fails for a missing rate: unknown pairs come back as a low
    confidence 1:1 fallback with a warning.
    """

    permission_classes = [AllowAny]

    @extend_schema(
        parameters=[
            OpenApiParameter("from", str, required=True),
            OpenApiParameter("to", str, required=True),
            OpenApiParameter("from_currency", str),
            OpenApiParameter("to_currency", str),
        ],
        responses=ExchangeRateSerializer,
    )
    def get(self, request: Request) -> Response:
        """Return the resolved rate."""
        query = ExchangeRateQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)

        data = query.validated_data
        try:
            origin = normalize_country("from", data["from"])
            destination = normalize_country("to", data["to"])
            from_currency = normalize_currency("from_currency", data.get("from_currency") or None)
            to_currency = normalize_currency("to_currency", data.get("to_currency") or None)
        except PricingValidationError as e:
            return _validation_error(e)

        result = get_exchange_rate_resolver().get_exchange_rate(
            origin, destination, from_currency, to_currency
        )
        return Response(ExchangeRateSerializer(result.as_dict()).data)


class QuoteCalculateView(APIView):
    """
    API endpoint pricing a quote.

    Nothing is persisted; callers store the returned breakdown themselves.
    """

    permission_classes = [AllowAny]

    @extend_schema(request=QuoteCalculateSerializer, responses=QuoteResultSerializer)
    def post(self, request: Request) -> Response:
        """Price the quote in the request body."""
        serializer = QuoteCalculateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            result = get_quote_service().calculate(serializer.to_request())
        except PricingValidationError as e:
            logger.info("Quote rejected", field=e.field, error=e.message)
            return _validation_error(e)

        payload = {
            "breakdown": result.breakdown.as_dict(),
            "exchange_rate": result.exchange_rate.as_dict(),
            "shipping": result.shipping.as_dict(),
            "customs": result.customs.as_dict(),
            "destination_currency": result.destination_currency,
            "final_total_destination": str(result.final_total_destination),
            "final_total_usd": str(result.final_total_usd),
            "fallback_used": result.fallback_used,
            "warnings": list(result.warnings),
            "customer": result.customer.as_dict() if result.customer else None,
        }
        return Response(QuoteResultSerializer(payload).data, status=status.HTTP_200_OK)


class PaymentSummaryView(APIView):
    """
    API endpoint summarizing payments recorded against a quote.

    The caller supplies the quote totals; the ledger is read from the
    database and an unreadable ledger yields a zero-payment summary.
    """

    permission_classes = [AllowAny]

    @extend_schema(request=PaymentSummaryInputSerializer, responses=PaymentSummarySerializer)
    def post(self, request: Request, quote_id: str) -> Response:
        """Return the payment summary and the amount still due."""
        serializer = PaymentSummaryInputSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            currency = normalize_currency("currency", data["currency"])
        except PricingValidationError as e:
            return _validation_error(e)

        ledger = get_payment_ledger()
        summary = ledger.summarize_quote(
            quote_id,
            data["final_total"],
            data["final_total_usd"],
            currency,
        )
        notice = ledger.build_due_notice(summary, quote_id=quote_id)

        payload = {
            **summary.as_dict(),
            "due_notice": (
                {
                    "amount_due": str(notice.amount_due),
                    "amount_due_usd": str(notice.amount_due_usd),
                    "currency": notice.currency,
                    "status": notice.status.value,
                    "message": notice.message,
                }
                if notice
                else None
            ),
        }
        return Response(PaymentSummarySerializer(payload).data)



class PaymentRecordView(APIView):
    """
    API endpoint recording a customer payment against a quote.

    The entry is stamped with its USD value when written. Repeating a
    payment's amount and reference returns 409 instead of a second row.
    """

    permission_classes = [AllowAny]

    @extend_schema(
        request=RecordPaymentSerializer,
        responses={201: LedgerEntrySerializer},
    )
    def post(self, request: Request, quote_id: str) -> Response:
        """Append the payment to the quote's ledger."""
        serializer = RecordPaymentSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            entry = get_payment_ledger().record_payment(
                quote_id,
                data["amount"],
                data["currency"],
                data["payment_method"],
                country=data["country"] or None,
                exchange_rate_at_payment=data["exchange_rate_at_payment"],
                reference_number=data["reference_number"],
                gateway_transaction_id=data["gateway_transaction_id"],
            )
        except DuplicatePaymentError as e:
            return _validation_error(e, status.HTTP_409_CONFLICT)
        except PricingValidationError as e:
            logger.info("Payment rejected", quote_id=quote_id, field=e.field, error=e.message)
            return _validation_error(e)

        return Response(
            LedgerEntrySerializer(entry.as_dict()).data, status=status.HTTP_201_CREATED
        )
