"""URL configuration for the API application."""

from django.urls import path

from apps.api.views import (
    ExchangeRateView,
    PaymentRecordView,
    PaymentSummaryView,
    QuoteCalculateView,
)

app_name = "api"

urlpatterns = [
    path("exchange-rate/", ExchangeRateView.as_view(), name="exchange-rate"),
    path("quotes/calculate/", QuoteCalculateView.as_view(), name="quote-calculate"),
    path(
        "quotes/<str:quote_id>/payment-summary/",
        PaymentSummaryView.as_view(),
        name="payment-summary",
    ),
    path(
        "quotes/<str:quote_id>/payments/",
        PaymentRecordView.as_view(),
        name="payment-record",
    ),
]
