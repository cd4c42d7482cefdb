"""Quote pricing package."""

from services.quotes.customers import (
    AdminCreatedCustomer,
    Customer,
    CustomerDisplay,
    CustomerKind,
    GuestCustomer,
    RegisteredCustomer,
    describe_customer,
)
from services.quotes.service import QuoteCalculationService, QuoteTotalAssembler
from services.quotes.types import (
    QuoteBreakdown,
    QuoteCharges,
    QuoteItem,
    QuoteRequest,
    QuoteResult,
    TaxRates,
)

__all__ = [
    "AdminCreatedCustomer",
    "Customer",
    "CustomerDisplay",
    "CustomerKind",
    "GuestCustomer",
    "QuoteBreakdown",
    "QuoteCalculationService",
    "QuoteCharges",
    "QuoteItem",
    "QuoteRequest",
    "QuoteResult",
    "QuoteTotalAssembler",
    "RegisteredCustomer",
    "TaxRates",
    "describe_customer",
]
