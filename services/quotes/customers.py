"""Customer shapes attached to a quote.

A quote belongs to exactly one kind of customer: a registered user, a guest
who only left an email address, or a customer an operator created on their
behalf. Each kind is its own frozen dataclass; ``describe_customer`` turns
any of them into the uniform record shown next to a quote.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from django.core.exceptions import ValidationError
from django.core.validators import validate_email

from services.errors import PricingValidationError


class CustomerKind(str, Enum):
    """Kinds of customer a quote can belong to."""

    REGISTERED = "registered"
    GUEST = "guest"
    ADMIN_CREATED = "admin_created"


def _require_email(email: str) -> None:
    try:
        validate_email(email)
    except ValidationError as e:
        raise PricingValidationError("customer.email", "must be a valid email address") from e


@dataclass(frozen=True, slots=True)
class RegisteredCustomer:
    """A customer with an account."""

    kind: ClassVar[CustomerKind] = CustomerKind.REGISTERED

    user_id: str
    email: str = ""
    name: str = ""
    phone: str = ""

    def __post_init__(self) -> None:
        """Validate the account reference."""
        if not self.user_id.strip():
            raise PricingValidationError("customer.user_id", "is required for registered customers")
        if self.email:
            _require_email(self.email)


@dataclass(frozen=True, slots=True)
class GuestCustomer:
    """A customer known only by the email they left with the quote."""

    kind: ClassVar[CustomerKind] = CustomerKind.GUEST

    email: str
    name: str = ""
    phone: str = ""

    def __post_init__(self) -> None:
        """Validate the contact email."""
        _require_email(self.email)


@dataclass(frozen=True, slots=True)
class AdminCreatedCustomer:
    """A customer an operator entered while creating the quote."""

    kind: ClassVar[CustomerKind] = CustomerKind.ADMIN_CREATED

    created_by: str
    email: str = ""
    name: str = ""
    phone: str = ""

    def __post_init__(self) -> None:
        """Validate the operator reference."""
        if not self.created_by.strip():
            raise PricingValidationError(
                "customer.created_by", "is required for admin-created customers"
            )
        if self.email:
            _require_email(self.email)


Customer = RegisteredCustomer | GuestCustomer | AdminCreatedCustomer


@dataclass(frozen=True, slots=True)
class CustomerDisplay:
    """
    What to show for the customer of a quote.

    Attributes:
        kind: Which kind of customer this is.
        name: Display name, never empty.
        email: Contact email, empty when unknown.
        phone: Contact phone, empty when unknown.
        is_guest: Whether the customer has no account.
    """

    kind: CustomerKind
    name: str
    email: str
    phone: str
    is_guest: bool

    def as_dict(self) -> dict[str, str | bool]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "kind": self.kind.value,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "is_guest": self.is_guest,
        }


def describe_customer(customer: Customer) -> CustomerDisplay:
    """
    Build the display record for any kind of customer.

    The name falls back to the local part of the email, then to a label
    for the kind of customer.

    Args:
        customer: The quote's customer.

    Returns:
        Uniform display data.

    Raises:
        TypeError: If ``customer`` is not one of the customer kinds.
    """
    if isinstance(customer, RegisteredCustomer):
        fallback_name = f"Customer {customer.user_id}"
    elif isinstance(customer, GuestCustomer):
        fallback_name = "Guest"
    elif isinstance(customer, AdminCreatedCustomer):
        fallback_name = "Customer"
    else:
        raise TypeError(f"Unsupported customer type: {type(customer).__name__}")

    email = customer.email.strip()
    name = customer.name.strip() or email.partition("@")[0] or fallback_name
    return CustomerDisplay(
        kind=customer.kind,
        name=name,
        email=email,
        phone=customer.phone.strip(),
        is_guest=customer.kind == CustomerKind.GUEST,
    )
