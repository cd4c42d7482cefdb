"""
Result pattern for explicit error handling.

Store reads in the pricing engine never raise into the calculation code.
Each read returns either a ``Success`` carrying the record or a ``Failure``
carrying the reason, and the calling component decides which fallback
applies.

Example:
    >>> result = attempt(Decimal, "134.5")
    >>> result.unwrap_or(Decimal("1"))
    Decimal('134.5')
    >>> attempt(Decimal, "n/a").unwrap_or(Decimal("1"))
    Decimal('1')
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable


@dataclass(frozen=True, slots=True)
class Success[T]:
    """
    A successful result.

    Attributes:
        value: The success value.
    """

    value: T

    def unwrap_or(self, _default: T) -> T:
        """Return the contained value, ignoring the default."""
        return self.value


@dataclass(frozen=True, slots=True)
class Failure[E]:
    """
    A failed result.

    Attributes:
        error: The error value.
    """

    error: E

    def unwrap_or[T](self, default: T) -> T:
        """Return the provided default."""
        return default


type Result[T, E] = Success[T] | Failure[E]


def attempt[T](func: Callable[..., T], *args: object) -> Result[T, Exception]:
    """
    Run ``func`` and capture any exception as a Failure.

    Args:
        func: Callable to invoke.
        *args: Positional arguments for ``func``.

    Returns:
        Success with the return value, or Failure with the raised exception.
    """
    try:
        return Success(func(*args))
    except Exception as exc:
        return Failure(exc)
