"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

from dataclasses import dataclass

from storefront.domain.exceptions import ValidationError

DEFAULT_CURRENCY = "UGX"


@dataclass(frozen=True)
class Money:
    """Monetary amount in whole currency units.

    The store prices in a currency without minor units, so the amount
    is a plain ``int`` and never a float.
    """

    amount: int
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise ValidationError(
                f"Money amount must be an int, got {type(self.amount).__name__}"
            )
        if self.amount < 0:
            raise ValidationError(
                f"Money amount cannot be negative, got {self.amount}"
            )

    # --- Arithmetic helpers ---------------------------------------------------

    def __mul__(self, factor: int) -> Money:
        if not isinstance(factor, int):
            raise TypeError(f"Can only multiply Money by int, got {type(factor).__name__}")
        return Money(self.amount * factor, self.currency)

    # --- Display --------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.currency} {self.amount:,}"

    # --- Factory --------------------------------------------------------------

    @staticmethod
    def of(amount: str | float | int | None) -> Money:
        """Coerce a wire value to whole units; ``None`` means zero."""
        if amount is None:
            return Money(0)
        try:
            value = float(amount)
            whole = int(value)
        except (TypeError, ValueError, OverflowError) as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc
        if value != whole:
            raise ValidationError(f"Money amount must be whole units: {amount!r}")
        return Money(whole)


@dataclass(frozen=True)
class Quantity:
    """A positive integer quantity.

    Enforces the invariant that you cannot order zero or negative items.
    """

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}"
            )
        if self.value <= 0:
            raise ValidationError("Quantity must be positive")

    def __str__(self) -> str:
        return str(self.value)
