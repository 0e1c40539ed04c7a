"""Order aggregate as held by the storefront client.

The remote gateway owns the order; the client keeps a read-mostly copy.
Every type here is frozen so a status patch can only be made by building
a new ``Order`` that shares all of its other fields with the old one.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.value_objects import Money, Quantity


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    DELIVERED = "delivered"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    @staticmethod
    def parse(raw: str) -> OrderStatus:
        try:
            return OrderStatus(raw)
        except ValueError:
            raise ValidationError(f"Unknown order status: {raw!r}") from None


DEFAULT_PAYMENT_METHOD = "onDelivery"


@dataclass(frozen=True)
class Customer:
    """Snapshot of the buyer taken at checkout; never edited afterwards."""

    name: str
    phone: str = ""
    location: str = ""


@dataclass(frozen=True)
class OrderItem:
    """A purchased product line with its gallery of images.

    ``total_price`` comes from the gateway, which keeps it equal to
    ``quantity * unit_price``.  The client only displays it.
    """

    product_name: str
    quantity: Quantity
    unit_price: Money
    total_price: Money
    images: tuple[str, ...] = ()

    @property
    def is_priced_consistently(self) -> bool:
        return self.total_price == self.unit_price * self.quantity.value


@dataclass(frozen=True)
class Order:
    """Cached copy of an order.

    The ``__init__`` does not validate business rules: orders are only
    reconstituted from gateway payloads, never created by this client.
    """

    id: str
    order_number: str
    status: OrderStatus
    items: tuple[OrderItem, ...]
    total_amount: Money
    customer: Customer
    payment_method: str = DEFAULT_PAYMENT_METHOD
    customer_notes: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def with_status(self, status: OrderStatus) -> Order:
        """Return a copy that differs from this order only in its status."""
        return replace(self, status=status)

    @property
    def image_count(self) -> int:
        return sum(len(item.images) for item in self.items)
