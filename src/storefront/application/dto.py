"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry display-ready data from the view controller to the CLI
without exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class OrderItemDTO:
    product_name: str
    quantity: int
    unit_price: str  # formatted, e.g. "UGX 15,000"
    total_price: str
    image_count: int


@dataclass(frozen=True)
class CarouselDTO:
    """The image currently shown for an order, with its position."""

    url: str
    caption: str
    position: int  # 1-based, for "2 / 5"
    total: int


@dataclass(frozen=True)
class OrderDTO:
    id: str
    order_number: str
    status: str
    customer_name: str
    items: list[OrderItemDTO]
    total: str
    payment_method: str
    created_at: str
    notes: str | None
    image: CarouselDTO | None
    actions: list[str]  # action names the current role may request
