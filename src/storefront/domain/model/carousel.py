"""Per-order image carousel.

An order's images live inside its items.  The carousel walks them as one
flat sequence (item order first, then image order within the item) using
a single integer cursor per order.  The cursor is stored separately from
the orders themselves and is always read modulo the current image count,
so it stays valid when an order's items change shape between refreshes.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from functools import lru_cache

from storefront.domain.model.order import Order, OrderItem


@dataclass(frozen=True)
class CarouselImage:
    url: str
    product_name: str  # owning item, used for captions and alt text
    item_index: int
    image_index: int


@lru_cache(maxsize=256)
def flatten_images(items: tuple[OrderItem, ...]) -> tuple[CarouselImage, ...]:
    """Flatten nested item images into one ordered sequence."""
    return tuple(
        CarouselImage(
            url=url,
            product_name=item.product_name,
            item_index=item_index,
            image_index=image_index,
        )
        for item_index, item in enumerate(items)
        for image_index, url in enumerate(item.images)
    )


def current_image(order: Order, cursor: int) -> CarouselImage | None:
    """Image under *cursor*, or None when the order has no images."""
    images = flatten_images(order.items)
    if not images:
        return None
    return images[cursor % len(images)]


def next_cursor(order: Order, cursor: int) -> int:
    total = len(flatten_images(order.items))
    if total == 0:
        return cursor
    return (cursor % total + 1) % total


def prev_cursor(order: Order, cursor: int) -> int:
    total = len(flatten_images(order.items))
    if total == 0:
        return cursor
    return (cursor % total - 1 + total) % total


class CarouselCursors:
    """Cursor positions keyed by order id.

    Absent ids read as 0.  Filtering a list never touches the mapping;
    only :meth:`retain` drops cursors, for orders that left the result set.
    """

    def __init__(self) -> None:
        self._cursors: dict[str, int] = {}

    def __contains__(self, order_id: object) -> bool:
        return order_id in self._cursors

    def get(self, order_id: str) -> int:
        return self._cursors.get(order_id, 0)

    def current(self, order: Order) -> CarouselImage | None:
        return current_image(order, self.get(order.id))

    def next(self, order: Order) -> int:
        return self._move(order, next_cursor(order, self.get(order.id)))

    def prev(self, order: Order) -> int:
        return self._move(order, prev_cursor(order, self.get(order.id)))

    def retain(self, order_ids: Iterable[str]) -> None:
        keep = set(order_ids)
        for order_id in [oid for oid in self._cursors if oid not in keep]:
            del self._cursors[order_id]

    def _move(self, order: Order, cursor: int) -> int:
        if order.image_count == 0:
            return self.get(order.id)
        self._cursors[order.id] = cursor
        return cursor
