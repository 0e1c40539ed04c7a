"""Local order cache and reconciler.

Holds the orders of the current view (every order for an admin, the
caller's own orders for a customer) in the order the gateway sent them.
Two ways of folding server truth back in:

- ``replace_all`` after a full refresh (admin mutations, so aggregate
  counts are recomputed from authoritative data);
- ``apply_status`` after a customer mutation, patching only the one
  order's status and trusting the dispatcher's reported new status.

All projections are pure and leave the cache untouched.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.order import Order, OrderStatus

ALL = "all"

SORT_KEYS = ("newest", "oldest", "price-high", "price-low")


class OrderCache:

    def __init__(self, orders: Iterable[Order] = ()) -> None:
        self._orders: list[Order] = []
        self.replace_all(orders)

    def __len__(self) -> int:
        return len(self._orders)

    def __iter__(self) -> Iterator[Order]:
        return iter(self._orders)

    @property
    def orders(self) -> tuple[Order, ...]:
        return tuple(self._orders)

    def get(self, order_id: str) -> Order | None:
        for order in self._orders:
            if order.id == order_id:
                return order
        return None

    def get_by_number(self, order_number: str) -> Order | None:
        for order in self._orders:
            if order.order_number == order_number:
                return order
        return None

    # --- Reconciliation -------------------------------------------------------

    def replace_all(self, orders: Iterable[Order]) -> None:
        """Replace the whole collection, keeping the received order.

        A duplicated id replaces the earlier entry in place, so the cache
        never holds two orders with the same id.
        """
        result: list[Order] = []
        positions: dict[str, int] = {}
        for order in orders:
            if order.id in positions:
                result[positions[order.id]] = order
            else:
                positions[order.id] = len(result)
                result.append(order)
        self._orders = result

    def apply_status(self, order_id: str, new_status: OrderStatus) -> None:
        """Rewrite only the status of the matching order; no-op if absent."""
        for i, order in enumerate(self._orders):
            if order.id == order_id:
                self._orders[i] = order.with_status(new_status)
                return

    # --- Projections ----------------------------------------------------------

    def project_by_status(self, status: OrderStatus | str) -> Iterator[Order]:
        """Lazily yield orders matching *status*; ``"all"`` yields every order.

        A value that names no known status matches nothing.
        """
        if status == ALL:
            return iter(self._orders)
        wanted = status.value if isinstance(status, OrderStatus) else status
        return (order for order in self._orders if order.status.value == wanted)

    def search(self, query: str) -> Iterator[Order]:
        """Orders whose number or any product name contains *query*."""
        return (order for order in self._orders if matches_query(order, query))

    def sorted_by(self, key: str = "newest") -> list[Order]:
        return sort_orders(self._orders, key)

    def status_counts(self) -> dict[str, int]:
        counts = {ALL: len(self._orders)}
        for status in OrderStatus:
            counts[status.value] = 0
        for order in self._orders:
            counts[order.status.value] += 1
        return counts


def matches_query(order: Order, query: str) -> bool:
    needle = query.strip().lower()
    if not needle:
        return True
    return needle in order.order_number.lower() or any(
        needle in item.product_name.lower() for item in order.items
    )


def sort_orders(orders: Iterable[Order], key: str = "newest") -> list[Order]:
    """Stable sort by creation time or total amount."""
    if key == "newest":
        return sorted(orders, key=lambda o: o.created_at, reverse=True)
    if key == "oldest":
        return sorted(orders, key=lambda o: o.created_at)
    if key == "price-high":
        return sorted(orders, key=lambda o: o.total_amount.amount, reverse=True)
    if key == "price-low":
        return sorted(orders, key=lambda o: o.total_amount.amount)
    raise ValidationError(f"Unknown sort key {key!r}; expected one of {', '.join(SORT_KEYS)}")
