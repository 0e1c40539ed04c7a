"""Application service: the orders view, for either actor.

One controller serves both the admin view and the customer view; the
role picks the gateway listing, the permitted actions, and how a
successful action is folded back into the cache.
"""

from __future__ import annotations

import logging
from datetime import timezone

from storefront.application.dispatcher import ActionDispatcher
from storefront.application.dto import CarouselDTO, OrderDTO, OrderItemDTO
from storefront.application.notice import Notice
from storefront.application.order_cache import (
    ALL,
    OrderCache,
    matches_query,
    sort_orders,
)
from storefront.application.outcome import ActionOutcome, ErrorKind, classify
from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.model.carousel import CarouselCursors
from storefront.domain.model.order import Order, OrderStatus
from storefront.domain.repository.order_gateway import (
    GatewayError,
    GatewayUnauthorized,
    OrderGateway,
    Session,
)
from storefront.domain.service.order_state_machine import (
    ActionSpec,
    OrderAction,
    Role,
    allowed_actions,
)

logger = logging.getLogger(__name__)

ROUTES = {
    Role.ADMIN: "/admin/orders",
    Role.CUSTOMER: "/my-orders",
}


class OrderView:

    def __init__(self, gateway: OrderGateway, session: Session, role: Role) -> None:
        self.role = role
        self.route = ROUTES[role]
        self.cache = OrderCache()
        self.cursors = CarouselCursors()
        self.notice = Notice()
        self.dispatcher = ActionDispatcher(gateway, session, role, return_to=self.route)
        self._gateway = gateway
        self._session = session

    async def refresh(self) -> bool:
        """Reload the whole list from the gateway.

        Returns False (and records the error) when the list could not be
        loaded; the cache is then left as it was.
        """
        token = self._session.token
        if not token:
            self.notice.fail("Please login to view your orders")
            return False

        try:
            orders = await self._gateway.list_orders(self.role, token)
        except GatewayUnauthorized as exc:
            logger.warning("Unauthorized while loading orders; forcing logout")
            self._session.force_logout(self.route)
            self.notice.fail(classify(exc, "Failed to load orders").message)
            return False
        except GatewayError as exc:
            logger.warning("Failed to load orders: %s", exc.message)
            self.notice.fail(classify(exc, "Failed to load orders").message)
            return False

        self.cache.replace_all(orders)
        self.cursors.retain(order.id for order in self.cache)
        self.notice.dismiss()
        return True

    async def perform(
        self,
        order_id: str,
        action: OrderAction,
        text: str | None = None,
    ) -> ActionOutcome:
        """Run *action* on a cached order and reconcile the cache.

        *order_id* may also be the human-readable order number.

        A success always patches the one order.  An admin success then
        triggers a full refresh so aggregate counts come from the gateway;
        if that refresh fails the patched status stays and the action is
        still reported as done.
        """
        order = self._require(order_id)
        outcome = await self.dispatcher.dispatch(order, action, text)

        if outcome.error is ErrorKind.BUSY:
            return outcome
        if not outcome.ok:
            self.notice.fail(outcome.message)
            return outcome

        self.notice.succeed(outcome.message)
        if outcome.new_status is not None:
            self.cache.apply_status(order.id, outcome.new_status)
        if self.role is Role.ADMIN and not await self.refresh():
            self.notice.success = outcome.message
        return outcome

    # --- Read side ------------------------------------------------------------

    def actions_for(self, order: Order) -> tuple[ActionSpec, ...]:
        return allowed_actions(order, self.role)

    def visible_orders(
        self,
        status: OrderStatus | str = ALL,
        query: str = "",
        sort: str = "newest",
    ) -> list[Order]:
        """Filter by status, then by search text, then sort."""
        filtered = (o for o in self.cache.project_by_status(status) if matches_query(o, query))
        return sort_orders(filtered, sort)

    def _require(self, order_id: str) -> Order:
        order = self.cache.get(order_id) or self.cache.get_by_number(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order {order_id} not found")
        return order

    # --- Display --------------------------------------------------------------

    def describe(self, order: Order) -> OrderDTO:
        image = self.cursors.current(order)
        total_images = order.image_count
        return OrderDTO(
            id=order.id,
            order_number=order.order_number,
            status=order.status.value,
            customer_name=order.customer.name,
            items=[
                OrderItemDTO(
                    product_name=item.product_name,
                    quantity=item.quantity.value,
                    unit_price=str(item.unit_price),
                    total_price=str(item.total_price),
                    image_count=len(item.images),
                )
                for item in order.items
            ],
            total=str(order.total_amount),
            payment_method=order.payment_method,
            created_at=order.created_at.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
            notes=order.customer_notes,
            image=(
                CarouselDTO(
                    url=image.url,
                    caption=image.product_name,
                    position=self.cursors.get(order.id) % total_images + 1,
                    total=total_images,
                )
                if image is not None
                else None
            ),
            actions=[spec.action.value for spec in self.actions_for(order)],
        )
