"""Application service: dispatch order actions to the gateway.

Each call performs exactly one authenticated state-changing request.
A single busy latch per dispatcher rejects a second request while one is
in flight; the UI shows at most one action surface at a time, so one
latch per dispatcher is enough.  The latch does not abort the in-flight
request, it only refuses new ones.

There is no ordering between different dispatchers.  An admin and a
customer acting on the same order from two sessions race at the gateway,
which decides; a cached status patched here may be stale until the next
full refresh.
"""

from __future__ import annotations

import logging

from storefront.application.outcome import ActionOutcome, classify
from storefront.domain.model.order import Order
from storefront.domain.repository.order_gateway import (
    GatewayError,
    GatewayUnauthorized,
    OrderGateway,
    Session,
)
from storefront.domain.service.order_state_machine import (
    OrderAction,
    Role,
    ensure_allowed,
)

logger = logging.getLogger(__name__)

_SUCCESS_MESSAGES = {
    OrderAction.PROCESS: "Order processed",
    OrderAction.DELIVER: "Order delivered",
    OrderAction.REJECT: "Order rejected",
    OrderAction.CONFIRM_DELIVERY: "Order delivery confirmed successfully!",
    OrderAction.CANCEL: "Order cancelled successfully!",
}


class ActionDispatcher:

    def __init__(
        self,
        gateway: OrderGateway,
        session: Session,
        role: Role,
        return_to: str = "/",
    ) -> None:
        self._gateway = gateway
        self._session = session
        self._role = role
        self._return_to = return_to
        self._busy = False

    @property
    def role(self) -> Role:
        return self._role

    @property
    def is_busy(self) -> bool:
        return self._busy

    async def dispatch(
        self,
        order: Order,
        action: OrderAction,
        text: str | None = None,
    ) -> ActionOutcome:
        """Request *action* on *order* and classify what happened.

        The cached *order* is needed for the pre-flight guard; only its id
        goes over the wire.  Guard failures raise (TransitionNotAllowed,
        ValidationError) and never reach the network.  Gateway failures
        come back as an unsuccessful outcome and change nothing.
        """
        spec = ensure_allowed(order, self._role, action, text)

        if self._busy:
            logger.info("Ignoring %s on %s: another action is in flight", action.value, order.id)
            return ActionOutcome.busy()

        self._busy = True
        try:
            await self._gateway.perform(
                order.id,
                action,
                self._session.token,
                text.strip() if spec.needs_input and text else None,
            )
        except GatewayUnauthorized as exc:
            logger.warning("Unauthorized while trying to %s; forcing logout", spec.verb)
            self._session.force_logout(self._return_to)
            return classify(exc, f"Failed to {spec.verb}")
        except GatewayError as exc:
            logger.warning("Failed to %s %s: %s", spec.verb, order.id, exc.message)
            return classify(exc, f"Failed to {spec.verb}")
        finally:
            self._busy = False

        return ActionOutcome.success(spec.target, _SUCCESS_MESSAGES[action])

    # --- One method per action ------------------------------------------------

    async def process(self, order: Order) -> ActionOutcome:
        return await self.dispatch(order, OrderAction.PROCESS)

    async def deliver(self, order: Order) -> ActionOutcome:
        return await self.dispatch(order, OrderAction.DELIVER)

    async def reject(self, order: Order, reason: str) -> ActionOutcome:
        return await self.dispatch(order, OrderAction.REJECT, reason)

    async def confirm_delivery(self, order: Order, note: str) -> ActionOutcome:
        return await self.dispatch(order, OrderAction.CONFIRM_DELIVERY, note)

    async def cancel(self, order: Order, reason: str) -> ActionOutcome:
        return await self.dispatch(order, OrderAction.CANCEL, reason)
