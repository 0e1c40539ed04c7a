"""Order status state machine.

One table describes every edge the client may request, which actor may
request it, and what text must accompany it.  Admin and customer views
both consult this table, parameterized by role, so the two can never
drift apart.

    pending -> processing -> delivered -> confirmed
    pending -> cancelled

``confirmed`` and ``cancelled`` are terminal.  The gateway remains the
final authority; this table is a pre-flight guard that keeps illegal
requests off the network.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from storefront.domain.exceptions import TransitionNotAllowed, ValidationError
from storefront.domain.model.order import Order, OrderStatus


class Role(Enum):
    ADMIN = "admin"
    CUSTOMER = "customer"


class OrderAction(Enum):
    PROCESS = "process"
    DELIVER = "deliver"
    REJECT = "reject"
    CONFIRM_DELIVERY = "confirm-delivery"
    CANCEL = "cancel"


@dataclass(frozen=True)
class ActionSpec:
    action: OrderAction
    source: OrderStatus
    target: OrderStatus
    role: Role
    required_input: str | None = None  # human label of the mandatory text, if any
    verb: str = ""  # used in "Failed to <verb>" messages

    @property
    def needs_input(self) -> bool:
        return self.required_input is not None


TRANSITIONS: tuple[ActionSpec, ...] = (
    ActionSpec(
        OrderAction.PROCESS, OrderStatus.PENDING, OrderStatus.PROCESSING,
        Role.ADMIN, verb="process order",
    ),
    ActionSpec(
        OrderAction.REJECT, OrderStatus.PENDING, OrderStatus.CANCELLED,
        Role.ADMIN, required_input="rejection reason", verb="reject order",
    ),
    ActionSpec(
        OrderAction.CANCEL, OrderStatus.PENDING, OrderStatus.CANCELLED,
        Role.CUSTOMER, required_input="cancellation reason", verb="cancel order",
    ),
    ActionSpec(
        OrderAction.DELIVER, OrderStatus.PROCESSING, OrderStatus.DELIVERED,
        Role.ADMIN, verb="deliver order",
    ),
    ActionSpec(
        OrderAction.CONFIRM_DELIVERY, OrderStatus.DELIVERED, OrderStatus.CONFIRMED,
        Role.CUSTOMER, required_input="confirmation note", verb="confirm delivery",
    ),
)

TERMINAL_STATUSES = frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED})

_BY_ACTION: dict[OrderAction, ActionSpec] = {t.action: t for t in TRANSITIONS}


def spec_for(action: OrderAction) -> ActionSpec:
    return _BY_ACTION[action]


def allowed_actions(order: Order, role: Role) -> tuple[ActionSpec, ...]:
    """Actions *role* may request on *order* right now, in table order."""
    return tuple(
        t for t in TRANSITIONS if t.source == order.status and t.role == role
    )


def can_transition(source: OrderStatus, target: OrderStatus) -> bool:
    return any(t.source == source and t.target == target for t in TRANSITIONS)


def ensure_allowed(
    order: Order,
    role: Role,
    action: OrderAction,
    text: str | None = None,
) -> ActionSpec:
    """Validate a request before it is dispatched.

    Raises TransitionNotAllowed for a status/role pair outside the table
    and ValidationError when the mandatory text is missing or blank.
    """
    spec = spec_for(action)
    if spec.role != role:
        raise TransitionNotAllowed(
            f"A {role.value} cannot {spec.verb} (order {order.order_number})"
        )
    if order.status != spec.source:
        raise TransitionNotAllowed(
            f"Cannot {spec.verb} {order.order_number}: status is "
            f"{order.status.value}, expected {spec.source.value}"
        )
    if spec.needs_input and (text is None or not text.strip()):
        raise ValidationError(f"A {spec.required_input} is required")
    return spec
