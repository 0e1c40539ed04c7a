"""Classified result of a gateway call.

Every gateway failure is folded into an ``ActionOutcome`` at the
application boundary so nothing escapes to the view as an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from storefront.domain.model.order import OrderStatus
from storefront.domain.repository.order_gateway import (
    GatewayError,
    GatewayRejected,
    GatewayUnauthorized,
)

SESSION_EXPIRED_MESSAGE = "Session expired. Please login again."


class ErrorKind(Enum):
    UNAUTHORIZED = "unauthorized"
    REQUEST_FAILED = "request_failed"  # transport or non-2xx
    REJECTED = "rejected"  # 2xx with success: false
    BUSY = "busy"  # latch held; nothing was sent


@dataclass(frozen=True)
class ActionOutcome:
    new_status: OrderStatus | None = None
    error: ErrorKind | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @staticmethod
    def success(new_status: OrderStatus | None, message: str = "") -> ActionOutcome:
        return ActionOutcome(new_status=new_status, message=message)

    @staticmethod
    def busy() -> ActionOutcome:
        return ActionOutcome(
            error=ErrorKind.BUSY, message="Another action is still in progress"
        )


def classify(exc: GatewayError, fallback: str) -> ActionOutcome:
    """Map a gateway exception to an outcome with the best message available."""
    if isinstance(exc, GatewayUnauthorized):
        return ActionOutcome(error=ErrorKind.UNAUTHORIZED, message=SESSION_EXPIRED_MESSAGE)
    kind = ErrorKind.REJECTED if isinstance(exc, GatewayRejected) else ErrorKind.REQUEST_FAILED
    return ActionOutcome(error=kind, message=exc.message or fallback)
