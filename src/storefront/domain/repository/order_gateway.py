"""Abstract gateway to the remote order service, and the session it trusts.

The gateway owns order state.  Implementations raise the ``Gateway*``
exceptions below; callers in the application layer turn them into
classified outcomes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.order import Order
from storefront.domain.service.order_state_machine import OrderAction, Role


class GatewayError(Exception):
    """The gateway did not apply the request."""

    def __init__(self, message: str, status: int | None = None) -> None:
        self.message = message
        self.status = status
        super().__init__(message)


class GatewayUnauthorized(GatewayError):
    """HTTP 401: the bearer credential is no longer valid."""


class GatewayRequestError(GatewayError):
    """Transport failure or a non-2xx response other than 401."""


class GatewayRejected(GatewayError):
    """A 2xx response whose body says ``success: false``."""


class OrderGateway(ABC):

    @abstractmethod
    async def list_orders(self, role: Role, token: str | None) -> list[Order]:
        """All orders for an admin, the caller's own orders for a customer."""

    @abstractmethod
    async def perform(
        self,
        order_id: str,
        action: OrderAction,
        token: str | None,
        text: str | None = None,
    ) -> None:
        """Issue one state-changing request; return only if it took effect."""


class Session(ABC):
    """Process-wide authentication state, read at call time."""

    @property
    @abstractmethod
    def token(self) -> str | None:
        """Current bearer credential, or None when logged out."""

    @abstractmethod
    def force_logout(self, return_to: str) -> None:
        """Tear the session down and send the user to log in again.

        *return_to* is the route to come back to after logging in.
        """
