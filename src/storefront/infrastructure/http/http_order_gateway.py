"""HTTP implementation of OrderGateway.

Talks JSON to the order service with ``httpx.AsyncClient``.  Every call
carries ``Authorization: Bearer <token>``.  Transport errors, non-2xx
responses and ``success: false`` bodies are raised as the matching
``Gateway*`` exception; nothing httpx-specific leaks out.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from storefront.application.outcome import SESSION_EXPIRED_MESSAGE
from storefront.domain.exceptions import ValidationError
from storefront.domain.model.order import (
    DEFAULT_PAYMENT_METHOD,
    Customer,
    Order,
    OrderItem,
    OrderStatus,
)
from storefront.domain.model.value_objects import Money, Quantity
from storefront.domain.repository.order_gateway import (
    GatewayRejected,
    GatewayRequestError,
    GatewayUnauthorized,
    OrderGateway,
)
from storefront.domain.service.order_state_machine import OrderAction, Role

logger = logging.getLogger(__name__)

_LIST_PATHS = {
    Role.ADMIN: "/orders",
    Role.CUSTOMER: "/orders/my-orders",
}

_KNOWN_STATUSES = frozenset(status.value for status in OrderStatus)

# Body field carrying the mandatory text, per action.
_TEXT_FIELDS = {
    OrderAction.REJECT: "reason",
    OrderAction.CANCEL: "reason",
    OrderAction.CONFIRM_DELIVERY: "confirmationNote",
}


class HttpOrderGateway(OrderGateway):

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    # --- OrderGateway interface -----------------------------------------------

    async def list_orders(self, role: Role, token: str | None) -> list[Order]:
        data = await self._request("GET", _LIST_PATHS[role], token)
        raw_orders = data.get("orders") or []
        try:
            return [self._to_domain(raw) for raw in raw_orders if not _has_foreign_status(raw)]
        except (AttributeError, KeyError, TypeError, ValueError, ValidationError) as exc:
            logger.error("Malformed order payload from %s: %s", self._base_url, exc)
            raise GatewayRequestError(f"Invalid order data from server: {exc}") from exc

    async def perform(
        self,
        order_id: str,
        action: OrderAction,
        token: str | None,
        text: str | None = None,
    ) -> None:
        body = None
        if action in _TEXT_FIELDS:
            body = {_TEXT_FIELDS[action]: text or ""}
        await self._request("PUT", f"/orders/{order_id}/{action.value}", token, json=body)

    # --- Transport ------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        token: str | None,
        json: dict[str, Any] | None = None,
    ) -> dict:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        logger.debug("%s %s%s", method, self._base_url, path)
        try:
            async with self._client() as client:
                response = await client.request(method, path, json=json, headers=headers)
        except httpx.TimeoutException as e:
            logger.error("Order service timed out: %s", e)
            raise GatewayRequestError("Request timeout - the server did not answer in time.") from e
        except httpx.RequestError as e:
            logger.error("Order service unavailable: %s", e)
            raise GatewayRequestError(f"Cannot connect to backend at {self._base_url}") from e
        return self._handle_response(response)

    @staticmethod
    def _handle_response(response: httpx.Response) -> dict:
        """Return the JSON body of a successful response or raise."""
        status = response.status_code
        try:
            data = response.json()
        except ValueError:
            data = None
        server_message = data.get("message", "") if isinstance(data, dict) else ""

        if status == 401:
            logger.warning("%s %s -> 401", response.request.method, response.request.url.path)
            raise GatewayUnauthorized(SESSION_EXPIRED_MESSAGE, status)

        if not response.is_success:
            logger.warning(
                "%s %s -> %s %s",
                response.request.method,
                response.request.url.path,
                status,
                server_message,
            )
            raise GatewayRequestError(server_message or _status_message(status), status)

        if not isinstance(data, dict):
            raise GatewayRequestError("Invalid response from server", status)
        if not data.get("success"):
            raise GatewayRejected(server_message, status)
        return data

    # --- Deserialization ------------------------------------------------------

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        items = tuple(HttpOrderGateway._item_to_domain(i) for i in raw.get("items") or [])
        customer = raw.get("customer") or {}
        kwargs: dict[str, Any] = {}
        if raw.get("createdAt"):
            kwargs["created_at"] = _parse_timestamp(raw["createdAt"])
        return Order(
            id=str(raw.get("_id") or raw["id"]),
            order_number=str(raw.get("orderNumber") or ""),
            status=OrderStatus.parse(raw.get("orderStatus", "")),
            items=items,
            total_amount=Money.of(raw.get("totalAmount")),
            customer=Customer(
                name=customer.get("name", ""),
                phone=customer.get("phone", ""),
                location=customer.get("location", ""),
            ),
            payment_method=raw.get("paymentMethod") or DEFAULT_PAYMENT_METHOD,
            customer_notes=raw.get("customerNotes") or None,
            **kwargs,
        )

    @staticmethod
    def _item_to_domain(raw: dict) -> OrderItem:
        quantity = _parse_quantity(raw.get("quantity"))
        unit_price = Money.of(raw.get("unitPrice", raw.get("price")))
        total = raw.get("totalPrice")
        item = OrderItem(
            product_name=raw.get("productName") or raw.get("name") or "Product",
            quantity=quantity,
            unit_price=unit_price,
            total_price=Money.of(total) if total is not None else unit_price * quantity.value,
            images=tuple(url for url in raw.get("images") or [] if isinstance(url, str) and url.strip()),
        )
        if not item.is_priced_consistently:
            logger.warning(
                "Item %r: total %s != %s x %s",
                item.product_name, item.total_price, quantity, unit_price,
            )
        return item


def _has_foreign_status(raw: Any) -> bool:
    """True for an order whose status this client has no lifecycle for.

    Such orders are left out of the listing; a missing status is still
    malformed data.
    """
    if not isinstance(raw, dict):
        return False
    status = raw.get("orderStatus")
    if not isinstance(status, str) or not status:
        return False
    if status in _KNOWN_STATUSES:
        return False
    logger.warning(
        "Skipping order %s with unknown status %r",
        raw.get("orderNumber") or raw.get("_id") or raw.get("id"),
        status,
    )
    return True


def _status_message(status: int) -> str:
    if status == 403:
        return "Access forbidden. You do not have permission to access this resource."
    if status == 404:
        return "Requested resource not found."
    if status >= 500:
        return "Server error. Please try again later."
    return ""


def _parse_quantity(raw: Any) -> Quantity:
    """Missing means one; anything else must be a positive whole number."""
    if raw is None:
        return Quantity(1)
    if isinstance(raw, str):
        raw = int(raw)
    elif isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    return Quantity(raw)


def _parse_timestamp(raw: str) -> datetime:
    try:
        value = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValidationError(f"Invalid timestamp: {raw!r}") from exc
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value
