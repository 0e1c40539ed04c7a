"""Tests for the role-parameterized orders view, including the full lifecycle."""

import pytest

from storefront.application.order_view import OrderView
from storefront.application.outcome import SESSION_EXPIRED_MESSAGE, ErrorKind
from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.model.order import OrderStatus
from storefront.domain.repository.order_gateway import (
    GatewayRejected,
    GatewayRequestError,
    GatewayUnauthorized,
)
from storefront.domain.service.order_state_machine import OrderAction, Role, allowed_actions
from tests.fakes import FakeOrderGateway, FakeSession, make_item, make_order


async def _loaded_view(role, orders, session=None):
    gateway = FakeOrderGateway(orders)
    view = OrderView(gateway, session or FakeSession(), role)
    assert await view.refresh()
    return view, gateway


class TestRefresh:

    @pytest.mark.asyncio
    async def test_fills_cache_for_role(self):
        view, gateway = await _loaded_view(Role.CUSTOMER, [make_order("a"), make_order("b")])

        assert [o.id for o in view.cache] == ["a", "b"]
        assert gateway.list_calls == [(Role.CUSTOMER, "test-token")]

    @pytest.mark.asyncio
    async def test_requires_login(self):
        gateway = FakeOrderGateway([make_order()])
        view = OrderView(gateway, FakeSession(token=None), Role.CUSTOMER)

        assert not await view.refresh()
        assert view.notice.error == "Please login to view your orders"
        assert gateway.list_calls == []

    @pytest.mark.asyncio
    async def test_unauthorized_logs_out_once_and_keeps_cache(self):
        session = FakeSession()
        view, gateway = await _loaded_view(Role.ADMIN, [make_order("a")], session)
        gateway.fail_with = GatewayUnauthorized(SESSION_EXPIRED_MESSAGE, 401)

        assert not await view.refresh()
        assert session.logouts == ["/admin/orders"]
        assert view.notice.error == SESSION_EXPIRED_MESSAGE
        assert view.cache.get("a") is not None

    @pytest.mark.asyncio
    async def test_failure_surfaces_message(self):
        view, gateway = await _loaded_view(Role.ADMIN, [make_order("a")])
        gateway.fail_with = GatewayRequestError("", 503)

        assert not await view.refresh()
        assert view.notice.error == "Failed to load orders"

    @pytest.mark.asyncio
    async def test_cursors_survive_filtering_but_not_disappearance(self):
        gallery = (make_item(images=["1", "2", "3"]),)
        a = make_order("a", items=gallery)
        b = make_order("b", items=gallery, status=OrderStatus.CANCELLED)
        view, gateway = await _loaded_view(Role.ADMIN, [a, b])
        view.cursors.next(a)
        view.cursors.next(b)

        view.visible_orders(status="pending")
        assert view.cursors.get("b") == 1

        del gateway._store["b"]
        await view.refresh()
        assert view.cursors.get("a") == 1
        assert "b" not in view.cursors


class TestPerform:

    @pytest.mark.asyncio
    async def test_customer_success_patches_without_refetch(self):
        view, gateway = await _loaded_view(Role.CUSTOMER, [make_order("a")])

        outcome = await view.perform("a", OrderAction.CANCEL, "ordered twice")

        assert outcome.ok
        assert view.cache.get("a").status is OrderStatus.CANCELLED
        assert len(gateway.list_calls) == 1
        assert view.notice.success == "Order cancelled successfully!"

    @pytest.mark.asyncio
    async def test_admin_success_refetches(self):
        view, gateway = await _loaded_view(Role.ADMIN, [make_order("a")])

        await view.perform("a", OrderAction.PROCESS)

        assert len(gateway.list_calls) == 2
        assert view.cache.get("a").status is OrderStatus.PROCESSING

    @pytest.mark.asyncio
    async def test_admin_success_survives_failed_refetch(self):
        view, gateway = await _loaded_view(Role.ADMIN, [make_order("a")])
        gateway.fail_list_with = GatewayRequestError("Server error. Please try again later.", 503)

        outcome = await view.perform("a", OrderAction.PROCESS)

        assert outcome.ok
        assert gateway.stored("a").status is OrderStatus.PROCESSING
        assert view.cache.get("a").status is OrderStatus.PROCESSING
        assert OrderAction.PROCESS not in {s.action for s in view.actions_for(view.cache.get("a"))}
        assert view.notice.success == "Order processed"
        assert view.notice.error == "Server error. Please try again later."

    @pytest.mark.asyncio
    async def test_accepts_order_number(self):
        view, _ = await _loaded_view(Role.ADMIN, [make_order("a", number="ORD-77")])

        await view.perform("ORD-77", OrderAction.PROCESS)

        assert view.cache.get("a").status is OrderStatus.PROCESSING

    @pytest.mark.asyncio
    async def test_unknown_order_rejected(self):
        view, _ = await _loaded_view(Role.ADMIN, [make_order("a")])

        with pytest.raises(EntityNotFoundError):
            await view.perform("nope", OrderAction.PROCESS)

    @pytest.mark.asyncio
    async def test_failure_leaves_cache_and_replaces_error(self):
        view, gateway = await _loaded_view(Role.CUSTOMER, [make_order("a")])
        gateway.fail_with = GatewayRejected("first", 200)
        await view.perform("a", OrderAction.CANCEL, "x")
        gateway.fail_with = GatewayRejected("second", 200)

        outcome = await view.perform("a", OrderAction.CANCEL, "x")

        assert outcome.error is ErrorKind.REJECTED
        assert view.notice.error == "second"
        assert view.cache.get("a").status is OrderStatus.PENDING

    @pytest.mark.asyncio
    async def test_success_clears_error(self):
        view, gateway = await _loaded_view(Role.CUSTOMER, [make_order("a")])
        gateway.fail_with = GatewayRequestError("down", 502)
        await view.perform("a", OrderAction.CANCEL, "x")
        gateway.fail_with = None

        await view.perform("a", OrderAction.CANCEL, "x")

        assert view.notice.error == ""

    @pytest.mark.asyncio
    async def test_error_can_be_dismissed(self):
        view, gateway = await _loaded_view(Role.CUSTOMER, [make_order("a")])
        gateway.fail_with = GatewayRequestError("down", 502)
        await view.perform("a", OrderAction.CANCEL, "x")

        view.notice.dismiss()

        assert view.notice.error == ""


class TestReadSide:

    @pytest.mark.asyncio
    async def test_visible_orders_filters_searches_sorts(self):
        view, _ = await _loaded_view(Role.ADMIN, [
            make_order("a", number="ORD-1", total=100),
            make_order("b", number="ORD-2", total=900),
            make_order("c", number="XYZ-3", total=500),
            make_order("d", number="ORD-4", status=OrderStatus.CANCELLED),
        ])

        result = view.visible_orders(status="pending", query="ord", sort="price-high")

        assert [o.id for o in result] == ["b", "a"]

    @pytest.mark.asyncio
    async def test_describe(self):
        order = make_order("a", items=(make_item("Kettle", qty=2, price=30000, images=["k1", "k2"]),))
        view, _ = await _loaded_view(Role.ADMIN, [order])
        view.cursors.prev(order)

        dto = view.describe(order)

        assert dto.total == "UGX 60,000"
        assert dto.items[0].unit_price == "UGX 30,000"
        assert dto.image.url == "k2"
        assert dto.image.caption == "Kettle"
        assert (dto.image.position, dto.image.total) == (2, 2)
        assert dto.actions == ["process", "reject"]

    @pytest.mark.asyncio
    async def test_describe_without_images(self):
        view, _ = await _loaded_view(Role.CUSTOMER, [make_order("a", status=OrderStatus.CONFIRMED)])

        dto = view.describe(view.cache.get("a"))

        assert dto.image is None
        assert dto.actions == []


class TestLifecycleEndToEnd:

    @pytest.mark.asyncio
    async def test_pending_to_confirmed_across_both_actors(self):
        gateway = FakeOrderGateway([make_order("a")])
        admin = OrderView(gateway, FakeSession("admin-token"), Role.ADMIN)
        customer = OrderView(gateway, FakeSession("customer-token"), Role.CUSTOMER)
        await admin.refresh()

        assert (await admin.perform("a", OrderAction.PROCESS)).ok
        assert admin.cache.get("a").status is OrderStatus.PROCESSING

        assert (await admin.perform("a", OrderAction.DELIVER)).ok
        assert admin.cache.get("a").status is OrderStatus.DELIVERED

        await customer.refresh()
        outcome = await customer.perform("a", OrderAction.CONFIRM_DELIVERY, "Received, all good")
        assert outcome.ok
        confirmed = customer.cache.get("a")
        assert confirmed.status is OrderStatus.CONFIRMED

        assert allowed_actions(confirmed, Role.ADMIN) == ()
        assert allowed_actions(confirmed, Role.CUSTOMER) == ()
        assert gateway.calls[-1] == ("a", OrderAction.CONFIRM_DELIVERY, "customer-token", "Received, all good")

    @pytest.mark.asyncio
    async def test_optimistic_patch_can_go_stale_until_refresh(self):
        gateway = FakeOrderGateway([make_order("a")])
        customer = OrderView(gateway, FakeSession(), Role.CUSTOMER)
        await customer.refresh()

        # Another actor moves the order on the server.
        gateway.put(gateway.stored("a").with_status(OrderStatus.PROCESSING))
        assert customer.cache.get("a").status is OrderStatus.PENDING

        await customer.refresh()
        assert customer.cache.get("a").status is OrderStatus.PROCESSING
