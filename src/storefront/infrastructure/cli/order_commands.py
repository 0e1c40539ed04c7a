"""CLI commands for the orders view."""

from __future__ import annotations

import asyncio

import click

from storefront.application.dto import OrderDTO
from storefront.application.order_cache import ALL, SORT_KEYS
from storefront.application.order_view import OrderView
from storefront.domain.exceptions import DomainException
from storefront.domain.model.order import OrderStatus
from storefront.domain.service.order_state_machine import OrderAction
from storefront.infrastructure.bootstrap import Settings, order_view

_STATUS_CHOICES = [ALL] + [s.value for s in OrderStatus]


def _load(settings: Settings) -> OrderView:
    """Build the view for the configured role and fill it from the gateway."""
    view = order_view(settings)
    if not asyncio.run(view.refresh()):
        raise click.ClickException(view.notice.error)
    return view


def _display_summary(view: OrderView, orders) -> None:
    counts = view.cache.status_counts()
    click.echo("  ".join(f"{name}={count}" for name, count in counts.items()))
    click.echo()
    click.echo(f"{'Order':<16} {'Status':<11} {'Customer':<20} {'Total':>14}  Actions")
    click.echo("-" * 78)
    for order in orders:
        dto = view.describe(order)
        click.echo(
            f"{dto.order_number:<16} {dto.status:<11} {dto.customer_name:<20} "
            f"{dto.total:>14}  {', '.join(dto.actions) or '-'}"
        )


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {dto.order_number}  (status={dto.status})")
    click.echo(f"Customer: {dto.customer_name}")
    click.echo(f"Created:  {dto.created_at}")
    click.echo(f"Payment:  {dto.payment_method}")
    if dto.notes:
        click.echo(f"Notes:    {dto.notes}")
    click.echo()
    click.echo(f"  {'Product':<24} {'Qty':>5} {'Price':>14} {'Total':>14}")
    click.echo(f"  {'-'*60}")
    for item in dto.items:
        click.echo(
            f"  {item.product_name:<24} {item.quantity:>5} {item.unit_price:>14} {item.total_price:>14}"
        )
    click.echo(f"  {'-'*60}")
    click.echo(f"  {'Order Total':<30} {dto.total:>29}")
    click.echo()
    if dto.image is None:
        click.echo("Images:   none")
    else:
        click.echo(f"Image {dto.image.position}/{dto.image.total}: {dto.image.caption}")
        click.echo(f"  {dto.image.url}")
    click.echo(f"Actions:  {', '.join(dto.actions) or 'none'}")


@click.command("list")
@click.option("--status", type=click.Choice(_STATUS_CHOICES), default=ALL, help="Only orders in this status.")
@click.option("--search", default="", help="Match order number or product name.")
@click.option("--sort", type=click.Choice(SORT_KEYS), default="newest", help="Sort order.")
@click.pass_obj
def order_list(settings: Settings, status: str, search: str, sort: str) -> None:
    """List orders visible to the current role."""
    try:
        view = _load(settings)
        orders = view.visible_orders(status=status, query=search, sort=sort)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not orders:
        click.echo("No orders found.")
        return
    _display_summary(view, orders)


@click.command("show")
@click.option("--id", "order_id", required=True, help="Order id or order number.")
@click.option("--next", "forward", default=0, type=click.IntRange(min=0), help="Advance the image carousel N times.")
@click.option("--prev", "backward", default=0, type=click.IntRange(min=0), help="Step the image carousel back N times.")
@click.pass_obj
def order_show(settings: Settings, order_id: str, forward: int, backward: int) -> None:
    """Show details of one order, including its current image."""
    try:
        view = _load(settings)
        order = view.cache.get(order_id) or view.cache.get_by_number(order_id)
        if order is None:
            raise click.ClickException(f"Order {order_id} not found")
        for _ in range(forward):
            view.cursors.next(order)
        for _ in range(backward):
            view.cursors.prev(order)
        dto = view.describe(order)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


def _perform(settings: Settings, order_id: str, action: OrderAction, text: str | None = None) -> None:
    """Shared flow: load, dispatch, report."""
    try:
        view = _load(settings)
        outcome = asyncio.run(view.perform(order_id, action, text))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not outcome.ok:
        raise click.ClickException(outcome.message)

    order = view.cache.get(order_id) or view.cache.get_by_number(order_id)
    click.echo(outcome.message)
    if order is not None:
        click.echo(f"Order {order.order_number} is now {order.status.value}.")


@click.command("process")
@click.option("--id", "order_id", required=True, help="Order id or order number.")
@click.pass_obj
def order_process(settings: Settings, order_id: str) -> None:
    """Start processing a pending order (admin)."""
    _perform(settings, order_id, OrderAction.PROCESS)


@click.command("deliver")
@click.option("--id", "order_id", required=True, help="Order id or order number.")
@click.pass_obj
def order_deliver(settings: Settings, order_id: str) -> None:
    """Mark a processing order as delivered (admin)."""
    _perform(settings, order_id, OrderAction.DELIVER)


@click.command("reject")
@click.option("--id", "order_id", required=True, help="Order id or order number.")
@click.option("--reason", required=True, help="Why the order is rejected.")
@click.pass_obj
def order_reject(settings: Settings, order_id: str, reason: str) -> None:
    """Reject a pending order (admin)."""
    _perform(settings, order_id, OrderAction.REJECT, reason)


@click.command("confirm-delivery")
@click.option("--id", "order_id", required=True, help="Order id or order number.")
@click.option("--note", required=True, help="Confirmation note.")
@click.pass_obj
def order_confirm_delivery(settings: Settings, order_id: str, note: str) -> None:
    """Confirm that a delivered order arrived (customer)."""
    _perform(settings, order_id, OrderAction.CONFIRM_DELIVERY, note)


@click.command("cancel")
@click.option("--id", "order_id", required=True, help="Order id or order number.")
@click.option("--reason", required=True, help="Why the order is cancelled.")
@click.pass_obj
def order_cancel(settings: Settings, order_id: str, reason: str) -> None:
    """Cancel a pending order (customer)."""
    _perform(settings, order_id, OrderAction.CANCEL, reason)
