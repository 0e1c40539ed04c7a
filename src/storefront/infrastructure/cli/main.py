import logging
from dataclasses import replace

import click

from storefront.domain.exceptions import DomainException
from storefront.infrastructure.bootstrap import load_settings, parse_role
from storefront.infrastructure.cli.order_commands import (
    order_cancel,
    order_confirm_delivery,
    order_deliver,
    order_list,
    order_process,
    order_reject,
    order_show,
)


@click.group()
@click.option("--role", default=None, help="Act as 'admin' or 'customer' (overrides STOREFRONT_ROLE).")
@click.option("--token", default=None, help="Bearer token (overrides STOREFRONT_TOKEN).")
@click.pass_context
def cli(ctx: click.Context, role: str | None, token: str | None) -> None:
    """Storefront: order lifecycle client"""
    try:
        settings = load_settings()
        if role is not None:
            settings = replace(settings, role=parse_role(role))
    except DomainException as exc:
        raise click.ClickException(str(exc))
    if token is not None:
        settings = replace(settings, token=token)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = settings


@cli.group()
def order() -> None:
    """Manage orders."""


# Register subcommands
order.add_command(order_cancel)
order.add_command(order_confirm_delivery)
order.add_command(order_deliver)
order.add_command(order_list)
order.add_command(order_process)
order.add_command(order_reject)
order.add_command(order_show)
