import click

from invres.infrastructure.cli.order_commands import (
    order_cancel,
    order_create,
    order_delete,
    order_show,
    order_status,
    order_update,
)
from invres.infrastructure.cli.stock_commands import (
    stock_adjust,
    stock_check,
    stock_damage,
    stock_movements,
    stock_receive,
    stock_reconcile,
    stock_show,
)


@click.group()
def cli() -> None:
    """INVRES: inventory reservation engine"""


@cli.group()
def order() -> None:
    """Manage orders and their stock reservations."""


@cli.group()
def stock() -> None:
    """Manage stock levels."""


# Register subcommands
order.add_command(order_cancel)
order.add_command(order_create)
order.add_command(order_delete)
order.add_command(order_show)
order.add_command(order_status)
order.add_command(order_update)
stock.add_command(stock_adjust)
stock.add_command(stock_check)
stock.add_command(stock_damage)
stock.add_command(stock_movements)
stock.add_command(stock_receive)
stock.add_command(stock_reconcile)
stock.add_command(stock_show)
