"""CLI commands for order mutations and queries."""

from __future__ import annotations

import click

from invres.application.dto import (
    Cancel,
    CreateOrder,
    DeleteOrder,
    ItemUpdate,
    OrderDTO,
    OrderLineSpec,
    StatusOnly,
)
from invres.domain.exceptions import DomainException
from invres.infrastructure.bootstrap import (
    order_orchestrator,
    settings,
    show_order_handler,
)

_tenant_option = click.option(
    "--tenant", required=True, envvar="INVRES_TENANT", help="Tenant (organization) ID."
)


def _parse_items(raw: str, default_warehouse: str) -> list[OrderLineSpec]:
    """Parse 'SKU-1:3,SKU-2@WH-002:5' into OrderLineSpec list.

    Items without an ``@warehouse`` part use ``default_warehouse``.
    """
    specs: list[OrderLineSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'Product[@Warehouse]:Quantity'."
            )
        target, qty_str = pair.rsplit(":", 1)
        product, _, warehouse = target.partition("@")
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{product}'."
            )
        specs.append(
            OrderLineSpec(
                product_id=product.strip(),
                warehouse_id=warehouse.strip() or default_warehouse,
                quantity=qty,
            )
        )
    return specs


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    flag = "  [INCONSISTENT: needs manual reconciliation]" if dto.inconsistent else ""
    click.echo(f"Order #{dto.id}  (status={dto.status}){flag}")
    click.echo(f"Tenant:   {dto.tenant_id}")
    click.echo(f"Created:  {dto.created_at}")
    click.echo(f"Updated:  {dto.updated_at}")
    click.echo()
    click.echo(f"  {'Product':<20} {'Warehouse':<12} {'Qty':>5}")
    click.echo(f"  {'-'*39}")
    for line in dto.lines:
        click.echo(f"  {line.product_id:<20} {line.warehouse_id:<12} {line.quantity:>5}")


@click.command("create")
@_tenant_option
@click.option("--items", required=True, help="Items as 'Product[@Warehouse]:Qty,...'.")
@click.option("--warehouse", default=None, help="Warehouse for items without one.")
def order_create(tenant: str, items: str, warehouse: str | None) -> None:
    """Create a pending order and reserve its stock."""
    specs = _parse_items(items, warehouse or settings().default_warehouse)

    try:
        dto = order_orchestrator().create(CreateOrder(tenant_id=tenant, lines=specs))
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    click.echo(f"Order #{dto.id} created, stock reserved.")
    click.echo()
    _display_order(dto)


@click.command("update")
@_tenant_option
@click.option("--id", "order_id", required=True, type=int, help="Order ID to edit.")
@click.option("--items", required=True, help="Full new item list as 'Product[@Warehouse]:Qty,...'.")
@click.option("--warehouse", default=None, help="Warehouse for items without one.")
@click.option("--status", default=None, help="Optional non-terminal status to move to.")
def order_update(
    tenant: str, order_id: int, items: str, warehouse: str | None, status: str | None
) -> None:
    """Replace an order's items, moving only the net stock difference."""
    specs = _parse_items(items, warehouse or settings().default_warehouse)

    try:
        dto = order_orchestrator().update_items(
            ItemUpdate(tenant_id=tenant, order_id=order_id, lines=specs, status=status)
        )
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    click.echo(f"Order #{dto.id} updated.")
    click.echo()
    _display_order(dto)


@click.command("status")
@_tenant_option
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--to", "status", required=True, help="New status, e.g. 'confirmed' or 'shipped'.")
@click.option("--note", default=None, help="Note for the status timeline.")
def order_status(tenant: str, order_id: int, status: str, note: str | None) -> None:
    """Move an order to a new status (fulfilled statuses commit its stock)."""
    try:
        dto = order_orchestrator().change_status(
            StatusOnly(tenant_id=tenant, order_id=order_id, status=status, note=note)
        )
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    click.echo(f"Order #{dto.id} is now {dto.status}.")


@click.command("cancel")
@_tenant_option
@click.option("--id", "order_id", required=True, type=int, help="Order ID to cancel.")
@click.option("--note", default=None, help="Cancellation reason.")
def order_cancel(tenant: str, order_id: int, note: str | None) -> None:
    """Cancel an order and release its reserved stock."""
    try:
        order_orchestrator().cancel(Cancel(tenant_id=tenant, order_id=order_id, note=note))
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    click.echo(f"Order #{order_id} cancelled, reserved stock released.")


@click.command("delete")
@_tenant_option
@click.option("--id", "order_id", required=True, type=int, help="Pending order ID to delete.")
def order_delete(tenant: str, order_id: int) -> None:
    """Delete a pending order after releasing its stock."""
    try:
        order_orchestrator().delete(DeleteOrder(tenant_id=tenant, order_id=order_id))
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    click.echo(f"Order #{order_id} deleted.")


@click.command("show")
@_tenant_option
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
def order_show(tenant: str, order_id: int) -> None:
    """Show details of an existing order."""
    try:
        dto = show_order_handler().handle(tenant, order_id)
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    _display_order(dto)
