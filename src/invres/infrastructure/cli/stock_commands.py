"""CLI commands for stock levels, movements and availability."""

from __future__ import annotations

import click

from invres.application.check_availability import all_available
from invres.application.dto import ItemRequest, StockLineDTO
from invres.domain.exceptions import DomainException
from invres.infrastructure.bootstrap import (
    availability_service,
    reconcile_handler,
    set_stock_handler,
    settings,
    show_movements_handler,
    show_stock_handler,
)

_tenant_option = click.option(
    "--tenant", required=True, envvar="INVRES_TENANT", help="Tenant (organization) ID."
)
_warehouse_option = click.option(
    "--warehouse", default=None, help="Warehouse ID (defaults to INVRES_DEFAULT_WAREHOUSE)."
)


def _echo_line(line: StockLineDTO) -> None:
    click.echo(
        f"{line.product_id}@{line.warehouse_id}: available={line.available} "
        f"reserved={line.reserved} committed={line.committed} ({line.status})"
    )


def _parse_requests(raw: str) -> list[ItemRequest]:
    """Parse 'SKU-1:3,SKU-2:5' into ItemRequest list."""
    requests: list[ItemRequest] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'Product:Quantity'."
            )
        product, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{product}'."
            )
        requests.append(ItemRequest(product_id=product.strip(), quantity=qty))
    return requests


@click.command("receive")
@_tenant_option
@click.option("--product", required=True, help="Product ID.")
@_warehouse_option
@click.option("--quantity", required=True, type=int, help="Units received.")
def stock_receive(tenant: str, product: str, warehouse: str | None, quantity: int) -> None:
    """Book a goods receipt into available stock."""
    try:
        line = set_stock_handler().receive(
            tenant, product, warehouse or settings().default_warehouse, quantity
        )
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    _echo_line(line)


@click.command("damage")
@_tenant_option
@click.option("--product", required=True, help="Product ID.")
@_warehouse_option
@click.option("--quantity", required=True, type=int, help="Units written off.")
def stock_damage(tenant: str, product: str, warehouse: str | None, quantity: int) -> None:
    """Write off damaged units from available stock."""
    try:
        line = set_stock_handler().record_damage(
            tenant, product, warehouse or settings().default_warehouse, quantity
        )
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    _echo_line(line)


@click.command("adjust")
@_tenant_option
@click.option("--product", required=True, help="Product ID.")
@_warehouse_option
@click.option("--available", type=int, default=None, help="Counted available quantity.")
@click.option("--minimum", type=int, default=None, help="Low-stock threshold.")
def stock_adjust(
    tenant: str,
    product: str,
    warehouse: str | None,
    available: int | None,
    minimum: int | None,
) -> None:
    """Correct available stock after a count, or change the low-stock threshold."""
    if available is None and minimum is None:
        raise click.UsageError("Give --available, --minimum or both.")
    warehouse = warehouse or settings().default_warehouse
    handler = set_stock_handler()

    try:
        if minimum is not None:
            line = handler.set_minimum(tenant, product, warehouse, minimum)
        if available is not None:
            line = handler.set_level(tenant, product, warehouse, available)
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    _echo_line(line)


@click.command("show")
@_tenant_option
@click.option("--warehouse", default=None, help="Only show this warehouse.")
def stock_show(tenant: str, warehouse: str | None) -> None:
    """Show current stock levels."""
    try:
        lines = show_stock_handler().handle(tenant, warehouse)
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    if not lines:
        click.echo("No stock records found.")
        return

    click.echo(
        f"{'Product':<20} {'Warehouse':<12} {'Available':>10} {'Reserved':>10} "
        f"{'Committed':>10}  Status"
    )
    click.echo("-" * 80)
    for line in lines:
        click.echo(
            f"{line.product_id:<20} {line.warehouse_id:<12} {line.available:>10} "
            f"{line.reserved:>10} {line.committed:>10}  {line.status}"
        )


@click.command("movements")
@_tenant_option
@click.option("--product", default=None, help="Only show this product.")
@click.option("--order", "order_id", type=int, default=None, help="Only show this order.")
def stock_movements(tenant: str, product: str | None, order_id: int | None) -> None:
    """Show the stock movement log."""
    try:
        movements = show_movements_handler().handle(tenant, product, order_id)
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    if not movements:
        click.echo("No movements recorded.")
        return

    for m in movements:
        order = f" order=#{m.order_id}" if m.order_id is not None else ""
        click.echo(
            f"{m.timestamp}  {m.product_id}@{m.warehouse_id}  {m.reason:<10} "
            f"available{m.delta:+d} reserved{m.reserved_delta:+d} "
            f"committed{m.committed_delta:+d}{order}"
        )


@click.command("check")
@_tenant_option
@click.option("--items", required=True, help="Items as 'Product:Qty,Product:Qty'.")
@_warehouse_option
@click.option("--order", "order_id", type=int, default=None, help="Count this order's own holds as available.")
def stock_check(tenant: str, items: str, warehouse: str | None, order_id: int | None) -> None:
    """Check whether items could be reserved right now."""
    requests = _parse_requests(items)

    try:
        lines = availability_service().check_availability(
            tenant, requests, warehouse or settings().default_warehouse, order_id
        )
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    for line in lines:
        click.echo(f"  {line.product_id:<20} {line.status:<13} {line.message}")
    sufficient = sum(1 for line in lines if line.sufficient)
    click.echo()
    click.echo(
        f"all_available={str(all_available(lines)).lower()}  "
        f"available={sufficient} unavailable={len(lines) - sufficient}"
    )


@click.command("reconcile")
@_tenant_option
def stock_reconcile(tenant: str) -> None:
    """Compare reserved counters with active reservations (report only)."""
    try:
        drifts = reconcile_handler().handle(tenant)
    except DomainException as exc:
        raise click.ClickException(f"[{exc.code}] {exc}")

    if not drifts:
        click.echo("No drift found.")
        return

    for d in drifts:
        click.echo(
            f"{d.product_id}@{d.warehouse_id}: ledger reserved={d.ledger_reserved}, "
            f"active reservations={d.expected_reserved}"
        )
